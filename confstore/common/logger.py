"""Logging utilities centralised for confstore components."""
from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, Callable, Dict

from loguru import logger

DEFAULT_COMPONENT = "confstore"


def _generation_filter(show_generations: bool) -> Callable[[Dict[str, Any]], bool]:
    """Drop per-generation debug records unless they were asked for."""

    def _filter(record: Dict[str, Any]) -> bool:
        return show_generations or "generation" not in record["extra"]

    return _filter


def configure_logging(
    component: str = DEFAULT_COMPONENT,
    level: str = "INFO",
    log_dir: str | None = None,
    show_generations: bool | None = None,
) -> None:
    """Configure loguru logging for a confstore component.

    Every load/set logs one debug record bound with its ``generation``
    number. Those records are noisy, so they are only kept when
    ``show_generations`` is set, or when it is left unset and
    ``CONFSTORE_LOG_GENERATIONS`` is truthy.
    """

    if show_generations is None:
        show_generations = os.getenv("CONFSTORE_LOG_GENERATIONS", "").lower() in {"1", "true", "yes"}
    record_filter = _generation_filter(show_generations)

    logger.remove()
    logger.add(
        sink=lambda msg: sys.stderr.write(msg),
        level=level.upper(),
        filter=record_filter,
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
        f"{component} | {{name}} | {{message}}",
        colorize=False,
        backtrace=False,
        diagnose=False,
    )

    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        logger.add(
            path / f"{component}.log",
            level=level.upper(),
            filter=record_filter,
            rotation="7 days",
            retention="30 days",
            compression="zip",
            enqueue=True,
        )


def get_log_level_from_env(default: str = "INFO") -> str:
    return os.getenv("CONFSTORE_LOG_LEVEL", default)


__all__ = ["DEFAULT_COMPONENT", "logger", "configure_logging", "get_log_level_from_env"]

#!/usr/bin/env python3
"""confctl: helper CLI for inspecting configuration files through confstore."""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any, List, Optional

import typer
from rich import print
from rich.console import Console
from rich.table import Table

from confstore.common.logger import configure_logging, get_log_level_from_env, logger
from confstore.core.cache import ChangeSet
from confstore.core.configuration import Configuration
from confstore.core.errors import ConfStoreError
from confstore.sources.decoders import decoder_for_path
from confstore.sources.file import FileDataSource

APP = typer.Typer(add_completion=False, help="confstore configuration inspection helper")
CONSOLE = Console()

GETTERS = {
    "raw": Configuration.get,
    "string": Configuration.get_string,
    "bool": Configuration.get_bool,
    "int": Configuration.get_int,
    "float": Configuration.get_float64,
    "time": Configuration.get_time,
    "duration": Configuration.get_duration,
    "strings": Configuration.get_string_slice,
    "slice": Configuration.get_slice,
    "map": Configuration.get_string_map,
}


@APP.callback()
def main(
    log_level: str = typer.Option(get_log_level_from_env("WARNING"), "--log-level", help="Log level for confstore"),
    generations: bool = typer.Option(False, "--generations", help="Also log every load/set generation"),
) -> None:
    configure_logging("confctl", log_level, show_generations=generations or None)


def load_file(path: Path, delim: str) -> Configuration:
    config = Configuration(key_delim=delim)
    try:
        config.load(path.read_bytes(), decoder_for_path(path))
    except OSError as exc:
        print(f"[bold red]Cannot read {path}:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc
    except ConfStoreError as exc:
        print(f"[bold red]Invalid configuration {path}:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc
    return config


def render(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str, sort_keys=True)
    return str(value)


@APP.command()
def show(
    path: Path = typer.Argument(..., help="YAML or JSON configuration file"),
    prefix: str = typer.Option("", help="Only list keys starting with this prefix"),
    delim: str = typer.Option(".", help="Key delimiter"),
) -> None:
    """List every flattened key with its value."""

    config = load_file(path, delim)
    table = Table(title=str(path))
    table.add_column("Key")
    table.add_column("Value")
    for key in config.all_keys():
        if key.startswith(prefix):
            table.add_row(key, render(config.get(key)))
    CONSOLE.print(table)


@APP.command()
def get(
    path: Path = typer.Argument(..., help="YAML or JSON configuration file"),
    key: str = typer.Argument(..., help="Dotted key to resolve"),
    as_type: str = typer.Option("raw", "--as", help=f"One of: {', '.join(GETTERS)}"),
    delim: str = typer.Option(".", help="Key delimiter"),
) -> None:
    """Resolve one key and print it converted to the requested type."""

    getter = GETTERS.get(as_type)
    if getter is None:
        print(f"[bold red]Unknown type {as_type!r}[/bold red]")
        raise typer.Exit(code=2)
    config = load_file(path, delim)
    typer.echo(render(getter(config, key)))


@APP.command()
def watch(
    path: Path = typer.Argument(..., help="YAML or JSON configuration file"),
    prefix: Optional[List[str]] = typer.Option(None, help="Report only changes under these prefixes"),
    interval: float = typer.Option(1.0, help="Polling interval in seconds"),
    duration: Optional[float] = typer.Option(None, help="Stop after this many seconds"),
) -> None:
    """Follow a configuration file and print every change set."""

    source = FileDataSource(path, poll_interval=interval)

    def report(config: Configuration, changes: ChangeSet) -> None:
        if not changes:
            CONSOLE.print(f"[green]Loaded[/green] {path} ({len(config.all_keys())} keys)")
            return
        table = Table(title="Changed keys")
        table.add_column("Key")
        table.add_column("New value")
        for key in sorted(changes):
            table.add_row(key, render(changes[key]))
        CONSOLE.print(table)

    config = Configuration()
    if prefix:
        for item in prefix:
            config.watch(item, report)
    else:
        config.on_change(report)
    try:
        config.load_from_data_source(source, decoder_for_path(path))
    except ConfStoreError as exc:
        print(f"[bold red]Cannot load {path}:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc

    started = time.monotonic()
    try:
        while duration is None or time.monotonic() - started < duration:
            time.sleep(min(interval, 0.2))
    except KeyboardInterrupt:
        logger.info("confctl watch stopping")
    finally:
        source.close()


if __name__ == "__main__":
    APP()

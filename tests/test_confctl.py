from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from confstore.cli.confctl import APP

runner = CliRunner()


@pytest.fixture()
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "app.yaml"
    path.write_text(
        "server:\n  port: '8080'\n  timeout: 1m\ndatabase:\n  hosts: [a, b]\n",
        encoding="utf-8",
    )
    return path


def test_get_casts_values(config_file: Path) -> None:
    result = runner.invoke(APP, ["get", str(config_file), "server.port", "--as", "int"])
    assert result.exit_code == 0
    assert result.stdout.strip() == "8080"

    result = runner.invoke(APP, ["get", str(config_file), "server.timeout", "--as", "duration"])
    assert result.stdout.strip() == "0:01:00"

    result = runner.invoke(APP, ["get", str(config_file), "database.hosts"])
    assert result.stdout.strip() == '["a", "b"]'


def test_get_rejects_unknown_type(config_file: Path) -> None:
    result = runner.invoke(APP, ["get", str(config_file), "server.port", "--as", "complex"])
    assert result.exit_code == 2


def test_show_lists_flattened_keys(config_file: Path) -> None:
    result = runner.invoke(APP, ["show", str(config_file), "--prefix", "server"])
    assert result.exit_code == 0
    assert "server.port" in result.stdout
    assert "server.timeout" in result.stdout
    assert "database.hosts" not in result.stdout


def test_missing_file_exits_with_error(tmp_path: Path) -> None:
    result = runner.invoke(APP, ["show", str(tmp_path / "nope.yaml")])
    assert result.exit_code == 1


def test_watch_reports_initial_load(config_file: Path) -> None:
    result = runner.invoke(APP, ["watch", str(config_file), "--interval", "0.05", "--duration", "0.3"])
    assert result.exit_code == 0
    assert "Loaded" in result.stdout

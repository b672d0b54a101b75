from __future__ import annotations

import datetime as dt

import pytest

from confstore.core import cast
from confstore.core.configuration import Configuration
from confstore.sources.decoders import yaml_decoder


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("1h30m", dt.timedelta(hours=1, minutes=30)),
        ("250ms", dt.timedelta(milliseconds=250)),
        ("-1.5s", dt.timedelta(seconds=-1.5)),
        ("2h45m30.5s", dt.timedelta(hours=2, minutes=45, seconds=30.5)),
        ("10", dt.timedelta(seconds=10)),
    ],
)
def test_parse_duration(text: str, expected: dt.timedelta) -> None:
    assert cast.parse_duration(text) == expected


@pytest.mark.parametrize("text", ["", "abc", "1h-30m", "5 minutes", "nan"])
def test_parse_duration_rejects_garbage(text: str) -> None:
    with pytest.raises(ValueError):
        cast.parse_duration(text)


def test_to_string() -> None:
    assert cast.to_string(None) == ""
    assert cast.to_string(True) == "true"
    assert cast.to_string(5) == "5"
    assert cast.to_string(b"raw") == "raw"
    assert cast.to_string(dt.date(2024, 1, 2)) == "2024-01-02"
    assert cast.to_string([1]) == ""


def test_to_bool() -> None:
    assert cast.to_bool("true") is True
    assert cast.to_bool("0") is False
    assert cast.to_bool(1) is True
    assert cast.to_bool("definitely") is False
    assert cast.to_bool(None) is False


def test_to_int() -> None:
    assert cast.to_int("42") == 42
    assert cast.to_int(3.9) == 3
    assert cast.to_int("3.5") == 3
    assert cast.to_int(True) == 1
    assert cast.to_int("x") == 0
    assert cast.to_int([1]) == 0
    assert cast.to_int(None) == 0


def test_to_float() -> None:
    assert cast.to_float("2.5") == 2.5
    assert cast.to_float(2) == 2.0
    assert cast.to_float("x") == 0.0


def test_to_time() -> None:
    utc = dt.timezone.utc
    assert cast.to_time("2024-01-02T03:04:05Z") == dt.datetime(2024, 1, 2, 3, 4, 5, tzinfo=utc)
    assert cast.to_time(dt.date(2024, 1, 2)) == dt.datetime(2024, 1, 2, tzinfo=utc)
    assert cast.to_time("garbage") == cast.ZERO_TIME
    assert cast.to_time(None) == cast.ZERO_TIME


def test_to_duration() -> None:
    assert cast.to_duration("1m") == dt.timedelta(minutes=1)
    assert cast.to_duration(2) == dt.timedelta(seconds=2)
    assert cast.to_duration("PT5M") == dt.timedelta(minutes=5)
    assert cast.to_duration("bogus") == cast.ZERO_DURATION
    assert cast.to_duration(True) == cast.ZERO_DURATION


def test_collections() -> None:
    assert cast.to_slice((1, 2)) == [1, 2]
    assert cast.to_slice("a") == []
    assert cast.to_string_slice("a b  c") == ["a", "b", "c"]
    assert cast.to_string_slice([1, "x", False]) == ["1", "x", "false"]
    assert cast.to_string_map('{"a": 1}') == {"a": 1}
    assert cast.to_string_map("not json") == {}
    assert cast.to_string_map(5) == {}
    assert cast.to_string_map_string({"a": 1, "b": True}) == {"a": "1", "b": "true"}
    assert cast.to_string_map_string_slice({"a": "x", "b": [1, 2], "c": 3}) == {
        "a": ["x"],
        "b": ["1", "2"],
        "c": ["3"],
    }
    assert cast.to_slice_string_map([{"a": 1}, 3]) == [{"a": 1}]
    assert cast.to_slice_string_map({"a": 1}) == []


def test_configuration_getters_degrade_to_zero_values() -> None:
    config = Configuration()
    config.load(
        b"server:\n"
        b"  port: '8080'\n"
        b"  debug: yes\n"
        b"  ratio: 0.25\n"
        b"  timeout: 1m30s\n"
        b"  started: '2024-01-02T03:04:05Z'\n"
        b"  hosts: [a, b]\n"
        b"  labels: {team: core, tier: 1}\n"
        b"  routes: {api: [v1, v2]}\n"
        b"  backends: [{name: one}, {name: two}]\n",
        yaml_decoder,
    )
    assert config.get_int("server.port") == 8080
    assert config.get_int64("server.port") == 8080
    assert config.get_bool("server.debug") is True
    assert config.get_float64("server.ratio") == 0.25
    assert config.get_duration("server.timeout") == dt.timedelta(minutes=1, seconds=30)
    assert config.get_time("server.started") == dt.datetime(2024, 1, 2, 3, 4, 5, tzinfo=dt.timezone.utc)
    assert config.get_string_slice("server.hosts") == ["a", "b"]
    assert config.get_slice("server.hosts") == ["a", "b"]
    assert config.get_string_map_string("server.labels") == {"team": "core", "tier": "1"}
    assert config.get_string_map_string_slice("server.routes") == {"api": ["v1", "v2"]}
    assert config.get_slice_string_map("server.backends") == [{"name": "one"}, {"name": "two"}]

    assert config.get_int("missing") == 0
    assert config.get_string("missing") == ""
    assert config.get_bool("missing") is False
    assert config.get_float64("server.hosts") == 0.0
    assert config.get_duration("missing") == cast.ZERO_DURATION
    assert config.get_time("missing") == cast.ZERO_TIME
    assert config.get_string_slice("missing") == []
    assert config.get_string_map("server.port") == {}

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field

import pytest
from pydantic import BaseModel, Field

from confstore.core.configuration import Configuration
from confstore.core.decode import DecodeOptions, Duration
from confstore.core.errors import InvalidKeyError, UnmarshalError
from confstore.sources.decoders import yaml_decoder


class Database(BaseModel):
    host: str
    port: int
    timeout: Duration = dt.timedelta(seconds=1)


class Credentials(BaseModel):
    user: str
    password: str


class Endpoint(BaseModel):
    url: str
    credentials: Credentials


class Cluster(BaseModel):
    name: str = Field(json_schema_extra={"config": "cluster_name"})
    databases: list[Database] = []


@dataclass
class Server:
    listen: str = field(metadata={"config": "listen_addr", "yaml": "addr"})
    workers: int = 1


class PlainDatabase:
    def __init__(self, host: str = "fallback") -> None:
        self.host = host


@dataclass
class DanglingPeer:
    peer: "NoSuchType"  # noqa: F821


@pytest.fixture()
def config() -> Configuration:
    cfg = Configuration()
    cfg.load(
        b"db:\n"
        b"  host: localhost\n"
        b"  port: '5432'\n"
        b"  timeout: 1m30s\n"
        b"server:\n"
        b"  listen_addr: ':8080'\n"
        b"  addr: ':9090'\n"
        b"  workers: '4'\n"
        b"api:\n"
        b"  url: http://api.local\n"
        b"  user: bob\n"
        b"  password: s3cret\n"
        b"cluster:\n"
        b"  cluster_name: main\n"
        b"  databases:\n"
        b"    - {host: a, port: 1, timeout: 250ms}\n",
        yaml_decoder,
    )
    return cfg


def test_unmarshal_key_into_model_with_weak_typing(config: Configuration) -> None:
    db = config.unmarshal_key("db", Database)
    assert db == Database(host="localhost", port=5432, timeout=dt.timedelta(minutes=1, seconds=30))


def test_strict_decoding_rejects_loose_types(config: Configuration) -> None:
    with pytest.raises(UnmarshalError):
        config.unmarshal_key("db", Database, weakly_typed_input=False)


def test_missing_key_raises_invalid_key_error(config: Configuration) -> None:
    with pytest.raises(InvalidKeyError) as excinfo:
        config.unmarshal_key("missing", Database)
    assert isinstance(excinfo.value, KeyError)
    assert "missing" in str(excinfo.value)


def test_dataclass_fields_honour_the_tag_name(config: Configuration) -> None:
    assert config.unmarshal_key("server", Server) == Server(listen=":8080", workers=4)
    assert config.unmarshal_key("server", Server, tag_name="yaml") == Server(listen=":9090", workers=4)


def test_model_fields_honour_the_tag_name_in_nested_lists(config: Configuration) -> None:
    cluster = config.unmarshal_key("cluster", Cluster)
    assert cluster.name == "main"
    assert cluster.databases == [Database(host="a", port=1, timeout=dt.timedelta(milliseconds=250))]


def test_squash_reads_nested_models_from_the_parent_mapping(config: Configuration) -> None:
    with pytest.raises(UnmarshalError):
        config.unmarshal_key("api", Endpoint)
    endpoint = config.unmarshal_key("api", Endpoint, squash=True)
    assert endpoint.credentials == Credentials(user="bob", password="s3cret")


def test_empty_key_decodes_the_whole_tree(config: Configuration) -> None:
    class Root(BaseModel):
        db: Database
        api: dict[str, str]

    root = config.unmarshal_key("", Root)
    assert root.db.port == 5432
    assert root.api["user"] == "bob"


def test_unmarshal_with_expect_falls_back(config: Configuration) -> None:
    fallback = Database(host="fallback", port=1)
    assert config.unmarshal_with_expect("missing", fallback) is fallback
    assert config.unmarshal_with_expect("server", fallback) is fallback
    assert config.unmarshal_with_expect("db", fallback).host == "localhost"


def test_unknown_decode_option_is_rejected(config: Configuration) -> None:
    with pytest.raises(TypeError):
        config.unmarshal_key("db", Database, colour="red")


def test_instance_default_options_apply() -> None:
    config = Configuration(decode_options=DecodeOptions(weakly_typed_input=False))
    config.load(b"db: {host: h, port: '1'}", yaml_decoder)
    with pytest.raises(UnmarshalError):
        config.unmarshal_key("db", Database)
    assert config.unmarshal_key("db", Database, weakly_typed_input=True).port == 1


@pytest.mark.parametrize("target", [PlainDatabase, DanglingPeer])
def test_undecodable_targets_raise_unmarshal_error(config: Configuration, target: type) -> None:
    with pytest.raises(UnmarshalError):
        config.unmarshal_key("db", target)


def test_unmarshal_with_expect_falls_back_for_undecodable_targets(config: Configuration) -> None:
    fallback = PlainDatabase()
    assert config.unmarshal_with_expect("db", fallback) is fallback
    dangling = DanglingPeer(peer=None)
    assert config.unmarshal_with_expect("db", dangling) is dangling

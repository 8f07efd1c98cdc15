from __future__ import annotations

import pytest

from couch_kernel.config.schema import ConnectionConfig
from couch_kernel.di.descriptors import Parameter, ServiceKind
from couch_kernel.errors import UnknownDefaultError
from couch_kernel.resolver.connections import resolve_connections, select_default


def _connections(*names: str) -> dict:
    return {name: ConnectionConfig(host=f"{name}.db") for name in names}


def test_default_is_first_declared_not_alphabetical() -> None:
    descriptors, default = resolve_connections(_connections("b", "a"))

    assert default == "b"
    assert list(descriptors) == ["b", "a"]


def test_explicit_default_is_used_verbatim() -> None:
    _, default = resolve_connections(_connections("b", "a"), "a")
    assert default == "a"


def test_unknown_explicit_default_fails() -> None:
    with pytest.raises(UnknownDefaultError) as exc:
        resolve_connections(_connections("a", "b"), "missing")

    assert exc.value.name == "missing"
    assert exc.value.declared == ["a", "b"]


def test_no_connections_no_default() -> None:
    assert resolve_connections({}) == ({}, None)


def test_options_are_passed_through() -> None:
    connection = ConnectionConfig(host="db", dbname="blog", timeout=3)
    descriptors, _ = resolve_connections({"main": connection}, debug=True)

    descriptor = descriptors["main"]
    assert descriptor.id == "couchdb.client.main_connection"
    assert descriptor.kind is ServiceKind.CONNECTION
    assert descriptor.cls == Parameter("couchdb.client.connection.class")
    assert dict(descriptor.arguments[0]) == {
        "host": "db",
        "port": 5984,
        "dbname": "blog",
        "timeout": 3,
        "logging": True,
    }


def test_explicit_logging_wins_over_debug_flag() -> None:
    descriptors, _ = resolve_connections({"main": ConnectionConfig(logging=False)}, debug=True)
    assert descriptors["main"].arguments[0]["logging"] is False


def test_select_default_empty_collection_with_explicit_name() -> None:
    with pytest.raises(UnknownDefaultError):
        select_default("connection", [], "main")

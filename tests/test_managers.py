from __future__ import annotations

from typing import List

import pytest

from couch_kernel.config.schema import ConnectionConfig, DocumentManagerConfig, OdmConfig
from couch_kernel.di.descriptors import MethodCall, Parameter, Reference, ServiceDescriptor, ServiceKind
from couch_kernel.errors import ConflictingAutoMappingError, UnknownDefaultError, UnresolvedReferenceError
from couch_kernel.mapping import MappingResult, metadata_driver_id
from couch_kernel.resolver.connections import resolve_connections
from couch_kernel.resolver.managers import resolve_managers


class _StubLoader:
    def __init__(self) -> None:
        self.calls: List[str] = []

    def load(self, manager_name: str, manager: DocumentManagerConfig) -> MappingResult:
        self.calls.append(manager_name)
        chain = ServiceDescriptor(
            id=metadata_driver_id(manager_name),
            kind=ServiceKind.METADATA_DRIVER,
            cls="stub.Chain",
        )
        return MappingResult(
            driver=Reference(chain.id),
            descriptors=(chain,),
            alias_map={"Blog": f"{manager_name}.Blog.CouchDocument"},
        )


def _resolve(odm: dict, connections=("a", "b"), loader=None):
    conns, default = resolve_connections({n: ConnectionConfig() for n in connections})
    return resolve_managers(
        OdmConfig.model_validate(odm),
        conns,
        default_connection=default,
        loader=loader or _StubLoader(),
        namespace_seed="/srv/app",
    )


def test_manager_without_connection_inherits_default() -> None:
    result = _resolve({"document_managers": {"main": {}}})

    manager = result.managers["main"]
    assert manager.arguments[0] == Reference("couchdb.client.a_connection")


def test_manager_with_explicit_connection() -> None:
    result = _resolve({"document_managers": {"main": {"connection": "b"}}})
    assert result.managers["main"].arguments[0] == Reference("couchdb.client.b_connection")


def test_unknown_connection_is_unresolved() -> None:
    with pytest.raises(UnresolvedReferenceError) as exc:
        _resolve({"document_managers": {"main": {"connection": "x"}}})

    assert exc.value.manager == "main"
    assert exc.value.connection == "x"


def test_no_connections_at_all_is_unresolved() -> None:
    with pytest.raises(UnresolvedReferenceError):
        _resolve({"document_managers": {"main": {}}}, connections=())


def test_default_manager_selection() -> None:
    assert _resolve({"document_managers": {"z": {}, "m": {}}}).default == "z"
    assert _resolve({"default_document_manager": "m", "document_managers": {"z": {}, "m": {}}}).default == "m"

    with pytest.raises(UnknownDefaultError):
        _resolve({"default_document_manager": "nope", "document_managers": {"z": {}}})


def test_auto_mapping_with_two_managers_conflicts() -> None:
    loader = _StubLoader()
    with pytest.raises(ConflictingAutoMappingError) as exc:
        _resolve(
            {"document_managers": {"one": {"auto_mapping": True}, "two": {"auto_mapping": True}}},
            loader=loader,
        )

    assert exc.value.manager_count == 2
    # aborted before any manager was built
    assert loader.calls == []


def test_auto_mapping_on_one_of_two_managers_conflicts() -> None:
    with pytest.raises(ConflictingAutoMappingError) as exc:
        _resolve({"document_managers": {"one": {}, "two": {"auto_mapping": True}}})
    assert exc.value.manager == "two"


def test_auto_mapping_with_single_manager_succeeds() -> None:
    result = _resolve({"document_managers": {"only": {"auto_mapping": True}}})
    assert list(result.managers) == ["only"]


def test_manager_descriptors() -> None:
    result = _resolve({"document_managers": {"main": {"metadata_cache_driver": "apc"}}})
    by_id = {d.id: d for d in result.services}

    manager = result.managers["main"]
    assert manager.id == "couchdb.odm.main_document_manager"
    assert manager.kind is ServiceKind.MANAGER
    assert manager.factory == "create"
    assert manager.arguments == (
        Reference("couchdb.client.a_connection"),
        Reference("couchdb.odm.main_configuration"),
        Reference("couchdb.odm.main_connection.event_manager"),
    )

    event_manager = by_id["couchdb.odm.main_connection.event_manager"]
    assert event_manager.kind is ServiceKind.EVENT_MANAGER
    assert event_manager.arguments == ()
    assert event_manager.calls == ()

    configuration = by_id["couchdb.odm.main_configuration"]
    assert configuration.calls == (
        MethodCall("setMetadataCacheImpl", (Reference("couchdb.odm.main_metadata_cache"),)),
        MethodCall("setMetadataDriverImpl", (Reference("couchdb.odm.main_metadata_driver"),)),
        MethodCall("setProxyDir", (Parameter("couchdb.odm.proxy_dir"),)),
        MethodCall("setProxyNamespace", (Parameter("couchdb.odm.proxy_namespace"),)),
        MethodCall("setDocumentNamespaces", ({"Blog": "main.Blog.CouchDocument"},)),
    )

    assert by_id["couchdb.odm.main_metadata_cache"].cls == Parameter("couchdb.odm.cache.apc.class")
    assert "couchdb.odm.main_metadata_driver" in by_id
    # the manager itself is built last
    assert result.services[-1] is manager


def test_every_reference_points_inside_the_result() -> None:
    result = _resolve({"document_managers": {"main": {"metadata_cache_driver": {"type": "memcache"}}}})
    known = {d.id for d in result.services} | {"couchdb.client.a_connection"}

    for descriptor in result.services:
        assert set(descriptor.references()) <= known

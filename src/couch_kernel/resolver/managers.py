# couch_kernel/resolver/managers.py
from __future__ import annotations
from typing import Dict, List, Mapping, NamedTuple, Optional

from couch_kernel.config.schema import DocumentManagerConfig, OdmConfig
from couch_kernel.di.descriptors import Parameter, Reference, ServiceDescriptor, ServiceKind
from couch_kernel.errors import ConfigurationError, ConflictingAutoMappingError, UnresolvedReferenceError
from couch_kernel.mapping import MappingDriverLoader
from couch_kernel.resolver.cache import resolve_cache_driver
from couch_kernel.resolver.connections import connection_service_id, select_default


class ManagerResolution(NamedTuple):
    managers: Dict[str, ServiceDescriptor]
    default: Optional[str]
    services: List[ServiceDescriptor]


def manager_service_id(name: str) -> str:
    return f"couchdb.odm.{name}_document_manager"


def configuration_service_id(name: str) -> str:
    return f"couchdb.odm.{name}_configuration"


def event_manager_service_id(name: str) -> str:
    return f"couchdb.odm.{name}_connection.event_manager"


def check_auto_mapping(managers: Mapping[str, DocumentManagerConfig]) -> None:
    if len(managers) <= 1:
        return
    for name, manager in managers.items():
        if manager.auto_mapping:
            raise ConflictingAutoMappingError(name, len(managers))


def resolve_managers(
    odm: OdmConfig,
    connections: Mapping[str, ServiceDescriptor],
    *,
    default_connection: Optional[str],
    loader: MappingDriverLoader,
    namespace_seed: str,
) -> ManagerResolution:
    """
    Resolve every document manager into its descriptors.

    `connections` is the name → descriptor map from resolve_connections().
    The returned `services` list holds every descriptor produced (cache,
    mapping drivers, configuration, event manager, manager) in build order.
    """
    managers = odm.document_managers
    default_name = select_default("document manager", managers.keys(), odm.default_document_manager)
    # checked up front: one offending manager aborts the whole pass
    check_auto_mapping(managers)

    resolved: Dict[str, ServiceDescriptor] = {}
    services: List[ServiceDescriptor] = []
    owners: Dict[str, str] = {}
    for name, manager in managers.items():
        connection = manager.connection or default_connection
        if connection is None or connection not in connections:
            raise UnresolvedReferenceError(name, manager.connection)

        cache = resolve_cache_driver(name, manager.metadata_cache_driver, namespace_seed=namespace_seed)
        mapping = loader.load(name, manager)

        configuration = (
            ServiceDescriptor(
                id=configuration_service_id(name),
                kind=ServiceKind.CONFIGURATION,
                cls=Parameter("couchdb.odm.configuration.class"),
            )
            .with_call("setMetadataCacheImpl", Reference(cache.cache.id))
            .with_call("setMetadataDriverImpl", mapping.driver)
            .with_call("setProxyDir", Parameter("couchdb.odm.proxy_dir"))
            .with_call("setProxyNamespace", Parameter("couchdb.odm.proxy_namespace"))
            .with_call("setDocumentNamespaces", mapping.alias_map)
        )
        event_manager = ServiceDescriptor(
            id=event_manager_service_id(name),
            kind=ServiceKind.EVENT_MANAGER,
            cls=Parameter("couchdb.odm.event_manager.class"),
        )
        document_manager = ServiceDescriptor(
            id=manager_service_id(name),
            kind=ServiceKind.MANAGER,
            cls=Parameter("couchdb.odm.document_manager.class"),
            arguments=(
                Reference(connections[connection].id),
                Reference(configuration.id),
                Reference(event_manager.id),
            ),
            factory="create",
        )

        produced = cache.all() + tuple(mapping.descriptors) + (configuration, event_manager, document_manager)
        for descriptor in produced:
            owner = owners.setdefault(descriptor.id, name)
            if owner != name:
                raise ConfigurationError(
                    f'Service "{descriptor.id}" is produced by both document manager "{owner}" '
                    f'and document manager "{name}"; rename one of them.'
                )
        services.extend(produced)
        resolved[name] = document_manager

    return ManagerResolution(managers=resolved, default=default_name, services=services)

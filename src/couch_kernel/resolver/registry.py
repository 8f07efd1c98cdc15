# couch_kernel/resolver/registry.py
"""
Registry Resolver
──────────────────────────────────────────────────────────────
One linear, fail-fast pass over the configuration tree:

    client  → connection descriptors + default connection
    odm     → per manager: cache, mapping drivers, configuration,
              event manager, document manager + default manager
    result  → immutable Registry (descriptors, aliases, parameters)

Nothing is instantiated here; see couch_kernel.di.container.
──────────────────────────────────────────────────────────────
"""
from __future__ import annotations
from types import MappingProxyType
from typing import Any, Dict, Optional

from couch_kernel.config.schema import KernelConfig
from couch_kernel.config.settings import KernelSettings, get_settings
from couch_kernel.di.descriptors import Registry, ServiceDescriptor
from couch_kernel.errors import ConfigurationError
from couch_kernel.log import log
from couch_kernel.mapping import BundleMappingLoader, MappingDriverLoader
from couch_kernel.resolver.connections import connection_service_id, resolve_connections
from couch_kernel.resolver.managers import manager_service_id, resolve_managers

CONNECTION_ALIAS = "couchdb_connection"
MANAGER_ALIAS = "couchdb.odm.document_manager"


def _add(services: Dict[str, ServiceDescriptor], descriptor: ServiceDescriptor) -> None:
    if descriptor.id in services:
        raise ConfigurationError(f'Service "{descriptor.id}" is defined twice.')
    services[descriptor.id] = descriptor


def resolve(
    config: Any,
    settings: Optional[KernelSettings] = None,
    loader: Optional[MappingDriverLoader] = None,
) -> Registry:
    """
    Build the Registry for `config` (KernelConfig, plain dict, or None).
    Raises a ConfigurationError subclass on the first problem found.
    """
    settings = settings or get_settings()
    config = KernelConfig.load(config)
    loader = loader or BundleMappingLoader(root_dir=settings.root_dir, verbose=settings.verbose)

    services: Dict[str, ServiceDescriptor] = {}
    aliases: Dict[str, str] = {}
    parameters: Dict[str, Any] = settings.class_parameters()

    # ──────────────────────────────────────────────
    # Client connections
    # ──────────────────────────────────────────────
    connections: Dict[str, ServiceDescriptor] = {}
    default_connection: Optional[str] = None
    if config.client is not None:
        connections, default_connection = resolve_connections(
            config.client.connections,
            config.client.default_connection,
            debug=settings.debug,
        )
        for descriptor in connections.values():
            _add(services, descriptor)
        parameters["couchdb.connections"] = MappingProxyType({n: d.id for n, d in connections.items()})
        parameters["couchdb.default_connection"] = default_connection
        if default_connection is not None:
            aliases[CONNECTION_ALIAS] = connection_service_id(default_connection)
        log(f"✅ [kernel] {len(connections)} connection(s), default={default_connection}", verbose=settings.verbose)

    # ──────────────────────────────────────────────
    # Document managers
    # ──────────────────────────────────────────────
    default_manager: Optional[str] = None
    if config.odm is not None:
        odm = config.odm
        resolution = resolve_managers(
            odm,
            connections,
            default_connection=default_connection,
            loader=loader,
            namespace_seed=settings.NAMESPACE_SEED,
        )
        for descriptor in resolution.services:
            _add(services, descriptor)
        default_manager = resolution.default
        parameters["couchdb.document_managers"] = MappingProxyType(
            {n: d.id for n, d in resolution.managers.items()}
        )
        parameters["couchdb.default_document_manager"] = default_manager
        parameters["couchdb.odm.auto_generate_proxy_classes"] = (
            odm.auto_generate_proxy_classes
            if odm.auto_generate_proxy_classes is not None
            else settings.auto_generate_proxy_classes
        )
        parameters["couchdb.odm.proxy_dir"] = odm.proxy_dir or settings.proxy_dir
        parameters["couchdb.odm.proxy_namespace"] = odm.proxy_namespace or settings.proxy_namespace
        if default_manager is not None:
            aliases[MANAGER_ALIAS] = manager_service_id(default_manager)
        log(
            f"✅ [kernel] {len(resolution.managers)} document manager(s), default={default_manager}",
            verbose=settings.verbose,
        )

    registry = Registry(
        services=services,
        aliases=aliases,
        parameters=parameters,
        default_connection=default_connection,
        default_manager=default_manager,
    )
    log(f"🧩 [kernel] Registry ready: {len(registry)} service(s)", verbose=settings.verbose)
    return registry

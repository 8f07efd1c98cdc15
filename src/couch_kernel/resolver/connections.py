# couch_kernel/resolver/connections.py
from __future__ import annotations
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Tuple

from couch_kernel.config.schema import ConnectionConfig
from couch_kernel.di.descriptors import Parameter, ServiceDescriptor, ServiceKind
from couch_kernel.errors import UnknownDefaultError


def connection_service_id(name: str) -> str:
    return f"couchdb.client.{name}_connection"


def select_default(collection: str, names: Iterable[str], explicit: Optional[str]) -> Optional[str]:
    """
    Explicit default if declared, else first declared name, else None.
    Raises UnknownDefaultError for an explicit name that is not declared.
    """
    names = list(names)
    if explicit:
        if explicit not in names:
            raise UnknownDefaultError(collection, explicit, names)
        return explicit
    return names[0] if names else None


def resolve_connections(
    connections: Mapping[str, ConnectionConfig],
    default: Optional[str] = None,
    *,
    debug: bool = False,
) -> Tuple[Dict[str, ServiceDescriptor], Optional[str]]:
    """Return (connection name → descriptor, default connection name)."""
    default_name = select_default("connection", connections.keys(), default)

    out: Dict[str, ServiceDescriptor] = {}
    for name, connection in connections.items():
        options = connection.options()
        options.setdefault("logging", debug)
        out[name] = ServiceDescriptor(
            id=connection_service_id(name),
            kind=ServiceKind.CONNECTION,
            cls=Parameter("couchdb.client.connection.class"),
            arguments=(MappingProxyType(options),),
        )
    return out, default_name

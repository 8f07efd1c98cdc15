from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from couch_kernel.errors import ServiceNotFoundError

"""
──────────────────────────────────────────────────────────────────────────────
Service Descriptors & Registry
──────────────────────────────────────────────────────────────────────────────
Purpose:
    Describe how each service is built, without building it.

Types:
    - Reference(service_id)     → another descriptor in the same registry
    - Parameter(name)           → value looked up in Registry.parameters
    - MethodCall(method, args)  → post-construction initialization step
    - ServiceDescriptor         → one named service (tagged by ServiceKind)
    - Registry                  → read-only id → descriptor map + aliases

Used by:
    - couch_kernel.resolver.*  → produce descriptors
    - couch_kernel.di.container.Container → instantiates them lazily
"""


class ServiceKind(str, Enum):
    CONNECTION = "connection"
    MANAGER = "manager"
    CONFIGURATION = "configuration"
    CACHE = "cache"
    CACHE_INSTANCE = "cache_instance"
    EVENT_MANAGER = "event_manager"
    METADATA_DRIVER = "metadata_driver"


@dataclass(frozen=True)
class Reference:
    """Points at another service id (or alias)."""

    service_id: str

    def __str__(self) -> str:
        return f"@{self.service_id}"


@dataclass(frozen=True)
class Parameter:
    """Points at a registry parameter, written %name% in config files."""

    name: str

    def __str__(self) -> str:
        return f"%{self.name}%"


@dataclass(frozen=True)
class MethodCall:
    method: str
    arguments: Tuple[Any, ...] = ()


ClassRef = Union[str, Parameter]


@dataclass(frozen=True)
class ServiceDescriptor:
    """
    A data record describing one service.

    Attributes
    ----------
    id : str
        Logical service identifier (e.g. 'couchdb.client.default_connection').
    kind : ServiceKind
        Which variant of service this is.
    cls : str | Parameter
        Dotted class path, or a parameter holding one.
    arguments : tuple
        Constructor arguments (literals, Parameter, Reference, or containers of them).
    calls : tuple[MethodCall, ...]
        Ordered post-construction method calls.
    public : bool
        Private services can only be reached through references.
    factory : str | None
        Optional classmethod name used instead of calling the class.
    """

    id: str
    kind: ServiceKind
    cls: ClassRef
    arguments: Tuple[Any, ...] = ()
    calls: Tuple[MethodCall, ...] = ()
    public: bool = True
    factory: Optional[str] = None

    def with_call(self, method: str, *arguments: Any) -> "ServiceDescriptor":
        """Return a copy with one more method call appended."""
        return ServiceDescriptor(
            id=self.id,
            kind=self.kind,
            cls=self.cls,
            arguments=self.arguments,
            calls=self.calls + (MethodCall(method, tuple(arguments)),),
            public=self.public,
            factory=self.factory,
        )

    def references(self) -> Tuple[str, ...]:
        """Every service id referenced by arguments or method calls."""
        found: list = []
        _collect_refs(self.arguments, found)
        for call in self.calls:
            _collect_refs(call.arguments, found)
        return tuple(found)


def _collect_refs(value: Any, out: list) -> None:
    if isinstance(value, Reference):
        out.append(value.service_id)
    elif isinstance(value, Mapping):
        for v in value.values():
            _collect_refs(v, out)
    elif isinstance(value, (list, tuple)):
        for v in value:
            _collect_refs(v, out)


@dataclass(frozen=True)
class Registry:
    """
    Resolved output of one configuration load. Immutable; rebuild on change.
    """

    services: Mapping[str, ServiceDescriptor] = field(default_factory=dict)
    aliases: Mapping[str, str] = field(default_factory=dict)
    parameters: Mapping[str, Any] = field(default_factory=dict)
    default_connection: Optional[str] = None
    default_manager: Optional[str] = None

    def __post_init__(self) -> None:
        # freeze the mappings handed in by the resolver
        object.__setattr__(self, "services", MappingProxyType(dict(self.services)))
        object.__setattr__(self, "aliases", MappingProxyType(dict(self.aliases)))
        object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))

    def __contains__(self, service_id: str) -> bool:
        return service_id in self.services or service_id in self.aliases

    def __len__(self) -> int:
        return len(self.services)

    def resolve_id(self, service_id: str) -> str:
        """Follow aliases to the concrete service id."""
        return self.aliases.get(service_id, service_id)

    def get(self, service_id: str) -> ServiceDescriptor:
        try:
            return self.services[self.resolve_id(service_id)]
        except KeyError:
            raise ServiceNotFoundError(service_id) from None

    def of_kind(self, kind: ServiceKind) -> Dict[str, ServiceDescriptor]:
        return {sid: d for sid, d in self.services.items() if d.kind is kind}

    def is_empty(self) -> bool:
        return not self.services

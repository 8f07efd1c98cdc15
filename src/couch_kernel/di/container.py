from __future__ import annotations
import importlib
from typing import Any, Callable, Dict, Mapping, Set

from couch_kernel.di.descriptors import ClassRef, Parameter, Reference, Registry, ServiceDescriptor
from couch_kernel.errors import KernelError, ServiceNotFoundError

"""
──────────────────────────────────────────────────────────────────────────────
Lazy Service Container
──────────────────────────────────────────────────────────────────────────────
Purpose:
    Instantiate services described by a Registry, on first use.

APIs:
    - register(class_path, provider)  → override how a class path is built
    - get(service_id) → instance (aliases followed, one instance per id)
    - has(service_id)

Mechanics:
    - cls: dotted path, or Parameter holding one; imported with importlib
      unless a provider was registered for it
    - arguments / method-call arguments: Parameter and Reference resolved
      recursively inside tuples, lists and mappings
    - factory: classmethod called instead of the class itself
    - private services are only reachable through references

Usage:
    container = Container(registry)
    container.register("couchdb_odm.client.CouchDBClient", FakeClient)
    dm = container.get("couchdb.odm.document_manager")
"""


class Container:
    def __init__(self, registry: Registry):
        self.registry = registry
        self._providers: Dict[str, Callable[..., Any]] = {}
        self._instances: Dict[str, Any] = {}
        self._building: Set[str] = set()

    def register(self, class_path: str, provider: Callable[..., Any]) -> None:
        # must happen before the first get() that builds from class_path
        self._providers[class_path] = provider

    def has(self, service_id: str) -> bool:
        return service_id in self.registry

    def get(self, service_id: str) -> Any:
        descriptor = self.registry.get(service_id)
        if not descriptor.public:
            raise ServiceNotFoundError(service_id, "is private")
        return self._get(descriptor.id)

    # ──────────────────────────────────────────────
    # Internals
    # ──────────────────────────────────────────────
    def _get(self, service_id: str) -> Any:
        sid = self.registry.resolve_id(service_id)
        if sid in self._instances:
            return self._instances[sid]
        if sid in self._building:
            raise KernelError(f'Circular reference detected while building "{sid}".')
        descriptor = self.registry.get(sid)
        self._building.add(sid)
        try:
            instance = self._build(descriptor)
        finally:
            self._building.discard(sid)
        self._instances[sid] = instance
        return instance

    def _build(self, descriptor: ServiceDescriptor) -> Any:
        target = self._load_class(descriptor.cls)
        if descriptor.factory:
            target = getattr(target, descriptor.factory)
        instance = target(*(self._value(a) for a in descriptor.arguments))
        for call in descriptor.calls:
            getattr(instance, call.method)(*(self._value(a) for a in call.arguments))
        return instance

    def _class_path(self, cls: ClassRef) -> str:
        if isinstance(cls, Parameter):
            return str(self._parameter(cls))
        return cls

    def _load_class(self, cls: ClassRef) -> Callable[..., Any]:
        path = self._class_path(cls)
        if path in self._providers:
            return self._providers[path]
        module_name, _, attr = path.rpartition(".")
        if not module_name:
            raise KernelError(f'Class path "{path}" is not a dotted path.')
        try:
            return getattr(importlib.import_module(module_name), attr)
        except (ImportError, AttributeError) as e:
            raise KernelError(f'Cannot load class "{path}": {e}') from e

    def _parameter(self, param: Parameter) -> Any:
        try:
            return self.registry.parameters[param.name]
        except KeyError:
            raise KernelError(f'Parameter "{param.name}" is not defined.') from None

    def _value(self, value: Any) -> Any:
        if isinstance(value, Reference):
            return self._get(value.service_id)
        if isinstance(value, Parameter):
            return self._parameter(value)
        if isinstance(value, Mapping):
            return {k: self._value(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self._value(v) for v in value]
        return value

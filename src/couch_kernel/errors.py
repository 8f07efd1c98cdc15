# couch_kernel/errors.py
"""
Kernel error taxonomy
──────────────────────────────────────────────
All resolution errors are fatal to the resolution pass (fail-fast).
The bootstrap lets them propagate so the process refuses to start.

    KernelError
    ├── ConfigurationError
    │   ├── UnknownDefaultError
    │   ├── UnresolvedReferenceError
    │   ├── ConflictingAutoMappingError
    │   ├── UnsupportedCacheDriverError
    │   └── MappingConfigurationError
    └── ServiceNotFoundError
──────────────────────────────────────────────
"""
from __future__ import annotations
from typing import Iterable, Optional


class KernelError(RuntimeError):
    """Root of every error raised by couch_kernel."""


class ConfigurationError(KernelError):
    """The configuration tree cannot be turned into a registry."""


class UnknownDefaultError(ConfigurationError):
    def __init__(self, collection: str, name: str, declared: Iterable[str]):
        self.collection = collection
        self.name = name
        self.declared = list(declared)
        super().__init__(
            f'Default {collection} "{name}" is not declared '
            f"(declared: {', '.join(self.declared) or '<none>'})."
        )


class UnresolvedReferenceError(ConfigurationError):
    def __init__(self, manager: str, connection: Optional[str]):
        self.manager = manager
        self.connection = connection
        if connection is None:
            msg = f'Document manager "{manager}" has no connection and no default connection is configured.'
        else:
            msg = f'Document manager "{manager}" references unknown connection "{connection}".'
        super().__init__(msg)


class ConflictingAutoMappingError(ConfigurationError):
    def __init__(self, manager: str, manager_count: int):
        self.manager = manager
        self.manager_count = manager_count
        super().__init__(
            f'You cannot enable "auto_mapping" on document manager "{manager}" '
            f"when several document managers are defined ({manager_count})."
        )


class UnsupportedCacheDriverError(ConfigurationError):
    def __init__(self, driver_type: str):
        self.driver_type = driver_type
        super().__init__(f'"{driver_type}" is an unrecognized cache driver.')


class MappingConfigurationError(ConfigurationError):
    """A mapping entry cannot be turned into a metadata driver."""


class ServiceNotFoundError(KernelError):
    def __init__(self, service_id: str, reason: str = "is not defined"):
        self.service_id = service_id
        super().__init__(f'Service "{service_id}" {reason}.')

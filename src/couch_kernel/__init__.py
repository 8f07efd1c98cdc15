# couch_kernel/__init__.py
"""
couch_kernel
──────────────────────────────────────────────────────────────
Configuration wiring for document-store (CouchDB ODM) services.
Provides:
    - Configuration schema + installation settings
    - Registry resolver (connections, document managers, cache drivers)
    - Bundle mapping discovery
    - Lazy service container
    - FastAPI app factory with registry introspection
──────────────────────────────────────────────────────────────
"""

__version__ = "0.1.0"

from couch_kernel.config.schema import KernelConfig
from couch_kernel.config.settings import KernelSettings, get_settings
from couch_kernel.di.container import Container
from couch_kernel.di.descriptors import Registry, ServiceDescriptor, ServiceKind
from couch_kernel.mapping import BundleInfo, BundleMappingLoader, discover_bundles
from couch_kernel.resolver.registry import resolve
from couch_kernel.web.api import create_app, mount_routers

__all__ = [
    "KernelConfig",
    "KernelSettings",
    "get_settings",
    "Container",
    "Registry",
    "ServiceDescriptor",
    "ServiceKind",
    "BundleInfo",
    "BundleMappingLoader",
    "discover_bundles",
    "resolve",
    "create_app",
    "mount_routers",
]

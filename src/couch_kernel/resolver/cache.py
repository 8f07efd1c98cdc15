# couch_kernel/resolver/cache.py
"""
Cache driver descriptors
──────────────────────────────────────────────
memcache             → memcache instance (connect(host, port)) + wrapper cache
apc / array / xcache → single cache descriptor, class from a parameter

Every cache descriptor is private and namespaced per manager per installation.
──────────────────────────────────────────────
"""
from __future__ import annotations
import hashlib
from typing import NamedTuple, Tuple

from couch_kernel.config.schema import CacheDriverConfig
from couch_kernel.di.descriptors import Parameter, Reference, ServiceDescriptor, ServiceKind
from couch_kernel.errors import UnsupportedCacheDriverError

SIMPLE_DRIVERS = ("apc", "array", "xcache")
SUPPORTED_DRIVERS = ("memcache",) + SIMPLE_DRIVERS
NAMESPACE_PREFIX = "couchdb_"


class CacheDriverResult(NamedTuple):
    cache: ServiceDescriptor
    dependencies: Tuple[ServiceDescriptor, ...] = ()

    def all(self) -> Tuple[ServiceDescriptor, ...]:
        return self.dependencies + (self.cache,)


def cache_service_id(manager_name: str, cache_name: str = "metadata_cache") -> str:
    return f"couchdb.odm.{manager_name}_{cache_name}"


def memcache_instance_id(manager_name: str) -> str:
    return f"couchdb.odm.{manager_name}_memcache_instance"


def cache_namespace(manager_name: str, seed: str) -> str:
    """Stable per (manager, installation) namespace."""
    digest = hashlib.md5(f"{manager_name}{seed}".encode("utf-8")).hexdigest()
    return NAMESPACE_PREFIX + digest


def resolve_cache_driver(
    manager_name: str,
    cache_driver: CacheDriverConfig,
    *,
    namespace_seed: str,
    cache_name: str = "metadata_cache",
) -> CacheDriverResult:
    driver_type = cache_driver.type
    service_id = cache_service_id(manager_name, cache_name)
    deps: Tuple[ServiceDescriptor, ...] = ()

    if driver_type == "memcache":
        instance = ServiceDescriptor(
            id=memcache_instance_id(manager_name),
            kind=ServiceKind.CACHE_INSTANCE,
            cls=cache_driver.instance_class or Parameter("couchdb.odm.cache.memcache_instance.class"),
            public=False,
        ).with_call(
            "connect",
            cache_driver.host or Parameter("couchdb.odm.cache.memcache_host"),
            cache_driver.port or Parameter("couchdb.odm.cache.memcache_port"),
        )
        cache = ServiceDescriptor(
            id=service_id,
            kind=ServiceKind.CACHE,
            cls=cache_driver.class_ or Parameter("couchdb.odm.cache.memcache.class"),
            public=False,
        ).with_call("setMemcache", Reference(instance.id))
        deps = (instance,)
    elif driver_type in SIMPLE_DRIVERS:
        cache = ServiceDescriptor(
            id=service_id,
            kind=ServiceKind.CACHE,
            cls=Parameter(f"couchdb.odm.cache.{driver_type}.class"),
            public=False,
        )
    else:
        raise UnsupportedCacheDriverError(driver_type)

    cache = cache.with_call("setNamespace", cache_namespace(manager_name, namespace_seed))
    return CacheDriverResult(cache=cache, dependencies=deps)

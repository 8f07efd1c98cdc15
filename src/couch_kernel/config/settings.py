# src/couch_kernel/config/settings.py
import os
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class KernelSettings(BaseSettings):
    """
    Installation-wide values the resolver reads besides the configuration tree.
    Apps can subclass and extend it, or override through COUCH_KERNEL_* env vars.
    """

    app_name: str = "Couch App"
    debug: bool = False
    verbose: bool = True

    # Seed for cache namespaces. namespace_seed wins over root_dir when set.
    root_dir: str = Field(default_factory=os.getcwd)
    namespace_seed: str | None = None

    # Proxy generation defaults (used when the odm section leaves them unset)
    proxy_dir: str = "var/cache/couchdb/proxies"
    proxy_namespace: str = "CouchDBProxies"
    auto_generate_proxy_classes: bool = False

    # Memcache defaults for cache drivers without host/port
    memcache_host: str = "localhost"
    memcache_port: int = 11211

    # Class parameters (dotted paths resolved by the container)
    connection_class: str = "couchdb_odm.client.CouchDBClient"
    configuration_class: str = "couchdb_odm.configuration.Configuration"
    document_manager_class: str = "couchdb_odm.document_manager.DocumentManager"
    event_manager_class: str = "couchdb_odm.events.EventManager"
    driver_chain_class: str = "couchdb_odm.mapping.DriverChain"
    xml_driver_class: str = "couchdb_odm.mapping.XmlDriver"
    yml_driver_class: str = "couchdb_odm.mapping.YamlDriver"
    annotation_driver_class: str = "couchdb_odm.mapping.AnnotationDriver"
    php_driver_class: str = "couchdb_odm.mapping.PhpDriver"
    staticphp_driver_class: str = "couchdb_odm.mapping.StaticPhpDriver"
    memcache_class: str = "couchdb_odm.cache.MemcacheCache"
    memcache_instance_class: str = "memcache.Client"
    apc_class: str = "couchdb_odm.cache.ApcCache"
    array_class: str = "couchdb_odm.cache.ArrayCache"
    xcache_class: str = "couchdb_odm.cache.XcacheCache"

    model_config = SettingsConfigDict(
        env_prefix="COUCH_KERNEL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def NAMESPACE_SEED(self) -> str:
        return self.namespace_seed or self.root_dir

    def class_parameters(self) -> dict:
        """Registry parameters holding the default class of each service kind."""
        return {
            "couchdb.client.connection.class": self.connection_class,
            "couchdb.odm.configuration.class": self.configuration_class,
            "couchdb.odm.document_manager.class": self.document_manager_class,
            "couchdb.odm.event_manager.class": self.event_manager_class,
            "couchdb.odm.metadata.driver_chain.class": self.driver_chain_class,
            "couchdb.odm.metadata.xml.class": self.xml_driver_class,
            "couchdb.odm.metadata.yml.class": self.yml_driver_class,
            "couchdb.odm.metadata.annotation.class": self.annotation_driver_class,
            "couchdb.odm.metadata.php.class": self.php_driver_class,
            "couchdb.odm.metadata.staticphp.class": self.staticphp_driver_class,
            "couchdb.odm.cache.memcache.class": self.memcache_class,
            "couchdb.odm.cache.memcache_instance.class": self.memcache_instance_class,
            "couchdb.odm.cache.memcache_host": self.memcache_host,
            "couchdb.odm.cache.memcache_port": self.memcache_port,
            "couchdb.odm.cache.apc.class": self.apc_class,
            "couchdb.odm.cache.array.class": self.array_class,
            "couchdb.odm.cache.xcache.class": self.xcache_class,
        }


@lru_cache(maxsize=1)
def get_settings() -> KernelSettings:
    # singleton (reads env once)
    return KernelSettings()

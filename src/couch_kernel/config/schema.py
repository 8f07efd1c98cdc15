# src/couch_kernel/config/schema.py
"""
Configuration tree schema
──────────────────────────────────────────────
Shape/type validation of the raw configuration (dicts loaded from YAML,
JSON, or built in code). Cross-reference rules (defaults, connection
references, auto_mapping, cache driver types) are enforced by the resolver.

    client:
      default_connection: main          # optional
      connections:
        main: {host: localhost, port: 5984, dbname: app}
    odm:
      default_document_manager: main    # optional
      proxy_dir: var/proxies            # optional
      document_managers:
        main:
          connection: main              # optional
          auto_mapping: true
          metadata_cache_driver: {type: memcache, host: cache, port: 11211}
          mappings:
            BlogBundle: ~

A section without `connections` / `document_managers` is read as a single
entry named "default".
──────────────────────────────────────────────
"""
from __future__ import annotations
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_ENTRY = "default"


class ConnectionConfig(BaseModel):
    """Opaque option bag for one client connection; unknown keys are kept."""

    model_config = ConfigDict(extra="allow")

    host: str = "localhost"
    port: int = 5984
    dbname: Optional[str] = None
    user: Optional[str] = None
    password: Optional[str] = None
    ip: Optional[str] = None
    logging: Optional[bool] = None

    def options(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ClientConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    default_connection: Optional[str] = None
    connections: Dict[str, ConnectionConfig] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _single_connection_shortcut(cls, data: Any) -> Any:
        if isinstance(data, dict) and "connections" not in data:
            rest = {k: v for k, v in data.items() if k != "default_connection"}
            if rest:
                out = {"connections": {DEFAULT_ENTRY: rest}}
                if "default_connection" in data:
                    out["default_connection"] = data["default_connection"]
                return out
        return data


class CacheDriverConfig(BaseModel):
    # `type` stays a free string: unsupported values are reported by the resolver
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    type: str = "array"
    host: Optional[str] = None
    port: Optional[int] = None
    class_: Optional[str] = Field(default=None, alias="class")
    instance_class: Optional[str] = None


class MappingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    mapping: bool = True
    type: Optional[str] = None
    dir: Optional[str] = None
    prefix: Optional[str] = None
    alias: Optional[str] = None
    is_bundle: Optional[bool] = None


class DocumentManagerConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    connection: Optional[str] = None
    auto_mapping: bool = False
    metadata_cache_driver: CacheDriverConfig = Field(default_factory=CacheDriverConfig)
    mappings: Dict[str, MappingConfig] = Field(default_factory=dict)

    @field_validator("metadata_cache_driver", mode="before")
    @classmethod
    def _cache_shorthand(cls, v: Any) -> Any:
        # "array" → {"type": "array"}
        if isinstance(v, str):
            return {"type": v}
        return v

    @field_validator("mappings", mode="before")
    @classmethod
    def _mapping_shorthand(cls, v: Any) -> Any:
        if not isinstance(v, dict):
            return v
        out = {}
        for name, entry in v.items():
            if entry is None:
                entry = {}
            elif isinstance(entry, bool):
                entry = {"mapping": entry}
            elif isinstance(entry, str):
                entry = {"type": entry}
            out[name] = entry
        return out


_ODM_GLOBAL_KEYS = (
    "default_document_manager",
    "auto_generate_proxy_classes",
    "proxy_dir",
    "proxy_namespace",
)


class OdmConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    default_document_manager: Optional[str] = None
    auto_generate_proxy_classes: Optional[bool] = None
    proxy_dir: Optional[str] = None
    proxy_namespace: Optional[str] = None
    document_managers: Dict[str, DocumentManagerConfig] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _single_manager_shortcut(cls, data: Any) -> Any:
        if isinstance(data, dict) and "document_managers" not in data:
            rest = {k: v for k, v in data.items() if k not in _ODM_GLOBAL_KEYS}
            if rest:
                out = {k: v for k, v in data.items() if k in _ODM_GLOBAL_KEYS}
                out["document_managers"] = {DEFAULT_ENTRY: rest}
                return out
        return data


class KernelConfig(BaseModel):
    """Root of the configuration tree."""

    model_config = ConfigDict(extra="forbid")

    client: Optional[ClientConfig] = None
    odm: Optional[OdmConfig] = None

    @classmethod
    def load(cls, data: Any) -> "KernelConfig":
        """Accept an already validated tree, a plain dict, or None (empty config)."""
        if isinstance(data, cls):
            return data
        return cls.model_validate(data or {})

# couch_kernel/mapping.py
"""
Mapping-driver loading
──────────────────────────────────────────────
Turns a document manager's `mappings` (and `auto_mapping`) into:
    • one metadata driver descriptor per driver type (xml / yml / php / annotation / staticphp)
    • a chain driver descriptor that dispatches on namespace prefix
    • an alias map: short alias → document namespace prefix

Bundles are packages shipping documents. A bundle's mapping type is
detected from its layout, without importing anything:
    <bundle>/Resources/config/doctrine/*.couch.xml  → xml
    <bundle>/Resources/config/doctrine/*.couch.yml  → yml
    <bundle>/Resources/config/doctrine/*.couch.php  → php
    <bundle>/CouchDocument/                         → annotation
──────────────────────────────────────────────
"""
from __future__ import annotations
import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Tuple

from couch_kernel.config.schema import DocumentManagerConfig, MappingConfig
from couch_kernel.di.descriptors import Parameter, Reference, ServiceDescriptor, ServiceKind
from couch_kernel.errors import MappingConfigurationError
from couch_kernel.log import log

MAPPING_RESOURCE_DIR = "Resources/config/doctrine"
MAPPING_EXTENSION = "couch"
DOCUMENT_DIR = "CouchDocument"
# drivers reading mapping files from the bundle resource dir
RESOURCE_DRIVERS = ("xml", "yml", "php")
# drivers that take a directory → prefix map
FILE_DRIVERS = ("xml", "yml")
DRIVER_TYPES = RESOURCE_DRIVERS + ("annotation", "staticphp")


@dataclass(frozen=True)
class BundleInfo:
    path: Path
    namespace: str


@dataclass(frozen=True)
class MappingResult:
    driver: Reference
    descriptors: Tuple[ServiceDescriptor, ...] = ()
    alias_map: Mapping[str, str] = field(default_factory=dict)


class MappingDriverLoader(Protocol):
    def load(self, manager_name: str, manager: DocumentManagerConfig) -> MappingResult: ...


def metadata_driver_id(manager_name: str, driver_type: Optional[str] = None) -> str:
    if driver_type:
        return f"couchdb.odm.{manager_name}_{driver_type}_metadata_driver"
    return f"couchdb.odm.{manager_name}_metadata_driver"


def detect_driver_type(bundle_dir: Path) -> Optional[str]:
    resources = bundle_dir / MAPPING_RESOURCE_DIR
    for driver_type in RESOURCE_DRIVERS:
        if any(resources.glob(f"*.{MAPPING_EXTENSION}.{driver_type}")):
            return driver_type
    if (bundle_dir / DOCUMENT_DIR).is_dir():
        return "annotation"
    return None


def discover_bundles(root: str | Path) -> Dict[str, BundleInfo]:
    """
    Find bundle directories under `root` by their mapping layout.
    Bundle name is the directory name; namespace is its dotted path from root.
    """
    base = Path(root)
    found: Dict[str, BundleInfo] = {}
    candidates = set(p.parent for p in base.rglob(DOCUMENT_DIR) if p.is_dir())
    candidates.update(p.parents[2] for p in base.rglob("doctrine") if p.match(f"*/{MAPPING_RESOURCE_DIR}"))
    for bundle_dir in sorted(candidates):
        rel = bundle_dir.relative_to(base)
        if not rel.parts:
            continue
        found[bundle_dir.name] = BundleInfo(path=bundle_dir, namespace=".".join(rel.parts))
    return found


class BundleMappingLoader:
    """Default loader working from a name → BundleInfo map."""

    def __init__(
        self,
        bundles: Optional[Mapping[str, BundleInfo]] = None,
        *,
        root_dir: str | Path | None = None,
        verbose: bool = True,
    ):
        self.bundles: Dict[str, BundleInfo] = dict(bundles or {})
        self.root_dir = Path(root_dir) if root_dir is not None else Path(os.getcwd())
        self.verbose = verbose

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def load(self, manager_name: str, manager: DocumentManagerConfig) -> MappingResult:
        # local accumulators: driver type → {prefix: dir}, alias → prefix
        drivers: Dict[str, Dict[str, str]] = {}
        alias_map: Dict[str, str] = {}

        for mapping_name, entry in self._mapping_entries(manager):
            if not entry.mapping:
                continue
            is_bundle = entry.is_bundle
            if is_bundle is None:
                # entries without a dir of their own are read as bundles
                is_bundle = mapping_name in self.bundles or not entry.dir
            if is_bundle:
                entry = self._bundle_defaults(mapping_name, entry)
                if entry is None:
                    log(f"⚠️ [kernel] No mapping found for bundle '{mapping_name}', skipped", verbose=self.verbose)
                    continue
            prefix, directory = self._validate(manager_name, mapping_name, entry)
            drivers.setdefault(entry.type, {})[prefix] = directory
            if entry.alias:
                alias_map[entry.alias] = prefix
            elif is_bundle:
                alias_map[mapping_name] = prefix

        descriptors = self._driver_descriptors(manager_name, drivers)
        return MappingResult(
            driver=Reference(metadata_driver_id(manager_name)),
            descriptors=descriptors,
            alias_map=MappingProxyType(alias_map),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _mapping_entries(self, manager: DocumentManagerConfig) -> Iterable[Tuple[str, MappingConfig]]:
        entries: List[Tuple[str, MappingConfig]] = list(manager.mappings.items())
        if manager.auto_mapping:
            for name in self.bundles:
                if name not in manager.mappings:
                    entries.append((name, MappingConfig(is_bundle=True)))
        return entries

    def _bundle_defaults(self, name: str, entry: MappingConfig) -> Optional[MappingConfig]:
        bundle = self.bundles.get(name)
        if bundle is None:
            raise MappingConfigurationError(f'Bundle "{name}" does not exist or is not enabled.')
        bundle_dir = Path(bundle.path)

        driver_type = entry.type or detect_driver_type(bundle_dir)
        if driver_type is None:
            return None
        if entry.dir:
            directory = bundle_dir / entry.dir
        elif driver_type in RESOURCE_DRIVERS:
            directory = bundle_dir / MAPPING_RESOURCE_DIR
        else:
            directory = bundle_dir / DOCUMENT_DIR
        return entry.model_copy(
            update={
                "type": driver_type,
                "dir": str(directory),
                "prefix": entry.prefix or f"{bundle.namespace}.{DOCUMENT_DIR}",
                "is_bundle": True,
            }
        )

    def _validate(self, manager_name: str, mapping_name: str, entry: MappingConfig) -> Tuple[str, str]:
        missing = [k for k in ("type", "dir", "prefix") if not getattr(entry, k)]
        if missing:
            raise MappingConfigurationError(
                f'Mapping "{mapping_name}" of document manager "{manager_name}" '
                f"is missing: {', '.join(missing)}."
            )
        if entry.type not in DRIVER_TYPES:
            raise MappingConfigurationError(
                f'Mapping "{mapping_name}" uses unknown driver type "{entry.type}" '
                f"(supported: {', '.join(DRIVER_TYPES)})."
            )
        directory = Path(entry.dir)
        if not directory.is_absolute():
            directory = self.root_dir / directory
        if not directory.is_dir():
            raise MappingConfigurationError(
                f'Mapping directory "{directory}" of mapping "{mapping_name}" does not exist.'
            )
        return entry.prefix, str(directory.resolve())

    def _driver_descriptors(
        self, manager_name: str, drivers: Mapping[str, Mapping[str, str]]
    ) -> Tuple[ServiceDescriptor, ...]:
        out: List[ServiceDescriptor] = []
        chain = ServiceDescriptor(
            id=metadata_driver_id(manager_name),
            kind=ServiceKind.METADATA_DRIVER,
            cls=Parameter("couchdb.odm.metadata.driver_chain.class"),
        )
        for driver_type, paths in drivers.items():
            driver = ServiceDescriptor(
                id=metadata_driver_id(manager_name, driver_type),
                kind=ServiceKind.METADATA_DRIVER,
                cls=Parameter(f"couchdb.odm.metadata.{driver_type}.class"),
                arguments=(tuple(paths.values()),),
                public=False,
            )
            if driver_type in FILE_DRIVERS:
                driver = driver.with_call(
                    "setNamespacePrefixes", MappingProxyType({d: p for p, d in paths.items()})
                )
            out.append(driver)
            for prefix in paths:
                chain = chain.with_call("addDriver", Reference(driver.id), prefix)
        out.append(chain)
        return tuple(out)

"""
──────────────────────────────────────────────────────────────────────────────
couch_kernel.testing.fixtures
──────────────────────────────────────────────────────────────────────────────
Purpose:
    Provide reusable pytest fixtures for kernel-based applications.

Exports:
    - kernel_settings → quiet KernelSettings with a fixed namespace seed
    - bundle_tree     → fake bundles on disk (xml, yml, annotation, empty)
    - make_bundle()   → build one fake bundle directory

Usage in your test:
    pytest_plugins = ["couch_kernel.testing.fixtures"]

    def test_registry(kernel_settings):
        registry = resolve({"client": {"host": "db"}}, settings=kernel_settings)
        assert registry.default_connection == "default"
──────────────────────────────────────────────────────────────────────────────
"""
from __future__ import annotations
from pathlib import Path
from typing import Dict, Optional

import pytest

from couch_kernel.config.settings import KernelSettings
from couch_kernel.mapping import DOCUMENT_DIR, MAPPING_RESOURCE_DIR, BundleInfo


# ──────────────────────────────────────────────────────────────
# Utility: build a bundle directory
# ──────────────────────────────────────────────────────────────
def make_bundle(root: Path, name: str, driver: Optional[str], namespace: Optional[str] = None) -> BundleInfo:
    """
    Create <root>/<name> laid out for `driver` ('xml', 'yml', 'php', 'annotation' or None).
    """
    path = root / name
    path.mkdir(parents=True, exist_ok=True)
    if driver in ("xml", "yml", "php"):
        resources = path / MAPPING_RESOURCE_DIR
        resources.mkdir(parents=True, exist_ok=True)
        (resources / f"Post.couch.{driver}").write_text("<mapping/>\n", encoding="utf-8")
    elif driver == "annotation":
        (path / DOCUMENT_DIR).mkdir(exist_ok=True)
    return BundleInfo(path=path, namespace=namespace or f"app.{name}")


# ──────────────────────────────────────────────────────────────
# Settings Fixture
# ──────────────────────────────────────────────────────────────
@pytest.fixture()
def kernel_settings(tmp_path) -> KernelSettings:
    """Settings isolated from env files, with a deterministic seed."""
    return KernelSettings(
        _env_file=None,
        verbose=False,
        root_dir=str(tmp_path),
        namespace_seed="/srv/app",
    )


# ──────────────────────────────────────────────────────────────
# Bundle Tree Fixture
# ──────────────────────────────────────────────────────────────
@pytest.fixture()
def bundle_tree(tmp_path) -> Dict[str, BundleInfo]:
    """Four bundles: BlogBundle (xml), ShopBundle (yml), UserBundle (annotation), EmptyBundle."""
    root = tmp_path / "src"
    return {
        "BlogBundle": make_bundle(root, "BlogBundle", "xml"),
        "ShopBundle": make_bundle(root, "ShopBundle", "yml"),
        "UserBundle": make_bundle(root, "UserBundle", "annotation"),
        "EmptyBundle": make_bundle(root, "EmptyBundle", None),
    }

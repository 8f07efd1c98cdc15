"""
Testing utilities for couch_kernel apps.
──────────────────────────────────────────────────────────────
Provides pytest fixtures for settings and fake bundle layouts.
──────────────────────────────────────────────────────────────
"""
from .fixtures import bundle_tree, kernel_settings, make_bundle

__all__ = ["bundle_tree", "kernel_settings", "make_bundle"]

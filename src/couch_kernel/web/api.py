# src/couch_kernel/web/api.py
from __future__ import annotations
from typing import Any, Iterable, Mapping, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from couch_kernel.api.registry_router import router as kernel_registry_router
from couch_kernel.config.settings import KernelSettings, get_settings
from couch_kernel.di.container import Container
from couch_kernel.log import log
from couch_kernel.mapping import BundleInfo, BundleMappingLoader, MappingDriverLoader
from couch_kernel.resolver.registry import resolve
from couch_kernel.web.errors import add_error_handlers


"""
──────────────────────────────────────────────────────────────
couch_kernel.web.api
──────────────────────────────────────────────────────────────
Purpose:
    FastAPI app factory that wires document-store services from
    configuration at startup.

Responsibilities:
    • Resolve the configuration into a Registry (errors propagate:
      the app is never built from a broken configuration)
    • Expose registry + lazy Container on app.state
    • Add CORS and global error handlers
    • Include the kernel router (health, registry introspection)
──────────────────────────────────────────────────────────────
"""


# ──────────────────────────────────────────────────────────────
# App Factory
# ──────────────────────────────────────────────────────────────
def create_app(
    config: Any = None,
    *,
    settings: Optional[KernelSettings] = None,
    loader: Optional[MappingDriverLoader] = None,
    bundles: Optional[Mapping[str, BundleInfo]] = None,
    title: Optional[str] = None,
    cors_allow_origins: Iterable[str] = ("*",),
) -> FastAPI:
    """
    Centralized FastAPI factory for couch_kernel apps.
    Raises ConfigurationError before any app object exists if config is invalid.
    """
    settings = settings or get_settings()
    verbose = settings.verbose

    # ──────────────────────────────────────────────────────────
    # 🔹 Registry (fail fast)
    # ──────────────────────────────────────────────────────────
    if loader is None:
        loader = BundleMappingLoader(bundles, root_dir=settings.root_dir, verbose=verbose)
    registry = resolve(config, settings=settings, loader=loader)

    app = FastAPI(title=title or settings.app_name, debug=settings.debug)
    app.state.registry = registry
    app.state.container = Container(registry)
    log("✅ [kernel] Registry + container attached to app.state", verbose=verbose)

    # ──────────────────────────────────────────────────────────
    # 🔹 CORS Setup
    # ──────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(cors_allow_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ──────────────────────────────────────────────────────────
    # 🔹 Global Error Handlers
    # ──────────────────────────────────────────────────────────
    add_error_handlers(app)
    log("✅ [kernel] Global error handlers registered", verbose=verbose)

    # ──────────────────────────────────────────────────────────
    # 🔹 Kernel Router
    # ──────────────────────────────────────────────────────────
    app.include_router(kernel_registry_router)
    log("✅ [kernel] Registry endpoints mounted", verbose=verbose)

    log(f"🚀 [kernel] App '{app.title}' ready.", verbose=verbose)
    return app


# ──────────────────────────────────────────────────────────────
# Router Helper
# ──────────────────────────────────────────────────────────────
def mount_routers(app: FastAPI, routers: list) -> None:
    """Mount multiple routers safely."""
    for r in routers:
        app.include_router(r)

"""
──────────────────────────────────────────────────────────────
Default Kernel Router: Health, Registry introspection
──────────────────────────────────────────────────────────────
Purpose:
    Expose the resolved service registry of a kernel-based app.

Exports:
    router → FastAPI APIRouter instance
──────────────────────────────────────────────────────────────
"""

import time
from typing import Any, Mapping

from fastapi import APIRouter, Request

from couch_kernel.di.descriptors import Parameter, Reference, Registry, ServiceDescriptor

_router_start_time = time.time()

router = APIRouter(prefix="", tags=["system"])


def _plain(value: Any) -> Any:
    if isinstance(value, (Reference, Parameter)):
        return str(value)
    if isinstance(value, Mapping):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def describe(descriptor: ServiceDescriptor) -> dict:
    """JSON-safe view of a descriptor (references as '@id', parameters as '%name%')."""
    return {
        "id": descriptor.id,
        "kind": descriptor.kind.value,
        "class": _plain(descriptor.cls),
        "arguments": _plain(descriptor.arguments),
        "calls": [{"method": c.method, "arguments": _plain(c.arguments)} for c in descriptor.calls],
        "public": descriptor.public,
        "factory": descriptor.factory,
    }


def _registry(request: Request) -> Registry:
    return request.app.state.registry


@router.get("/healthz")
async def healthz():
    """Simple health check endpoint."""
    return {"ok": True, "uptime": round(time.time() - _router_start_time, 1)}


@router.get("/registry")
async def registry_summary(request: Request):
    """Defaults, aliases and the kind of every service."""
    registry = _registry(request)
    return {
        "default_connection": registry.default_connection,
        "default_manager": registry.default_manager,
        "aliases": dict(registry.aliases),
        "services": {sid: d.kind.value for sid, d in registry.services.items()},
    }


@router.get("/registry/services/{service_id}")
async def service_detail(service_id: str, request: Request):
    """One descriptor; aliases are followed. Unknown ids → 404."""
    return describe(_registry(request).get(service_id))


__all__ = ["router", "describe"]

"""
Built-in kernel routers.
──────────────────────────────────────────────────────────────
Currently includes:
 - /healthz
 - /registry
 - /registry/services/{service_id}
──────────────────────────────────────────────────────────────
"""
from .registry_router import router as registry_router

__all__ = ["registry_router"]

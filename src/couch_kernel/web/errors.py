# couch_kernel/web/errors.py
from __future__ import annotations
import traceback

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from couch_kernel.errors import ConfigurationError, KernelError, ServiceNotFoundError
from couch_kernel.log import log


def error_envelope(code: str, message: str, details=None):
    return {"error": {"code": code, "message": message, "details": details or {}}}


async def exception_middleware(request: Request, call_next):
    try:
        return await call_next(request)
    except ServiceNotFoundError as e:
        return JSONResponse(
            error_envelope("NOT_FOUND", str(e), {"service_id": e.service_id}), status_code=404
        )
    except ConfigurationError as e:
        return JSONResponse(error_envelope("CONFIGURATION_ERROR", str(e)), status_code=500)
    except KernelError as e:
        return JSONResponse(error_envelope("KERNEL_ERROR", str(e)), status_code=500)
    except Exception:
        log(f"⚠️ Unexpected error: {traceback.format_exc()}")
        return JSONResponse(
            error_envelope("SERVER_ERROR", "Unexpected error"), status_code=500
        )


def add_error_handlers(app: FastAPI) -> None:
    """Attach global exception middleware to app."""
    app.middleware("http")(exception_middleware)

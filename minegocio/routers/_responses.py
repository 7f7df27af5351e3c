"""JSON envelopes shared by the routers ({exito, mensaje})."""
from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse

INTERNAL_ERROR_MESSAGE = "Error interno del servidor"


def result(ok: bool, message: str, status_code: int = 200, **extra) -> JSONResponse:
    payload = {"exito": ok, "mensaje": message}
    payload.update(extra)
    return JSONResponse(payload, status_code=status_code)


def internal_error() -> JSONResponse:
    return result(False, INTERNAL_ERROR_MESSAGE, 500)


def app_service(request: Request, name: str):
    svc = getattr(getattr(request.app, "state", None), name, None)
    if svc is None:
        raise RuntimeError(f"{name} no configurado")
    return svc

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from minegocio.routers._responses import app_service, internal_error, result
from minegocio.services.cleanup_service import CleanupService
from minegocio.services.session_service import current_principal

router = APIRouter(prefix="/data-cleanup", tags=["data-cleanup"])
logger = logging.getLogger(__name__)


@router.post("/run")
async def run_cleanup(request: Request):
    svc: CleanupService = app_service(request, "cleanup_service")
    try:
        principal = await run_in_threadpool(current_principal, request)
        if not principal:
            return result(False, "No autenticado", 401)
        if principal.empresa_id is None:
            return result(False, "No se pudo obtener la información de la empresa", 400)
        outcome = await run_in_threadpool(svc.run, principal.empresa_id)
    except Exception:
        logger.exception("Data cleanup failed")
        return internal_error()
    return JSONResponse(outcome.to_dict())

"""Read-only inspection endpoints (auth status, users, tenants, DB connectivity check)."""
from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from minegocio.core.config import get_settings
from minegocio.db.models import ACCOUNT_KIND_CUSTOMER, ACCOUNT_KIND_USER
from minegocio.repositories.account_repository import AccountRepository
from minegocio.routers._responses import app_service
from minegocio.services.session_service import current_principal

router = APIRouter(prefix="/debug", tags=["debug"])
logger = logging.getLogger(__name__)


def _repo(request: Request) -> AccountRepository:
    return app_service(request, "account_repository")


def _require_non_prod() -> None:
    if get_settings().is_prod:
        raise HTTPException(404, "Not Found")


@router.get("/auth-status")
def auth_status(request: Request):
    try:
        principal = current_principal(request)
    except SQLAlchemyError:
        logger.exception("Could not resolve session for auth-status")
        principal = None
    if not principal:
        return {"authenticated": False}
    return {
        "authenticated": True,
        "principal": principal.describe(),
        "authorities": principal.authorities,
        "userId": principal.account_id,
        "username": principal.email,
        "empresaId": principal.empresa_id,
        "rol": principal.rol,
    }


@router.get("/usuarios")
def list_usuarios(request: Request):
    _require_non_prod()
    try:
        usuarios = _repo(request).list_accounts(ACCOUNT_KIND_USER)
    except SQLAlchemyError as exc:
        logger.exception("Could not list usuarios")
        return JSONResponse({"error": str(exc)}, status_code=500)
    return {
        "total": len(usuarios),
        "usuarios": [
            {"id": u.id, "email": u.email, "rol": u.rol, "activo": u.activo, "empresaId": u.empresa_id}
            for u in usuarios
        ],
    }


@router.get("/empresas")
def list_empresas(request: Request):
    _require_non_prod()
    try:
        empresas = _repo(request).list_tenants()
    except SQLAlchemyError as exc:
        logger.exception("Could not list empresas")
        return JSONResponse({"error": str(exc)}, status_code=500)
    return {
        "total": len(empresas),
        "empresas": [
            {"id": e.id, "nombre": e.nombre, "subdominio": e.subdominio, "activo": e.activa}
            for e in empresas
        ],
    }


@router.get("/test-db")
def test_db(request: Request):
    repo = _repo(request)
    try:
        counts = {
            "usuarios": repo.count_accounts(ACCOUNT_KIND_USER),
            "clientes": repo.count_accounts(ACCOUNT_KIND_CUSTOMER),
            "empresas": repo.count_tenants(),
        }
    except SQLAlchemyError as exc:
        logger.exception("Database connectivity check failed")
        return JSONResponse({"error": str(exc)}, status_code=500)
    return {**counts, "status": "OK"}

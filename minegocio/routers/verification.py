from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from starlette.concurrency import run_in_threadpool

from minegocio.core.rate_limiter import rate_limit_ip
from minegocio.routers._responses import app_service, internal_error, result
from minegocio.services.verification_service import (
    AccountNotEligibleError,
    AlreadyVerifiedError,
    InvalidInputError,
    VerificationError,
    VerificationService,
)

router = APIRouter(prefix="/verification", tags=["verification"])
logger = logging.getLogger(__name__)

VERIFIED_MESSAGE = "Email verificado exitosamente. Tu cuenta ya está activa."
RESENT_MESSAGE = "Email de verificación reenviado exitosamente."


def _service(request: Request) -> VerificationService:
    return app_service(request, "verification_service")


async def _request_fields(request: Request) -> dict[str, str]:
    """Merge query params with a JSON or form body; body values win."""
    fields = {k: v for k, v in request.query_params.items()}
    content_type = (request.headers.get("content-type") or "").lower()
    try:
        if "application/json" in content_type:
            body = await request.json()
            if isinstance(body, dict):
                fields.update({k: str(v) for k, v in body.items() if v is not None})
        elif "form" in content_type:
            form = await request.form()
            fields.update({k: str(v) for k, v in form.items()})
    except (ValueError, UnicodeDecodeError) as exc:
        raise InvalidInputError("Cuerpo de la solicitud inválido") from exc
    return fields


@router.post("/verify-email")
async def verify_email(request: Request):
    svc = _service(request)
    try:
        fields = await _request_fields(request)
        await run_in_threadpool(svc.verify, fields.get("token", ""), fields.get("subdominio"))
    except VerificationError as exc:
        if exc.status_code >= 500:
            logger.error("Email verification failed: %s", exc.message)
        return result(False, exc.message, exc.status_code)
    except Exception:
        logger.exception("Unexpected error verifying email")
        return internal_error()
    return result(True, VERIFIED_MESSAGE)


@router.post("/resend-email")
async def resend_email(request: Request):
    svc = _service(request)
    rate_limit_ip(
        request,
        "verification:resend",
        limit=svc.settings.resend_rate_limit,
        window_seconds=svc.settings.resend_rate_window_seconds,
    )
    try:
        fields = await _request_fields(request)
        await run_in_threadpool(svc.resend, fields.get("email", ""), fields.get("subdominio"))
    except (AccountNotEligibleError, AlreadyVerifiedError):
        # misma respuesta para inexistente/verificada: no revela cuentas
        return result(False, AccountNotEligibleError.default_message, 400)
    except VerificationError as exc:
        if exc.status_code >= 500:
            logger.error("Verification resend failed: %s", exc.message)
        return result(False, exc.message, exc.status_code)
    except Exception:
        logger.exception("Unexpected error resending verification email")
        return internal_error()
    return result(True, RESENT_MESSAGE)

import logging
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from minegocio.core.config import get_settings
from minegocio.core.logging_config import configure_logging
from minegocio.repositories.account_repository import AccountRepository
from minegocio.routers import cleanup as cleanup_router
from minegocio.routers import debug as debug_router
from minegocio.routers import verification as verification_router
from minegocio.routers._responses import INTERNAL_ERROR_MESSAGE
from minegocio.services.cleanup_service import CleanupService
from minegocio.services.verification_service import VerificationService

logger = logging.getLogger("minegocio.app")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Inject baseline security headers (anti clickjacking, nosniff, referrer policy)."""

    def __init__(self, app, *, enforce_hsts: bool) -> None:
        super().__init__(app)
        self._enforce_hsts = enforce_hsts

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        if self._enforce_hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One log line per request with status and elapsed time."""

    async def dispatch(self, request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info("%s %s -> %s (%.1f ms)", request.method, request.url.path, response.status_code, elapsed_ms)
        return response


async def _http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        {"exito": False, "mensaje": str(exc.detail)},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse({"exito": False, "mensaje": "Solicitud inválida", "errores": exc.errors()}, status_code=400)


async def _unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse({"exito": False, "mensaje": INTERNAL_ERROR_MESSAGE}, status_code=500)


def create_app() -> FastAPI:
    """Factory compatible con uvicorn/gunicorn (uvicorn minegocio.app:create_app --factory)."""
    configure_logging()
    settings = get_settings()
    app = FastAPI(title="MiNegocio API")

    # Endpoints stateless: CORS abierto, sin credenciales.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        max_age=3600,
    )
    app.add_middleware(SecurityHeadersMiddleware, enforce_hsts=settings.is_prod)
    app.add_middleware(RequestLoggingMiddleware)

    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)

    accounts = AccountRepository()
    app.state.account_repository = accounts
    app.state.verification_service = VerificationService(accounts=accounts)
    app.state.cleanup_service = CleanupService()

    app.include_router(verification_router.router)
    app.include_router(debug_router.router)
    app.include_router(cleanup_router.router)
    return app


app = create_app()

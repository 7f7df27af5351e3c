"""Session helpers (issue tokens, resolve the authenticated principal)."""
from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Request

from minegocio.core.config import get_settings
from minegocio.db.models import Account, UserSession
from minegocio.db.session import get_session

SESSION_COOKIE_NAME = "session"


@dataclass
class Principal:
    """Read-only view of the identity behind the current request."""

    account_id: int
    email: str
    nombre: str
    kind: str
    rol: str
    empresa_id: Optional[int]
    authorities: list[str] = field(default_factory=list)

    def describe(self) -> str:
        return f"Principal(id={self.account_id}, username={self.email}, rol={self.rol}, empresaId={self.empresa_id})"


def issue_session(account_id: int) -> str:
    """Create a new session token and persist it in the SQL store."""
    token = secrets.token_urlsafe(32)
    settings = get_settings()
    ttl = max(60, settings.session_ttl_seconds)
    expires_at = datetime.now(timezone.utc) + timedelta(seconds=ttl)

    with get_session() as session:
        session.add(UserSession(token=token, account_id=account_id, expires_at=expires_at))
        session.commit()
    return token


def _request_token(request: Request) -> Optional[str]:
    auth = request.headers.get("authorization") or ""
    scheme, _, value = auth.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return request.cookies.get(SESSION_COOKIE_NAME)


def _as_utc(value: datetime) -> datetime:
    return value.astimezone(timezone.utc) if value.tzinfo else value.replace(tzinfo=timezone.utc)


def current_principal(request: Request) -> Optional[Principal]:
    """Return the principal for the request's session token, if any."""
    token = _request_token(request)
    if not token:
        return None

    now = datetime.now(timezone.utc)
    with get_session() as session:
        db_session = session.get(UserSession, token)
        if not db_session:
            return None
        if db_session.expires_at and _as_utc(db_session.expires_at) < now:
            session.delete(db_session)
            session.commit()
            return None
        account = session.get(Account, db_session.account_id)
        if not account or not account.activo:
            return None
        return Principal(
            account_id=account.id,
            email=account.email,
            nombre=account.nombre or "",
            kind=account.kind,
            rol=account.rol,
            empresa_id=account.empresa_id,
            authorities=[f"ROLE_{account.rol}"],
        )


def delete_session(token: str) -> None:
    """Remove a session token from the store."""
    if not token:
        return
    with get_session() as session:
        entity = session.get(UserSession, token)
        if entity:
            session.delete(entity)
            session.commit()

"""Verification token persistence."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import delete, select, update

from minegocio.core.security import new_token
from minegocio.db.models import Account, VerificationToken
from minegocio.db.session import get_session

REDEEMED = "redeemed"
TOKEN_CONSUMED = "token_consumed"
ACCOUNT_VERIFIED = "account_verified"


class TokenStore:
    """Stores single-use email verification tokens, one outstanding per account."""

    def find_by_token(self, token: str) -> Optional[VerificationToken]:
        with get_session() as session:
            return session.get(VerificationToken, token)

    def get_outstanding_for_account(self, account_id: int) -> Optional[VerificationToken]:
        with get_session() as session:
            stmt = select(VerificationToken).where(
                VerificationToken.account_id == account_id,
                VerificationToken.consumed_at.is_(None),
            )
            return session.execute(stmt).scalar_one_or_none()

    def create_or_replace_for_account(
        self,
        account_id: int,
        ttl_seconds: int,
        token: Optional[str] = None,
    ) -> VerificationToken:
        """
        Drop any outstanding token of the account and insert a fresh one in the
        same transaction. A concurrent rotation for the same account trips the
        partial unique index and raises IntegrityError.
        """
        now = datetime.now(timezone.utc)
        entity = VerificationToken(
            token=token or new_token(),
            account_id=account_id,
            created_at=now,
            expires_at=now + timedelta(seconds=max(0, ttl_seconds)),
            consumed_at=None,
        )
        with get_session() as session:
            session.execute(
                delete(VerificationToken).where(
                    VerificationToken.account_id == account_id,
                    VerificationToken.consumed_at.is_(None),
                )
            )
            session.add(entity)
            session.commit()
            return entity

    def mark_consumed(self, token: str, when: Optional[datetime] = None) -> bool:
        """Atomically consume an unconsumed token; False when someone else got there first."""
        consumed_at = when or datetime.now(timezone.utc)
        with get_session() as session:
            stmt = (
                update(VerificationToken)
                .where(VerificationToken.token == token, VerificationToken.consumed_at.is_(None))
                .values(consumed_at=consumed_at)
            )
            result = session.execute(stmt)
            session.commit()
            return (result.rowcount or 0) == 1

    def redeem(self, token: str, account_id: int, when: Optional[datetime] = None) -> str:
        """
        Consume the token and verify its account in one transaction.

        Both conditional updates commit together or not at all. Returns
        REDEEMED, TOKEN_CONSUMED (lost the race for the token) or
        ACCOUNT_VERIFIED (account already verified; the token stays outstanding).
        """
        now = when or datetime.now(timezone.utc)
        with get_session() as session:
            consumed = session.execute(
                update(VerificationToken)
                .where(VerificationToken.token == token, VerificationToken.consumed_at.is_(None))
                .values(consumed_at=now)
            )
            if (consumed.rowcount or 0) != 1:
                session.rollback()
                return TOKEN_CONSUMED
            verified = session.execute(
                update(Account)
                .where(Account.id == account_id, Account.email_verified_at.is_(None))
                .values(email_verified_at=now, activo=True, updated_at=now)
            )
            if (verified.rowcount or 0) != 1:
                session.rollback()
                return ACCOUNT_VERIFIED
            session.commit()
            return REDEEMED

    def delete_token(self, token: str) -> None:
        with get_session() as session:
            session.execute(delete(VerificationToken).where(VerificationToken.token == token))
            session.commit()


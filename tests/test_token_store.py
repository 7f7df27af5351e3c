"""
Smoke tests for the token store and account repository against a temporary SQLite database.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from minegocio.db.models import VerificationToken
from minegocio.db.session import get_session
from minegocio.repositories.account_repository import AccountRepository
from minegocio.repositories.token_store import ACCOUNT_VERIFIED, REDEEMED, TOKEN_CONSUMED, TokenStore


def test_create_or_replace_keeps_one_outstanding_token(db_env):
    account = AccountRepository().create_account("a@x.com", "hash")
    store = TokenStore()

    first = store.create_or_replace_for_account(account.id, 3600, token="tok-1")
    second = store.create_or_replace_for_account(account.id, 3600, token="tok-2")

    assert store.find_by_token(first.token) is None
    assert store.get_outstanding_for_account(account.id).token == second.token
    assert second.expires_at > second.created_at


def test_mark_consumed_succeeds_once(db_env):
    account = AccountRepository().create_account("a@x.com", "hash")
    store = TokenStore()
    store.create_or_replace_for_account(account.id, 3600, token="tok-once")

    assert store.mark_consumed("tok-once") is True
    assert store.mark_consumed("tok-once") is False
    assert store.find_by_token("tok-once").consumed_at is not None
    assert store.get_outstanding_for_account(account.id) is None


def test_consumed_tokens_survive_rotation(db_env):
    account = AccountRepository().create_account("a@x.com", "hash")
    store = TokenStore()
    store.create_or_replace_for_account(account.id, 3600, token="old")
    store.mark_consumed("old")

    store.create_or_replace_for_account(account.id, 3600, token="new")

    assert store.find_by_token("old") is not None
    assert store.get_outstanding_for_account(account.id).token == "new"


def test_second_outstanding_token_violates_unique_index(db_env):
    account = AccountRepository().create_account("a@x.com", "hash")
    TokenStore().create_or_replace_for_account(account.id, 3600, token="tok-a")
    now = datetime.now(timezone.utc)

    with pytest.raises(IntegrityError):
        with get_session() as session:
            session.add(VerificationToken(token="tok-b", account_id=account.id, created_at=now, expires_at=now + timedelta(hours=1)))
            session.commit()


def test_redeem_consumes_and_verifies_together(db_env):
    repo = AccountRepository()
    account = repo.create_account("a@x.com", "hash")
    store = TokenStore()
    store.create_or_replace_for_account(account.id, 3600, token="tok-redeem")

    assert store.redeem("tok-redeem", account.id) == REDEEMED
    assert store.redeem("tok-redeem", account.id) == TOKEN_CONSUMED
    stored = repo.get_account(account.id)
    assert stored.is_verified and stored.activo


def test_redeem_leaves_token_outstanding_when_account_already_verified(db_env):
    repo = AccountRepository()
    account = repo.create_account("a@x.com", "hash")
    store = TokenStore()
    store.create_or_replace_for_account(account.id, 3600, token="tok-first")
    store.redeem("tok-first", account.id)
    store.create_or_replace_for_account(account.id, 3600, token="tok-late")

    assert store.redeem("tok-late", account.id) == ACCOUNT_VERIFIED
    assert store.find_by_token("tok-late").consumed_at is None


def test_user_email_is_unique_regardless_of_empresa(db_env):
    repo = AccountRepository()
    repo.create_account("a@x.com", "hash")

    with pytest.raises(IntegrityError):
        repo.create_account("a@x.com", "hash")


def test_find_by_email_scopes_customers_by_tenant(db_env):
    repo = AccountRepository()
    acme = repo.create_tenant("Acme", "acme")
    otra = repo.create_tenant("Otra", "otra")
    repo.create_account("b@y.com", "hash", kind="cliente", empresa_id=otra.id)

    assert repo.find_by_email("b@y.com", kind="cliente", empresa_id=acme.id) is None
    assert repo.find_by_email("b@y.com", kind="cliente") is None
    assert repo.find_by_email("b@y.com", kind="cliente", empresa_id=otra.id) is not None
    assert repo.find_by_email("b@y.com", kind="usuario") is None
    assert repo.get_tenant_by_subdominio(" ACME ").id == acme.id

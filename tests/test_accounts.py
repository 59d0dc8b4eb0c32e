"""Tests for operator accounts and credential checks."""
from __future__ import annotations

import pytest

from payrecon.core.config import Settings
from payrecon.core.crypto import hash_password, verify_password
from payrecon.infrastructure.database import build_engine, build_session_factory, init_db, session_scope
from payrecon.modules.accounts import (
    Account,
    AccountAlreadyExistsError,
    AccountCreateInput,
    AccountService,
    UnsupportedRoleError,
)


@pytest.fixture
async def session_factory(tmp_path):
    settings = Settings(database={"url": f"sqlite+aiosqlite:///{tmp_path / 'accounts.db'}"})
    engine = build_engine(settings)
    await init_db(engine)
    yield build_session_factory(engine)
    await engine.dispose()


def test_password_hash_round_trip():
    hashed = hash_password("secret123", rounds=4)

    assert verify_password("secret123", hashed)
    assert not verify_password("secret124", hashed)
    assert not verify_password("secret123", "not-a-bcrypt-hash")


@pytest.mark.anyio
async def test_authenticate_operator(session_factory):
    async with session_scope(session_factory) as session:
        await AccountService.with_session(session).create_account(
            AccountCreateInput(username="alice", password="secret123")
        )

    async with session_scope(session_factory) as session:
        service = AccountService.with_session(session)
        account = await service.authenticate("alice", "secret123")
        assert account is not None
        assert account.is_operator()
        assert await service.authenticate("alice", "wrong-pass") is None
        assert await service.authenticate("nobody", "secret123") is None


@pytest.mark.anyio
async def test_create_account_rejects_duplicates_and_unknown_roles(session_factory):
    async with session_scope(session_factory) as session:
        service = AccountService.with_session(session)
        await service.create_account(AccountCreateInput(username="alice", password="secret123"))

        with pytest.raises(AccountAlreadyExistsError):
            await service.create_account(AccountCreateInput(username="alice", password="other-pass"))
        with pytest.raises(UnsupportedRoleError):
            await service.create_account(AccountCreateInput(username="bob", password="secret123", role="customer"))


@pytest.mark.anyio
async def test_set_last_login(session_factory):
    async with session_scope(session_factory) as session:
        account = await AccountService.with_session(session).create_account(
            AccountCreateInput(username="alice", password="secret123", role="admin")
        )

    async with session_scope(session_factory) as session:
        await AccountService.with_session(session).set_last_login(account.id)

    async with session_scope(session_factory) as session:
        stored = await AccountService.with_session(session).get_by_id(account.id)

    assert stored.last_login_at is not None
    assert stored.role == "admin"


def test_disabled_account_is_not_an_operator():
    account = Account(id="a1", username="alice", role="admin", is_active=False, password_hash="x")

    assert not account.is_operator()
    assert "password_hash" not in repr(account)

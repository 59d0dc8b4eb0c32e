"""Operator sign-in and provisioning."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from payrecon.core.crypto import burn_password_check, hash_password, verify_password

from .exceptions import AccountAlreadyExistsError, UnsupportedRoleError
from .models import OPERATOR_ROLES, Account, AccountCreateInput
from .repository import AccountRepository

logger = logging.getLogger(__name__)


class AccountService:
    def __init__(self, repository: AccountRepository) -> None:
        self._repository = repository

    @classmethod
    def with_session(cls, session: AsyncSession) -> "AccountService":
        # Deferred: the SQL repository imports this package for its domain model.
        from payrecon.infrastructure.database.repositories.account_repository import SqlAccountRepository

        return cls(SqlAccountRepository(session))

    async def get_by_id(self, account_id: str) -> Account | None:
        return await self._repository.get_by_id(account_id)

    async def authenticate(self, username: str, password: str) -> Account | None:
        """Return the operator for valid credentials, spending one hash check either way."""
        account = await self._repository.get_by_username(username)
        if account is None or not account.is_active:
            burn_password_check(password)
            return None
        if not verify_password(password, account.password_hash):
            logger.info("Rejected console sign-in for %s", username)
            return None
        return account

    async def create_account(self, payload: AccountCreateInput) -> Account:
        if payload.role not in OPERATOR_ROLES:
            raise UnsupportedRoleError(f"unsupported role: {payload.role}")
        if await self._repository.get_by_username(payload.username) is not None:
            raise AccountAlreadyExistsError(f"username already exists: {payload.username}")

        account = await self._repository.add(payload.username, hash_password(payload.password), payload.role)
        logger.info("Provisioned %s account %s", account.role, account.username)
        return account

    async def set_last_login(self, account_id: str) -> None:
        await self._repository.touch_login(account_id, datetime.now(timezone.utc))

"""Operator accounts stored in the ``accounts`` table."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from payrecon.db.models import Account as AccountModel
from payrecon.modules.accounts.models import Account


def _to_domain(row: AccountModel) -> Account:
    return Account(
        id=str(row.id),
        username=row.username,
        role=row.role or "operator",
        is_active=bool(row.is_active),
        password_hash=row.password_hash,
        last_login_at=row.last_login_at,
    )


class SqlAccountRepository:
    """Runs inside the caller's session; committing is left to ``session_scope``."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _first(self, *criteria) -> Account | None:
        row = (await self._session.execute(select(AccountModel).where(*criteria))).scalar_one_or_none()
        return None if row is None else _to_domain(row)

    async def get_by_id(self, account_id: str) -> Account | None:
        return await self._first(AccountModel.id == account_id)

    async def get_by_username(self, username: str) -> Account | None:
        return await self._first(AccountModel.username == username)

    async def add(self, username: str, password_hash: str, role: str) -> Account:
        row = AccountModel(username=username, password_hash=password_hash, role=role, is_active=True)
        self._session.add(row)
        await self._session.flush()
        return _to_domain(row)

    async def touch_login(self, account_id: str, at: datetime) -> None:
        await self._session.execute(
            update(AccountModel).where(AccountModel.id == account_id).values(last_login_at=at)
        )

"""Storage seam for operator accounts."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from .models import Account


class AccountRepository(Protocol):
    async def get_by_id(self, account_id: str) -> Account | None:
        ...

    async def get_by_username(self, username: str) -> Account | None:
        ...

    async def add(self, username: str, password_hash: str, role: str) -> Account:
        ...

    async def touch_login(self, account_id: str, at: datetime) -> None:
        ...

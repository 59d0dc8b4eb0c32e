"""Operator accounts allowed into the reconciliation console."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

OPERATOR_ROLES = frozenset({"operator", "admin"})


@dataclass(slots=True)
class Account:
    id: str
    username: str
    role: str
    is_active: bool
    password_hash: str = field(repr=False)
    last_login_at: Optional[datetime] = None

    def is_operator(self) -> bool:
        return self.is_active and self.role in OPERATOR_ROLES


@dataclass(slots=True)
class AccountCreateInput:
    username: str
    password: str
    role: str = "operator"

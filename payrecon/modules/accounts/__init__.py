"""Operator account exports."""

from .exceptions import AccountAlreadyExistsError, AccountError, UnsupportedRoleError
from .models import OPERATOR_ROLES, Account, AccountCreateInput
from .service import AccountService

__all__ = [
    "OPERATOR_ROLES",
    "Account",
    "AccountAlreadyExistsError",
    "AccountCreateInput",
    "AccountError",
    "AccountService",
    "UnsupportedRoleError",
]

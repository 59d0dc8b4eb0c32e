"""SQLAlchemy-backed repository implementations."""

from .account_repository import SqlAccountRepository
from .pending_transaction_repository import SqlPendingTransactionRepository

__all__ = [
    "SqlAccountRepository",
    "SqlPendingTransactionRepository",
]

"""Storage protocol for pending transactions and its in-memory implementation."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .models import PendingTransaction, TransactionStatus


class PendingTransactionRepository(Protocol):
    async def add(self, transaction: PendingTransaction) -> PendingTransaction:
        ...

    async def get(self, transaction_id: str) -> PendingTransaction | None:
        ...

    async def list_open(self) -> Sequence[PendingTransaction]:
        ...

    async def list_transactions(
        self,
        *,
        status: TransactionStatus | None,
        limit: int,
        offset: int,
        created_from: datetime | None = None,
        created_to: datetime | None = None,
    ) -> Sequence[PendingTransaction]:
        ...

    async def list_by_order(self, order_ref: str) -> Sequence[PendingTransaction]:
        ...

    async def list_resolved_by_amount(self, amount: int, limit: int) -> Sequence[PendingTransaction]:
        ...

    async def resolve_if_open(self, resolved: PendingTransaction) -> PendingTransaction | None:
        """Persist ``resolved`` only if the stored record is still open."""
        ...

    async def count_by_status(self) -> dict[TransactionStatus, int]:
        ...


class InMemoryPendingTransactionRepository:
    """Dict-backed repository used for tests and the ``memory`` storage mode."""

    def __init__(self) -> None:
        self._items: dict[str, PendingTransaction] = {}

    async def add(self, transaction: PendingTransaction) -> PendingTransaction:
        self._items[transaction.id] = transaction
        return transaction

    async def get(self, transaction_id: str) -> PendingTransaction | None:
        return self._items.get(transaction_id)

    async def list_open(self) -> Sequence[PendingTransaction]:
        return sorted(
            (item for item in self._items.values() if item.is_open),
            key=lambda item: item.created_at,
        )

    async def list_transactions(
        self,
        *,
        status: TransactionStatus | None,
        limit: int,
        offset: int,
        created_from: datetime | None = None,
        created_to: datetime | None = None,
    ) -> Sequence[PendingTransaction]:
        rows = [item for item in self._items.values() if status is None or item.status is status]
        if created_from is not None:
            rows = [item for item in rows if item.created_at >= created_from]
        if created_to is not None:
            rows = [item for item in rows if item.created_at <= created_to]
        rows.sort(key=lambda item: item.created_at, reverse=True)
        return rows[offset:offset + limit]

    async def list_by_order(self, order_ref: str) -> Sequence[PendingTransaction]:
        rows = [item for item in self._items.values() if item.order_ref == order_ref]
        rows.sort(key=lambda item: item.created_at, reverse=True)
        return rows

    async def list_resolved_by_amount(self, amount: int, limit: int) -> Sequence[PendingTransaction]:
        rows = [
            item
            for item in self._items.values()
            if not item.is_open and item.expected_amount == amount
        ]
        rows.sort(key=lambda item: item.resolved_at or item.created_at, reverse=True)
        return rows[:limit]

    async def resolve_if_open(self, resolved: PendingTransaction) -> Optional[PendingTransaction]:
        current = self._items.get(resolved.id)
        if current is None or not current.is_open:
            return None
        self._items[resolved.id] = resolved
        return resolved

    async def count_by_status(self) -> dict[TransactionStatus, int]:
        counts = {status: 0 for status in TransactionStatus}
        for item in self._items.values():
            counts[item.status] += 1
        return counts


__all__ = ["InMemoryPendingTransactionRepository", "PendingTransactionRepository"]

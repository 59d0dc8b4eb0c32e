"""Per-transaction delivery of resolution events to live subscribers."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import AsyncIterator, Optional

from .models import PendingTransaction, ResolutionEvent
from .registry import PendingTransactionRegistry

logger = logging.getLogger(__name__)


class Subscription:
    """Event stream for one transaction; yields at most one terminal event."""

    def __init__(self, publisher: "NotificationPublisher", transaction_id: str) -> None:
        self.transaction_id = transaction_id
        self._publisher = publisher
        self._queue: asyncio.Queue[ResolutionEvent] = asyncio.Queue()
        self._delivered = False
        self.closed = False

    def offer(self, event: ResolutionEvent) -> bool:
        if self.closed or self._delivered:
            return False
        self._delivered = True
        self._queue.put_nowait(event)
        return True

    async def get(self) -> ResolutionEvent:
        return await self._queue.get()

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._publisher.unsubscribe(self)

    async def __aiter__(self) -> AsyncIterator[ResolutionEvent]:
        try:
            yield await self.get()
        finally:
            self.close()

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()


class NotificationPublisher:
    def __init__(self, registry: PendingTransactionRegistry) -> None:
        self._registry = registry
        self._topics: dict[str, list[Subscription]] = defaultdict(list)
        self.emitted_total = 0

    async def subscribe(self, transaction_id: str) -> Subscription:
        """Register interest in a transaction.

        Registers before reading the current status, so a resolution that
        lands in between is either emitted to the new subscription or
        synthesized from the registry; the subscription keeps only the first.
        """
        subscription = Subscription(self, transaction_id)
        self._topics[transaction_id].append(subscription)
        try:
            transaction = await self._registry.get(transaction_id)
        except Exception:
            self.unsubscribe(subscription)
            raise
        if not transaction.is_open:
            subscription.offer(ResolutionEvent.from_transaction(transaction))
            self._detach(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        self._detach(subscription)
        subscription.closed = True

    def _detach(self, subscription: Subscription) -> None:
        subscribers = self._topics.get(subscription.transaction_id)
        if not subscribers:
            return
        if subscription in subscribers:
            subscribers.remove(subscription)
        if not subscribers:
            self._topics.pop(subscription.transaction_id, None)

    def emit(self, transaction_id: str, event: ResolutionEvent) -> int:
        """Queue ``event`` for every live subscriber; returns the delivery count.

        Resolution events are terminal, so the topic is dropped afterwards.
        """
        subscribers = self._topics.pop(transaction_id, [])
        delivered = sum(1 for subscription in subscribers if subscription.offer(event))
        self.emitted_total += 1
        logger.info(
            "Emitted %s for transaction %s to %d subscriber(s)",
            event.resolved.value,
            transaction_id,
            delivered,
        )
        return delivered

    def on_resolved(self, transaction: PendingTransaction) -> None:
        """Registry listener turning a resolution into an event."""
        self.emit(transaction.id, ResolutionEvent.from_transaction(transaction))

    def subscriber_count(self, transaction_id: Optional[str] = None) -> int:
        if transaction_id is not None:
            return len(self._topics.get(transaction_id, ()))
        return sum(len(items) for items in self._topics.values())


__all__ = ["NotificationPublisher", "Subscription"]

"""Background sweep retiring open payment requests past their deadline."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Optional

from payrecon.core.clock import Clock

from .models import PendingTransaction, ResolvedBy, TransactionStatus
from .registry import PendingTransactionRegistry

logger = logging.getLogger(__name__)


class ExpiryScheduler:
    def __init__(
        self,
        registry: PendingTransactionRegistry,
        clock: Clock,
        interval: float = 1.0,
    ) -> None:
        self._registry = registry
        self._clock = clock
        self.interval = interval
        self._task: Optional[asyncio.Task] = None
        self.last_sweep_at: Optional[datetime] = None
        self.expired_total = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def sweep(self) -> list[PendingTransaction]:
        """Expire every open transaction whose deadline has passed."""
        now = self._clock.now()
        expired: list[PendingTransaction] = []
        for transaction in await self._registry.list_open():
            if not transaction.is_overdue(now):
                continue
            ok, resolved = await self._registry.resolve(
                transaction.id,
                TransactionStatus.EXPIRED,
                ResolvedBy.SYSTEM_TIMEOUT,
            )
            if ok:
                expired.append(resolved)
        self.last_sweep_at = now
        self.expired_total += len(expired)
        if expired:
            logger.info("Expiry sweep retired %d transaction(s)", len(expired))
        return expired

    def start(self) -> None:
        if self.is_running:
            logger.info("Expiry scheduler already running")
            return
        self._task = asyncio.create_task(self._run(), name="payrecon-expiry-sweep")
        logger.info("Expiry scheduler started, interval=%ss", self.interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Expiry scheduler stopped")

    async def _run(self) -> None:
        try:
            while True:
                try:
                    await self.sweep()
                except Exception:  # pylint: disable=broad-except
                    logger.exception("Expiry sweep failed")
                await asyncio.sleep(self.interval)
        except asyncio.CancelledError:
            logger.debug("Expiry sweep task cancelled")
            raise

    def status(self) -> dict[str, Any]:
        return {
            "running": self.is_running,
            "interval_seconds": self.interval,
            "last_sweep_at": self.last_sweep_at,
            "expired_total": self.expired_total,
        }


__all__ = ["ExpiryScheduler"]

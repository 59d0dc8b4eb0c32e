"""Canonical store of payment requests and the single resolution gate.

Every status change goes through :meth:`PendingTransactionRegistry.resolve`,
a compare-and-set that only succeeds while the record is still ``open``.
Automatic matches, operator actions and the expiry sweep may race on the
same transaction; exactly one of them wins and the others get ``ok=False``
together with the record the winner produced.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Sequence

from payrecon.core.clock import Clock

from .exceptions import (
    InvalidPaymentRequestError,
    TransactionNotFoundError,
    VerificationCodeExhaustedError,
)
from .models import (
    MAX_AMOUNT_MINOR_UNITS,
    PaymentChannel,
    PendingTransaction,
    ResolvedBy,
    TransactionStatus,
)
from .repository import PendingTransactionRepository

logger = logging.getLogger(__name__)

# No 0/O or 1/I, codes are read off a phone screen and typed into a banking app.
CODE_ALPHABET = "23456789ABCDEFGHJKLMNPQRSTUVWXYZ"
MAX_CODE_ATTEMPTS = 32
RESOLVED_LOOKBACK = 50

ResolutionListener = Callable[[PendingTransaction], None]


class VerificationCodeFactory:
    def __init__(self, prefix: str = "DH", length: int = 6, alphabet: str = CODE_ALPHABET) -> None:
        self.prefix = prefix.upper()
        self.length = length
        self.alphabet = alphabet

    def __call__(self) -> str:
        body = "".join(secrets.choice(self.alphabet) for _ in range(self.length))
        return f"{self.prefix}{body}"


class PendingTransactionRegistry:
    def __init__(
        self,
        repository: PendingTransactionRepository,
        clock: Clock,
        *,
        code_factory: Callable[[], str] | None = None,
        currency: str = "VND",
    ) -> None:
        self._repository = repository
        self._clock = clock
        self._code_factory = code_factory or VerificationCodeFactory()
        self._currency = currency
        self._lock = asyncio.Lock()
        self._listeners: list[ResolutionListener] = []

    @property
    def clock(self) -> Clock:
        return self._clock

    def add_listener(self, listener: ResolutionListener) -> None:
        """Register a callback invoked once for every successful resolution."""
        self._listeners.append(listener)

    async def create(
        self,
        order_ref: str,
        expected_amount: int,
        channel: PaymentChannel,
        window: timedelta,
    ) -> PendingTransaction:
        if expected_amount <= 0:
            raise InvalidPaymentRequestError("expected_amount must be a positive number of minor units")
        if expected_amount > MAX_AMOUNT_MINOR_UNITS:
            raise InvalidPaymentRequestError(f"expected_amount exceeds {MAX_AMOUNT_MINOR_UNITS} minor units")
        if not order_ref:
            raise InvalidPaymentRequestError("order_ref is required")
        if window <= timedelta(0):
            raise InvalidPaymentRequestError("payment window must be positive")

        async with self._lock:
            open_codes = {item.verification_code for item in await self._repository.list_open()}
            code = self._generate_code(open_codes)
            now = self._clock.now()
            transaction = PendingTransaction(
                id=str(uuid.uuid4()),
                order_ref=order_ref,
                verification_code=code,
                expected_amount=expected_amount,
                currency=self._currency,
                channel=PaymentChannel(channel),
                status=TransactionStatus.OPEN,
                created_at=now,
                deadline=now + window,
            )
            transaction = await self._repository.add(transaction)

        logger.info(
            "Payment request %s created for order %s: code=%s amount=%s deadline=%s",
            transaction.id,
            order_ref,
            transaction.verification_code,
            expected_amount,
            transaction.deadline.isoformat(),
        )
        return transaction

    def _generate_code(self, taken: set[str]) -> str:
        for _ in range(MAX_CODE_ATTEMPTS):
            code = self._code_factory().upper()
            if code not in taken:
                return code
        raise VerificationCodeExhaustedError(
            f"no free verification code after {MAX_CODE_ATTEMPTS} attempts ({len(taken)} open)"
        )

    async def resolve(
        self,
        transaction_id: str,
        new_status: TransactionStatus,
        resolved_by: ResolvedBy,
        reason: Optional[str] = None,
        operator: Optional[str] = None,
    ) -> tuple[bool, PendingTransaction]:
        """Move an open transaction to a terminal status.

        Returns ``(True, resolved)`` for the single winning caller and
        ``(False, current)`` for everyone else. A confirm or reject that arrives
        after the deadline expires the transaction instead and reports ``False``.
        Raises :class:`TransactionNotFoundError` for unknown ids.
        """
        new_status = TransactionStatus(new_status)
        if not new_status.is_terminal:
            raise ValueError("resolve requires a terminal status")

        async with self._lock:
            current = await self._repository.get(transaction_id)
            if current is None:
                raise TransactionNotFoundError(transaction_id)
            if not current.is_open:
                logger.info(
                    "Resolve %s -> %s by %s ignored: already %s by %s",
                    transaction_id,
                    new_status.value,
                    ResolvedBy(resolved_by).value,
                    current.status.value,
                    current.resolved_by.value if current.resolved_by else None,
                )
                return False, current

            now = self._clock.now()
            late = new_status is not TransactionStatus.EXPIRED and current.is_overdue(now)
            if late:
                candidate = current.resolved(
                    TransactionStatus.EXPIRED,
                    resolved_by=ResolvedBy.SYSTEM_TIMEOUT,
                    resolved_at=now,
                )
            else:
                candidate = current.resolved(
                    new_status,
                    resolved_by=ResolvedBy(resolved_by),
                    resolved_at=now,
                    reason=reason,
                    operator=operator,
                )

            stored = await self._repository.resolve_if_open(candidate)
            if stored is None:
                # Another process sharing the database won the conditional update.
                latest = await self._repository.get(transaction_id)
                return False, latest or current

        logger.info(
            "Transaction %s resolved: status=%s by=%s operator=%s",
            stored.id,
            stored.status.value,
            stored.resolved_by.value if stored.resolved_by else None,
            stored.resolved_operator,
        )
        self._notify(stored)
        return (not late), stored

    def _notify(self, transaction: PendingTransaction) -> None:
        for listener in self._listeners:
            try:
                listener(transaction)
            except Exception:  # pylint: disable=broad-except
                logger.exception("Resolution listener failed for transaction %s", transaction.id)

    async def get(self, transaction_id: str) -> PendingTransaction:
        transaction = await self._repository.get(transaction_id)
        if transaction is None:
            raise TransactionNotFoundError(transaction_id)
        return transaction

    async def list_open(self) -> Sequence[PendingTransaction]:
        return await self._repository.list_open()

    async def find_open_by_code(self, token: str) -> list[PendingTransaction]:
        """Open transactions whose code equals ``token`` or occurs inside it."""
        needle = token.upper()
        if not needle:
            return []
        return [item for item in await self._repository.list_open() if item.verification_code in needle]

    async def find_resolved_by_code(self, token: str, amount: int) -> list[PendingTransaction]:
        needle = token.upper()
        if not needle:
            return []
        rows = await self._repository.list_resolved_by_amount(amount, RESOLVED_LOOKBACK)
        return [item for item in rows if item.verification_code in needle]

    async def list_transactions(
        self,
        status: TransactionStatus | None = None,
        limit: int = 50,
        offset: int = 0,
        created_from: datetime | None = None,
        created_to: datetime | None = None,
    ) -> Sequence[PendingTransaction]:
        """Audit listing, newest first; naive bounds are read as UTC and both are inclusive."""
        created_from, created_to = _as_utc(created_from), _as_utc(created_to)
        if created_from and created_to and created_from > created_to:
            raise InvalidPaymentRequestError("created_from must not be after created_to")
        return await self._repository.list_transactions(
            status=status,
            limit=limit,
            offset=offset,
            created_from=created_from,
            created_to=created_to,
        )

    async def list_by_order(self, order_ref: str) -> Sequence[PendingTransaction]:
        return await self._repository.list_by_order(order_ref)

    async def stats(self) -> dict[TransactionStatus, int]:
        return await self._repository.count_by_status()


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


__all__ = [
    "CODE_ALPHABET",
    "PendingTransactionRegistry",
    "ResolutionListener",
    "VerificationCodeFactory",
]

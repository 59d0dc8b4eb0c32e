"""Reconciliation facade used by the storefront, the operator console and text sources."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Mapping, Optional, Sequence

from .exceptions import InvalidPaymentRequestError
from .matcher import ReconciliationMatcher
from .models import (
    IngestSummary,
    PaymentChannel,
    PendingTransaction,
    ResolvedBy,
    TransactionStatus,
)
from .parser import StatementParser
from .publisher import NotificationPublisher, Subscription
from .registry import PendingTransactionRegistry

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 60


@dataclass(slots=True)
class ReconciliationService:
    registry: PendingTransactionRegistry
    parser: StatementParser
    matcher: ReconciliationMatcher
    publisher: NotificationPublisher
    windows: Mapping[str, int]
    default_window_seconds: int = DEFAULT_WINDOW_SECONDS

    def window_for(self, channel: PaymentChannel) -> timedelta:
        seconds = self.windows.get(PaymentChannel(channel).value, self.default_window_seconds)
        return timedelta(seconds=seconds)

    async def create_request(
        self,
        order_ref: str,
        expected_amount: int,
        channel: PaymentChannel = PaymentChannel.BANK_TRANSFER,
    ) -> PendingTransaction:
        return await self.registry.create(
            order_ref,
            expected_amount,
            PaymentChannel(channel),
            self.window_for(channel),
        )

    async def ingest_text(self, text: str, source: str = "manual") -> IngestSummary:
        entries = self.parser.parse(text)
        outcomes = await self.matcher.match(entries)
        summary = IngestSummary(source=source, outcomes=outcomes)

        for outcome in outcomes:
            logger.info(
                "Ingest audit source=%s kind=%s amount=%s transactions=%s reason=%s",
                source,
                outcome.kind.value,
                outcome.entry.amount,
                outcome.transaction_ids,
                outcome.reason,
            )
        logger.info(
            "Ingested %d chars from %s: parsed=%d matched=%d ambiguous=%d no_match=%d already_resolved=%d late=%d",
            len(text or ""),
            source,
            summary.parsed_count,
            summary.matched_count,
            summary.ambiguous_count,
            summary.no_match_count,
            summary.already_resolved_count,
            summary.late_payment_count,
        )
        return summary

    async def manual_confirm(self, transaction_id: str, operator: str) -> tuple[bool, PendingTransaction]:
        operator = _require_operator(operator)
        return await self.registry.resolve(
            transaction_id,
            TransactionStatus.CONFIRMED,
            ResolvedBy.MANUAL_OPERATOR,
            operator=operator,
        )

    async def manual_reject(
        self,
        transaction_id: str,
        operator: str,
        reason: str,
    ) -> tuple[bool, PendingTransaction]:
        operator = _require_operator(operator)
        if not reason or not reason.strip():
            raise InvalidPaymentRequestError("a rejection reason is required")
        return await self.registry.resolve(
            transaction_id,
            TransactionStatus.REJECTED,
            ResolvedBy.MANUAL_OPERATOR,
            reason=reason.strip(),
            operator=operator,
        )

    async def subscribe(self, transaction_id: str) -> Subscription:
        return await self.publisher.subscribe(transaction_id)

    async def get_status(self, transaction_id: str) -> PendingTransaction:
        return await self.registry.get(transaction_id)

    async def list_open(self) -> Sequence[PendingTransaction]:
        return await self.registry.list_open()

    async def list_transactions(
        self,
        status: Optional[TransactionStatus] = None,
        limit: int = 50,
        offset: int = 0,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
    ) -> Sequence[PendingTransaction]:
        return await self.registry.list_transactions(
            status=status,
            limit=limit,
            offset=offset,
            created_from=created_from,
            created_to=created_to,
        )

    async def list_for_order(self, order_ref: str) -> Sequence[PendingTransaction]:
        return await self.registry.list_by_order(order_ref)

    async def stats(self) -> dict[str, int]:
        counts = await self.registry.stats()
        result = {status.value: counts.get(status, 0) for status in TransactionStatus}
        result["total"] = sum(counts.values())
        return result


def _require_operator(operator: str) -> str:
    if not operator or not operator.strip():
        raise InvalidPaymentRequestError("manual resolution requires an operator identity")
    return operator.strip()


__all__ = ["DEFAULT_WINDOW_SECONDS", "ReconciliationService"]

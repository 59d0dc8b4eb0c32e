"""Pair parsed transfers with open payment requests.

The policy is deliberately conservative: the amount must match exactly and
the verification code must appear in the transfer memo. When more than one
open request qualifies nothing is confirmed, the entry is reported as
ambiguous and left to an operator or the timeout.
"""

from __future__ import annotations

import logging
from typing import Iterable

from .models import MatchKind, MatchOutcome, ParsedEntry, PendingTransaction, ResolvedBy, TransactionStatus
from .registry import PendingTransactionRegistry

logger = logging.getLogger(__name__)

REASON_AMOUNT_MISMATCH = "amount_mismatch"
REASON_CODE_NOT_FOUND = "code_not_found"
REASON_MULTIPLE_CANDIDATES = "multiple_candidates"
REASON_DUPLICATE_NOTIFICATION = "duplicate_notification"
REASON_RESOLVED_ELSEWHERE = "resolved_elsewhere"
REASON_LATE_PAYMENT = "late_payment"


class ReconciliationMatcher:
    def __init__(self, registry: PendingTransactionRegistry) -> None:
        self._registry = registry

    async def match(self, entries: Iterable[ParsedEntry]) -> list[MatchOutcome]:
        return [await self.match_entry(entry) for entry in entries]

    async def match_entry(self, entry: ParsedEntry) -> MatchOutcome:
        by_code = await self._registry.find_open_by_code(entry.reference_token)
        candidates = [item for item in by_code if item.expected_amount == entry.amount]

        if len(candidates) > 1:
            ids = [item.id for item in candidates]
            logger.warning("Ambiguous transfer of %s matches %d open requests: %s", entry.amount, len(ids), ids)
            return MatchOutcome(entry, MatchKind.AMBIGUOUS, transaction_ids=ids, reason=REASON_MULTIPLE_CANDIDATES)

        if not candidates:
            return await self._unmatched(entry, code_seen=bool(by_code))

        target = candidates[0]
        ok, transaction = await self._registry.resolve(
            target.id,
            TransactionStatus.CONFIRMED,
            ResolvedBy.AUTOMATIC_MATCH,
        )
        if ok:
            return MatchOutcome(entry, MatchKind.CONFIRMED, transaction_ids=[transaction.id], transaction=transaction)
        return self._resolved_outcome(entry, transaction, REASON_RESOLVED_ELSEWHERE)

    async def _unmatched(self, entry: ParsedEntry, *, code_seen: bool) -> MatchOutcome:
        previous = await self._registry.find_resolved_by_code(entry.reference_token, entry.amount)
        if len(previous) == 1:
            return self._resolved_outcome(entry, previous[0], REASON_DUPLICATE_NOTIFICATION)
        reason = REASON_AMOUNT_MISMATCH if code_seen else REASON_CODE_NOT_FOUND
        return MatchOutcome(entry, MatchKind.NO_MATCH, reason=reason)

    @staticmethod
    def _resolved_outcome(entry: ParsedEntry, transaction: PendingTransaction, reason: str) -> MatchOutcome:
        """Only a confirmed holder makes the transfer a duplicate; otherwise the money came in late."""
        if transaction.status is TransactionStatus.CONFIRMED:
            return MatchOutcome(
                entry,
                MatchKind.ALREADY_RESOLVED,
                transaction_ids=[transaction.id],
                transaction=transaction,
                reason=reason,
            )
        logger.warning(
            "Transfer of %s arrived for %s transaction %s, needs operator follow-up",
            entry.amount,
            transaction.status.value,
            transaction.id,
        )
        return MatchOutcome(
            entry,
            MatchKind.LATE_PAYMENT,
            transaction_ids=[transaction.id],
            transaction=transaction,
            reason=REASON_LATE_PAYMENT,
        )


__all__ = [
    "REASON_AMOUNT_MISMATCH",
    "REASON_CODE_NOT_FOUND",
    "REASON_DUPLICATE_NOTIFICATION",
    "REASON_LATE_PAYMENT",
    "REASON_MULTIPLE_CANDIDATES",
    "REASON_RESOLVED_ELSEWHERE",
    "ReconciliationMatcher",
]

"""Domain models for payment requests and reconciliation results."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class PaymentChannel(str, Enum):
    BANK_TRANSFER = "bank_transfer"
    WALLET_QR = "wallet_qr"


class TransactionStatus(str, Enum):
    OPEN = "open"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self is not TransactionStatus.OPEN


class ResolvedBy(str, Enum):
    AUTOMATIC_MATCH = "automatic_match"
    MANUAL_OPERATOR = "manual_operator"
    SYSTEM_TIMEOUT = "system_timeout"


# Largest amount a BIGINT column holds.
MAX_AMOUNT_MINOR_UNITS = 2**63 - 1


class MatchKind(str, Enum):
    CONFIRMED = "confirmed"
    NO_MATCH = "no_match"
    AMBIGUOUS = "ambiguous"
    ALREADY_RESOLVED = "already_resolved"
    # Transfer for a request that already expired or was rejected.
    LATE_PAYMENT = "late_payment"


@dataclass(slots=True, frozen=True)
class PendingTransaction:
    id: str
    order_ref: str
    verification_code: str
    expected_amount: int
    currency: str
    channel: PaymentChannel
    status: TransactionStatus
    created_at: datetime
    deadline: datetime
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[ResolvedBy] = None
    rejection_reason: Optional[str] = None
    resolved_operator: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.status is TransactionStatus.OPEN

    def is_overdue(self, now: datetime) -> bool:
        return self.is_open and now >= self.deadline

    def resolved(
        self,
        status: TransactionStatus,
        *,
        resolved_by: ResolvedBy,
        resolved_at: datetime,
        reason: Optional[str] = None,
        operator: Optional[str] = None,
    ) -> "PendingTransaction":
        return dataclasses.replace(
            self,
            status=status,
            resolved_by=resolved_by,
            resolved_at=resolved_at,
            rejection_reason=reason,
            resolved_operator=operator,
        )


@dataclass(slots=True, frozen=True)
class ParsedEntry:
    """One candidate transfer found in a text blob."""

    amount: int
    reference_token: str
    raw_text: str
    source_timestamp: Optional[datetime] = None


@dataclass(slots=True)
class MatchOutcome:
    entry: ParsedEntry
    kind: MatchKind
    transaction_ids: list[str] = field(default_factory=list)
    transaction: Optional[PendingTransaction] = None
    reason: Optional[str] = None


@dataclass(slots=True)
class IngestSummary:
    source: str
    outcomes: list[MatchOutcome] = field(default_factory=list)

    @property
    def parsed_count(self) -> int:
        return len(self.outcomes)

    def _count(self, kind: MatchKind) -> int:
        return sum(1 for outcome in self.outcomes if outcome.kind is kind)

    @property
    def matched_count(self) -> int:
        return self._count(MatchKind.CONFIRMED)

    @property
    def ambiguous_count(self) -> int:
        return self._count(MatchKind.AMBIGUOUS)

    @property
    def no_match_count(self) -> int:
        return self._count(MatchKind.NO_MATCH)

    @property
    def already_resolved_count(self) -> int:
        return self._count(MatchKind.ALREADY_RESOLVED)

    @property
    def late_payment_count(self) -> int:
        return self._count(MatchKind.LATE_PAYMENT)


@dataclass(slots=True, frozen=True)
class ResolutionEvent:
    transaction_id: str
    order_ref: str
    resolved: TransactionStatus
    resolved_by: ResolvedBy
    timestamp: datetime
    reason: Optional[str] = None

    @classmethod
    def from_transaction(cls, transaction: PendingTransaction) -> "ResolutionEvent":
        if not transaction.status.is_terminal or transaction.resolved_by is None:
            raise ValueError(f"transaction {transaction.id} is not resolved")
        return cls(
            transaction_id=transaction.id,
            order_ref=transaction.order_ref,
            resolved=transaction.status,
            resolved_by=transaction.resolved_by,
            timestamp=transaction.resolved_at or transaction.deadline,
            reason=transaction.rejection_reason,
        )

    def to_message(self) -> dict[str, Any]:
        return {
            "type": "payment_resolved",
            "data": {
                "transaction_id": self.transaction_id,
                "order_ref": self.order_ref,
                "resolved": self.resolved.value,
                "resolved_by": self.resolved_by.value,
                "timestamp": self.timestamp.isoformat(),
                "reason": self.reason,
            },
        }


__all__ = [
    "IngestSummary",
    "MAX_AMOUNT_MINOR_UNITS",
    "MatchKind",
    "MatchOutcome",
    "ParsedEntry",
    "PaymentChannel",
    "PendingTransaction",
    "ResolutionEvent",
    "ResolvedBy",
    "TransactionStatus",
]

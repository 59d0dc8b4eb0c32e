"""Pydantic schemas used across the project."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from payrecon.modules.payments.models import (
    MAX_AMOUNT_MINOR_UNITS,
    IngestSummary,
    MatchKind,
    MatchOutcome,
    PaymentChannel,
    PendingTransaction,
    ResolvedBy,
    TransactionStatus,
)


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6)


class AccountLoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    account_id: str
    username: str
    role: str


class TokenData(BaseModel):
    account_id: str
    username: str
    role: str


class AccountResponse(BaseModel):
    id: str
    username: str
    role: str
    is_active: bool
    last_login_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PaymentRequestCreate(BaseModel):
    order_ref: str = Field(..., min_length=1, max_length=100)
    expected_amount: int = Field(..., gt=0, le=MAX_AMOUNT_MINOR_UNITS, description="Amount in minor currency units")
    channel: PaymentChannel = PaymentChannel.BANK_TRANSFER


class PaymentRequestResponse(BaseModel):
    """What the storefront renders to the payer."""

    id: str
    order_ref: str
    verification_code: str
    amount: int
    currency: str
    channel: PaymentChannel
    status: TransactionStatus
    deadline: datetime

    @classmethod
    def from_domain(cls, transaction: PendingTransaction) -> "PaymentRequestResponse":
        return cls(
            id=transaction.id,
            order_ref=transaction.order_ref,
            verification_code=transaction.verification_code,
            amount=transaction.expected_amount,
            currency=transaction.currency,
            channel=transaction.channel,
            status=transaction.status,
            deadline=transaction.deadline,
        )


class TransactionResponse(BaseModel):
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

    model_config = ConfigDict(from_attributes=True)


class TransactionListResponse(BaseModel):
    total: int
    transactions: list[TransactionResponse]


class TransactionStatsResponse(BaseModel):
    open: int = 0
    confirmed: int = 0
    rejected: int = 0
    expired: int = 0
    total: int = 0


class IngestRequest(BaseModel):
    text: str = Field(..., max_length=200_000)
    source: str = Field(default="manual", max_length=50)


class MatchOutcomeResponse(BaseModel):
    kind: MatchKind
    amount: int
    reference: str
    source_timestamp: Optional[datetime] = None
    transaction_ids: list[str] = Field(default_factory=list)
    status: Optional[TransactionStatus] = None
    reason: Optional[str] = None

    @classmethod
    def from_domain(cls, outcome: MatchOutcome) -> "MatchOutcomeResponse":
        return cls(
            kind=outcome.kind,
            amount=outcome.entry.amount,
            reference=outcome.entry.reference_token,
            source_timestamp=outcome.entry.source_timestamp,
            transaction_ids=list(outcome.transaction_ids),
            status=outcome.transaction.status if outcome.transaction else None,
            reason=outcome.reason,
        )


class IngestSummaryResponse(BaseModel):
    source: str
    parsed_count: int
    matched_count: int
    ambiguous_count: int
    no_match_count: int
    already_resolved_count: int
    late_payment_count: int
    outcomes: list[MatchOutcomeResponse] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, summary: IngestSummary) -> "IngestSummaryResponse":
        return cls(
            source=summary.source,
            parsed_count=summary.parsed_count,
            matched_count=summary.matched_count,
            ambiguous_count=summary.ambiguous_count,
            no_match_count=summary.no_match_count,
            already_resolved_count=summary.already_resolved_count,
            late_payment_count=summary.late_payment_count,
            outcomes=[MatchOutcomeResponse.from_domain(outcome) for outcome in summary.outcomes],
        )


class RejectRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)


class ResolutionResponse(BaseModel):
    ok: bool
    transaction: TransactionResponse


class SchedulerStatusResponse(BaseModel):
    running: bool
    interval_seconds: float
    last_sweep_at: Optional[datetime] = None
    expired_total: int
    open_subscriptions: int = 0


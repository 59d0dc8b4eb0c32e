"""Payment reconciliation domain exports."""

from .exceptions import (
    InvalidPaymentRequestError,
    PaymentError,
    TransactionNotFoundError,
    VerificationCodeExhaustedError,
)
from .matcher import ReconciliationMatcher
from .models import (
    MAX_AMOUNT_MINOR_UNITS,
    IngestSummary,
    MatchKind,
    MatchOutcome,
    ParsedEntry,
    PaymentChannel,
    PendingTransaction,
    ResolutionEvent,
    ResolvedBy,
    TransactionStatus,
)
from .parser import StatementParser
from .publisher import NotificationPublisher, Subscription
from .registry import PendingTransactionRegistry, VerificationCodeFactory
from .repository import InMemoryPendingTransactionRepository, PendingTransactionRepository
from .scheduler import ExpiryScheduler
from .service import ReconciliationService

__all__ = [
    "ExpiryScheduler",
    "MAX_AMOUNT_MINOR_UNITS",
    "InMemoryPendingTransactionRepository",
    "IngestSummary",
    "InvalidPaymentRequestError",
    "MatchKind",
    "MatchOutcome",
    "NotificationPublisher",
    "ParsedEntry",
    "PaymentChannel",
    "PaymentError",
    "PendingTransaction",
    "PendingTransactionRegistry",
    "PendingTransactionRepository",
    "ReconciliationMatcher",
    "ReconciliationService",
    "ResolutionEvent",
    "ResolvedBy",
    "StatementParser",
    "Subscription",
    "TransactionNotFoundError",
    "TransactionStatus",
    "VerificationCodeExhaustedError",
    "VerificationCodeFactory",
]

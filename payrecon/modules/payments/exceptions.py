"""Payment domain specific exceptions."""


class PaymentError(Exception):
    """Base class for payment reconciliation errors."""


class TransactionNotFoundError(PaymentError):
    """Raised when the requested payment transaction does not exist."""


class InvalidPaymentRequestError(PaymentError):
    """Raised when a payment request or manual action carries invalid input."""


class VerificationCodeExhaustedError(PaymentError):
    """Raised when no unused verification code could be generated."""

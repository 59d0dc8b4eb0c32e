"""SQLAlchemy ORM models."""
import uuid

from sqlalchemy import BigInteger, Boolean, Column, DateTime, Index, String, Text

from payrecon.infrastructure.database.base import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


class Account(Base):
    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    username = Column(String(50), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), default="operator")
    is_active = Column(Boolean, default=True)
    last_login_at = Column(DateTime(timezone=True))


class PendingTransaction(Base):
    __tablename__ = "pending_transactions"
    __table_args__ = (
        Index("ix_pending_transactions_status_code", "status", "verification_code"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    order_ref = Column(String(100), nullable=False, index=True)
    verification_code = Column(String(32), nullable=False)
    expected_amount = Column(BigInteger, nullable=False)
    currency = Column(String(10), nullable=False, default="VND")
    channel = Column(String(30), nullable=False)
    status = Column(String(20), nullable=False, default="open", index=True)  # open, confirmed, rejected, expired
    created_at = Column(DateTime(timezone=True), nullable=False)
    deadline = Column(DateTime(timezone=True), nullable=False)
    resolved_at = Column(DateTime(timezone=True))
    resolved_by = Column(String(30))  # automatic_match, manual_operator, system_timeout
    rejection_reason = Column(Text)
    resolved_operator = Column(String(50))

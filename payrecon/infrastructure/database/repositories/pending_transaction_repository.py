"""SQLAlchemy implementation for the pending transaction repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy import desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from payrecon.db.models import PendingTransaction as PendingTransactionModel
from payrecon.modules.payments.models import (
    PaymentChannel,
    PendingTransaction,
    ResolvedBy,
    TransactionStatus,
)

OPEN = TransactionStatus.OPEN.value


class SqlPendingTransactionRepository:
    """Each call runs in its own short session so the registry can live for the whole process."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def add(self, transaction: PendingTransaction) -> PendingTransaction:
        async with self._session_factory() as session:
            session.add(
                PendingTransactionModel(
                    id=transaction.id,
                    order_ref=transaction.order_ref,
                    verification_code=transaction.verification_code,
                    expected_amount=transaction.expected_amount,
                    currency=transaction.currency,
                    channel=transaction.channel.value,
                    status=transaction.status.value,
                    created_at=_to_utc(transaction.created_at),
                    deadline=_to_utc(transaction.deadline),
                )
            )
            await session.commit()
        return transaction

    async def get(self, transaction_id: str) -> PendingTransaction | None:
        async with self._session_factory() as session:
            stmt = select(PendingTransactionModel).where(PendingTransactionModel.id == transaction_id)
            result = await session.execute(stmt)
            model = result.scalars().first()
            return self._to_domain(model) if model else None

    async def list_open(self) -> Sequence[PendingTransaction]:
        stmt = (
            select(PendingTransactionModel)
            .where(PendingTransactionModel.status == OPEN)
            .order_by(PendingTransactionModel.created_at)
        )
        return await self._fetch(stmt)

    async def list_transactions(
        self,
        *,
        status: TransactionStatus | None,
        limit: int,
        offset: int,
        created_from: datetime | None = None,
        created_to: datetime | None = None,
    ) -> Sequence[PendingTransaction]:
        stmt = select(PendingTransactionModel)
        if status is not None:
            stmt = stmt.where(PendingTransactionModel.status == TransactionStatus(status).value)
        if created_from is not None:
            stmt = stmt.where(PendingTransactionModel.created_at >= _to_utc(created_from))
        if created_to is not None:
            stmt = stmt.where(PendingTransactionModel.created_at <= _to_utc(created_to))
        stmt = stmt.order_by(desc(PendingTransactionModel.created_at)).offset(offset).limit(limit)
        return await self._fetch(stmt)

    async def list_by_order(self, order_ref: str) -> Sequence[PendingTransaction]:
        stmt = (
            select(PendingTransactionModel)
            .where(PendingTransactionModel.order_ref == order_ref)
            .order_by(desc(PendingTransactionModel.created_at))
        )
        return await self._fetch(stmt)

    async def list_resolved_by_amount(self, amount: int, limit: int) -> Sequence[PendingTransaction]:
        stmt = (
            select(PendingTransactionModel)
            .where(
                PendingTransactionModel.status != OPEN,
                PendingTransactionModel.expected_amount == amount,
            )
            .order_by(desc(PendingTransactionModel.resolved_at))
            .limit(limit)
        )
        return await self._fetch(stmt)

    async def resolve_if_open(self, resolved: PendingTransaction) -> Optional[PendingTransaction]:
        stmt = (
            update(PendingTransactionModel)
            .where(
                PendingTransactionModel.id == resolved.id,
                PendingTransactionModel.status == OPEN,
            )
            .values(
                status=resolved.status.value,
                resolved_at=_to_utc(resolved.resolved_at),
                resolved_by=resolved.resolved_by.value if resolved.resolved_by else None,
                rejection_reason=resolved.rejection_reason,
                resolved_operator=resolved.resolved_operator,
            )
            .execution_options(synchronize_session=False)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            await session.commit()
        if result.rowcount != 1:
            return None
        return resolved

    async def count_by_status(self) -> dict[TransactionStatus, int]:
        stmt = select(PendingTransactionModel.status, func.count()).group_by(PendingTransactionModel.status)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            rows = result.all()
        counts = {status: 0 for status in TransactionStatus}
        for status, count in rows:
            counts[TransactionStatus(status)] = count
        return counts

    async def _fetch(self, stmt) -> list[PendingTransaction]:
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [self._to_domain(model) for model in result.scalars().all()]

    @staticmethod
    def _to_domain(model: PendingTransactionModel) -> PendingTransaction:
        return PendingTransaction(
            id=model.id,
            order_ref=model.order_ref,
            verification_code=model.verification_code,
            expected_amount=model.expected_amount,
            currency=model.currency,
            channel=PaymentChannel(model.channel),
            status=TransactionStatus(model.status),
            created_at=_as_aware(model.created_at),
            deadline=_as_aware(model.deadline),
            resolved_at=_as_aware(model.resolved_at),
            resolved_by=ResolvedBy(model.resolved_by) if model.resolved_by else None,
            rejection_reason=model.rejection_reason,
            resolved_operator=model.resolved_operator,
        )


def _to_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc)


def _as_aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops tzinfo; values are always written in UTC.
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)

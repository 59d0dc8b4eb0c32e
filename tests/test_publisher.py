"""Tests for per-transaction resolution events."""
from __future__ import annotations

from datetime import timedelta

import pytest

from payrecon.modules.payments import (
    PaymentChannel,
    ResolutionEvent,
    ResolvedBy,
    TransactionNotFoundError,
    TransactionStatus,
)


async def _open(registry):
    return await registry.create("ORD-1", 150_000, PaymentChannel.BANK_TRANSFER, timedelta(seconds=60))


@pytest.mark.anyio
async def test_live_subscriber_receives_terminal_event(registry, publisher):
    transaction = await _open(registry)
    subscription = await publisher.subscribe(transaction.id)
    assert publisher.subscriber_count(transaction.id) == 1

    await registry.resolve(transaction.id, TransactionStatus.CONFIRMED, ResolvedBy.AUTOMATIC_MATCH)
    event = await subscription.get()

    assert event.transaction_id == transaction.id
    assert event.resolved is TransactionStatus.CONFIRMED
    assert event.resolved_by is ResolvedBy.AUTOMATIC_MATCH
    assert publisher.subscriber_count() == 0


@pytest.mark.anyio
async def test_late_subscriber_gets_synthesized_event(registry, publisher):
    transaction = await _open(registry)
    await registry.resolve(
        transaction.id,
        TransactionStatus.REJECTED,
        ResolvedBy.MANUAL_OPERATOR,
        reason="wrong amount",
        operator="alice",
    )

    subscription = await publisher.subscribe(transaction.id)
    event = await subscription.get()

    assert event.resolved is TransactionStatus.REJECTED
    assert event.reason == "wrong amount"
    assert publisher.subscriber_count(transaction.id) == 0


@pytest.mark.anyio
async def test_subscribe_to_unknown_transaction_raises(publisher):
    with pytest.raises(TransactionNotFoundError):
        await publisher.subscribe("missing")

    assert publisher.subscriber_count() == 0


@pytest.mark.anyio
async def test_subscription_yields_one_event_then_closes(registry, publisher):
    transaction = await _open(registry)
    subscription = await publisher.subscribe(transaction.id)
    await registry.resolve(transaction.id, TransactionStatus.CONFIRMED, ResolvedBy.AUTOMATIC_MATCH)

    events = [event async for event in subscription]

    assert len(events) == 1
    assert subscription.closed


@pytest.mark.anyio
async def test_each_subscriber_gets_the_event_once(registry, publisher):
    transaction = await _open(registry)
    first = await publisher.subscribe(transaction.id)
    second = await publisher.subscribe(transaction.id)

    await registry.resolve(transaction.id, TransactionStatus.CONFIRMED, ResolvedBy.AUTOMATIC_MATCH)
    delivered = publisher.emit(transaction.id, ResolutionEvent.from_transaction(await registry.get(transaction.id)))

    assert (await first.get()).resolved is TransactionStatus.CONFIRMED
    assert (await second.get()).resolved is TransactionStatus.CONFIRMED
    assert first._queue.empty()
    assert second._queue.empty()
    assert delivered == 0


@pytest.mark.anyio
async def test_cancelled_subscription_leaves_registry_untouched(registry, publisher):
    transaction = await _open(registry)

    async with await publisher.subscribe(transaction.id):
        pass

    assert publisher.subscriber_count() == 0
    assert (await registry.get(transaction.id)).status is TransactionStatus.OPEN
    ok, _ = await registry.resolve(transaction.id, TransactionStatus.CONFIRMED, ResolvedBy.AUTOMATIC_MATCH)
    assert ok is True


@pytest.mark.anyio
async def test_event_message_shape(registry, clock):
    transaction = await _open(registry)
    _, expired = await registry.resolve(transaction.id, TransactionStatus.EXPIRED, ResolvedBy.SYSTEM_TIMEOUT)

    message = ResolutionEvent.from_transaction(expired).to_message()

    assert message == {
        "type": "payment_resolved",
        "data": {
            "transaction_id": transaction.id,
            "order_ref": "ORD-1",
            "resolved": "expired",
            "resolved_by": "system_timeout",
            "timestamp": clock.now().isoformat(),
            "reason": None,
        },
    }


def test_event_requires_resolved_transaction():
    from payrecon.modules.payments import PendingTransaction

    from .conftest import START

    transaction = PendingTransaction(
        id="t1",
        order_ref="ORD-1",
        verification_code="DH42",
        expected_amount=1,
        currency="VND",
        channel=PaymentChannel.BANK_TRANSFER,
        status=TransactionStatus.OPEN,
        created_at=START,
        deadline=START,
    )

    with pytest.raises(ValueError):
        ResolutionEvent.from_transaction(transaction)

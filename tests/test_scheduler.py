"""Tests for the expiry sweep."""
from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from payrecon.modules.payments import (
    ExpiryScheduler,
    PaymentChannel,
    ResolvedBy,
    TransactionStatus,
)


@pytest.fixture
def scheduler(registry, clock):
    return ExpiryScheduler(registry, clock, interval=0.01)


async def _open(registry, seconds=60, order_ref="ORD-1"):
    return await registry.create(order_ref, 150_000, PaymentChannel.BANK_TRANSFER, timedelta(seconds=seconds))


@pytest.mark.anyio
async def test_sweep_leaves_transactions_inside_window(registry, scheduler, clock):
    transaction = await _open(registry)
    clock.advance(59)

    assert await scheduler.sweep() == []
    assert (await registry.get(transaction.id)).status is TransactionStatus.OPEN


@pytest.mark.anyio
async def test_sweep_expires_overdue_transactions(registry, scheduler, clock, publisher):
    short = await _open(registry, seconds=30)
    long = await _open(registry, seconds=120, order_ref="ORD-2")
    clock.advance(30)

    expired = await scheduler.sweep()

    assert [item.id for item in expired] == [short.id]
    stored = await registry.get(short.id)
    assert stored.status is TransactionStatus.EXPIRED
    assert stored.resolved_by is ResolvedBy.SYSTEM_TIMEOUT
    assert stored.resolved_at == clock.now()
    assert (await registry.get(long.id)).status is TransactionStatus.OPEN
    assert scheduler.expired_total == 1
    assert scheduler.last_sweep_at == clock.now()
    assert publisher.emitted_total == 1


@pytest.mark.anyio
async def test_sweep_skips_resolved_transactions(registry, scheduler, clock):
    transaction = await _open(registry)
    await registry.resolve(transaction.id, TransactionStatus.CONFIRMED, ResolvedBy.AUTOMATIC_MATCH)
    clock.advance(600)

    assert await scheduler.sweep() == []
    assert (await registry.get(transaction.id)).status is TransactionStatus.CONFIRMED


@pytest.mark.anyio
async def test_sweep_racing_a_match_resolves_once(registry, scheduler, clock, matcher, publisher):
    from payrecon.modules.payments import ParsedEntry

    transaction = await _open(registry)
    clock.advance(60)
    entry = ParsedEntry(amount=150_000, reference_token="DH42", raw_text="+150.000 VND DH42")

    await asyncio.gather(scheduler.sweep(), matcher.match_entry(entry))

    assert (await registry.get(transaction.id)).status is TransactionStatus.EXPIRED
    assert publisher.emitted_total == 1


@pytest.mark.anyio
async def test_background_loop_expires_and_stops(registry, scheduler, clock):
    transaction = await _open(registry)
    clock.advance(61)

    scheduler.start()
    assert scheduler.is_running
    for _ in range(100):
        if (await registry.get(transaction.id)).status is TransactionStatus.EXPIRED:
            break
        await asyncio.sleep(0.01)
    await scheduler.stop()

    assert (await registry.get(transaction.id)).status is TransactionStatus.EXPIRED
    assert not scheduler.is_running
    status = scheduler.status()
    assert status["running"] is False
    assert status["interval_seconds"] == 0.01
    assert status["expired_total"] == 1


@pytest.mark.anyio
async def test_start_twice_keeps_one_task(scheduler):
    scheduler.start()
    task = scheduler._task
    scheduler.start()

    assert scheduler._task is task
    await scheduler.stop()
    await scheduler.stop()

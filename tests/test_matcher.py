"""Tests for pairing parsed transfers with open payment requests."""
from __future__ import annotations

from datetime import timedelta

import pytest

from payrecon.modules.payments import (
    MatchKind,
    ParsedEntry,
    PaymentChannel,
    ResolvedBy,
    TransactionStatus,
)
from payrecon.modules.payments.matcher import (
    REASON_AMOUNT_MISMATCH,
    REASON_CODE_NOT_FOUND,
    REASON_DUPLICATE_NOTIFICATION,
    REASON_LATE_PAYMENT,
    REASON_MULTIPLE_CANDIDATES,
)

WINDOW = timedelta(seconds=60)


def _entry(amount: int, reference: str) -> ParsedEntry:
    return ParsedEntry(amount=amount, reference_token=reference, raw_text=f"+{amount} VND {reference}")


async def _open(registry, amount=150_000, order_ref="ORD-1"):
    return await registry.create(order_ref, amount, PaymentChannel.BANK_TRANSFER, WINDOW)


@pytest.mark.anyio
async def test_exact_amount_and_code_confirms(registry, matcher):
    transaction = await _open(registry)

    outcomes = await matcher.match([_entry(150_000, "CK DH42 thanh toan")])

    assert len(outcomes) == 1
    assert outcomes[0].kind is MatchKind.CONFIRMED
    assert outcomes[0].transaction_ids == [transaction.id]
    stored = await registry.get(transaction.id)
    assert stored.status is TransactionStatus.CONFIRMED
    assert stored.resolved_by is ResolvedBy.AUTOMATIC_MATCH


@pytest.mark.anyio
async def test_same_notification_twice_confirms_once(registry, matcher, publisher):
    transaction = await _open(registry)
    entry = _entry(150_000, "DH42")

    first = await matcher.match_entry(entry)
    second = await matcher.match_entry(entry)

    assert first.kind is MatchKind.CONFIRMED
    assert second.kind is MatchKind.ALREADY_RESOLVED
    assert second.reason == REASON_DUPLICATE_NOTIFICATION
    assert second.transaction.status is TransactionStatus.CONFIRMED
    assert second.transaction.resolved_at == first.transaction.resolved_at
    assert publisher.emitted_total == 1
    assert (await registry.get(transaction.id)).status is TransactionStatus.CONFIRMED


@pytest.mark.anyio
async def test_same_amount_without_code_is_no_match(registry, matcher):
    first = await _open(registry)
    second = await _open(registry, order_ref="ORD-2")

    outcome = await matcher.match_entry(_entry(150_000, "chuyen tien an trua"))

    assert outcome.kind is MatchKind.NO_MATCH
    assert outcome.reason == REASON_CODE_NOT_FOUND
    assert outcome.transaction_ids == []
    for transaction in (first, second):
        assert (await registry.get(transaction.id)).status is TransactionStatus.OPEN


@pytest.mark.anyio
async def test_both_codes_in_text_is_ambiguous(registry, matcher):
    first = await _open(registry)
    second = await _open(registry, order_ref="ORD-2")

    outcome = await matcher.match_entry(_entry(150_000, "DH42 DH77"))

    assert outcome.kind is MatchKind.AMBIGUOUS
    assert outcome.reason == REASON_MULTIPLE_CANDIDATES
    assert sorted(outcome.transaction_ids) == sorted([first.id, second.id])
    for transaction in (first, second):
        assert (await registry.get(transaction.id)).status is TransactionStatus.OPEN


@pytest.mark.anyio
async def test_code_with_different_amount_is_not_accepted(registry, matcher):
    transaction = await _open(registry)

    underpaid = await matcher.match_entry(_entry(149_000, "DH42"))
    overpaid = await matcher.match_entry(_entry(151_000, "DH42"))

    assert underpaid.kind is MatchKind.NO_MATCH
    assert underpaid.reason == REASON_AMOUNT_MISMATCH
    assert overpaid.kind is MatchKind.NO_MATCH
    assert (await registry.get(transaction.id)).status is TransactionStatus.OPEN


@pytest.mark.anyio
async def test_codes_of_other_amounts_do_not_cause_ambiguity(registry, matcher):
    await _open(registry)
    cheaper = await _open(registry, amount=75_000, order_ref="ORD-2")

    outcome = await matcher.match_entry(_entry(75_000, "DH42 DH77"))

    assert outcome.kind is MatchKind.CONFIRMED
    assert outcome.transaction_ids == [cheaper.id]


@pytest.mark.anyio
async def test_transfer_after_manual_rejection_reports_existing_state(registry, matcher):
    transaction = await _open(registry)
    await registry.resolve(
        transaction.id,
        TransactionStatus.REJECTED,
        ResolvedBy.MANUAL_OPERATOR,
        reason="customer cancelled",
        operator="alice",
    )

    outcome = await matcher.match_entry(_entry(150_000, "DH42"))

    assert outcome.kind is MatchKind.LATE_PAYMENT
    assert outcome.reason == REASON_LATE_PAYMENT
    assert outcome.transaction_ids == [transaction.id]
    assert outcome.transaction.status is TransactionStatus.REJECTED
    assert (await registry.get(transaction.id)).status is TransactionStatus.REJECTED


@pytest.mark.anyio
async def test_transfer_arriving_after_deadline_expires_request(registry, matcher, clock):
    transaction = await _open(registry)
    clock.advance(90)

    outcome = await matcher.match_entry(_entry(150_000, "DH42"))

    assert outcome.kind is MatchKind.LATE_PAYMENT
    assert outcome.reason == REASON_LATE_PAYMENT
    stored = await registry.get(transaction.id)
    assert stored.status is TransactionStatus.EXPIRED
    assert stored.resolved_by is ResolvedBy.SYSTEM_TIMEOUT


@pytest.mark.anyio
async def test_transfer_for_request_expired_by_sweep_is_late_payment(registry, matcher, publisher, clock):
    transaction = await _open(registry)
    clock.advance(61)
    ok, expired = await registry.resolve(transaction.id, TransactionStatus.EXPIRED, ResolvedBy.SYSTEM_TIMEOUT)
    assert ok

    outcome = await matcher.match_entry(_entry(150_000, "DH42"))

    assert outcome.kind is MatchKind.LATE_PAYMENT
    assert outcome.reason == REASON_LATE_PAYMENT
    assert outcome.transaction.resolved_at == expired.resolved_at
    assert publisher.emitted_total == 1
    assert (await registry.get(transaction.id)).status is TransactionStatus.EXPIRED


@pytest.mark.anyio
async def test_entries_are_matched_independently(registry, matcher):
    first = await _open(registry)
    second = await _open(registry, amount=75_000, order_ref="ORD-2")

    outcomes = await matcher.match(
        [
            _entry(150_000, "DH42"),
            _entry(20_000, "phi"),
            _entry(75_000, "DH77"),
        ]
    )

    assert [outcome.kind for outcome in outcomes] == [
        MatchKind.CONFIRMED,
        MatchKind.NO_MATCH,
        MatchKind.CONFIRMED,
    ]
    assert outcomes[0].transaction_ids == [first.id]
    assert outcomes[2].transaction_ids == [second.id]

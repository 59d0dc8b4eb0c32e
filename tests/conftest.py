"""Shared fixtures for reconciliation tests."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable

import pytest

from payrecon.modules.payments import (
    InMemoryPendingTransactionRepository,
    NotificationPublisher,
    PendingTransactionRegistry,
    ReconciliationMatcher,
    ReconciliationService,
    StatementParser,
)

START = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)


class ManualClock:
    """Clock the tests move forward by hand."""

    def __init__(self, start: datetime = START) -> None:
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> datetime:
        self.current += timedelta(seconds=seconds)
        return self.current


class ScriptedCodes:
    """Hands out verification codes in a fixed order, then numbered fallbacks."""

    def __init__(self, codes: Iterable[str] = ()) -> None:
        self._codes = list(codes)
        self._counter = 0

    def __call__(self) -> str:
        if self._codes:
            return self._codes.pop(0)
        self._counter += 1
        return f"DHX{self._counter:04d}"


@pytest.fixture(scope="session")
def anyio_backend():
    """Use asyncio for async tests."""
    return "asyncio"


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def codes() -> ScriptedCodes:
    return ScriptedCodes(["DH42", "DH77", "DH99"])


@pytest.fixture
def repository() -> InMemoryPendingTransactionRepository:
    return InMemoryPendingTransactionRepository()


@pytest.fixture
def registry(repository, clock, codes) -> PendingTransactionRegistry:
    return PendingTransactionRegistry(repository, clock, code_factory=codes)


@pytest.fixture
def publisher(registry) -> NotificationPublisher:
    publisher = NotificationPublisher(registry)
    registry.add_listener(publisher.on_resolved)
    return publisher


@pytest.fixture
def matcher(registry) -> ReconciliationMatcher:
    return ReconciliationMatcher(registry)


@pytest.fixture
def service(registry, publisher, matcher) -> ReconciliationService:
    return ReconciliationService(
        registry=registry,
        parser=StatementParser(),
        matcher=matcher,
        publisher=publisher,
        windows={"bank_transfer": 60, "wallet_qr": 120},
    )

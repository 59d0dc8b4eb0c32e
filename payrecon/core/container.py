"""Dependency container wiring the reconciliation engine for one application."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from payrecon.core.clock import Clock, SystemClock
from payrecon.core.config import Settings
from payrecon.infrastructure.database import build_engine, build_session_factory, init_db
from payrecon.infrastructure.database.repositories import SqlPendingTransactionRepository
from payrecon.modules.payments import (
    ExpiryScheduler,
    InMemoryPendingTransactionRepository,
    NotificationPublisher,
    PendingTransactionRegistry,
    ReconciliationMatcher,
    ReconciliationService,
    StatementParser,
    VerificationCodeFactory,
)
from payrecon.modules.payments.repository import PendingTransactionRepository


@dataclass(slots=True)
class ApplicationContainer:
    settings: Settings
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    clock: Clock
    registry: PendingTransactionRegistry
    publisher: NotificationPublisher
    scheduler: ExpiryScheduler
    service: ReconciliationService

    async def startup(self) -> None:
        await init_db(self.engine)
        if self.settings.payments.autostart_scheduler:
            self.scheduler.start()

    async def shutdown(self) -> None:
        await self.scheduler.stop()
        await self.engine.dispose()


def _resolve_timezone(name: str) -> tzinfo:
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def build_container(
    settings: Settings,
    *,
    clock: Optional[Clock] = None,
    repository: Optional[PendingTransactionRepository] = None,
) -> ApplicationContainer:
    """Construct every collaborator explicitly; nothing here is module-global."""
    payments = settings.payments
    clock = clock or SystemClock()
    engine = build_engine(settings)
    session_factory = build_session_factory(engine)

    if repository is None:
        if payments.storage == "memory":
            repository = InMemoryPendingTransactionRepository()
        else:
            repository = SqlPendingTransactionRepository(session_factory)

    registry = PendingTransactionRegistry(
        repository,
        clock,
        code_factory=VerificationCodeFactory(payments.code_prefix, payments.code_length),
        currency=payments.currency,
    )
    publisher = NotificationPublisher(registry)
    registry.add_listener(publisher.on_resolved)

    parser = StatementParser(
        minor_unit_exponent=payments.minor_unit_exponent,
        tz=_resolve_timezone(payments.timezone),
    )
    service = ReconciliationService(
        registry=registry,
        parser=parser,
        matcher=ReconciliationMatcher(registry),
        publisher=publisher,
        windows=dict(payments.windows),
        default_window_seconds=payments.default_window_seconds,
    )
    scheduler = ExpiryScheduler(registry, clock, interval=payments.sweep_interval_seconds)

    return ApplicationContainer(
        settings=settings,
        engine=engine,
        session_factory=session_factory,
        clock=clock,
        registry=registry,
        publisher=publisher,
        scheduler=scheduler,
        service=service,
    )


__all__ = ["ApplicationContainer", "build_container"]

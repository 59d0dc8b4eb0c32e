"""Payment reconciliation dependency providers."""

from fastapi import Depends

from payrecon.core.container import ApplicationContainer
from payrecon.modules.payments import ExpiryScheduler, ReconciliationService

from .database import get_container


def get_reconciliation_service(container: ApplicationContainer = Depends(get_container)) -> ReconciliationService:
    return container.service


def get_expiry_scheduler(container: ApplicationContainer = Depends(get_container)) -> ExpiryScheduler:
    return container.scheduler


__all__ = [
    "get_expiry_scheduler",
    "get_reconciliation_service",
]

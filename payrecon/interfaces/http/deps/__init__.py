"""Reusable FastAPI dependencies."""

from .database import get_app_settings, get_container, get_db_session
from .payments import get_expiry_scheduler, get_reconciliation_service

__all__ = [
    "get_app_settings",
    "get_container",
    "get_db_session",
    "get_expiry_scheduler",
    "get_reconciliation_service",
]

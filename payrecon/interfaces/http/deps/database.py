"""Request-scoped access to the application container."""

from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from payrecon.core.config import Settings
from payrecon.core.container import ApplicationContainer
from payrecon.infrastructure.database import session_scope


def get_container(request: Request) -> ApplicationContainer:
    return request.app.state.container


def get_app_settings(request: Request) -> Settings:
    return get_container(request).settings


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    async with session_scope(get_container(request).session_factory) as session:
        yield session

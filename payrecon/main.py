from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from payrecon import __version__
from payrecon.core.config import Settings, get_settings
from payrecon.core.container import ApplicationContainer, build_container
from payrecon.core.logging import configure_logging
from payrecon.interfaces.http.routers import create_api_router
from payrecon.interfaces.ws import PaymentSocketManager
from payrecon.interfaces.ws import router as websocket_router


def create_app(settings: Optional[Settings] = None, container: Optional[ApplicationContainer] = None) -> FastAPI:
    settings = settings or (container.settings if container else get_settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings)
        app_container = container or build_container(settings)
        app.state.container = app_container
        app.state.socket_manager = PaymentSocketManager()
        await app_container.startup()
        try:
            yield
        finally:
            await app_container.shutdown()

    app = FastAPI(
        title=settings.project_name,
        description="Matches bank statement and SMS notifications to open checkout payments",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(create_api_router(settings.api_prefix))
    app.include_router(websocket_router)

    @app.get("/health", tags=["health"])
    async def health(request: Request) -> dict:
        return {
            "status": "ok",
            "version": __version__,
            "environment": settings.environment,
            "websocket_clients": request.app.state.socket_manager.get_online_count(),
        }

    return app


app = create_app()

from fastapi import APIRouter

from payrecon.interfaces.http.routers import admin, auth, ingest, payments


def create_api_router(prefix: str = "") -> APIRouter:
    router = APIRouter(prefix=prefix)
    router.include_router(auth.router, prefix="/auth", tags=["auth"])
    router.include_router(payments.router, prefix="/payments", tags=["storefront"])
    router.include_router(ingest.router, prefix="/ingest", tags=["text sources"])
    router.include_router(admin.router, prefix="/admin", tags=["operator console"])
    return router


__all__ = [
    "create_api_router",
]

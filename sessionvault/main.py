"""SessionVault - FastAPI Application Factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from redis.asyncio import Redis

from sessionvault.api import auth, health, todos
from sessionvault.core import Settings, get_settings, setup_logging
from sessionvault.core.logging import get_logger
from sessionvault.core.redis_client import create_redis_client
from sessionvault.services.credentials import CredentialVerifier, StaticCredentialVerifier
from sessionvault.services.session_manager import SessionManager
from sessionvault.services.session_store import (
    InMemorySessionStore,
    RedisSessionStore,
    SessionStore,
)

logger = get_logger("main")


def build_session_store(settings: Settings) -> tuple[SessionStore, Redis | None]:
    """Create the configured session store and, for Redis, its client."""
    if settings.session_store_backend == "memory":
        return InMemorySessionStore(), None

    client = create_redis_client(settings)
    store = RedisSessionStore(
        client,
        key_prefix=settings.session_key_prefix,
        operation_timeout=settings.redis_operation_timeout,
    )
    return store, client


def create_app(
    settings: Settings | None = None,
    *,
    session_store: SessionStore | None = None,
    credential_verifier: CredentialVerifier | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    When ``session_store`` is given the session manager is wired up
    immediately; otherwise the store is built from settings at startup.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        setup_logging(
            level=settings.log_level,
            format_type="dev" if settings.debug else "structured",
        )
        logger.info(f"Starting {settings.app_name} v{settings.app_version}")

        for warning in settings.check_security_configuration():
            logger.warning(f"SECURITY: {warning}")

        redis_client: Redis | None = None
        if getattr(app.state, "session_manager", None) is None:
            store, redis_client = build_session_store(settings)
            app.state.session_manager = SessionManager.from_settings(store, settings)
            logger.info(f"Session store initialized: {settings.session_store_backend}")

        yield

        logger.info("Shutting down...")
        if redis_client is not None:
            await redis_client.aclose()

    app = FastAPI(
        title=settings.app_name,
        description="Access/refresh session issuance and revocation",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
    )

    app.state.settings = settings
    app.state.credential_verifier = (
        credential_verifier or StaticCredentialVerifier.from_settings(settings)
    )
    if session_store is not None:
        app.state.session_manager = SessionManager.from_settings(session_store, settings)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(todos.router)

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint with API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
        }

    return app


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()

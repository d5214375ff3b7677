"""FastAPI application entry point."""

import importlib
import logging
import os
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.background import BackgroundTask

from app.dependencies import Services
from app.routes import booster, claims
from app.schemas.common import ErrorResponse
from config import Settings, get_settings
from migrations.migrate import migrate
from pacrewards.services.errors import (
    AlreadyCommittedError,
    AlreadyWhitelistedError,
    CapacityExceededError,
    DuplicateRecordError,
    NetworkClientError,
    NotFoundError,
    PaymentGatewayError,
    PersistError,
    RejectionError,
    SocialClientError,
    StoreError,
    UnrecoverableError,
    WalletError,
)

logger: logging.Logger = logging.getLogger(__name__)

_STORE_STATUS: dict[type[StoreError], int] = {
    NotFoundError: 404,
    AlreadyWhitelistedError: 409,
    AlreadyCommittedError: 409,
    DuplicateRecordError: 409,
    CapacityExceededError: 409,
    PersistError: 503,
}


def _error_body(exc: Exception, reason: str | None = None) -> dict[str, object]:
    if reason is not None:
        return ErrorResponse(detail=str(exc), reason=reason).model_dump(exclude_none=True)
    return ErrorResponse(detail=str(exc), type=type(exc).__name__).model_dump(exclude_none=True)


def _store_status(exc: StoreError) -> int:
    for cls in type(exc).__mro__:
        if cls in _STORE_STATUS:
            return _STORE_STATUS[cls]
    return 500


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RejectionError)
    async def _on_rejection(request: Request, exc: RejectionError) -> JSONResponse:
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.reason)
        return JSONResponse(
            status_code=422,
            content=_error_body(exc, reason=exc.reason),
        )

    @app.exception_handler(StoreError)
    async def _on_store_error(request: Request, exc: StoreError) -> JSONResponse:
        status: int = _store_status(exc)
        if status >= 500:
            logger.error("Store failure: %s", exc)
        return JSONResponse(
            status_code=status,
            content=_error_body(exc),
        )

    async def _on_upstream_error(request: Request, exc: Exception) -> JSONResponse:
        logger.warning("Upstream failure: %s", exc)
        return JSONResponse(
            status_code=502,
            content=_error_body(exc),
        )

    for cls in (NetworkClientError, WalletError, SocialClientError, PaymentGatewayError):
        app.add_exception_handler(cls, _on_upstream_error)

    @app.exception_handler(UnrecoverableError)
    async def _on_unrecoverable(request: Request, exc: UnrecoverableError) -> JSONResponse:
        logger.critical("Unrecoverable: %s", exc)
        services: Services = request.app.state.services
        return JSONResponse(
            status_code=500,
            content=_error_body(exc),
            background=BackgroundTask(services.on_unrecoverable, exc),
        )

    @app.exception_handler(Exception)
    async def _on_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled: %s", exc)
        return JSONResponse(
            status_code=500,
            content=_error_body(exc),
        )


def create_app(services: Services) -> FastAPI:
    @asynccontextmanager
    async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
        services.network_cache.start()
        try:
            yield
        finally:
            services.network_cache.stop()

    app: FastAPI = FastAPI(
        title="PAC Rewards",
        version="0.1.0",
        lifespan=_lifespan,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
    )

    _install_error_handlers(app)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(claims.router)
    app.include_router(booster.router)

    return app


def _load_factory(path: str) -> Callable[[], Services]:
    """Resolve ``package.module:callable``."""
    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise ValueError(f"services factory must look like 'module:callable', got {path!r}")
    return getattr(importlib.import_module(module_name), attr)


def build_app() -> FastAPI:
    """Factory for uvicorn: migrate, wire the deployment's services, build the app."""
    settings: Settings = get_settings()
    logger.info("DB: %s", settings.database.db_info_for_logging())
    if not settings.services_factory:
        raise RuntimeError("PACREWARDS_SERVICES_FACTORY is not set")

    migrate()
    return create_app(_load_factory(settings.services_factory)())


def start() -> None:
    """Entry point for pacrewards-api."""
    backend_root: Path = Path(__file__).resolve().parent.parent
    os.chdir(backend_root)

    for candidate in (backend_root / ".env", backend_root.parent / ".env"):
        if candidate.exists():
            load_dotenv(candidate, override=False)

    reload: bool = os.environ.get("PACREWARDS_RELOAD", "false").lower() in ("1", "true", "yes")
    uvicorn.run(
        "app.main:build_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=reload,
    )

"""
TradeLedger FastAPI application.

The SQLite backend is migrated before the first request is served; the
memory backend starts empty.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tradeledger.api.middleware import ErrorHandlerMiddleware, LoggingMiddleware
from tradeledger.api.middleware.error_handler import setup_exception_handlers
from tradeledger.api.routes import (
    finance_router,
    health_router,
    inter_branch_router,
    inventory_router,
    invoices_router,
    master_data_router,
    orders_router,
    payments_router,
    purchases_router,
    rep_router,
    suppliers_router,
)
from tradeledger.config import Settings, configure_logging, get_logger, get_settings

logger = get_logger(__name__)

ROUTERS = (
    health_router,
    invoices_router,
    payments_router,
    orders_router,
    inventory_router,
    inter_branch_router,
    purchases_router,
    suppliers_router,
    finance_router,
    rep_router,
    master_data_router,
)


async def _prepare_storage(settings: Settings) -> None:
    if settings.storage.backend != "sqlite":
        return
    from tradeledger.infrastructure.storage.sqlite.migrations import run_migrations

    results = await run_migrations()
    failed = [result.version for result in results if not result.success]
    if failed:
        logger.error("database_migration_failed", versions=failed)
        raise RuntimeError(f"Database migration failed: {', '.join(failed)}")
    logger.info("database_ready", db_path=str(settings.storage.db_path), applied=len(results))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    configure_logging()
    logger.info(
        "application_starting",
        environment=settings.environment,
        backend=settings.storage.backend,
    )
    await _prepare_storage(settings)

    yield

    from tradeledger.infrastructure.storage import close_record_store

    try:
        await close_record_store()
    except Exception as e:
        logger.warning("record_store_close_failed", error=str(e))
    logger.info("application_stopped")


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="TradeLedger API",
        description="Invoices, payments, stock and supplier settlement for distribution businesses",
        version=settings.app_version,
        docs_url="/docs" if settings.api.debug else None,
        redoc_url="/redoc" if settings.api.debug else None,
        lifespan=lifespan,
    )

    # Last added runs first: errors are caught inside the logged span
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(LoggingMiddleware)
    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    setup_exception_handlers(app)
    for router in ROUTERS:
        app.include_router(router)
    return app


app = create_app()


@app.get("/health")
async def root_health() -> dict[str, str]:
    """Liveness probe for container orchestrators."""
    return {"status": "healthy", "version": get_settings().app_version}


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "tradeledger.api.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.debug,
    )

"""
FastAPI application factory for the workshop costing API.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.middleware import ErrorHandlerMiddleware, LoggingMiddleware
from src.api.middleware.error_handler import setup_exception_handlers
from src.api.routes import (
    health_router,
    job_cards_router,
    purchases_router,
    reports_router,
    settings_router,
    stock_router,
)
from src.config import configure_logging, get_logger, get_settings

logger = get_logger(__name__)


async def _prepare_database() -> None:
    """Migrate, open the pool and report any ledger inconsistencies."""
    from src.infrastructure.storage.sqlite import get_pool
    from src.infrastructure.storage.sqlite.migrations import (
        run_migrations,
        verify_schema_integrity,
    )

    results = await run_migrations()
    failed = [r for r in results if not r.success]
    if failed:
        raise RuntimeError(f"Migration v{failed[0].version} failed: {failed[0].error}")

    for check in await verify_schema_integrity():
        if not check.passed:
            # Served anyway; affected items raise LedgerIntegrityError when touched
            logger.warning("integrity_check_failed", check=check.name, **check.details)

    await get_pool()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Prepare the database on startup and close the pool on shutdown."""
    settings = get_settings()
    logger.info(
        "application_starting",
        environment=settings.environment,
        db_path=str(settings.storage.db_path),
        costing_method=settings.costing.default_method,
        restoration_mode=settings.costing.restoration_mode,
    )

    try:
        await _prepare_database()
    except Exception as e:
        logger.error("database_init_failed", error=str(e))
        raise

    logger.info("application_started")
    yield

    from src.infrastructure.storage.sqlite import close_pool

    try:
        await close_pool()
    except Exception as e:
        logger.warning("connection_pool_close_failed", error=str(e))
    logger.info("application_stopped")


def create_app() -> FastAPI:
    """Build the FastAPI app with middleware, error handlers and routers."""
    settings = get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=f"{settings.app_name} API",
        description="Workshop inventory valuation and job costing",
        version=settings.app_version,
        docs_url="/docs" if settings.api.debug else None,
        redoc_url="/redoc" if settings.api.debug else None,
        lifespan=lifespan,
    )

    # The last middleware added runs outermost
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)
    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    setup_exception_handlers(app)

    for router in (
        health_router,
        stock_router,
        purchases_router,
        job_cards_router,
        reports_router,
        settings_router,
    ):
        app.include_router(router)

    @app.get("/")
    async def root() -> dict[str, str]:
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "docs": "/docs",
        }

    # Plain liveness check for container health checks
    @app.get("/health")
    async def root_health() -> dict[str, str]:
        return {"status": "healthy", "version": settings.app_version}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "src.api.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.debug,
    )

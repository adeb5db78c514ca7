"""FastAPI application factory."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from expenses.api.routes import expenses as expense_routes
from expenses.api.routes import prefs as pref_routes
from expenses.api.routes import sync as sync_routes
from expenses.sync.engine import ExpenseSyncEngine

logger = logging.getLogger(__name__)


def create_app(sync_engine: Optional[ExpenseSyncEngine] = None) -> FastAPI:
    """
    Build and return the FastAPI app.

    Args:
        sync_engine: Pre-built engine whose lifecycle the caller owns. If
            omitted, the lifespan builds one from settings, starts it with
            the background scheduler and closes both on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if sync_engine is not None:
            app.state.sync_engine = sync_engine
            yield
            return

        from expenses.scheduler.jobs import build_scheduler
        from expenses.sync.factory import build_sync_engine

        engine = build_sync_engine()
        app.state.sync_engine = engine
        report = await engine.start()
        if report.warning:
            logger.warning("Startup: %s", report.warning)

        scheduler = build_scheduler(engine)
        scheduler.start()
        try:
            yield
        finally:
            scheduler.shutdown(wait=False)
            await engine.close()

    app = FastAPI(
        title="Expenses API",
        description="Offline-first expense tracker with remote mirroring",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.sync_engine = sync_engine

    app.include_router(expense_routes.router, prefix="/expenses", tags=["expenses"])
    app.include_router(sync_routes.router, prefix="/sync", tags=["sync"])
    app.include_router(pref_routes.router, prefix="/prefs", tags=["prefs"])

    return app


# Module-level app instance for uvicorn
app = create_app()

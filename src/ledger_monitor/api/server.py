import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ledger_monitor.api.routes import router
from ledger_monitor.config import MonitorConfig
from ledger_monitor.core.node import DEFAULT_NODE_URL
from ledger_monitor.monitor.pool import MonitorPool

logger = logging.getLogger("ledger_monitor.api")


def create_app(monitor=None) -> FastAPI:
    """
    Build the query API. With no `monitor`, the app joins a pooled monitor
    for NODE_URL on startup and releases it on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if monitor is not None:
            app.state.monitor = monitor
            yield
            return

        node_url = os.getenv("NODE_URL", DEFAULT_NODE_URL)
        pool = MonitorPool(MonitorConfig.from_env())
        lease = pool.acquire(node_url)
        logger.info(f"Serving ledger queries for {node_url}")
        app.state.monitor = lease.monitor

        yield
        lease.dispose()
        pool.close()

    app = FastAPI(
        title="Ledger Monitor API",
        description="Cached block, transaction and balance queries against a ledger node",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return JSONResponse(
            status_code=400,
            content={"detail": str(exc)},
        )

    @app.get("/health")
    async def health_check():
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app


app = create_app()

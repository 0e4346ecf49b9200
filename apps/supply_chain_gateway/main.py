"""
Supply Chain Gateway - FastAPI Application

REST gateway for pharmaceutical supply-chain records kept on a ledger
contract. Writes run through the estimate/submit/read-back orchestrator;
reads query the contract directly.

Usage:
    uvicorn apps.supply_chain_gateway.main:app --port 3000
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import make_asgi_app

from apps.supply_chain_gateway import __version__, metrics
from apps.supply_chain_gateway.app_context import AppContext
from apps.supply_chain_gateway.config import Settings, get_settings
from apps.supply_chain_gateway.errors import register_exception_handlers
from apps.supply_chain_gateway.ledger_client import Web3LedgerClient
from apps.supply_chain_gateway.routes import health, operations
from apps.supply_chain_gateway.signer_pool import SignerPool
from libs.common.logging import add_trace_id_middleware, configure_logging

logger = logging.getLogger(__name__)


async def initialize_app_context(settings: Settings) -> AppContext:
    """Connect to the ledger and resolve the signer pool.

    Raises:
        ConfigurationError: If the ABI, address or signer index is invalid
        LedgerClientError: If the node cannot list its accounts
    """
    ledger = Web3LedgerClient.from_settings(settings)
    signer_pool = await SignerPool.from_ledger(ledger, settings.ledger_signer_index)
    metrics.ledger_connection_status.set(1)
    return AppContext.build(settings, ledger, signer_pool, __version__)


def create_app(
    *,
    context: AppContext | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        context: Pre-built AppContext (tests); skips ledger initialization
        settings: Settings override; defaults to get_settings()

    Returns:
        FastAPI: Configured application instance
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if getattr(app.state, "context", None) is not None:
            yield
            return

        config = settings or get_settings()
        configure_logging(service_name=config.service_name, log_level=config.log_level)
        logger.info("Starting Supply Chain Gateway...")

        try:
            app.state.context = await initialize_app_context(config)
        except Exception as e:
            logger.error(f"Failed to start Supply Chain Gateway: {e}")
            raise

        logger.info(
            "Supply Chain Gateway started",
            extra={
                "port": config.port,
                "designated_writer": app.state.context.signer_pool.designated_writer(),
            },
        )
        try:
            yield
        finally:
            logger.info("Shutting down Supply Chain Gateway...")
            app.state.context = None

    app = FastAPI(
        title="Supply Chain Gateway",
        description="Pharmaceutical supply-chain records backed by a ledger contract",
        version=__version__,
        lifespan=lifespan,
    )
    if context is not None:
        app.state.context = context

    add_trace_id_middleware(app)
    register_exception_handlers(app, operations.FAILURE_MESSAGES)

    app.include_router(health.router)
    app.include_router(operations.router)
    app.mount("/metrics", make_asgi_app())

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "apps.supply_chain_gateway.main:app",
        host="0.0.0.0",
        port=get_settings().port,
    )

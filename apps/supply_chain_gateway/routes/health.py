"""Health check and root endpoints for the Supply Chain Gateway."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends

from apps.supply_chain_gateway import metrics
from apps.supply_chain_gateway.app_context import AppContext
from apps.supply_chain_gateway.dependencies import get_context
from apps.supply_chain_gateway.schemas import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/")
async def root(ctx: AppContext = Depends(get_context)) -> dict[str, Any]:
    """Root endpoint with basic service information."""
    return {
        "service": ctx.settings.service_name,
        "version": ctx.version,
        "status": "running",
        "ledger_rpc_url": ctx.settings.ledger_rpc_url,
    }


@router.get("/health", tags=["Health"])
async def health_check(ctx: AppContext = Depends(get_context)) -> HealthResponse:
    """
    Health check endpoint.

    Reports ``healthy`` when the ledger node answers, ``degraded`` otherwise.
    The gateway keeps serving in the degraded state; write requests then fail
    with EstimationError until the node returns.

    Examples:
        >>> import requests
        >>> requests.get("http://localhost:3000/health").json()
        {
            "status": "healthy",
            "service": "supply-chain-gateway",
            "version": "0.1.0",
            "ledger_connected": true,
            "designated_writer": "0x71bE63f3384f5fb98995898A86B02Fb2426c5788",
            "timestamp": "2025-01-01T12:00:00Z"
        }
    """
    ledger_connected = await ctx.ledger.check_connection()
    metrics.ledger_connection_status.set(1 if ledger_connected else 0)
    if not ledger_connected:
        logger.warning("Ledger node unreachable during health check")

    return HealthResponse(
        status="healthy" if ledger_connected else "degraded",
        service=ctx.settings.service_name,
        version=ctx.version,
        ledger_connected=ledger_connected,
        designated_writer=ctx.signer_pool.designated_writer(),
        timestamp=datetime.now(UTC).isoformat().replace("+00:00", "Z"),
    )

"""FastAPI dependency providers for the Supply Chain Gateway.

Usage:
    from apps.supply_chain_gateway.dependencies import get_context

    @router.post("/example")
    async def example_route(ctx: AppContext = Depends(get_context)):
        await ctx.orchestrator.execute(...)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from fastapi import Request

if TYPE_CHECKING:
    from apps.supply_chain_gateway.app_context import AppContext


def get_context(request: Request) -> AppContext:
    """Get application context from FastAPI app state.

    Raises:
        RuntimeError: If AppContext is not initialized in app.state

    Note:
        The lifespan context manager stores the AppContext before routes
        are served. Tests inject one through create_app(context=...).
    """
    from apps.supply_chain_gateway.app_context import AppContext as AppContextType

    ctx = getattr(request.app.state, "context", None)
    if ctx is None:
        raise RuntimeError(
            "AppContext not initialized in app.state. "
            "Check that the lifespan completed startup before serving requests."
        )
    return cast(AppContextType, ctx)

"""HTTP routers for the Supply Chain Gateway."""

from apps.supply_chain_gateway.routes import health, operations

__all__ = ["health", "operations"]

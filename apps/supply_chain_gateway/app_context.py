"""Application context for dependency injection in the Supply Chain Gateway.

Holds every long-lived dependency created at startup so route handlers
receive them explicitly and tests can inject doubles.

Usage:
    async def my_route(ctx: AppContext = Depends(get_context)):
        record = await ctx.orchestrator.execute(write_call, read_call)
"""

from __future__ import annotations

from dataclasses import dataclass

from apps.supply_chain_gateway.config import Settings
from apps.supply_chain_gateway.ledger_client import LedgerClient
from apps.supply_chain_gateway.orchestrator import TransactionOrchestrator
from apps.supply_chain_gateway.signer_pool import SignerPool


@dataclass
class AppContext:
    """Container for application dependencies.

    Attributes:
        settings: Service configuration
        ledger: Remote-call handle to the ledger (read-shared, no locking)
        signer_pool: Signer identities and their ordering slots
        orchestrator: Estimate/submit/read-back protocol runner
        version: Service version reported by health endpoints
    """

    settings: Settings
    ledger: LedgerClient
    signer_pool: SignerPool
    orchestrator: TransactionOrchestrator
    version: str = "0.1.0"

    @classmethod
    def build(
        cls, settings: Settings, ledger: LedgerClient, signer_pool: SignerPool, version: str
    ) -> AppContext:
        """Wire the orchestrator from its collaborators."""
        return cls(
            settings=settings,
            ledger=ledger,
            signer_pool=signer_pool,
            orchestrator=TransactionOrchestrator(ledger, signer_pool),
            version=version,
        )

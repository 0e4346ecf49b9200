"""Transaction orchestration: estimate, submit, read back.

Every mutating operation follows the same protocol:

    1. enter the designated writer's ordering slot
    2. simulate the call (rejection stops here; nothing is submitted)
    3. submit the same call with the estimated gas
    4. leave the ordering slot
    5. query the canonical record for the written key

The submission receipt only confirms inclusion. The response is always the
read-back record, because the contract may transform what was written.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from apps.supply_chain_gateway import metrics
from apps.supply_chain_gateway.errors import ReadbackError, classify_phase_failure
from apps.supply_chain_gateway.ledger_client import LedgerCall, LedgerClient, LedgerClientError
from apps.supply_chain_gateway.mapper import is_empty_record
from apps.supply_chain_gateway.signer_pool import SignerPool

logger = logging.getLogger(__name__)


async def read_record(ledger: LedgerClient, call: LedgerCall, *, phase: str = "query") -> Any:
    """
    Query a record and reject empty results.

    Used for the post-write read-back and for read-only operations; never
    touches a signer.

    Raises:
        ReadbackError: If the query fails or returns an empty record
    """
    started = time.perf_counter()
    try:
        record = await ledger.query(call)
    except LedgerClientError as e:
        raise classify_phase_failure("readback", e) from e
    finally:
        metrics.ledger_phase_duration.labels(phase=phase).observe(time.perf_counter() - started)

    if is_empty_record(record):
        raise ReadbackError(f"{call.op} returned no record for {list(call.args)}")
    return record


class TransactionOrchestrator:
    """
    Runs the estimate → submit → read-back protocol for mutating calls.

    Submissions from one signer are serialized through the signer pool's
    ordering slot; read-back happens after the slot is released so it
    overlaps with the next request's submission.

    Examples:
        >>> orchestrator = TransactionOrchestrator(ledger, signer_pool)
        >>> record = await orchestrator.execute(
        ...     LedgerCall("registerCompany", ("CRN1", "Acme", "Delhi", 0)),
        ...     LedgerCall("getRegisteredCompany", ("CRN1",)),
        ... )
    """

    def __init__(self, ledger: LedgerClient, signer_pool: SignerPool) -> None:
        self.ledger = ledger
        self.signer_pool = signer_pool

    async def execute(self, write_call: LedgerCall, read_call: LedgerCall) -> Any:
        """
        Execute a mutating call and return the canonical record.

        Args:
            write_call: Contract mutation, shared by simulate and submit
            read_call: Read operation returning the written entity

        Returns:
            The raw positional record read back after inclusion

        Raises:
            EstimationError: Simulation rejected or ledger unreachable
            SubmissionError: Send/inclusion failed, reverted, or timed out
            ReadbackError: Canonical record missing or query failed
        """
        signer = self.signer_pool.designated_writer()
        queued_at = time.perf_counter()
        async with self.signer_pool.ordering_slot(signer):
            metrics.ledger_phase_duration.labels(phase="slot_wait").observe(
                time.perf_counter() - queued_at
            )
            gas = await self._simulate(write_call, signer)
            receipt = await self._submit(write_call, signer, gas)

        logger.info(
            f"{write_call.op} included",
            extra={
                "tx_hash": receipt.tx_hash,
                "block_number": receipt.block_number,
                "gas_used": receipt.gas_used,
            },
        )

        return await read_record(self.ledger, read_call, phase="readback")

    async def _simulate(self, call: LedgerCall, signer: str) -> int:
        with metrics.ledger_phase_duration.labels(phase="simulate").time():
            try:
                return await self.ledger.simulate(call, signer)
            except LedgerClientError as e:
                raise classify_phase_failure("simulate", e) from e

    async def _submit(self, call: LedgerCall, signer: str, gas: int) -> Any:
        with metrics.ledger_phase_duration.labels(phase="submit").time():
            try:
                return await self.ledger.submit(call, signer, gas)
            except LedgerClientError as e:
                raise classify_phase_failure("submit", e) from e

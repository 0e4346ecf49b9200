"""Signer identities and per-signer submission ordering.

The ledger sequences each signer's transactions by a strictly increasing
nonce. Two overlapping estimate/submit sequences from the same signer can
race for the same nonce, so every mutating call enters the signer's
ordering slot first. asyncio.Lock wakes waiters in FIFO order.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from apps.supply_chain_gateway import metrics
from libs.common.exceptions import ConfigurationError

if TYPE_CHECKING:
    from apps.supply_chain_gateway.ledger_client import LedgerClient

logger = logging.getLogger(__name__)


class UnknownSignerError(KeyError):
    """Signer identity is not part of the pool."""


class SignerPool:
    """Fixed set of signer identities with one designated writer.

    Identities are resolved once per process; none are created, rotated or
    revoked at runtime.

    Examples:
        >>> pool = SignerPool(["0xA...", "0xB..."], writer_index=1)
        >>> signer = pool.designated_writer()
        >>> async with pool.ordering_slot(signer):
        ...     gas = await ledger.simulate(call, signer)
        ...     await ledger.submit(call, signer, gas)
    """

    def __init__(self, signers: Sequence[str], writer_index: int = 0) -> None:
        if not signers:
            raise ConfigurationError("Ledger node exposes no signer accounts")
        if not 0 <= writer_index < len(signers):
            raise ConfigurationError(
                f"Signer index {writer_index} out of range for {len(signers)} accounts"
            )
        self._signers = tuple(signers)
        self._writer = self._signers[writer_index]
        self._slots = {signer: asyncio.Lock() for signer in self._signers}
        self._waiting = dict.fromkeys(self._signers, 0)
        for signer in self._signers:
            metrics.signer_slot_waiters.labels(signer=signer).set_function(
                lambda signer=signer: self.waiting(signer)
            )

    @classmethod
    async def from_ledger(cls, ledger: LedgerClient, writer_index: int) -> SignerPool:
        """Resolve the pool from the accounts the ledger node manages."""
        accounts = await ledger.accounts()
        pool = cls(accounts, writer_index=writer_index)
        logger.info(
            "Resolved signer pool",
            extra={"accounts": len(accounts), "designated_writer": pool.designated_writer()},
        )
        return pool

    @property
    def signers(self) -> tuple[str, ...]:
        return self._signers

    def designated_writer(self) -> str:
        """Return the identity that signs every mutating call."""
        return self._writer

    def waiting(self, signer: str) -> int:
        """Number of callers queued for (or holding) the signer's slot."""
        return self._waiting[self._known(signer)]

    @asynccontextmanager
    async def ordering_slot(self, signer: str) -> AsyncIterator[str]:
        """Serialize estimate/submit sequences for one signer.

        Raises:
            UnknownSignerError: If the signer is not in the pool
        """
        lock = self._slots[self._known(signer)]
        self._waiting[signer] += 1
        try:
            async with lock:
                yield signer
        finally:
            self._waiting[signer] -= 1

    def _known(self, signer: str) -> str:
        if signer not in self._slots:
            raise UnknownSignerError(signer)
        return signer

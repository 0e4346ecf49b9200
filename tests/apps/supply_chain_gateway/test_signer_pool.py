"""Tests for SignerPool."""

import asyncio

import pytest
from prometheus_client import REGISTRY

from apps.supply_chain_gateway.signer_pool import SignerPool, UnknownSignerError
from libs.common.exceptions import ConfigurationError

from tests.apps.supply_chain_gateway.conftest import (
    ACCOUNTS,
    WRITER_INDEX,
    FakeLedgerClient,
)


class TestConstruction:
    def test_designated_writer_by_index(self):
        pool = SignerPool(ACCOUNTS, writer_index=11)

        assert pool.designated_writer() == ACCOUNTS[11]
        assert pool.signers == tuple(ACCOUNTS)

    def test_empty_pool_rejected(self):
        with pytest.raises(ConfigurationError, match="no signer accounts"):
            SignerPool([])

    @pytest.mark.parametrize("index", [-1, 12])
    def test_index_out_of_range_rejected(self, index):
        with pytest.raises(ConfigurationError, match="out of range"):
            SignerPool(ACCOUNTS, writer_index=index)

    @pytest.mark.asyncio()
    async def test_from_ledger(self):
        pool = await SignerPool.from_ledger(FakeLedgerClient(), 11)
        assert pool.designated_writer() == ACCOUNTS[11]

    @pytest.mark.asyncio()
    async def test_from_ledger_with_too_few_accounts(self):
        with pytest.raises(ConfigurationError):
            await SignerPool.from_ledger(FakeLedgerClient(ACCOUNTS[:3]), 11)


class TestOrderingSlot:
    @pytest.mark.asyncio()
    async def test_unknown_signer(self):
        pool = SignerPool(ACCOUNTS)

        with pytest.raises(UnknownSignerError):
            async with pool.ordering_slot("0xnot-a-signer"):
                pass

    @pytest.mark.asyncio()
    async def test_waiters_are_served_in_arrival_order(self):
        pool = SignerPool(ACCOUNTS)
        signer = pool.designated_writer()
        order: list[int] = []

        async def worker(n: int) -> None:
            async with pool.ordering_slot(signer):
                order.append(n)
                await asyncio.sleep(0)

        async with pool.ordering_slot(signer):
            tasks = []
            for n in range(5):
                tasks.append(asyncio.create_task(worker(n)))
                await asyncio.sleep(0)
            assert pool.waiting(signer) == 6

        await asyncio.gather(*tasks)
        assert order == [0, 1, 2, 3, 4]
        assert pool.waiting(signer) == 0

    @pytest.mark.asyncio()
    async def test_signers_have_independent_slots(self):
        pool = SignerPool(ACCOUNTS)

        async with pool.ordering_slot(ACCOUNTS[0]):
            async with asyncio.timeout(1.0):
                async with pool.ordering_slot(ACCOUNTS[1]):
                    assert pool.waiting(ACCOUNTS[1]) == 1

    @pytest.mark.asyncio()
    async def test_slot_released_on_error(self):
        pool = SignerPool(ACCOUNTS)
        signer = pool.designated_writer()

        with pytest.raises(RuntimeError):
            async with pool.ordering_slot(signer):
                raise RuntimeError("submit failed")

        assert pool.waiting(signer) == 0
        async with asyncio.timeout(1.0):
            async with pool.ordering_slot(signer):
                pass

    @pytest.mark.asyncio()
    async def test_waiting_count_exported_as_gauge(self):
        pool = SignerPool(ACCOUNTS, writer_index=WRITER_INDEX)
        signer = pool.designated_writer()

        def gauge() -> float | None:
            return REGISTRY.get_sample_value(
                "supply_chain_gateway_signer_slot_waiters", {"signer": signer}
            )

        assert gauge() == 0
        async with pool.ordering_slot(signer):
            queued = asyncio.create_task(_enter(pool, signer))
            await asyncio.sleep(0)
            assert gauge() == pool.waiting(signer) == 2
        await queued
        assert gauge() == 0


async def _enter(pool: SignerPool, signer: str) -> None:
    async with pool.ordering_slot(signer):
        pass

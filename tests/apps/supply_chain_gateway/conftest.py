"""Shared fixtures for Supply Chain Gateway tests."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest
from fastapi.testclient import TestClient

from apps.supply_chain_gateway.app_context import AppContext
from apps.supply_chain_gateway.config import Settings
from apps.supply_chain_gateway.ledger_client import LedgerCall, SubmissionReceipt
from apps.supply_chain_gateway.main import create_app
from apps.supply_chain_gateway.signer_pool import SignerPool

ACCOUNTS = [f"0x{index:040x}" for index in range(1, 13)]
WRITER_INDEX = 11


class FakeLedgerClient:
    """In-memory LedgerClient double.

    Records every remote invocation, serves canned records per read op and
    lets tests inject failures or hold a phase open with an asyncio.Event.
    """

    def __init__(self, accounts: list[str] | None = None) -> None:
        self._accounts = list(accounts or ACCOUNTS)
        self.calls: list[tuple[str, str, tuple[Any, ...]]] = []
        self.timeline: list[str] = []
        self.records: dict[str, Any] = {}
        self.simulate_errors: dict[str, Exception] = {}
        self.submit_errors: dict[str, Exception] = {}
        self.query_errors: dict[str, Exception] = {}
        self.submit_gates: dict[str, asyncio.Event] = {}
        self.query_gates: dict[str, asyncio.Event] = {}
        self.submit_delay = 0.0
        self.connected = True
        self.nonce = 0
        self.nonce_collisions = 0
        self._expected_nonce: dict[int, int] = {}

    @property
    def remote_calls(self) -> int:
        return len(self.calls)

    def calls_to(self, method: str) -> list[tuple[str, tuple[Any, ...]]]:
        return [(op, args) for m, op, args in self.calls if m == method]

    async def simulate(self, call: LedgerCall, signer: str) -> int:
        self.calls.append(("simulate", call.op, call.args))
        self.timeline.append(f"simulate:{call.op}:{call.args[0]}")
        if call.op in self.simulate_errors:
            raise self.simulate_errors[call.op]
        # the nonce a real node would hand out for this signer right now
        self._expected_nonce[id(call)] = self.nonce
        await asyncio.sleep(0)
        return 21_000

    async def submit(self, call: LedgerCall, signer: str, gas: int) -> SubmissionReceipt:
        self.calls.append(("submit", call.op, call.args))
        self.timeline.append(f"submit-start:{call.op}:{call.args[0]}")
        if call.op in self.submit_gates:
            await self.submit_gates[call.op].wait()
        if self.submit_delay:
            await asyncio.sleep(self.submit_delay)
        if call.op in self.submit_errors:
            self.timeline.append(f"submit-end:{call.op}:{call.args[0]}")
            raise self.submit_errors[call.op]
        if self._expected_nonce.pop(id(call), self.nonce) != self.nonce:
            self.nonce_collisions += 1
        self.nonce += 1
        self.timeline.append(f"submit-end:{call.op}:{call.args[0]}")
        return SubmissionReceipt(tx_hash=f"0x{self.nonce:064x}", block_number=self.nonce, gas_used=gas)

    async def query(self, call: LedgerCall) -> Any:
        self.calls.append(("query", call.op, call.args))
        self.timeline.append(f"query:{call.op}:{call.args[0]}")
        if call.op in self.query_gates:
            await self.query_gates[call.op].wait()
        if call.op in self.query_errors:
            raise self.query_errors[call.op]
        return self.records.get(call.op)

    async def accounts(self) -> list[str]:
        return list(self._accounts)

    async def check_connection(self) -> bool:
        return self.connected


COMPANY_RECORD = ("CMP-1", "Acme", "Delhi", 0, 1)
DRUG_RECORD = ("Paracetamol-SN1", "Paracetamol", "CMP-1", "2024-01-01", "2026-01-01", "CMP-1", "")
PO_RECORD = ("PO-1", "Paracetamol", "CMP-2", 100, "CMP-1")
SHIPMENT_RECORD = ("SHP-1", "CMP-1", ["Paracetamol-SN1", "Paracetamol-SN2"], "CMP-9", 0)


@pytest.fixture()
def fake_ledger() -> FakeLedgerClient:
    ledger = FakeLedgerClient()
    ledger.records.update(
        {
            "getRegisteredCompany": COMPANY_RECORD,
            "getRegisteredDrug": DRUG_RECORD,
            "getRegisteredPO": PO_RECORD,
            "getRegisteredShipment": SHIPMENT_RECORD,
            "viewHistory": [("CMP-1", b"\x01\x02"), ("CMP-2", b"\x03")],
            "viewDrugCurrentState": DRUG_RECORD,
        }
    )
    return ledger


@pytest.fixture()
def signer_pool() -> SignerPool:
    return SignerPool(ACCOUNTS, writer_index=WRITER_INDEX)


@pytest.fixture()
def test_settings() -> Settings:
    return Settings(ledger_signer_index=WRITER_INDEX, _env_file=None)


@pytest.fixture()
def app_context(
    test_settings: Settings, fake_ledger: FakeLedgerClient, signer_pool: SignerPool
) -> AppContext:
    return AppContext.build(test_settings, fake_ledger, signer_pool, "0.1.0-test")


@pytest.fixture()
def test_client(app_context: AppContext) -> TestClient:
    """FastAPI test client wired to the fake ledger."""
    return TestClient(create_app(context=app_context))

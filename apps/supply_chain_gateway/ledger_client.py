"""
Ledger client wrapper with timeouts and retry logic.

Provides the three remote calls the gateway needs from the Drugs contract:
- simulate: dry-run a mutating call and estimate its gas
- submit: send the transaction and wait for inclusion
- query: read-only contract call returning a positional record

Every remote call is bounded by a timeout. Side-effect-free calls
(simulate, query) are retried on transient failures; submit never is,
because a lost response does not mean the transaction was not sent.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

import aiohttp
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception

from apps.supply_chain_gateway.config import Settings
from libs.common.exceptions import ConfigurationError, SupplyChainError

logger = logging.getLogger(__name__)

# Failures raised by web3/aiohttp that are translated into LedgerClientError
_TRANSLATED_ERRORS = (
    TimeoutError,
    ContractLogicError,
    OSError,
    aiohttp.ClientError,
    Web3Exception,
    ValueError,
)


class LedgerClientError(SupplyChainError):
    """Base exception for ledger client errors."""

    outcome_unknown: bool = False

    def __init__(self, message: str, *, tx_hash: str | None = None) -> None:
        super().__init__(message)
        self.tx_hash = tx_hash


class LedgerConnectionError(LedgerClientError):
    """Transport failure talking to the ledger node (retryable for reads)."""

    pass


class LedgerTimeoutError(LedgerConnectionError):
    """A remote call exceeded its timeout.

    For submissions the transaction may or may not have been included.
    """

    def __init__(
        self, message: str, *, tx_hash: str | None = None, outcome_unknown: bool = False
    ) -> None:
        super().__init__(message, tx_hash=tx_hash)
        self.outcome_unknown = outcome_unknown


class LedgerRejectionError(LedgerClientError):
    """Call rejected by the contract or the node (non-retryable)."""

    pass


class TransactionRevertedError(LedgerRejectionError):
    """Transaction was included in a block but reverted."""

    pass


class UnknownLedgerOperationError(LedgerClientError):
    """Operation name is not part of the contract ABI."""

    pass


@dataclass(frozen=True, slots=True)
class LedgerCall:
    """A contract function name and its positional arguments.

    Built once per request and passed unchanged to both the simulate and
    submit phases.
    """

    op: str
    args: tuple[Any, ...] = ()


@dataclass(frozen=True, slots=True)
class SubmissionReceipt:
    """Inclusion confirmation for a submitted transaction."""

    tx_hash: str
    block_number: int | None
    gas_used: int | None


class LedgerClient(Protocol):
    """Remote-call interface to the ledger."""

    async def simulate(self, call: LedgerCall, signer: str) -> int:
        """Dry-run a mutating call and return its estimated gas."""
        ...

    async def submit(self, call: LedgerCall, signer: str, gas: int) -> SubmissionReceipt:
        """Send a mutating call and wait for inclusion."""
        ...

    async def query(self, call: LedgerCall) -> Any:
        """Run a read-only call and return the raw record."""
        ...

    async def accounts(self) -> list[str]:
        """List the signer identities managed by the node."""
        ...

    async def check_connection(self) -> bool:
        """Return True if the ledger node is reachable."""
        ...


def load_contract_abi(artifact_path: str | Path) -> list[dict[str, Any]]:
    """
    Load a contract ABI from a compiled artifact JSON file.

    Args:
        artifact_path: Path to the artifact (must contain an "abi" key)

    Returns:
        The ABI list

    Raises:
        ConfigurationError: If the file is missing or has no ABI
    """
    path = Path(artifact_path)
    try:
        artifact = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigurationError(f"Contract artifact not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Contract artifact is not valid JSON: {path}") from e

    abi = artifact.get("abi") if isinstance(artifact, dict) else None
    if not isinstance(abi, list):
        raise ConfigurationError(f"Contract artifact has no ABI: {path}")
    return abi


class Web3LedgerClient:
    """
    Ledger client backed by web3.py's AsyncWeb3.

    Attributes:
        call_timeout: Timeout for simulate/query/transact calls (seconds)
        submit_timeout: Timeout waiting for a transaction receipt (seconds)
        receipt_poll: Receipt polling interval (seconds)
        read_retry_attempts: Attempts for side-effect-free calls
        retry_wait_max: Upper bound of exponential backoff (seconds)

    Examples:
        >>> client = Web3LedgerClient.from_settings(get_settings())
        >>> gas = await client.simulate(LedgerCall("addDrug", args), signer)
        >>> receipt = await client.submit(LedgerCall("addDrug", args), signer, gas)
        >>> record = await client.query(LedgerCall("getRegisteredDrug", ("Paracetamol", "SN1")))
    """

    def __init__(
        self,
        w3: AsyncWeb3,
        contract: Any,
        *,
        call_timeout: float = 10.0,
        submit_timeout: float = 30.0,
        receipt_poll: float = 0.1,
        read_retry_attempts: int = 3,
        retry_wait_max: float = 4.0,
    ) -> None:
        self._w3 = w3
        self._contract = contract
        self.call_timeout = call_timeout
        self.submit_timeout = submit_timeout
        self.receipt_poll = receipt_poll
        self.read_retry_attempts = read_retry_attempts
        self.retry_wait_max = retry_wait_max

    @classmethod
    def from_settings(cls, settings: Settings) -> "Web3LedgerClient":
        """
        Build a client from service settings.

        Raises:
            ConfigurationError: If the ABI cannot be loaded or the address is invalid
        """
        abi = load_contract_abi(settings.ledger_contract_artifact)
        w3 = AsyncWeb3(AsyncHTTPProvider(settings.ledger_rpc_url))
        try:
            address = AsyncWeb3.to_checksum_address(settings.ledger_contract_address)
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid contract address: {settings.ledger_contract_address}"
            ) from e

        logger.info(
            "Initialized ledger client",
            extra={"rpc_url": settings.ledger_rpc_url, "contract": address},
        )
        return cls(
            w3,
            w3.eth.contract(address=address, abi=abi),
            call_timeout=settings.ledger_call_timeout_seconds,
            submit_timeout=settings.ledger_submit_timeout_seconds,
            receipt_poll=settings.ledger_receipt_poll_seconds,
            read_retry_attempts=settings.ledger_read_retry_attempts,
            retry_wait_max=settings.ledger_retry_wait_max_seconds,
        )

    async def simulate(self, call: LedgerCall, signer: str) -> int:
        """
        Estimate gas for a mutating call.

        Retry policy: up to read_retry_attempts on LedgerConnectionError
        only; contract reverts are raised immediately.

        Raises:
            LedgerRejectionError: Contract reverted during estimation
            LedgerConnectionError: Node unreachable or timed out
        """
        fn = self._function(call)

        async def _estimate() -> int:
            try:
                gas = await asyncio.wait_for(
                    fn.estimate_gas({"from": signer}), timeout=self.call_timeout
                )
            except _TRANSLATED_ERRORS as e:
                raise self._translate(e, call) from e
            return int(gas)

        return await self._with_read_retry(_estimate)

    async def submit(self, call: LedgerCall, signer: str, gas: int) -> SubmissionReceipt:
        """
        Send a transaction and wait for its receipt. Never retried.

        Raises:
            TransactionRevertedError: Included but reverted
            LedgerRejectionError: Node refused the transaction
            LedgerTimeoutError: Timed out; outcome_unknown is set when the
                transaction may have been broadcast
            LedgerConnectionError: Transport failure
        """
        fn = self._function(call)
        tx_hash: str | None = None
        try:
            raw_hash = await asyncio.wait_for(
                fn.transact({"from": signer, "gas": gas}), timeout=self.call_timeout
            )
            tx_hash = AsyncWeb3.to_hex(raw_hash)
            logger.info(
                "Transaction sent",
                extra={"op": call.op, "tx_hash": tx_hash, "gas": gas},
            )
            receipt = await self._w3.eth.wait_for_transaction_receipt(
                raw_hash, timeout=self.submit_timeout, poll_latency=self.receipt_poll
            )
        except TimeExhausted as e:
            raise LedgerTimeoutError(
                f"No receipt for {call.op} within {self.submit_timeout}s",
                tx_hash=tx_hash,
                outcome_unknown=True,
            ) from e
        except _TRANSLATED_ERRORS as e:
            translated = self._translate(e, call, tx_hash=tx_hash)
            # once the hash is known the transaction may still be mined
            if tx_hash is not None and isinstance(translated, LedgerConnectionError):
                translated = LedgerTimeoutError(
                    str(translated), tx_hash=tx_hash, outcome_unknown=True
                )
            elif isinstance(translated, LedgerTimeoutError):
                translated.outcome_unknown = True
            raise translated from e

        if receipt["status"] != 1:
            raise TransactionRevertedError(
                f"Transaction {tx_hash} for {call.op} reverted", tx_hash=tx_hash
            )

        return SubmissionReceipt(
            tx_hash=tx_hash,
            block_number=receipt.get("blockNumber"),
            gas_used=receipt.get("gasUsed"),
        )

    async def query(self, call: LedgerCall) -> Any:
        """
        Run a read-only contract call.

        Raises:
            LedgerRejectionError: Call reverted (e.g. unknown key)
            LedgerConnectionError: Node unreachable or timed out
        """
        fn = self._function(call)

        async def _call() -> Any:
            try:
                return await asyncio.wait_for(fn.call(), timeout=self.call_timeout)
            except _TRANSLATED_ERRORS as e:
                raise self._translate(e, call) from e

        return await self._with_read_retry(_call)

    async def accounts(self) -> list[str]:
        """List node-managed accounts."""
        try:
            accounts = await asyncio.wait_for(self._w3.eth.accounts, timeout=self.call_timeout)
        except _TRANSLATED_ERRORS as e:
            raise self._translate(e, LedgerCall("eth_accounts")) from e
        return list(accounts)

    async def check_connection(self) -> bool:
        """
        Check if the ledger node is reachable.

        Returns:
            True if connected, False otherwise
        """
        try:
            return bool(await asyncio.wait_for(self._w3.is_connected(), timeout=self.call_timeout))
        except Exception as e:
            logger.error(f"Ledger connection check failed: {e}")
            return False

    def _function(self, call: LedgerCall) -> Any:
        """Bind a contract function to the call's arguments."""
        try:
            function = getattr(self._contract.functions, call.op)
        except AttributeError as e:
            raise UnknownLedgerOperationError(f"Unknown ledger operation: {call.op}") from e
        try:
            return function(*call.args)
        except Web3Exception as e:
            # arguments do not match the ABI signature
            raise LedgerRejectionError(f"{call.op} rejected: {e}") from e

    async def _with_read_retry(self, remote_call: Any) -> Any:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.read_retry_attempts),
            wait=wait_exponential(multiplier=0.5, min=0, max=self.retry_wait_max),
            retry=retry_if_exception_type(LedgerConnectionError),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                result = await remote_call()
        return result

    def _translate(
        self, error: Exception, call: LedgerCall, *, tx_hash: str | None = None
    ) -> LedgerClientError:
        """Classify a web3/transport failure."""
        if isinstance(error, TimeoutError):
            return LedgerTimeoutError(
                f"Ledger call {call.op} timed out after {self.call_timeout}s", tx_hash=tx_hash
            )
        if isinstance(error, ContractLogicError):
            reason = getattr(error, "message", None) or str(error)
            return LedgerRejectionError(f"{call.op} rejected: {reason}", tx_hash=tx_hash)
        if isinstance(error, (OSError, aiohttp.ClientError)):
            return LedgerConnectionError(
                f"Ledger connection error during {call.op}: {error}", tx_hash=tx_hash
            )
        return LedgerRejectionError(f"{call.op} failed: {error}", tx_hash=tx_hash)

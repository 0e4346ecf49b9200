"""
Supply Chain Gateway Configuration

Settings loaded from environment variables or a .env file.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Supply Chain Gateway settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Service Configuration
    service_name: str = "supply-chain-gateway"
    port: int = 3000
    log_level: str = "INFO"

    # Ledger Connection
    ledger_rpc_url: str = Field(
        default="http://localhost:8545",
        description="JSON-RPC endpoint of the ledger node",
    )
    ledger_contract_address: str = Field(
        default="0x5FbDB2315678afecb367f032d93F642f64180aa3",
        description="Address of the deployed Drugs contract",
    )
    ledger_contract_artifact: str = Field(
        default="artifacts/contracts/Drugs.sol/Drugs.json",
        description="Compiled contract artifact holding the ABI",
    )

    # Signer
    ledger_signer_index: int = Field(
        default=11,
        ge=0,
        description="Index of the node account used as the designated writer",
    )

    # Timeouts & Retries
    ledger_call_timeout_seconds: float = Field(default=10.0, gt=0)
    ledger_submit_timeout_seconds: float = Field(default=30.0, gt=0)
    ledger_receipt_poll_seconds: float = Field(default=0.1, gt=0)
    ledger_read_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for side-effect-free calls (simulate/query)",
    )
    ledger_retry_wait_max_seconds: float = Field(default=4.0, ge=0)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings parsed once per process
    """
    return Settings()

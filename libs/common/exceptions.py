"""
Exception hierarchy shared by supply-chain services.

Service-specific errors (ledger client failures, the gateway's error
taxonomy) inherit from SupplyChainError so callers can catch the whole
family when needed.
"""


class SupplyChainError(Exception):
    """
    Base exception for all supply-chain platform errors.

    Example:
        >>> try:
        ...     await orchestrator.execute(write_call, read_call)
        ... except SupplyChainError as e:
        ...     logger.error(f"Gateway error: {e}")
    """

    pass


class ConfigurationError(SupplyChainError):
    """
    Raised when required configuration is missing or inconsistent.

    Example:
        >>> if signer_index >= len(accounts):
        ...     raise ConfigurationError("LEDGER_SIGNER_INDEX out of range")
    """

    pass

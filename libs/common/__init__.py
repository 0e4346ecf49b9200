"""Common utilities and exceptions."""

from libs.common.exceptions import ConfigurationError, SupplyChainError

__all__ = [
    "SupplyChainError",
    "ConfigurationError",
]

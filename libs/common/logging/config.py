"""Centralized logging configuration.

Installs structured JSON output on stdout with the request trace ID and the
current operation name injected into every record.

Example:
    >>> from libs.common.logging.config import configure_logging
    >>> logger = configure_logging(service_name="supply-chain-gateway", log_level="INFO")
    >>> logger.info("Gateway started", extra={"context": {"port": 3000}})
"""

import logging
import sys

from libs.common.logging.context import get_operation, get_trace_id
from libs.common.logging.formatter import JSONFormatter


class RequestContextFilter(logging.Filter):
    """Logging filter that copies trace ID and operation onto log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Attach context values to the record.

        Args:
            record: The log record to filter

        Returns:
            True (always allows the record through)
        """
        record.trace_id = get_trace_id()
        record.operation = get_operation()
        return True


def configure_logging(
    service_name: str,
    log_level: str = "INFO",
    include_context: bool = True,
) -> logging.Logger:
    """Configure structured JSON logging for a service.

    This should be called once at service startup. Existing root handlers
    are replaced so repeated calls do not duplicate output.

    Args:
        service_name: Name of the service (e.g., "supply-chain-gateway")
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        include_context: Whether to include context dict in output

    Returns:
        Configured root logger instance

    Raises:
        ValueError: If log_level is invalid
    """
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {log_level}")

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(
        JSONFormatter(
            service_name=service_name,
            include_context=include_context,
        )
    )
    handler.addFilter(RequestContextFilter())

    root_logger.addHandler(handler)

    return root_logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger instance (root logger when name is None)."""
    return logging.getLogger(name)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context_fields: object,
) -> None:
    """Log a message with additional context fields.

    Context fields appear under the "context" key in JSON output.

    Example:
        >>> log_with_context(
        ...     logger,
        ...     "INFO",
        ...     "Ledger submission confirmed",
        ...     tx_hash="0x9f...",
        ...     block_number=42,
        ... )
    """
    log_method = getattr(logger, level.lower())
    log_method(message, extra={"context": context_fields})

"""Centralized structured logging library.

Structured JSON logging with trace ID and operation context for request
correlation.

Usage:
    # At service startup
    from libs.common.logging import configure_logging
    configure_logging(service_name="supply-chain-gateway", log_level="INFO")

    # In request handlers
    from libs.common.logging import operation_context, log_with_context
    with operation_context("addDrug"):
        log_with_context(logger, "INFO", "Submitting", drug_name="Paracetamol")
"""

from libs.common.logging.config import (
    RequestContextFilter,
    configure_logging,
    get_logger,
    log_with_context,
)
from libs.common.logging.context import (
    TRACE_ID_HEADER,
    clear_trace_id,
    generate_trace_id,
    get_operation,
    get_trace_id,
    operation_context,
    set_trace_id,
)
from libs.common.logging.formatter import JSONFormatter
from libs.common.logging.middleware import ASGITraceIDMiddleware, add_trace_id_middleware

__all__ = [
    # Configuration
    "configure_logging",
    "get_logger",
    "log_with_context",
    "RequestContextFilter",
    # Context management
    "generate_trace_id",
    "get_trace_id",
    "set_trace_id",
    "clear_trace_id",
    "get_operation",
    "operation_context",
    "TRACE_ID_HEADER",
    # Middleware
    "ASGITraceIDMiddleware",
    "add_trace_id_middleware",
    # Formatter (for advanced usage)
    "JSONFormatter",
]

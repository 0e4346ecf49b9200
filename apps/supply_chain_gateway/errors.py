"""Error taxonomy and normalization for the Supply Chain Gateway.

Every failure that reaches the HTTP boundary is converted into one of a
fixed set of kinds and rendered as the same envelope:

    {
        "message": "Error adding drug",
        "error": {
            "kind": "EstimationError",
            "message": "addDrug rejected: company not registered",
            "cause": "LedgerRejectionError: addDrug rejected: ...",
            "outcome_unknown": false
        }
    }

Callers branch on ``error.kind`` instead of parsing free text.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, ClassVar

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from apps.supply_chain_gateway import metrics
from apps.supply_chain_gateway.ledger_client import LedgerClientError, LedgerRejectionError
from libs.common.exceptions import SupplyChainError
from libs.common.logging import operation_context

logger = logging.getLogger(__name__)

DEFAULT_FAILURE_MESSAGE = "Request failed"


class GatewayError(SupplyChainError):
    """Base of the gateway error taxonomy.

    Attributes:
        kind: Stable machine-readable error kind
        status_code: HTTP status returned for this kind
        cause: Underlying exception, if any
        outcome_unknown: True when a submission may or may not have been included
        tx_hash: Transaction hash when one is known
    """

    kind: ClassVar[str] = "Unknown"
    default_status: ClassVar[int] = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        *,
        cause: BaseException | None = None,
        outcome_unknown: bool = False,
        tx_hash: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.outcome_unknown = outcome_unknown
        self.tx_hash = tx_hash

    @property
    def status_code(self) -> int:
        return self.default_status

    def to_dict(self) -> dict[str, Any]:
        """Render the error body of the envelope."""
        body: dict[str, Any] = {
            "kind": self.kind,
            "message": self.message,
            "cause": _describe(self.cause),
            "outcome_unknown": self.outcome_unknown,
        }
        if self.tx_hash is not None:
            body["tx_hash"] = self.tx_hash
        return body


class ValidationError(GatewayError):
    """Request body missing or malformed; raised before any remote call."""

    kind = "ValidationError"
    default_status = status.HTTP_400_BAD_REQUEST


class EstimationError(GatewayError):
    """Simulated call failed; nothing was submitted."""

    kind = "EstimationError"

    def __init__(self, message: str, *, rejected: bool, cause: BaseException | None = None) -> None:
        super().__init__(message, cause=cause)
        self.rejected = rejected

    @property
    def status_code(self) -> int:
        # business-rule rejection vs. ledger unreachable
        if self.rejected:
            return status.HTTP_422_UNPROCESSABLE_ENTITY
        return status.HTTP_502_BAD_GATEWAY


class SubmissionError(GatewayError):
    """Submission failed, reverted, or timed out with unknown outcome."""

    kind = "SubmissionError"
    default_status = status.HTTP_502_BAD_GATEWAY


class ReadbackError(GatewayError):
    """Canonical state query returned nothing or failed."""

    kind = "ReadbackError"
    default_status = status.HTTP_502_BAD_GATEWAY


class DecodeError(GatewayError):
    """Ledger record could not be decoded (e.g. ordinal out of range)."""

    kind = "DecodeError"
    default_status = status.HTTP_500_INTERNAL_SERVER_ERROR


class UnknownError(GatewayError):
    """Anything outside the taxonomy."""

    kind = "Unknown"


def _describe(cause: BaseException | None) -> str | None:
    if cause is None:
        return None
    return f"{type(cause).__name__}: {cause}"


def _format_validation_errors(errors: list[Any]) -> str:
    parts = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        field = ".".join(loc) or "body"
        parts.append(f"{field}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts) or "Invalid request body"


def classify_phase_failure(phase: str, error: Exception) -> GatewayError:
    """
    Map a failure raised during an orchestration phase to the taxonomy.

    Args:
        phase: One of "simulate", "submit", "readback"
        error: The raised exception

    Returns:
        The matching GatewayError (taxonomy errors pass through unchanged)
    """
    if isinstance(error, GatewayError):
        return error
    if not isinstance(error, LedgerClientError):
        return UnknownError(f"Unexpected failure during {phase}: {error}", cause=error)

    if phase == "simulate":
        return EstimationError(
            str(error), rejected=isinstance(error, LedgerRejectionError), cause=error
        )
    if phase == "submit":
        message = str(error)
        if error.outcome_unknown:
            message = f"{message} (outcome unknown, reconciliation may be required)"
        return SubmissionError(
            message, cause=error, outcome_unknown=error.outcome_unknown, tx_hash=error.tx_hash
        )
    return ReadbackError(str(error), cause=error)


def normalize_error(error: BaseException) -> GatewayError:
    """Convert any exception into a GatewayError."""
    if isinstance(error, GatewayError):
        return error
    if isinstance(error, (RequestValidationError, PydanticValidationError)):
        return ValidationError(_format_validation_errors(list(error.errors())), cause=error)
    return UnknownError(str(error) or type(error).__name__, cause=error)


def error_envelope(summary: str, error: GatewayError) -> dict[str, Any]:
    """Build the failure envelope returned to callers."""
    return {"message": summary, "error": error.to_dict()}


def error_response(summary: str, error: BaseException) -> JSONResponse:
    """Normalize, record and render an error as a JSON response."""
    normalized = normalize_error(error)
    metrics.errors_total.labels(kind=normalized.kind).inc()

    log_extra = {
        "kind": normalized.kind,
        "status_code": normalized.status_code,
        "cause": _describe(normalized.cause),
        "tx_hash": normalized.tx_hash,
    }
    if normalized.outcome_unknown:
        logger.error(f"{summary}: submission outcome unknown", extra=log_extra)
    elif normalized.status_code >= 500:
        logger.error(f"{summary}: {normalized.message}", extra=log_extra)
    else:
        logger.warning(f"{summary}: {normalized.message}", extra=log_extra)

    return JSONResponse(
        status_code=normalized.status_code,
        content=error_envelope(summary, normalized),
    )


def register_exception_handlers(
    app: FastAPI, failure_messages: Mapping[str, str] | None = None
) -> None:
    """
    Install handlers rendering every gateway failure as the error envelope.

    Args:
        app: FastAPI application
        failure_messages: Request path -> human summary for that operation
    """
    messages = dict(failure_messages or {})

    def _respond(request: Request, exc: Exception) -> JSONResponse:
        path = request.url.path
        if path not in messages:
            return error_response(DEFAULT_FAILURE_MESSAGE, exc)
        # handlers run after the endpoint left its operation scope
        with operation_context(path.lstrip("/")):
            return error_response(messages[path], exc)

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
        return _respond(request, exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _respond(request, exc)

"""Prometheus metrics definitions for the Supply Chain Gateway.

Usage:
    from apps.supply_chain_gateway import metrics

    metrics.operations_total.labels(operation="addDrug", status="success").inc()
    with metrics.ledger_phase_duration.labels(phase="submit").time():
        ...
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ============================================================================
# Business Metrics
# ============================================================================

operations_total = Counter(
    "supply_chain_gateway_operations_total",
    "Total gateway operations handled",
    ["operation", "status"],  # status: success, failed
)

errors_total = Counter(
    "supply_chain_gateway_errors_total",
    "Total errors returned to callers",
    ["kind"],
)

# ============================================================================
# Ledger Metrics
# ============================================================================

ledger_phase_duration = Histogram(
    "supply_chain_gateway_ledger_phase_duration_seconds",
    "Time spent in each orchestration phase",
    ["phase"],  # phase: slot_wait, simulate, submit, readback, query
)

signer_slot_waiters = Gauge(
    "supply_chain_gateway_signer_slot_waiters",
    "Requests queued for or holding a signer ordering slot",
    ["signer"],
)

ledger_connection_status = Gauge(
    "supply_chain_gateway_ledger_connection_status",
    "Ledger connection status (1=up, 0=down)",
)

"""
Supply Chain Gateway

FastAPI service exposing pharmaceutical supply-chain operations backed by a
ledger contract.

Provides:
- Company, drug, purchase order, shipment and retail writes
- Drug history and current-state reads
- Per-signer ordered submissions with canonical read-back
- Health monitoring and Prometheus metrics

Usage:
    uvicorn apps.supply_chain_gateway.main:app --port 3000
"""

__version__ = "0.1.0"

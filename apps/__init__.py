"""
Apps package - FastAPI services for the supply-chain platform.

- supply_chain_gateway: Ledger-backed REST gateway for supply-chain records
"""

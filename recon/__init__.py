"""Transaction reconciliation engine: bank versus ledger matching service."""

__version__ = "0.1.0"

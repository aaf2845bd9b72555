"""API routers package."""

from recon.routers import reconciliation

__all__ = ["reconciliation"]

"""Route-layer handlers."""

from ledger.api.handlers import ApiResponse, LedgerApi

__all__ = ["ApiResponse", "LedgerApi"]

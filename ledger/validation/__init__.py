"""Input validation package."""

from ledger.validation.validator import LedgerValidator, parse_id

__all__ = ["LedgerValidator", "parse_id"]

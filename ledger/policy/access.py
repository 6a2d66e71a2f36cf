"""
Access Policy

Every role rule in the ledger is one of these functions. Handlers never
compare roles themselves; they ask the policy and turn a `False` into
Unauthenticated (no principal) or Forbidden (principal lacks the right).

All functions are pure and never raise.
"""

from typing import Optional
from uuid import UUID

from ledger.models.ledger import Principal, Role


def can_view_transactions(principal: Optional[Principal]) -> bool:
    """Any authenticated principal may read the ledger."""
    return principal is not None


def can_view_reports(principal: Optional[Principal]) -> bool:
    """Any authenticated principal may read the summary report."""
    return principal is not None


def can_manage_transactions(principal: Optional[Principal]) -> bool:
    """Creating, editing and deleting transactions is reserved to admins."""
    return principal is not None and principal.role == Role.ADMIN


def can_manage_users(principal: Optional[Principal]) -> bool:
    return principal is not None and principal.role == Role.ADMIN


def can_delete_user(principal: Optional[Principal], target_id: Optional[UUID]) -> bool:
    """Admins may delete any account except their own."""
    return can_manage_users(principal) and principal.id != target_id

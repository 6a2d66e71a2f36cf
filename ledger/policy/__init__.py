"""Access policy package."""

from ledger.policy.access import (
    can_delete_user,
    can_manage_transactions,
    can_manage_users,
    can_view_reports,
    can_view_transactions,
)

__all__ = [
    "can_delete_user",
    "can_manage_transactions",
    "can_manage_users",
    "can_view_reports",
    "can_view_transactions",
]

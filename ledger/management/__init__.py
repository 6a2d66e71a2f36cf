"""
Management Services Package

Role-gated operations over transactions and users. These are what the
route layer calls; they never talk HTTP and never touch SQL directly.
"""

from ledger.management.transactions import TransactionManager
from ledger.management.users import UserManager

__all__ = ["TransactionManager", "UserManager"]

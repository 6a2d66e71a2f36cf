"""
Data Models Package

This package contains all Pydantic models used by the ledger.
All data flowing through the system must conform to these schemas.
"""

from ledger.models.ledger import (
    OwnerSummary,
    Principal,
    Role,
    SortOrder,
    Transaction,
    TransactionInput,
    TransactionKind,
    TransactionPatch,
    User,
    UserPatch,
    UserSummary,
    ValidationIssue,
)
from ledger.models.report import (
    FinancialReport,
    MonthlyEntry,
    ReportSummary,
    TypeBreakdownEntry,
)
from ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "OwnerSummary",
    "Principal",
    "Role",
    "SortOrder",
    "Transaction",
    "TransactionInput",
    "TransactionKind",
    "TransactionPatch",
    "User",
    "UserPatch",
    "UserSummary",
    "ValidationIssue",
    # Report models
    "FinancialReport",
    "MonthlyEntry",
    "ReportSummary",
    "TypeBreakdownEntry",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]

"""Services package."""

from ledger.services.session import (
    RequestContext,
    SessionResolverInterface,
    TokenSessionResolver,
)
from ledger.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    InMemoryAuditStorage,
    InMemoryLedgerStore,
    LedgerStorageInterface,
    NotFoundError,
    SqlAuditStorage,
    SqlLedgerStore,
    StorageError,
)

__all__ = [
    # Session services
    "RequestContext",
    "SessionResolverInterface",
    "TokenSessionResolver",
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "DuplicateError",
    "InMemoryAuditStorage",
    "InMemoryLedgerStore",
    "LedgerStorageInterface",
    "NotFoundError",
    "SqlAuditStorage",
    "SqlLedgerStore",
    "StorageError",
]

"""
Application Wiring for the Ledger

This module ties together all the components:
store → audit → managers/reports → request handlers.

DESIGN DECISION: The store is an explicitly constructed handle. It is
created here, passed into every service, opened once at process start
and closed once at shutdown. Nothing in the ledger reaches for a
module-level connection.
"""

from typing import Optional

import structlog

from ledger.api import LedgerApi
from ledger.audit import AuditLogger, configure_logging
from ledger.config import Settings, get_settings
from ledger.management import TransactionManager, UserManager
from ledger.reports import ReportService
from ledger.services.session import SessionResolverInterface, TokenSessionResolver
from ledger.services.storage import (
    AuditStorageInterface,
    InMemoryAuditStorage,
    LedgerStorageInterface,
    SqlAuditStorage,
    SqlLedgerStore,
)
from ledger.validation import LedgerValidator


logger = structlog.get_logger(__name__)


class LedgerComponents:
    """Everything a running ledger needs, with one lifecycle."""

    def __init__(
        self,
        store: LedgerStorageInterface,
        audit_logger: AuditLogger,
        session_resolver: SessionResolverInterface,
        transactions: TransactionManager,
        users: UserManager,
        reports: ReportService,
        api: LedgerApi,
    ):
        self.store = store
        self.audit_logger = audit_logger
        self.session_resolver = session_resolver
        self.transactions = transactions
        self.users = users
        self.reports = reports
        self.api = api

    def open(self) -> None:
        """Connect the store. Call once before serving requests."""
        self.store.open()
        logger.info("ledger_started", store=type(self.store).__name__)

    def close(self) -> None:
        self.store.close()
        logger.info("ledger_stopped")

    def __enter__(self) -> "LedgerComponents":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def create_app_components(
    settings: Optional[Settings] = None,
    store: Optional[LedgerStorageInterface] = None,
    session_resolver: Optional[SessionResolverInterface] = None,
    audit_storage: Optional[AuditStorageInterface] = None,
) -> LedgerComponents:
    """
    Factory function to create all application components.

    Args:
        settings: Defaults to the cached environment settings
        store: Defaults to a SQL store on the configured database URL.
               Pass an InMemoryLedgerStore for tests.
        session_resolver: Defaults to a token resolver on the configured cookie
        audit_storage: Defaults to the audit table of a SQL store,
               otherwise an in-memory log

    Returns:
        Unopened components; call `open()` (or use as a context manager)
    """
    settings = settings or get_settings()
    app_settings = settings.app
    configure_logging(app_settings.log_level)

    if store is None:
        store = SqlLedgerStore(settings.database)

    if audit_storage is None:
        if isinstance(store, SqlLedgerStore):
            audit_storage = SqlAuditStorage(store)
        else:
            audit_storage = InMemoryAuditStorage()
    audit_logger = AuditLogger(audit_storage)

    if session_resolver is None:
        session_resolver = TokenSessionResolver(store, cookie_name=settings.session.cookie_name)

    validator = LedgerValidator()
    transactions = TransactionManager(store, validator=validator, audit_logger=audit_logger)
    users = UserManager(store, validator=validator, audit_logger=audit_logger)
    reports = ReportService(store)

    api = LedgerApi(
        session_resolver=session_resolver,
        transactions=transactions,
        users=users,
        reports=reports,
        csv_delimiter=app_settings.csv_delimiter,
    )

    return LedgerComponents(
        store=store,
        audit_logger=audit_logger,
        session_resolver=session_resolver,
        transactions=transactions,
        users=users,
        reports=reports,
        api=api,
    )

"""
Audit Logger

DESIGN DECISION: Every mutation and every refused request is logged.
This provides:
1. Complete traceability of administrative actions
2. Debugging capability
3. Accountability for changes to financial data

The audit logger:
- Is async so it composes with the storage interface
- Gracefully handles failures (a broken audit store never breaks the ledger)
"""

import logging
from typing import Optional
from uuid import UUID

import structlog

from ledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from ledger.services.storage import AuditStorageInterface


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog (JSON lines through the stdlib root logger)."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", level=numeric_level)
    logging.getLogger().setLevel(numeric_level)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence), when configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("ledger.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_transaction_created(
        self,
        transaction_id: UUID,
        actor_id: UUID,
        amount: str,
        kind: str,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_created(
            transaction_id=transaction_id,
            actor_id=actor_id,
            amount=amount,
            kind=kind,
        ))

    async def log_transaction_updated(
        self,
        transaction_id: UUID,
        actor_id: UUID,
        fields: list[str],
    ) -> None:
        await self.log(AuditEventBuilder.transaction_updated(
            transaction_id=transaction_id,
            actor_id=actor_id,
            fields=fields,
        ))

    async def log_transaction_deleted(
        self,
        transaction_id: UUID,
        actor_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_deleted(
            transaction_id=transaction_id,
            actor_id=actor_id,
        ))

    async def log_user_updated(
        self,
        user_id: UUID,
        actor_id: UUID,
        fields: list[str],
    ) -> None:
        await self.log(AuditEventBuilder.user_updated(
            user_id=user_id,
            actor_id=actor_id,
            fields=fields,
        ))

    async def log_user_self_demoted(
        self,
        user_id: UUID,
        new_role: str,
    ) -> None:
        await self.log(AuditEventBuilder.user_self_demoted(
            user_id=user_id,
            new_role=new_role,
        ))

    async def log_user_deleted(
        self,
        user_id: UUID,
        actor_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.user_deleted(
            user_id=user_id,
            actor_id=actor_id,
        ))

    async def log_access_denied(
        self,
        actor_id: UUID,
        action: str,
        target_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.access_denied(
            actor_id=actor_id,
            action=action,
            target_id=target_id,
        ))

    async def log_self_delete_rejected(
        self,
        actor_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.self_delete_rejected(actor_id=actor_id))

    async def log_store_failure(
        self,
        operation: str,
        error_message: str,
        actor_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.store_failure(
            operation=operation,
            error_message=error_message,
            actor_id=actor_id,
        ))

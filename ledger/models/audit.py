"""
Audit Models for the Ledger

Every mutation and every refused request is logged for audit purposes.
This provides:
1. Complete traceability of who changed which record
2. Debugging information when things go wrong
3. Accountability for administrative actions on financial data

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Transactions
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"

    # Users
    USER_UPDATED = "user_updated"
    USER_SELF_DEMOTED = "user_self_demoted"
    USER_DELETED = "user_deleted"

    # Refusals
    ACCESS_DENIED = "access_denied"
    SELF_DELETE_REJECTED = "self_delete_rejected"

    # System events
    STORE_FAILURE = "store_failure"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event occurred"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about, and who acted?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'user')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )
    actor_id: Optional[UUID] = Field(
        default=None,
        description="Principal that triggered the event"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "actor_id": str(self.actor_id) if self.actor_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_created(tx_id, actor_id, amount, kind)
        event = AuditEventBuilder.access_denied(actor_id, "delete_user", target_id)
    """

    @staticmethod
    def transaction_created(
        transaction_id: UUID,
        actor_id: UUID,
        amount: str,
        kind: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            entity_type="transaction",
            entity_id=transaction_id,
            actor_id=actor_id,
            description=f"Transaction recorded: {kind} {amount}",
            details={
                "amount": amount,
                "kind": kind,
            },
        )

    @staticmethod
    def transaction_updated(
        transaction_id: UUID,
        actor_id: UUID,
        fields: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            entity_type="transaction",
            entity_id=transaction_id,
            actor_id=actor_id,
            description=f"Transaction updated: {', '.join(fields) or 'no fields'}",
            details={
                "fields": fields,
            },
        )

    @staticmethod
    def transaction_deleted(
        transaction_id: UUID,
        actor_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            entity_id=transaction_id,
            actor_id=actor_id,
            description="Transaction permanently deleted",
        )

    @staticmethod
    def user_updated(
        user_id: UUID,
        actor_id: UUID,
        fields: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_UPDATED,
            entity_type="user",
            entity_id=user_id,
            actor_id=actor_id,
            description=f"User updated: {', '.join(fields) or 'no fields'}",
            details={
                "fields": fields,
            },
        )

    @staticmethod
    def user_self_demoted(
        user_id: UUID,
        new_role: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_SELF_DEMOTED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            entity_id=user_id,
            actor_id=user_id,
            description=f"Administrator changed their own role to {new_role}",
            details={
                "new_role": new_role,
            },
        )

    @staticmethod
    def user_deleted(
        user_id: UUID,
        actor_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_DELETED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            entity_id=user_id,
            actor_id=actor_id,
            description="User permanently deleted",
        )

    @staticmethod
    def access_denied(
        actor_id: UUID,
        action: str,
        target_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCESS_DENIED,
            severity=AuditSeverity.WARNING,
            entity_id=target_id,
            actor_id=actor_id,
            description=f"Access denied: {action}",
            details={
                "action": action,
            },
        )

    @staticmethod
    def self_delete_rejected(
        actor_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SELF_DELETE_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            entity_id=actor_id,
            actor_id=actor_id,
            description="Administrator attempted to delete their own account",
        )

    @staticmethod
    def store_failure(
        operation: str,
        error_message: str,
        actor_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_FAILURE,
            severity=AuditSeverity.ERROR,
            actor_id=actor_id,
            description=f"Store failure during {operation}",
            error_message=error_message,
            details={
                "operation": operation,
            },
        )

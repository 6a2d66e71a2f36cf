"""
Shared plumbing for the management services: authorization against the
access policy and translation of store exceptions into ledger errors.
"""

from typing import Optional
from uuid import UUID

import structlog

from ledger.audit import AuditLogger
from ledger.errors import Forbidden, StoreFailure, Unauthenticated
from ledger.models.ledger import Principal
from ledger.services.storage import StorageError
from ledger.validation import LedgerValidator


class ManagementService:
    """Base for services that gate store operations behind the access policy."""

    def __init__(
        self,
        validator: Optional[LedgerValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._validator = validator or LedgerValidator()
        self._audit_logger = audit_logger
        self._logger = structlog.get_logger(type(self).__module__)

    async def _authorize(
        self,
        principal: Optional[Principal],
        allowed: bool,
        action: str,
        target_id: Optional[UUID] = None,
    ) -> Principal:
        """
        Turn a policy decision into an outcome.

        Raises:
            Unauthenticated: If there is no principal
            Forbidden: If the policy refused the action
        """
        if principal is None:
            raise Unauthenticated()
        if not allowed:
            self._logger.info("access_denied", action=action, principal_id=str(principal.id))
            if self._audit_logger:
                await self._audit_logger.log_access_denied(
                    actor_id=principal.id,
                    action=action,
                    target_id=target_id,
                )
            raise Forbidden(f"You do not have permission to {action.replace('_', ' ')}")
        return principal

    async def _store_failure(
        self,
        operation: str,
        error: StorageError,
        principal: Optional[Principal] = None,
    ) -> StoreFailure:
        """Log a store error and build the generic failure the caller sees."""
        self._logger.error("store_failure", operation=operation, error=str(error))
        if self._audit_logger:
            await self._audit_logger.log_store_failure(
                operation=operation,
                error_message=str(error),
                actor_id=principal.id if principal else None,
            )
        return StoreFailure(f"Could not {operation.replace('_', ' ')}")

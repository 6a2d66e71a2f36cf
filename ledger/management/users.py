"""
User Management

Admin-only listing, patching and deletion of ledger users.

DESIGN DECISION: An administrator can never delete their own account.
That is reported as a ValidationError of the request, not as Forbidden,
because the caller does hold the role; the request itself is invalid.

Deleting a user who still owns transactions is refused. Financial
history is never removed as a side effect of removing a person.
"""

from typing import Any, Optional

from ledger.audit import AuditLogger
from ledger.errors import NotFound, ValidationError
from ledger.management.base import ManagementService
from ledger.models.ledger import Principal, Role, User, UserSummary
from ledger.policy import can_delete_user, can_manage_users
from ledger.services.storage import (
    NotFoundError,
    StorageError,
    UserStorageInterface,
)
from ledger.validation import LedgerValidator, parse_id


class UserManager(ManagementService):
    """User operations for the route layer."""

    def __init__(
        self,
        store: UserStorageInterface,
        validator: Optional[LedgerValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        super().__init__(validator=validator, audit_logger=audit_logger)
        self._store = store

    async def list_users(self, principal: Optional[Principal]) -> list[UserSummary]:
        """All users, newest first, each with its transaction count."""
        await self._authorize(principal, can_manage_users(principal), "manage_users")
        try:
            return await self._store.list_users()
        except StorageError as e:
            raise await self._store_failure("list_users", e, principal) from e

    async def update_user(
        self,
        principal: Optional[Principal],
        user_id: Any,
        payload: Any,
    ) -> User:
        """
        Patch name, phone and role.

        `phone` supplied as null or "" clears it; omitted leaves it alone.
        An admin demoting themselves is allowed but audited.

        Raises:
            InvalidId: If the id is absent or malformed
            ValidationError: If a supplied field is invalid
            NotFound: If no user has that id
        """
        actor = await self._authorize(principal, can_manage_users(principal), "manage_users")
        target_id = parse_id(user_id)
        patch = self._validator.validate_user_patch(payload)
        changes = patch.changes()

        try:
            if changes:
                updated = await self._store.update_user(target_id, changes)
            else:
                updated = await self._store.get_user(target_id)
                if updated is None:
                    raise NotFoundError(f"User not found: {target_id}")
        except NotFoundError as e:
            raise NotFound("User not found") from e
        except StorageError as e:
            raise await self._store_failure("update_user", e, actor) from e

        self._logger.info("user_updated", user_id=str(target_id), fields=sorted(changes))
        if self._audit_logger and changes:
            await self._audit_logger.log_user_updated(
                user_id=target_id,
                actor_id=actor.id,
                fields=sorted(changes),
            )
            if target_id == actor.id and changes.get("role") == Role.USER:
                await self._audit_logger.log_user_self_demoted(
                    user_id=target_id,
                    new_role=Role.USER.value,
                )
        return updated

    async def delete_user(self, principal: Optional[Principal], user_id: Any) -> None:
        """
        Permanently delete a user.

        Raises:
            InvalidId: If the id is absent or malformed
            ValidationError: On self-delete, or if the user owns transactions
            NotFound: If no user has that id
        """
        actor = await self._authorize(principal, can_manage_users(principal), "manage_users")
        target_id = parse_id(user_id)

        if not can_delete_user(actor, target_id):
            self._logger.info("self_delete_rejected", user_id=str(actor.id))
            if self._audit_logger:
                await self._audit_logger.log_self_delete_rejected(actor_id=actor.id)
            raise ValidationError.rule("self_delete", "cannot delete own account")

        try:
            target = await self._store.get_user(target_id)
            if target is None:
                raise NotFound("User not found")

            owned = await self._store.count_transactions(target_id)
            if owned > 0:
                raise ValidationError.rule(
                    "owned_transactions",
                    f"cannot delete a user who owns transactions ({owned})",
                )

            await self._store.delete_user(target_id)
        except NotFoundError as e:
            raise NotFound("User not found") from e
        except StorageError as e:
            raise await self._store_failure("delete_user", e, actor) from e

        self._logger.info("user_deleted", user_id=str(target_id))
        if self._audit_logger:
            await self._audit_logger.log_user_deleted(
                user_id=target_id,
                actor_id=actor.id,
            )

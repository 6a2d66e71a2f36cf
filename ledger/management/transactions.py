"""
Transaction Management

Role-gated create/read/update/delete over the ledger's transactions.

Every operation:
1. Requires a principal (Unauthenticated otherwise)
2. Asks the access policy (Forbidden otherwise)
3. Validates ids and payloads completely
4. Only then touches the store
"""

from datetime import datetime
from typing import Any, Optional

from ledger.audit import AuditLogger
from ledger.errors import NotFound, ValidationError
from ledger.management.base import ManagementService
from ledger.models.ledger import Principal, SortOrder, Transaction
from ledger.policy import can_manage_transactions, can_view_transactions
from ledger.services.storage import (
    NotFoundError,
    StorageError,
    TransactionStorageInterface,
)
from ledger.validation import LedgerValidator, parse_id


class TransactionManager(ManagementService):
    """Transaction operations for the route layer."""

    def __init__(
        self,
        store: TransactionStorageInterface,
        validator: Optional[LedgerValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        super().__init__(validator=validator, audit_logger=audit_logger)
        self._store = store

    async def list_transactions(self, principal: Optional[Principal]) -> list[Transaction]:
        """Every transaction with its owner, newest first. Any authenticated role."""
        await self._authorize(principal, can_view_transactions(principal), "view_transactions")
        try:
            return await self._store.list_transactions(SortOrder.DESCENDING)
        except StorageError as e:
            raise await self._store_failure("list_transactions", e, principal) from e

    async def get_transaction(
        self,
        principal: Optional[Principal],
        transaction_id: Any,
    ) -> Transaction:
        """Fetch one transaction. Any authenticated role."""
        await self._authorize(principal, can_view_transactions(principal), "view_transactions")
        tx_id = parse_id(transaction_id)
        try:
            transaction = await self._store.get_transaction(tx_id)
        except StorageError as e:
            raise await self._store_failure("get_transaction", e, principal) from e
        if transaction is None:
            raise NotFound("Transaction not found")
        return transaction

    async def create_transaction(
        self,
        principal: Optional[Principal],
        payload: Any,
    ) -> Transaction:
        """
        Record a new transaction owned by the principal.

        Raises:
            ValidationError: Naming the first missing or invalid field
        """
        actor = await self._authorize(
            principal, can_manage_transactions(principal), "create_transactions"
        )
        try:
            data = self._validator.validate_transaction_input(payload)
        except ValidationError as e:
            self._logger.info("transaction_rejected", issues=self._validator.summarize(e))
            raise

        transaction = Transaction(
            description=data.description,
            amount=data.amount,
            kind=data.kind,
            occurred_on=data.occurred_on or datetime.now(),
            owner_id=actor.id,
        )
        try:
            created = await self._store.create_transaction(transaction)
        except StorageError as e:
            raise await self._store_failure("create_transaction", e, actor) from e

        self._logger.info(
            "transaction_created",
            transaction_id=str(created.id),
            kind=created.kind.value,
        )
        if self._audit_logger:
            await self._audit_logger.log_transaction_created(
                transaction_id=created.id,
                actor_id=actor.id,
                amount=str(created.amount),
                kind=created.kind.value,
            )
        return created

    async def update_transaction(
        self,
        principal: Optional[Principal],
        transaction_id: Any,
        payload: Any,
    ) -> Transaction:
        """
        Apply a partial patch. Omitted fields keep their stored values.

        Raises:
            InvalidId: If the id is absent or malformed
            ValidationError: If a supplied field is invalid
            NotFound: If no transaction has that id
        """
        actor = await self._authorize(
            principal, can_manage_transactions(principal), "update_transactions"
        )
        tx_id = parse_id(transaction_id)
        patch = self._validator.validate_transaction_patch(payload)
        changes = patch.changes()

        try:
            if changes:
                updated = await self._store.update_transaction(tx_id, changes)
            else:
                updated = await self._store.get_transaction(tx_id)
                if updated is None:
                    raise NotFoundError(f"Transaction not found: {tx_id}")
        except NotFoundError as e:
            raise NotFound("Transaction not found") from e
        except StorageError as e:
            raise await self._store_failure("update_transaction", e, actor) from e

        self._logger.info(
            "transaction_updated",
            transaction_id=str(tx_id),
            fields=sorted(changes),
        )
        if self._audit_logger and changes:
            await self._audit_logger.log_transaction_updated(
                transaction_id=tx_id,
                actor_id=actor.id,
                fields=sorted(changes),
            )
        return updated

    async def delete_transaction(
        self,
        principal: Optional[Principal],
        transaction_id: Any,
    ) -> None:
        """
        Permanently delete a transaction.

        Raises:
            InvalidId: If the id is absent or malformed
            NotFound: If no transaction has that id
        """
        actor = await self._authorize(
            principal, can_manage_transactions(principal), "delete_transactions"
        )
        tx_id = parse_id(transaction_id)
        try:
            await self._store.delete_transaction(tx_id)
        except NotFoundError as e:
            raise NotFound("Transaction not found") from e
        except StorageError as e:
            raise await self._store_failure("delete_transaction", e, actor) from e

        self._logger.info("transaction_deleted", transaction_id=str(tx_id))
        if self._audit_logger:
            await self._audit_logger.log_transaction_deleted(
                transaction_id=tx_id,
                actor_id=actor.id,
            )

"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Run the ledger on any relational database through SQLAlchemy
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

The interface is intentionally simple - just the operations the
management and report services need. Each call is atomic on its own;
there are no multi-call transactions.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional
from uuid import UUID

from ledger.models.audit import AuditEvent
from ledger.models.ledger import (
    SortOrder,
    Transaction,
    User,
    UserSummary,
)


class TransactionStorageInterface(ABC):
    """
    Abstract interface for transaction storage operations.

    Every transaction returned carries its `owner` summary.
    """

    @abstractmethod
    async def create_transaction(self, transaction: Transaction) -> Transaction:
        """
        Persist a new transaction.

        Returns:
            The stored transaction joined with its owner

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def get_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        """
        Retrieve a transaction by its ID.

        Returns:
            The transaction if found, None otherwise
        """
        pass

    @abstractmethod
    async def list_transactions(
        self,
        order: SortOrder = SortOrder.DESCENDING,
    ) -> list[Transaction]:
        """
        List every transaction ordered by occurrence date.

        Ties keep the store's native order.
        """
        pass

    @abstractmethod
    async def update_transaction(
        self,
        transaction_id: UUID,
        changes: dict[str, Any],
    ) -> Transaction:
        """
        Replace the given fields of a transaction.

        Raises:
            NotFoundError: If the transaction doesn't exist
            StorageError: If update fails
        """
        pass

    @abstractmethod
    async def delete_transaction(self, transaction_id: UUID) -> None:
        """
        Permanently delete a transaction.

        Raises:
            NotFoundError: If the transaction doesn't exist
        """
        pass


class UserStorageInterface(ABC):
    """
    Abstract interface for user storage operations.

    Users are created by the identity provider through `create_user`;
    the ledger itself only reads, patches and deletes them.
    """

    @abstractmethod
    async def create_user(self, user: User) -> User:
        """
        Persist a newly provisioned user.

        Raises:
            DuplicateError: If the email is already registered
        """
        pass

    @abstractmethod
    async def get_user(self, user_id: UUID) -> Optional[User]:
        """Retrieve a user by ID, or None."""
        pass

    @abstractmethod
    async def list_users(self) -> list[UserSummary]:
        """List every user, newest first, with their transaction counts."""
        pass

    @abstractmethod
    async def update_user(self, user_id: UUID, changes: dict[str, Any]) -> User:
        """
        Replace the given fields of a user.

        Raises:
            NotFoundError: If the user doesn't exist
        """
        pass

    @abstractmethod
    async def delete_user(self, user_id: UUID) -> None:
        """
        Permanently delete a user.

        Raises:
            NotFoundError: If the user doesn't exist
        """
        pass

    @abstractmethod
    async def count_transactions(self, owner_id: UUID) -> int:
        """Count the transactions a user owns."""
        pass


class LedgerStorageInterface(TransactionStorageInterface, UserStorageInterface):
    """Both record kinds behind one handle, with an explicit lifecycle."""

    def open(self) -> None:
        """Acquire connections. Called once at process start."""

    def close(self) -> None:
        """Release connections. Called once at shutdown."""


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """Get all events for a specific entity, in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get the most recent audit events (newest first)."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass

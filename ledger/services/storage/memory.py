"""
In-Memory Storage Implementation

Keeps records in dictionaries. Used by the test suite and for local
runs without a database. Records are copied on the way in and out so
callers can never mutate stored state by accident.
"""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from ledger.models.audit import AuditEvent
from ledger.models.ledger import (
    SortOrder,
    Transaction,
    User,
    UserSummary,
)
from ledger.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
)


class InMemoryLedgerStore(LedgerStorageInterface):
    """Dictionary-backed ledger store. Insertion order is the native tie-break."""

    def __init__(self):
        self._transactions: dict[UUID, Transaction] = {}
        self._users: dict[UUID, User] = {}

    def _join_owner(self, transaction: Transaction) -> Transaction:
        owner = self._users.get(transaction.owner_id)
        return transaction.model_copy(
            update={"owner": owner.owner_summary() if owner else None},
            deep=True,
        )

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def create_transaction(self, transaction: Transaction) -> Transaction:
        if transaction.id in self._transactions:
            raise DuplicateError(f"Transaction already exists: {transaction.id}")
        stored = transaction.model_copy(update={"owner": None}, deep=True)
        self._transactions[stored.id] = stored
        return self._join_owner(stored)

    async def get_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        transaction = self._transactions.get(transaction_id)
        return self._join_owner(transaction) if transaction else None

    async def list_transactions(
        self,
        order: SortOrder = SortOrder.DESCENDING,
    ) -> list[Transaction]:
        transactions = sorted(
            self._transactions.values(),
            key=lambda t: t.occurred_on,
            reverse=order == SortOrder.DESCENDING,
        )
        return [self._join_owner(t) for t in transactions]

    async def update_transaction(
        self,
        transaction_id: UUID,
        changes: dict[str, Any],
    ) -> Transaction:
        current = self._transactions.get(transaction_id)
        if current is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")
        updated = current.model_copy(
            update={**changes, "updated_at": datetime.now()},
            deep=True,
        )
        self._transactions[transaction_id] = updated
        return self._join_owner(updated)

    async def delete_transaction(self, transaction_id: UUID) -> None:
        if self._transactions.pop(transaction_id, None) is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def create_user(self, user: User) -> User:
        if user.id in self._users:
            raise DuplicateError(f"User already exists: {user.id}")
        if any(u.email == user.email for u in self._users.values()):
            raise DuplicateError(f"Email already registered: {user.email}")
        stored = user.model_copy(deep=True)
        self._users[stored.id] = stored
        return stored.model_copy(deep=True)

    async def get_user(self, user_id: UUID) -> Optional[User]:
        user = self._users.get(user_id)
        return user.model_copy(deep=True) if user else None

    async def list_users(self) -> list[UserSummary]:
        users = sorted(
            self._users.values(),
            key=lambda u: u.created_at,
            reverse=True,
        )
        return [
            UserSummary(
                **u.model_dump(),
                transaction_count=await self.count_transactions(u.id),
            )
            for u in users
        ]

    async def update_user(self, user_id: UUID, changes: dict[str, Any]) -> User:
        current = self._users.get(user_id)
        if current is None:
            raise NotFoundError(f"User not found: {user_id}")
        updated = current.model_copy(update=changes, deep=True)
        self._users[user_id] = updated
        return updated.model_copy(deep=True)

    async def delete_user(self, user_id: UUID) -> None:
        if self._users.pop(user_id, None) is None:
            raise NotFoundError(f"User not found: {user_id}")

    async def count_transactions(self, owner_id: UUID) -> int:
        return sum(1 for t in self._transactions.values() if t.owner_id == owner_id)


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]

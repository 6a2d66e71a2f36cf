"""Tests for transaction management against the in-memory store."""

import asyncio

import pytest
from datetime import datetime
from decimal import Decimal
from uuid import uuid4

from ledger.errors import (
    Forbidden,
    InvalidId,
    NotFound,
    StoreFailure,
    Unauthenticated,
    ValidationError,
)
from ledger.management import TransactionManager
from ledger.models import AuditEventType, TransactionKind
from ledger.services.storage import StorageError


def run(coro):
    return asyncio.run(coro)


SALARY = {
    "description": "Salary",
    "amount": 5000,
    "kind": "INCOME",
    "date": "2025-01-10",
}


@pytest.fixture
def manager(store, audit_logger):
    return TransactionManager(store, audit_logger=audit_logger)


class TestCreateTransaction:
    """Tests for recording transactions."""

    def test_creates_normalized_record(self, manager, admin, admin_user):
        created = run(manager.create_transaction(admin, SALARY))

        assert created.description == "Salary"
        assert created.amount == Decimal("5000")
        assert created.kind == TransactionKind.INCOME
        assert created.occurred_on == datetime(2025, 1, 10)
        assert created.owner_id == admin.id
        assert created.owner.email == admin_user.email

    def test_missing_date_defaults_to_now(self, manager, admin):
        before = datetime.now()
        created = run(manager.create_transaction(admin, {
            "description": "Coffee",
            "amount": "3.50",
            "kind": "EXPENSE",
        }))
        assert before <= created.occurred_on <= datetime.now()

    def test_rejects_invalid_payload_without_writing(self, manager, store, admin):
        with pytest.raises(ValidationError):
            run(manager.create_transaction(admin, {**SALARY, "amount": 0}))
        assert run(store.list_transactions()) == []

    def test_requires_authentication(self, manager):
        with pytest.raises(Unauthenticated):
            run(manager.create_transaction(None, SALARY))

    def test_member_is_forbidden(self, manager, member, audit_storage):
        with pytest.raises(Forbidden):
            run(manager.create_transaction(member, SALARY))

        events = run(audit_storage.get_recent_events())
        assert events[0].event_type == AuditEventType.ACCESS_DENIED
        assert events[0].actor_id == member.id

    def test_forbidden_takes_precedence_over_bad_payload(self, manager, member):
        with pytest.raises(Forbidden):
            run(manager.create_transaction(member, {}))

    def test_audits_creation(self, manager, admin, audit_storage):
        created = run(manager.create_transaction(admin, SALARY))
        events = run(audit_storage.get_events_by_entity("transaction", created.id))
        assert [e.event_type for e in events] == [AuditEventType.TRANSACTION_CREATED]


class TestListTransactions:
    """Tests for reading the ledger."""

    def test_member_can_list(self, manager, admin, member):
        run(manager.create_transaction(admin, SALARY))
        transactions = run(manager.list_transactions(member))
        assert len(transactions) == 1
        assert transactions[0].owner.id == admin.id

    def test_newest_first(self, manager, admin):
        for day in ("2025-01-10", "2025-03-01", "2025-02-15"):
            run(manager.create_transaction(admin, {**SALARY, "date": day}))

        dates = [t.occurred_on.day for t in run(manager.list_transactions(admin))]
        assert dates == [1, 15, 10]

    def test_requires_authentication(self, manager):
        with pytest.raises(Unauthenticated):
            run(manager.list_transactions(None))

    def test_get_single(self, manager, admin, member):
        created = run(manager.create_transaction(admin, SALARY))
        fetched = run(manager.get_transaction(member, str(created.id)))
        assert fetched.id == created.id

    def test_get_unknown(self, manager, admin):
        with pytest.raises(NotFound):
            run(manager.get_transaction(admin, str(uuid4())))


class TestUpdateTransaction:
    """Tests for partial updates."""

    def test_amount_only_leaves_other_fields(self, manager, admin):
        created = run(manager.create_transaction(admin, SALARY))

        updated = run(manager.update_transaction(admin, str(created.id), {"amount": 300}))

        assert updated.amount == Decimal("300")
        assert updated.description == created.description
        assert updated.kind == created.kind
        assert updated.occurred_on == created.occurred_on
        assert updated.owner_id == created.owner_id

    def test_supplied_fields_are_validated(self, manager, admin):
        created = run(manager.create_transaction(admin, SALARY))
        with pytest.raises(ValidationError):
            run(manager.update_transaction(admin, str(created.id), {"kind": "income"}))
        unchanged = run(manager.get_transaction(admin, str(created.id)))
        assert unchanged.kind == TransactionKind.INCOME

    def test_invalid_id(self, manager, admin):
        with pytest.raises(InvalidId):
            run(manager.update_transaction(admin, "abc", {"amount": 1}))

    def test_unknown_id(self, manager, admin):
        with pytest.raises(NotFound):
            run(manager.update_transaction(admin, str(uuid4()), {"amount": 1}))

    def test_empty_patch_on_unknown_id(self, manager, admin):
        with pytest.raises(NotFound):
            run(manager.update_transaction(admin, str(uuid4()), {}))

    def test_member_is_forbidden(self, manager, admin, member):
        created = run(manager.create_transaction(admin, SALARY))
        with pytest.raises(Forbidden):
            run(manager.update_transaction(member, str(created.id), {"amount": 1}))


class TestDeleteTransaction:
    """Tests for deletion."""

    def test_deletes(self, manager, admin, store):
        created = run(manager.create_transaction(admin, SALARY))
        run(manager.delete_transaction(admin, str(created.id)))
        assert run(store.get_transaction(created.id)) is None

    def test_unknown_id(self, manager, admin):
        with pytest.raises(NotFound):
            run(manager.delete_transaction(admin, str(uuid4())))

    def test_missing_id(self, manager, admin):
        with pytest.raises(InvalidId):
            run(manager.delete_transaction(admin, None))

    def test_member_is_forbidden(self, manager, member):
        with pytest.raises(Forbidden):
            run(manager.delete_transaction(member, str(uuid4())))


class TestStoreFailures:
    """Tests for translating store errors."""

    def test_store_error_becomes_store_failure(self, store, admin, audit_storage, audit_logger):
        async def broken(*args, **kwargs):
            raise StorageError("disk on fire")

        store.list_transactions = broken
        manager = TransactionManager(store, audit_logger=audit_logger)

        with pytest.raises(StoreFailure) as exc_info:
            run(manager.list_transactions(admin))

        assert "disk on fire" not in exc_info.value.message
        assert isinstance(exc_info.value.__cause__, StorageError)
        events = run(audit_storage.get_recent_events())
        assert events[0].event_type == AuditEventType.STORE_FAILURE


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

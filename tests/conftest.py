"""Shared fixtures: an in-memory ledger seeded with one admin and one user."""

import asyncio

import pytest

from ledger.audit import AuditLogger
from ledger.models import Principal, Role, User
from ledger.services.storage import InMemoryAuditStorage, InMemoryLedgerStore


@pytest.fixture
def store():
    return InMemoryLedgerStore()


@pytest.fixture
def admin_user(store):
    return asyncio.run(store.create_user(User(
        name="Ada Admin",
        email="ada@example.com",
        role=Role.ADMIN,
    )))


@pytest.fixture
def member_user(store):
    return asyncio.run(store.create_user(User(
        name="Uma User",
        email="uma@example.com",
        phone="+57 300 123 4567",
    )))


@pytest.fixture
def admin(admin_user):
    return Principal(id=admin_user.id, role=Role.ADMIN)


@pytest.fixture
def member(member_user):
    return Principal(id=member_user.id, role=Role.USER)


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)

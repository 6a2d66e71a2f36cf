"""Tests for settings and audit logging."""

import asyncio

import pytest
from uuid import uuid4

from ledger.audit import AuditLogger
from ledger.config import (
    AppSettings,
    DatabaseSettings,
    SessionSettings,
    get_settings,
    validate_all_settings,
)
from ledger.models import AuditEventBuilder
from ledger.services.storage import AuditStorageInterface


class TestSettings:
    """Tests for environment-driven configuration."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("LEDGER_DB_URL", raising=False)
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        assert DatabaseSettings().url == "sqlite:///ledger.db"
        assert SessionSettings().cookie_name == "session_token"
        assert AppSettings().log_level == "INFO"

    def test_reads_prefixed_environment(self, monkeypatch):
        monkeypatch.setenv("LEDGER_DB_URL", "postgresql://ledger@db/ledger")
        monkeypatch.setenv("LEDGER_DB_CONNECT_ATTEMPTS", "5")
        monkeypatch.setenv("LEDGER_SESSION_COOKIE_NAME", "sid")

        assert DatabaseSettings().url == "postgresql://ledger@db/ledger"
        assert DatabaseSettings().connect_attempts == 5
        assert SessionSettings().cookie_name == "sid"

    def test_log_level_is_normalized(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert AppSettings().log_level == "DEBUG"

    def test_rejects_bad_values(self):
        with pytest.raises(ValueError):
            DatabaseSettings(url="ledger.db")
        with pytest.raises(ValueError):
            AppSettings(log_level="LOUD")

    def test_validate_all_settings_reports_failures(self, monkeypatch):
        monkeypatch.setenv("LEDGER_DB_URL", "not a url")
        get_settings.cache_clear()
        try:
            results = validate_all_settings()
        finally:
            get_settings.cache_clear()

        assert results["database"] is False
        assert "database_error" in results
        assert results["session"] is True


class TestAuditLogger:
    """Tests for audit logging resilience."""

    def test_without_storage(self):
        logger = AuditLogger()
        event = AuditEventBuilder.self_delete_rejected(actor_id=uuid4())
        assert asyncio.run(logger.log(event)) is True

    def test_storage_failure_does_not_raise(self):
        class BrokenStorage(AuditStorageInterface):
            async def append_event(self, event):
                raise RuntimeError("audit table locked")

            async def get_events_by_entity(self, entity_type, entity_id):
                return []

            async def get_recent_events(self, limit=100):
                return []

        logger = AuditLogger(BrokenStorage())
        event = AuditEventBuilder.user_deleted(user_id=uuid4(), actor_id=uuid4())
        assert asyncio.run(logger.log(event)) is False

    def test_persists_to_storage(self, audit_storage):
        logger = AuditLogger(audit_storage)
        asyncio.run(logger.log_access_denied(actor_id=uuid4(), action="manage_users"))
        assert len(asyncio.run(audit_storage.get_recent_events())) == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

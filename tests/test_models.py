"""
Tests for the Ledger models

Test strategy:
1. Unit tests for individual components (models, validators, policy)
2. Service tests against the in-memory store
3. SQL store tests against in-memory SQLite (no external database)
"""

import pytest
from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

from ledger.models import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    FinancialReport,
    ReportSummary,
    Role,
    Transaction,
    TransactionInput,
    TransactionKind,
    TransactionPatch,
    User,
    UserPatch,
)
from ledger.models.ledger import parse_amount, parse_occurred_on


class TestAmountParsing:
    """Tests for the shared amount parser."""

    def test_accepts_numbers_and_numeric_strings(self):
        """Test ints, floats, strings and Decimals all parse."""
        assert parse_amount(5000) == Decimal("5000")
        assert parse_amount(12.5) == Decimal("12.5")
        assert parse_amount(" 300.25 ") == Decimal("300.25")
        assert parse_amount(Decimal("1")) == Decimal("1")

    def test_float_is_parsed_through_its_repr(self):
        """Test 0.1 stays 0.1 instead of its binary expansion."""
        assert parse_amount(0.1) == Decimal("0.1")

    @pytest.mark.parametrize("value", [0, -1, "0", "-20.5"])
    def test_rejects_zero_and_negative(self, value):
        with pytest.raises(ValueError, match="greater than zero"):
            parse_amount(value)

    @pytest.mark.parametrize("value", [float("inf"), float("nan"), "Infinity", "NaN"])
    def test_rejects_non_finite(self, value):
        with pytest.raises(ValueError, match="finite"):
            parse_amount(value)

    def test_rejects_booleans(self):
        """Test True is not silently treated as 1."""
        with pytest.raises(ValueError):
            parse_amount(True)

    def test_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_amount("twelve")
        with pytest.raises(ValueError):
            parse_amount([1])

    @pytest.mark.parametrize("value", ["12.345", 0.001, Decimal("5000.001")])
    def test_rejects_sub_cent_amounts(self, value):
        """Test amounts the database would silently round are refused."""
        with pytest.raises(ValueError, match="decimal places"):
            parse_amount(value)

    def test_trailing_zeros_are_not_extra_places(self):
        assert parse_amount("12.30") == Decimal("12.3")
        assert parse_amount("7.000") == Decimal("7")

    def test_rejects_amounts_past_the_column_limit(self):
        with pytest.raises(ValueError, match="too large"):
            parse_amount(10 ** 16)
        assert parse_amount("9999999999999999.99") == Decimal("9999999999999999.99")


class TestDateParsing:
    """Tests for transaction date normalization."""

    def test_calendar_date_string_is_local_midnight(self):
        assert parse_occurred_on("2025-01-10") == datetime(2025, 1, 10)

    def test_date_object_is_local_midnight(self):
        assert parse_occurred_on(date(2025, 2, 1)) == datetime(2025, 2, 1)

    def test_full_datetime_is_kept(self):
        assert parse_occurred_on("2025-01-10T14:30:00") == datetime(2025, 1, 10, 14, 30)

    def test_timezone_aware_becomes_naive(self):
        parsed = parse_occurred_on("2025-01-10T14:30:00+00:00")
        assert parsed.tzinfo is None

    @pytest.mark.parametrize("value", ["2025-02-30", "not a date", "", 20250110])
    def test_rejects_invalid_dates(self, value):
        with pytest.raises(ValueError):
            parse_occurred_on(value)


class TestTransactionModels:
    """Tests for transaction payload and record models."""

    def test_input_normalizes_fields(self):
        """Test description trimming, amount parsing and date normalization."""
        data = TransactionInput.model_validate({
            "description": "  Salary  ",
            "amount": "5000",
            "kind": "INCOME",
            "date": "2025-01-10",
        })
        assert data.description == "Salary"
        assert data.amount == Decimal("5000")
        assert data.kind == TransactionKind.INCOME
        assert data.occurred_on == datetime(2025, 1, 10)

    def test_input_accepts_type_alias_for_kind(self):
        data = TransactionInput.model_validate({
            "description": "Rent",
            "amount": 1200,
            "type": "EXPENSE",
        })
        assert data.kind == TransactionKind.EXPENSE

    def test_input_without_date_leaves_it_unset(self):
        data = TransactionInput.model_validate({
            "description": "Rent",
            "amount": 1200,
            "kind": "EXPENSE",
        })
        assert data.occurred_on is None

    def test_input_kind_is_case_sensitive(self):
        with pytest.raises(ValueError):
            TransactionInput.model_validate({
                "description": "Rent",
                "amount": 1200,
                "kind": "expense",
            })

    def test_input_rejects_blank_description(self):
        with pytest.raises(ValueError):
            TransactionInput.model_validate({
                "description": "   ",
                "amount": 10,
                "kind": "EXPENSE",
            })

    def test_input_rejects_long_description(self):
        with pytest.raises(ValueError):
            TransactionInput.model_validate({
                "description": "x" * 501,
                "amount": 10,
                "kind": "EXPENSE",
            })

    def test_patch_tracks_supplied_fields_only(self):
        """Test that omitted fields never appear in changes()."""
        patch = TransactionPatch.model_validate({"amount": 300})
        assert patch.changes() == {"amount": Decimal("300")}

    def test_patch_rejects_null_values(self):
        for field in ("description", "amount", "kind", "date"):
            with pytest.raises(ValueError):
                TransactionPatch.model_validate({field: None})

    def test_transaction_payload_is_camel_case(self):
        transaction = Transaction(
            description="Salary",
            amount=Decimal("5000"),
            kind=TransactionKind.INCOME,
            occurred_on=datetime(2025, 1, 10),
            owner_id=uuid4(),
        )
        payload = transaction.to_payload()
        assert payload["occurredOn"] == "2025-01-10T00:00:00"
        assert payload["ownerId"] == str(transaction.owner_id)
        assert payload["kind"] == "INCOME"
        assert "owner_id" not in payload

    def test_payload_amount_is_a_json_number(self):
        transaction = Transaction(
            description="Salary",
            amount=Decimal("5000.00"),
            kind=TransactionKind.INCOME,
            owner_id=uuid4(),
        )
        assert transaction.to_payload()["amount"] == 5000
        assert isinstance(transaction.to_payload()["amount"], int)

        cents = transaction.model_copy(update={"amount": Decimal("12.50")})
        assert cents.to_payload()["amount"] == 12.5
        assert cents.amount == Decimal("12.50")


class TestUserModels:
    """Tests for user records and patches."""

    def test_user_defaults_to_user_role(self):
        user = User(name="Uma User", email="uma@example.com")
        assert user.role == Role.USER
        assert user.phone is None

    def test_user_rejects_bad_email(self):
        with pytest.raises(ValueError):
            User(name="Uma User", email="not-an-email")

    def test_user_rejects_bad_phone(self):
        with pytest.raises(ValueError):
            User(name="Uma User", email="uma@example.com", phone="call me")

    @pytest.mark.parametrize("phone", [
        "\u0660\u0661\u0662\u0663\u0664\u0665\u0666\u0667",
        "300\t123\t4567",
        "300\u00a0123\u00a04567",
    ])
    def test_phone_is_ascii_digits_and_plain_spaces(self, phone):
        with pytest.raises(ValueError):
            User(name="Uma User", email="uma@example.com", phone=phone)
        with pytest.raises(ValueError):
            UserPatch.model_validate({"phone": phone})

    def test_user_empty_phone_is_none(self):
        user = User(name="Uma User", email="uma@example.com", phone="")
        assert user.phone is None

    def test_patch_phone_null_clears(self):
        """Test that a supplied null phone is a change, not an omission."""
        patch = UserPatch.model_validate({"phone": None})
        assert patch.changes() == {"phone": None}

    def test_patch_phone_empty_string_clears(self):
        patch = UserPatch.model_validate({"phone": ""})
        assert patch.changes() == {"phone": None}

    def test_patch_omitted_phone_is_untouched(self):
        patch = UserPatch.model_validate({"name": "Uma Renamed"})
        assert patch.changes() == {"name": "Uma Renamed"}

    def test_patch_rejects_unknown_role(self):
        with pytest.raises(ValueError):
            UserPatch.model_validate({"role": "SUPERUSER"})

    def test_patch_rejects_null_name_and_role(self):
        with pytest.raises(ValueError):
            UserPatch.model_validate({"name": None})
        with pytest.raises(ValueError):
            UserPatch.model_validate({"role": None})

    def test_patch_rejects_short_name(self):
        with pytest.raises(ValueError):
            UserPatch.model_validate({"name": "A"})


class TestReportModels:
    """Tests for report payload shape."""

    def test_report_payload_keys(self):
        report = FinancialReport(summary=ReportSummary())
        payload = report.to_payload()
        assert set(payload) == {"summary", "monthlySeries", "typeBreakdown", "transactions"}
        assert set(payload["summary"]) == {
            "totalIncome", "totalExpense", "balance", "transactionCount",
        }


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            description="Transaction recorded",
        )
        assert event.event_type == AuditEventType.TRANSACTION_CREATED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.USER_UPDATED,
            description="User updated",
            details={"fields": ["phone"]},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "user_updated"
        assert log_dict["details"]["fields"] == ["phone"]

    def test_builder_transaction_created(self):
        transaction_id = uuid4()
        actor_id = uuid4()

        event = AuditEventBuilder.transaction_created(
            transaction_id=transaction_id,
            actor_id=actor_id,
            amount="5000",
            kind="INCOME",
        )

        assert event.event_type == AuditEventType.TRANSACTION_CREATED
        assert event.entity_type == "transaction"
        assert event.entity_id == transaction_id
        assert event.actor_id == actor_id

    def test_builder_refusals_are_warnings(self):
        actor_id = uuid4()
        denied = AuditEventBuilder.access_denied(actor_id=actor_id, action="manage_users")
        rejected = AuditEventBuilder.self_delete_rejected(actor_id=actor_id)
        assert denied.severity == AuditSeverity.WARNING
        assert rejected.severity == AuditSeverity.WARNING
        assert rejected.entity_id == actor_id


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

"""
Request Validation

DESIGN DECISION: Validation runs to completion before any store write.
An operation either gets a fully validated payload or a ValidationError;
there is no partially applied request.

Schema checks (types, lengths, enums, formats) live on the pydantic
models. This module runs them, and turns pydantic's error list into
ledger ValidationIssues so the caller sees one consistent error shape
whose message names the first invalid field.
"""

from typing import Any, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from ledger.errors import InvalidId, ValidationError
from ledger.models.ledger import (
    TransactionInput,
    TransactionPatch,
    UserPatch,
    ValidationIssue,
)


ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_id(raw: Any) -> UUID:
    """
    Parse a record identifier from a path parameter.

    Raises:
        InvalidId: If the id is absent or not a UUID
    """
    if isinstance(raw, UUID):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidId("ID is required")
    try:
        return UUID(raw.strip())
    except ValueError:
        raise InvalidId(f"Invalid ID: {raw}")


def _issues_from_schema_error(error: SchemaError) -> list[ValidationIssue]:
    issues = []
    for detail in error.errors():
        field = ".".join(str(part) for part in detail["loc"]) or "body"
        message = detail["msg"]
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        issues.append(ValidationIssue(
            field=field,
            issue_type="missing" if detail["type"] == "missing" else "invalid_value",
            message=message,
        ))
    return issues


class LedgerValidator:
    """Validates request bodies into ledger payload and patch models."""

    def _validate(self, model: type[ModelT], payload: Any) -> ModelT:
        if not isinstance(payload, dict):
            raise ValidationError.rule("body", "Request body must be a JSON object")
        try:
            return model.model_validate(payload)
        except SchemaError as e:
            raise ValidationError.from_issues(_issues_from_schema_error(e)) from e

    def validate_transaction_input(self, payload: Any) -> TransactionInput:
        """Validate a create payload: description, amount, kind and optional date."""
        return self._validate(TransactionInput, payload)

    def validate_transaction_patch(self, payload: Any) -> TransactionPatch:
        """Validate a partial update. Only supplied fields are checked."""
        return self._validate(TransactionPatch, payload)

    def validate_user_patch(self, payload: Any) -> UserPatch:
        """Validate a partial user update over name, phone and role."""
        return self._validate(UserPatch, payload)

    @staticmethod
    def summarize(error: ValidationError) -> Optional[str]:
        """One line per issue, for logs."""
        if not error.issues:
            return None
        return "; ".join(f"{i.field}: {i.message}" for i in error.issues)

"""
Ledger Error Taxonomy

Every operation outcome other than success is one of these exceptions.
Each carries the HTTP status the route layer should answer with, so the
mapping lives in one place instead of in every handler.
"""

from typing import Optional

from ledger.models.ledger import ValidationIssue


class LedgerError(Exception):
    """Base exception for ledger operations."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class Unauthenticated(LedgerError):
    """No valid session. The user must log in again."""

    status_code = 401

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class Forbidden(LedgerError):
    """Authenticated, but the role does not allow the action."""

    status_code = 403


class ValidationError(LedgerError):
    """
    Malformed input or a violated request rule.

    `issues` lists every problem found; the message names the first one.
    """

    status_code = 400

    def __init__(
        self,
        message: str,
        issues: Optional[list[ValidationIssue]] = None,
    ):
        super().__init__(message)
        self.issues = issues or []

    @classmethod
    def from_issues(cls, issues: list[ValidationIssue]) -> "ValidationError":
        first = issues[0]
        return cls(f"{first.field}: {first.message}", issues)

    @classmethod
    def rule(cls, rule: str, message: str) -> "ValidationError":
        return cls(message, [
            ValidationIssue(field=rule, issue_type="rule", message=message),
        ])

    @property
    def first_field(self) -> Optional[str]:
        return self.issues[0].field if self.issues else None


class InvalidId(ValidationError):
    """Identifier missing or not a UUID. A validation error, not a not-found."""

    def __init__(self, message: str = "Invalid ID"):
        super().__init__(message, [
            ValidationIssue(field="id", issue_type="invalid_format", message=message),
        ])


class NotFound(LedgerError):
    """Well-formed identifier with no matching record."""

    status_code = 404


class StoreFailure(LedgerError):
    """
    The store failed for reasons opaque to the ledger.

    The message is deliberately generic; the cause is chained for logs.
    """

    status_code = 500

    def __init__(self, message: str = "The operation could not be completed"):
        super().__init__(message)

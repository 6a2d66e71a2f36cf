"""
Core Data Models for the Ledger

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage and API responses

DESIGN DECISION: Payloads and patches are separate models from stored
records. A patch only carries the fields the caller actually supplied
(see `model_fields_set`), so "omitted" and "supplied as null" never blur.
"""

import re
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Annotated, Any, Optional, Union
from uuid import UUID, uuid4

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
)
from pydantic.alias_generators import to_camel


DESCRIPTION_MAX_LENGTH = 500
NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^[\d \-\+\(\)]{7,20}$", re.ASCII)

AMOUNT_DECIMAL_PLACES = 2
AMOUNT_LIMIT = Decimal(10) ** 16


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Role(str, Enum):
    """
    Principal roles.

    ADMIN manages transactions and users; USER can only read.
    """
    ADMIN = "ADMIN"
    USER = "USER"


class TransactionKind(str, Enum):
    """Income/expense classification of a transaction. Case-sensitive."""
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class SortOrder(str, Enum):
    """Ordering of transaction listings by occurrence date."""
    ASCENDING = "asc"
    DESCENDING = "desc"


# =============================================================================
# FIELD PARSERS - shared by records, payloads and patches
# =============================================================================

def parse_amount(value: Any) -> Decimal:
    """Parse a positive, finite amount. Booleans are not numbers."""
    if isinstance(value, bool):
        raise ValueError("amount must be a number")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    elif isinstance(value, str):
        try:
            amount = Decimal(value.strip())
        except InvalidOperation:
            raise ValueError(f"amount is not a number: {value!r}")
    else:
        raise ValueError("amount must be a number")

    if not amount.is_finite():
        raise ValueError("amount must be a finite number")
    if amount <= 0:
        raise ValueError("amount must be greater than zero")
    if amount >= AMOUNT_LIMIT:
        raise ValueError("amount is too large")
    if amount != amount.quantize(Decimal(1).scaleb(-AMOUNT_DECIMAL_PLACES)):
        raise ValueError(
            f"amount must have at most {AMOUNT_DECIMAL_PLACES} decimal places"
        )
    return amount


def _money_to_json(value: Decimal) -> Union[int, float]:
    if value == value.to_integral_value():
        return int(value)
    return float(value)


# Decimal in Python, a plain JSON number on the wire
Money = Annotated[
    Decimal,
    PlainSerializer(_money_to_json, return_type=Union[int, float], when_used="json"),
]


def parse_occurred_on(value: Any) -> datetime:
    """
    Parse a transaction date.

    A bare calendar date is normalized to local midnight. Full datetimes
    are kept; timezone-aware ones are converted to naive local time.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime.combine(value, time.min)
    elif isinstance(value, str):
        text = value.strip()
        try:
            if len(text) == 10:
                return datetime.combine(date.fromisoformat(text), time.min)
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValueError(f"date is not a valid calendar date: {value!r}")
    else:
        raise ValueError("date must be an ISO formatted date")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def _reject_null(value: Any, field: str) -> Any:
    if value is None:
        raise ValueError(f"{field} cannot be null")
    return value


# =============================================================================
# BASE MODEL
# =============================================================================

class LedgerModel(BaseModel):
    """Base for everything that crosses the API boundary (camelCase on the wire)."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    def to_payload(self) -> dict:
        """Serialize to a JSON-compatible dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# PRINCIPAL
# =============================================================================

class Principal(BaseModel):
    """The authenticated identity making a request."""
    model_config = ConfigDict(frozen=True)

    id: UUID
    role: Role


# =============================================================================
# USERS
# =============================================================================

class OwnerSummary(LedgerModel):
    """Owner fields joined onto transaction reads."""

    id: UUID
    name: str
    email: str


class User(LedgerModel):
    """
    A ledger user.

    Users are provisioned by the identity provider on first login;
    only name, phone and role are editable afterwards.
    """

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique user ID"
    )
    name: str = Field(
        ...,
        min_length=NAME_MIN_LENGTH,
        max_length=NAME_MAX_LENGTH,
        description="Display name"
    )
    email: str = Field(
        ...,
        max_length=320,
        description="Unique login email"
    )
    phone: Optional[str] = Field(
        default=None,
        description="Contact phone"
    )
    role: Role = Field(
        default=Role.USER,
        description="Access role"
    )
    image: Optional[str] = Field(
        default=None,
        description="Avatar URL (opaque)"
    )
    created_at: datetime = Field(
        default_factory=datetime.now,
        description="When the user was provisioned"
    )

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        if not EMAIL_PATTERN.match(v):
            raise ValueError(f"Invalid email address: {v}")
        return v

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        if not PHONE_PATTERN.match(v):
            raise ValueError(
                "phone must be 7-20 characters of digits, spaces, '-', '+', '(' or ')'"
            )
        return v

    def owner_summary(self) -> OwnerSummary:
        return OwnerSummary(id=self.id, name=self.name, email=self.email)


class UserSummary(User):
    """A user as listed to administrators, with the derived transaction count."""

    transaction_count: int = Field(
        default=0,
        ge=0,
        description="Number of transactions this user owns"
    )


class UserPatch(LedgerModel):
    """
    Partial update of a user.

    Only the fields in `model_fields_set` were supplied. `phone` supplied
    as null or an empty string clears it.
    """

    name: Optional[str] = Field(
        default=None,
        min_length=NAME_MIN_LENGTH,
        max_length=NAME_MAX_LENGTH,
    )
    phone: Optional[str] = None
    role: Optional[Role] = None

    @field_validator('name', 'role', mode='before')
    @classmethod
    def reject_null(cls, v: Any, info) -> Any:
        return _reject_null(v, info.field_name)

    @field_validator('phone', mode='before')
    @classmethod
    def validate_phone(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        if not isinstance(v, str):
            raise ValueError("phone must be a string")
        v = v.strip()
        if v == "":
            return None
        if not PHONE_PATTERN.match(v):
            raise ValueError(
                "phone must be 7-20 characters of digits, spaces, '-', '+', '(' or ')'"
            )
        return v

    def changes(self) -> dict[str, Any]:
        """The supplied fields only, keyed by field name."""
        return {name: getattr(self, name) for name in self.model_fields_set}


# =============================================================================
# TRANSACTIONS
# =============================================================================

class Transaction(LedgerModel):
    """
    A recorded income or expense.

    `owner` is joined in by the store on reads and is never persisted.
    """

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=DESCRIPTION_MAX_LENGTH,
        description="What the money was for"
    )
    amount: Money = Field(
        ...,
        gt=0,
        description="Positive amount in currency units"
    )
    kind: TransactionKind
    occurred_on: datetime = Field(
        default_factory=datetime.now,
        description="When the transaction happened"
    )
    owner_id: UUID = Field(
        ...,
        description="User who recorded it"
    )
    owner: Optional[OwnerSummary] = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class TransactionInput(LedgerModel):
    """
    Payload for creating a transaction.

    Fields are declared in the order their errors are reported.
    A missing date means "now".
    """

    description: str = Field(
        ...,
        min_length=1,
        max_length=DESCRIPTION_MAX_LENGTH,
    )
    amount: Decimal
    kind: TransactionKind = Field(
        ...,
        validation_alias=AliasChoices("kind", "type"),
    )
    occurred_on: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("date", "occurredOn", "occurred_on"),
    )

    @field_validator('amount', mode='before')
    @classmethod
    def validate_amount(cls, v: Any) -> Decimal:
        return parse_amount(v)

    @field_validator('occurred_on', mode='before')
    @classmethod
    def validate_occurred_on(cls, v: Any) -> Optional[datetime]:
        if v is None:
            return None
        return parse_occurred_on(v)


class TransactionPatch(LedgerModel):
    """
    Partial update of a transaction.

    Each supplied field passes the same checks as on create;
    null is never a valid replacement.
    """

    description: Optional[str] = Field(
        default=None,
        min_length=1,
        max_length=DESCRIPTION_MAX_LENGTH,
    )
    amount: Optional[Decimal] = None
    kind: Optional[TransactionKind] = Field(
        default=None,
        validation_alias=AliasChoices("kind", "type"),
    )
    occurred_on: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("date", "occurredOn", "occurred_on"),
    )

    @field_validator('description', 'kind', mode='before')
    @classmethod
    def reject_null(cls, v: Any, info) -> Any:
        return _reject_null(v, info.field_name)

    @field_validator('amount', mode='before')
    @classmethod
    def validate_amount(cls, v: Any) -> Decimal:
        return parse_amount(_reject_null(v, "amount"))

    @field_validator('occurred_on', mode='before')
    @classmethod
    def validate_occurred_on(cls, v: Any) -> datetime:
        return parse_occurred_on(_reject_null(v, "date"))

    def changes(self) -> dict[str, Any]:
        """The supplied fields only, keyed by field name."""
        return {name: getattr(self, name) for name in self.model_fields_set}


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field (or rule) with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'rule')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from budgetsync.domain.errors import ValidationError
from budgetsync.domain.models import Transaction, TransactionType


DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d", "%m/%d/%Y", "%m-%d-%Y")
# Total digits, integer and fractional, counted the way pydantic counts them.
AMOUNT_MAX_DIGITS = 20


class TransactionDraft(BaseModel):
    """
    A transaction as entered by the user, before the remote store assigns an id.

    Wire names are used as aliases (`type`, `date`) so drafts validate straight
    from form/JSON payloads; attribute names match `Transaction`.
    """

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True, frozen=True)

    txn_type: TransactionType = Field(alias="type")
    category: str = Field(min_length=1)
    amount: Decimal = Field(
        ge=0,
        max_digits=AMOUNT_MAX_DIGITS,
        description="Unsigned amount; the sign comes from `type`.",
    )
    description: str = ""
    posted_on: date = Field(alias="date", description="Calendar date in YYYY-MM-DD format, e.g. 2026-01-31.")

    @field_validator("txn_type", mode="before")
    @classmethod
    def coerce_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("description", mode="before")
    @classmethod
    def coerce_description(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("amount")
    @classmethod
    def drop_negative_zero(cls, value: Decimal) -> Decimal:
        # "-0" passes ge=0; store it as plain zero.
        return abs(value) if value.is_zero() else value

    @field_validator("posted_on", mode="before")
    @classmethod
    def coerce_date(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date) or not isinstance(value, str):
            return value

        text = value.strip()
        if not text:
            return value

        # Canonical format first.
        for fmt in DATE_FORMATS:
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue
        return value

    def to_payload(self) -> dict[str, Any]:
        return {
            "type": self.txn_type.value,
            "category": self.category,
            "amount": self.amount,
            "description": self.description,
            "date": self.posted_on.isoformat(),
        }


class RemoteTransaction(TransactionDraft):
    """A transaction row as returned by the remote store."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True, frozen=True, extra="ignore")

    id: str = Field(min_length=1)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    def to_transaction(self) -> Transaction:
        return Transaction(
            id=self.id,
            txn_type=self.txn_type,
            category=self.category,
            amount=self.amount,
            posted_on=self.posted_on,
            description=self.description,
        )


class Credentials(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class LoginResponse(BaseModel):
    token: str = Field(min_length=1)


class ThemePreference(BaseModel):
    theme: Literal["light", "dark"] = "light"


def describe_errors(exc: PydanticValidationError) -> list[str]:
    messages: list[str] = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ())) or "payload"
        messages.append(f"{loc}: {err.get('msg', 'invalid value')}")
    return messages


def parse_draft(draft: TransactionDraft | Mapping[str, Any]) -> TransactionDraft:
    if isinstance(draft, TransactionDraft):
        return draft
    if not isinstance(draft, Mapping):
        raise ValidationError(f"Expected a transaction mapping, got {type(draft).__name__}")
    try:
        return TransactionDraft.model_validate(dict(draft))
    except PydanticValidationError as exc:
        errors = describe_errors(exc)
        raise ValidationError(f"Invalid transaction: {'; '.join(errors)}", errors) from exc


def parse_credentials(username: str, password: str) -> Credentials:
    try:
        return Credentials(username=username, password=password)
    except PydanticValidationError as exc:
        errors = describe_errors(exc)
        raise ValidationError(f"Invalid credentials: {'; '.join(errors)}", errors) from exc

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any


ZERO = Decimal("0")


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class SyncStatus(str, Enum):
    PENDING = "pending"
    SYNCING = "syncing"
    READY = "ready"
    ERROR = "error"


class ClientState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    SYNCING = "syncing"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class Transaction:
    id: str
    txn_type: TransactionType
    category: str
    amount: Decimal
    posted_on: date
    description: str = ""

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.txn_type.value,
            "category": self.category,
            "amount": self.amount,
            "description": self.description,
            "date": self.posted_on.isoformat(),
        }


@dataclass(frozen=True)
class SeriesPoint:
    category: TransactionType
    value: Decimal


@dataclass(frozen=True)
class CategoryTotal:
    category: str
    txn_type: TransactionType
    total: Decimal
    txn_count: int

    def to_payload(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "type": self.txn_type.value,
            "total": self.total,
            "txn_count": self.txn_count,
        }


@dataclass(frozen=True)
class DerivedSummary:
    income_total: Decimal = ZERO
    expense_total: Decimal = ZERO
    balance: Decimal = ZERO
    transaction_count: int = 0
    series: tuple[SeriesPoint, ...] = field(
        default_factory=lambda: (
            SeriesPoint(TransactionType.INCOME, ZERO),
            SeriesPoint(TransactionType.EXPENSE, ZERO),
        )
    )

    def to_payload(self) -> dict[str, Any]:
        return {
            "income_total": self.income_total,
            "expense_total": self.expense_total,
            "balance": self.balance,
            "transaction_count": self.transaction_count,
            "series": [{"category": p.category.value, "value": p.value} for p in self.series],
        }

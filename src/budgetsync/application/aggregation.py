from __future__ import annotations

from collections import defaultdict
from decimal import Decimal
from typing import Iterable

from budgetsync.domain.models import ZERO, CategoryTotal, DerivedSummary, SeriesPoint, Transaction, TransactionType


def summarize(transactions: Iterable[Transaction]) -> DerivedSummary:
    """
    Income/expense totals, balance and the two-slice chart series.

    Pure and total: an empty collection gives all-zero totals. Amounts are
    summed as Decimal so `income_total - expense_total == balance` exactly.
    """
    income_total = ZERO
    expense_total = ZERO
    count = 0
    for txn in transactions:
        count += 1
        if txn.txn_type is TransactionType.INCOME:
            income_total += txn.amount
        else:
            expense_total += txn.amount

    return DerivedSummary(
        income_total=income_total,
        expense_total=expense_total,
        balance=income_total - expense_total,
        transaction_count=count,
        series=(
            SeriesPoint(TransactionType.INCOME, income_total),
            SeriesPoint(TransactionType.EXPENSE, expense_total),
        ),
    )


def summarize_by_category(transactions: Iterable[Transaction]) -> list[CategoryTotal]:
    totals: dict[tuple[str, TransactionType], Decimal] = defaultdict(lambda: ZERO)
    counts: dict[tuple[str, TransactionType], int] = defaultdict(int)
    for txn in transactions:
        key = (txn.category, txn.txn_type)
        totals[key] += txn.amount
        counts[key] += 1

    rows = [
        CategoryTotal(category=category, txn_type=txn_type, total=total, txn_count=counts[(category, txn_type)])
        for (category, txn_type), total in totals.items()
    ]
    # Ties broken by name so repeated calls give the same order.
    rows.sort(key=lambda row: (-row.total, row.txn_type.value, row.category.lower(), row.category))
    return rows

# expense_tracker/queries.py
from decimal import Decimal
from typing import Dict, Iterable, List

from expense_tracker.core.models import (
    Expense,
    Month,
    SortDirection,
    SortKey,
    category_key,
)

_SORT_KEYS = {
    SortKey.AMOUNT: lambda e: e.amount,
    SortKey.CATEGORY: lambda e: category_key(e.category),
    SortKey.DATE: lambda e: e.date,
}


def sort_expenses(
    expenses: Iterable[Expense],
    key: SortKey = SortKey.DATE,
    direction: SortDirection = SortDirection.ASCENDING,
) -> List[Expense]:
    """
    Return a new list ordered by ``key``. The sort is stable in both
    directions, so expenses that compare equal keep their input order.
    """
    return sorted(
        expenses,
        key=_SORT_KEYS[key],
        reverse=direction is SortDirection.DESCENDING,
    )


def filter_by_category(expenses: Iterable[Expense], category: str) -> List[Expense]:
    """
    Return the expenses whose category matches ``category`` ignoring case.
    """
    wanted = category_key(category)
    return [e for e in expenses if category_key(e.category) == wanted]


def filter_by_month(expenses: Iterable[Expense], month: Month) -> List[Expense]:
    """
    Return only those expenses whose date falls in ``month``.
    """
    return [e for e in expenses if month.contains(e.date)]


def monthly_summary(expenses: Iterable[Expense], month: Month) -> Dict[str, Decimal]:
    """
    Total the expenses of ``month`` per category.

    Categories are grouped ignoring case and reported under the casing of
    the first expense seen for them. Categories with no expense in the
    month are absent.
    """
    labels: Dict[str, str] = {}
    totals: Dict[str, Decimal] = {}
    for e in filter_by_month(expenses, month):
        key = category_key(e.category)
        if key not in labels:
            labels[key] = e.category
            totals[key] = Decimal(0)
        totals[key] += e.amount
    return {labels[key]: total for key, total in totals.items()}


def total(expenses: Iterable[Expense]) -> Decimal:
    return sum((e.amount for e in expenses), Decimal(0))

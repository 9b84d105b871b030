# expense_tracker/core/models.py
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import NamedTuple, Optional

from expense_tracker.errors import InvalidInput

_MONTH_RX = re.compile(r"^\s*(\d{4})-(\d{1,2})\s*$")

# field separator of the flat data file
SEPARATOR = "|"

# bounds keeping plain decimal notation of an amount short
MAX_INTEGER_DIGITS = 15
MAX_DECIMAL_PLACES = 10


@dataclass(frozen=True)
class Expense:
    id: int
    amount: Decimal
    category: str
    date: date


@dataclass(frozen=True)
class BudgetLimit:
    category: str
    limit: Decimal


class Month(NamedTuple):
    year: int
    month: int

    @classmethod
    def parse(cls, text: str) -> "Month":
        """Parse ``YYYY-MM`` into a Month."""
        m = _MONTH_RX.match(text or "")
        if not m:
            raise InvalidInput(f"Invalid month '{text}', expected YYYY-MM.")
        year, month = int(m.group(1)), int(m.group(2))
        if not 1 <= month <= 12:
            raise InvalidInput(f"Invalid month '{text}', month must be 1-12.")
        return cls(year, month)

    @classmethod
    def of(cls, day: date) -> "Month":
        return cls(day.year, day.month)

    def contains(self, day: date) -> bool:
        return day.year == self.year and day.month == self.month

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


@dataclass(frozen=True)
class BudgetStatus:
    category: str
    month: Month
    spent: Decimal
    limit: Optional[Decimal]
    exceeded: bool

    @property
    def remaining(self) -> Optional[Decimal]:
        if self.limit is None:
            return None
        return self.limit - self.spent


def to_amount(value, field_name: str = "amount") -> Decimal:
    """Convert ``value`` to a positive, finite Decimal or raise InvalidInput."""
    if isinstance(value, bool):
        raise InvalidInput(f"Invalid {field_name}: {value!r}")
    try:
        # floats go through str() so 12.1 stays 12.1 rather than its binary expansion
        amount = Decimal(str(value).strip() if isinstance(value, (str, float)) else value)
    except (ArithmeticError, ValueError, TypeError):
        raise InvalidInput(f"Invalid {field_name}: {value!r}") from None
    if not amount.is_finite():
        raise InvalidInput(f"Invalid {field_name}: {value!r}")
    if amount <= 0:
        raise InvalidInput(f"The {field_name} must be greater than 0, got {amount}.")
    if amount.adjusted() >= MAX_INTEGER_DIGITS:
        raise InvalidInput(f"The {field_name} {value!r} is too large.")
    if amount.as_tuple().exponent < -MAX_DECIMAL_PLACES:
        raise InvalidInput(
            f"The {field_name} {value!r} has more than {MAX_DECIMAL_PLACES} decimal places."
        )
    return amount


def clean_category(value) -> str:
    """Strip ``value`` and check it can be stored as a category label."""
    category = str(value or "").strip()
    if not category:
        raise InvalidInput("Category must not be empty.")
    if SEPARATOR in category or "\n" in category or "\r" in category:
        raise InvalidInput(f"Category must not contain '{SEPARATOR}' or line breaks.")
    return category


def category_key(category: str) -> str:
    return category.strip().casefold()


class SortKey(Enum):
    AMOUNT = "amount"
    CATEGORY = "category"
    DATE = "date"


class SortDirection(Enum):
    ASCENDING = "asc"
    DESCENDING = "desc"

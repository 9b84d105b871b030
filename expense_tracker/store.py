# expense_tracker/store.py
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from expense_tracker import codec
from expense_tracker.core.models import (
    BudgetLimit,
    BudgetStatus,
    Expense,
    Month,
    category_key,
    clean_category,
    to_amount,
)
from expense_tracker.errors import CorruptData, InvalidInput, NotFound

logger = logging.getLogger(__name__)


class ExpenseStore:
    """In-memory expenses and budget limits backed by a flat data file.

    Expenses keep insertion order. Ids are handed out from a high-water mark
    that is persisted with the budgets, so an id is never reused even after
    the expense holding it was deleted and the program restarted.

    With ``autosave`` (the default) every mutation is written to disk before
    the call returns. If that write fails a PersistenceError propagates, the
    change stays applied in memory and ``dirty`` remains True.

    Lines skipped as corrupt on load are appended to ``<data_file>.rejected``
    before the first save rewrites the data file without them.
    """

    def __init__(
        self,
        path: Optional[str | Path] = None,
        expenses: Iterable[Expense] = (),
        budgets: Optional[Dict[str, Decimal]] = None,
        next_id: int = 1,
        autosave: bool = True,
    ):
        self.path = Path(path) if path is not None else None
        self.autosave = autosave and self.path is not None
        self.load_problems: List[CorruptData] = []
        # skipped lines not yet copied to the .rejected file
        self._pending_rejects: List[CorruptData] = []
        self._expenses: List[Expense] = list(expenses)
        self._budgets: Dict[str, BudgetLimit] = {}
        for category, limit in (budgets or {}).items():
            self._budgets[category_key(category)] = BudgetLimit(category, limit)
        highest = max((e.id for e in self._expenses), default=0)
        self._next_id = max(next_id, highest + 1)
        self._dirty = False

    @classmethod
    def open(cls, path: str | Path, autosave: bool = True) -> "ExpenseStore":
        """Load the store persisted at ``path``; a missing file gives an empty store."""
        result = codec.load_expenses(path)
        meta = codec.load_metadata(codec.metadata_path(path))
        store = cls(
            path,
            expenses=result.expenses,
            budgets=meta.budgets,
            next_id=meta.next_id,
            autosave=autosave,
        )
        store.load_problems = result.problems
        store._pending_rejects = list(result.problems)
        logger.info(
            "Opened %s with %d expense(s) and %d budget(s)",
            path,
            len(store._expenses),
            len(store._budgets),
        )
        return store

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def next_id(self) -> int:
        return self._next_id

    # -- expenses -------------------------------------------------------

    def add_expense(self, amount, category: str, day: Optional[date] = None) -> Expense:
        amount = to_amount(amount)
        category = clean_category(category)
        if day is None:
            day = date.today()
        elif not isinstance(day, date):
            raise InvalidInput(f"Invalid date: {day!r}")

        expense = Expense(id=self._next_id, amount=amount, category=category, date=day)
        self._expenses.append(expense)
        self._next_id += 1
        self._changed()
        logger.debug("Added expense %s", expense)
        return expense

    def get_expense(self, expense_id: int) -> Expense:
        for expense in self._expenses:
            if expense.id == expense_id:
                return expense
        raise NotFound(f"No expense with id {expense_id}.")

    def delete_expense(self, expense_id: int) -> Expense:
        expense = self.get_expense(expense_id)
        self._expenses.remove(expense)
        self._changed()
        logger.debug("Deleted expense %s", expense)
        return expense

    def list_expenses(self) -> Tuple[Expense, ...]:
        return tuple(self._expenses)

    # -- budgets --------------------------------------------------------

    def set_budget(self, category: str, limit) -> BudgetLimit:
        category = clean_category(category)
        budget = BudgetLimit(category, to_amount(limit, "limit"))
        self._budgets[category_key(category)] = budget
        self._changed()
        return budget

    def remove_budget(self, category: str) -> BudgetLimit:
        key = category_key(str(category or ""))
        if key not in self._budgets:
            raise NotFound(f"No budget set for '{category}'.")
        budget = self._budgets.pop(key)
        self._changed()
        return budget

    def budgets(self) -> Tuple[BudgetLimit, ...]:
        return tuple(self._budgets.values())

    def check_budget(self, category: str, month: Month) -> BudgetStatus:
        key = category_key(str(category or ""))
        spent = sum(
            (
                e.amount
                for e in self._expenses
                if category_key(e.category) == key and month.contains(e.date)
            ),
            Decimal(0),
        )
        budget = self._budgets.get(key)
        limit = budget.limit if budget else None
        label = budget.category if budget else str(category).strip()
        return BudgetStatus(
            category=label,
            month=month,
            spent=spent,
            limit=limit,
            exceeded=limit is not None and spent > limit,
        )

    def budget_alerts(self, month: Month) -> List[BudgetStatus]:
        statuses = [self.check_budget(b.category, month) for b in self._budgets.values()]
        return [s for s in statuses if s.exceeded]

    # -- persistence ----------------------------------------------------

    def save(self) -> None:
        if self.path is None:
            raise InvalidInput("This store has no data file to save to.")
        if self._pending_rejects:
            codec.append_rejected(self._pending_rejects, codec.rejected_path(self.path))
            self._pending_rejects = []
        codec.save_expenses(self._expenses, self.path)
        meta = codec.Metadata(
            next_id=self._next_id,
            budgets={b.category: b.limit for b in self._budgets.values()},
        )
        codec.save_metadata(meta, codec.metadata_path(self.path))
        self._dirty = False
        logger.debug("Saved store to %s", self.path)

    def _changed(self) -> None:
        self._dirty = True
        if self.autosave:
            self.save()

# expense_tracker/render.py
"""Plain-text rendering of expenses, summaries and budgets.

Every function takes an explicit ``color`` flag; when it is False the text
carries no ANSI styling.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable, Optional

import click

from expense_tracker.core.models import BudgetLimit, BudgetStatus, Expense, Month
from expense_tracker.queries import total


def _style(text: str, color: bool, **styles) -> str:
    return click.style(text, **styles) if color else text


def format_amount(amount: Optional[Decimal]) -> str:
    if amount is None:
        return "-"
    return f"{amount:,.2f}"


def render_expenses(expenses: Iterable[Expense], color: bool = True) -> str:
    expenses = list(expenses)
    if not expenses:
        return _style("No expenses recorded.", color, fg="yellow")

    cat_width = max(8, max(len(e.category) for e in expenses))
    header = f"{'ID':>5}  {'DATE':<10}  {'CATEGORY':<{cat_width}}  {'AMOUNT':>12}"
    lines = [_style(header, color, bold=True)]
    for e in expenses:
        amount = _style(f"{format_amount(e.amount):>12}", color, fg="cyan")
        lines.append(
            f"{e.id:>5}  {e.date.isoformat():<10}  {e.category:<{cat_width}}  {amount}"
        )
    lines.append(
        _style(f"{len(expenses)} expense(s), total {format_amount(total(expenses))}", color, dim=True)
    )
    return "\n".join(lines)


def render_summary(month: Month, totals: Dict[str, Decimal], color: bool = True) -> str:
    title = _style(f"Summary for {month}", color, bold=True)
    if not totals:
        return f"{title}\n" + _style("No expenses in this month.", color, fg="yellow")

    width = max(8, max(len(c) for c in totals))
    lines = [title]
    for category, amount in totals.items():
        lines.append(f"  {category:<{width}}  {format_amount(amount):>12}")
    grand = sum(totals.values(), Decimal(0))
    lines.append(_style(f"  {'Total':<{width}}  {format_amount(grand):>12}", color, bold=True))
    return "\n".join(lines)


def render_budget_status(status: BudgetStatus, color: bool = True) -> str:
    prefix = f"{status.category} ({status.month}): spent {format_amount(status.spent)}"
    if status.limit is None:
        return f"{prefix}, no budget set."
    text = f"{prefix} of {format_amount(status.limit)}"
    if status.exceeded:
        over = status.spent - status.limit
        return _style(f"{text} - over budget by {format_amount(over)}!", color, fg="red", bold=True)
    return _style(f"{text} - {format_amount(status.remaining)} left.", color, fg="green")


def render_budgets(budgets: Iterable[BudgetLimit], color: bool = True) -> str:
    budgets = list(budgets)
    if not budgets:
        return _style("No budgets set.", color, fg="yellow")
    width = max(8, max(len(b.category) for b in budgets))
    lines = [_style(f"{'CATEGORY':<{width}}  {'MONTHLY LIMIT':>14}", color, bold=True)]
    for b in budgets:
        lines.append(f"{b.category:<{width}}  {format_amount(b.limit):>14}")
    return "\n".join(lines)


def success(message: str, color: bool = True) -> str:
    return _style(message, color, fg="green")


def warning(message: str, color: bool = True) -> str:
    return _style(message, color, fg="yellow")


def error(message: str, color: bool = True) -> str:
    return _style(message, color, fg="red")

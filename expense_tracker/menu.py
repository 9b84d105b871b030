# expense_tracker/menu.py
"""Interactive menu loop driving an ExpenseStore."""
from __future__ import annotations

import logging
from datetime import date

import click

from expense_tracker import render
from expense_tracker.core.models import Month, SortDirection, SortKey
from expense_tracker.errors import ExpenseTrackerError, InvalidInput, PersistenceError
from expense_tracker.outputs import get_output
from expense_tracker.queries import filter_by_category, monthly_summary, sort_expenses

logger = logging.getLogger(__name__)

MENU = [
    ("1", "Add expense"),
    ("2", "View expenses"),
    ("3", "Sort expenses"),
    ("4", "Filter by category"),
    ("5", "Monthly summary"),
    ("6", "Budgets"),
    ("7", "Delete expense"),
    ("8", "Export"),
    ("9", "Quit"),
]


def _prompt_date(label: str) -> date:
    text = click.prompt(label, default=date.today().isoformat())
    try:
        return date.fromisoformat(text.strip())
    except ValueError:
        raise InvalidInput(f"Invalid date '{text}', expected YYYY-MM-DD.") from None


def _prompt_month(label: str = "Month (YYYY-MM)") -> Month:
    return Month.parse(click.prompt(label, default=str(Month.of(date.today()))))


def _add(store, config, color):
    amount = click.prompt("Amount")
    category = click.prompt("Category")
    day = _prompt_date("Date (YYYY-MM-DD)")
    expense = store.add_expense(amount, category, day)
    click.echo(render.success(
        f"Added expense #{expense.id}: {render.format_amount(expense.amount)} "
        f"for {expense.category} on {expense.date.isoformat()}", color))
    for status in store.budget_alerts(Month.of(expense.date)):
        click.echo(render.render_budget_status(status, color))


def _view(store, config, color):
    click.echo(render.render_expenses(store.list_expenses(), color))


def _sort(store, config, color):
    key = click.prompt(
        "Sort by", type=click.Choice([k.value for k in SortKey]), default=SortKey.DATE.value
    )
    direction = click.prompt(
        "Direction",
        type=click.Choice([d.value for d in SortDirection]),
        default=SortDirection.ASCENDING.value,
    )
    ordered = sort_expenses(store.list_expenses(), SortKey(key), SortDirection(direction))
    click.echo(render.render_expenses(ordered, color))


def _filter(store, config, color):
    category = click.prompt("Category")
    click.echo(render.render_expenses(filter_by_category(store.list_expenses(), category), color))


def _summary(store, config, color):
    month = _prompt_month()
    click.echo(render.render_summary(month, monthly_summary(store.list_expenses(), month), color))


def _budgets(store, config, color):
    action = click.prompt(
        "Budget action", type=click.Choice(["set", "check", "list", "remove"]), default="list"
    )
    if action == "set":
        category = click.prompt("Category")
        limit = click.prompt("Monthly limit")
        budget = store.set_budget(category, limit)
        click.echo(render.success(
            f"Budget for {budget.category} set to {render.format_amount(budget.limit)}", color))
    elif action == "check":
        category = click.prompt("Category")
        month = _prompt_month()
        click.echo(render.render_budget_status(store.check_budget(category, month), color))
    elif action == "remove":
        removed = store.remove_budget(click.prompt("Category"))
        click.echo(render.success(f"Removed budget for {removed.category}", color))
    else:
        click.echo(render.render_budgets(store.budgets(), color))


def _delete(store, config, color):
    expense_id = click.prompt("Expense id", type=int)
    expense = store.delete_expense(expense_id)
    click.echo(render.success(f"Deleted expense #{expense.id} ({expense.category})", color))


def _export(store, config, color):
    fmt = click.prompt("Format", type=click.Choice(sorted(config["output_modules"])), default="csv")
    out_path = get_output(fmt, config).write(store.list_expenses())
    click.echo(render.success(f"Exported {len(store.list_expenses())} expense(s) to {out_path}", color))


ACTIONS = {
    "1": _add,
    "2": _view,
    "3": _sort,
    "4": _filter,
    "5": _summary,
    "6": _budgets,
    "7": _delete,
    "8": _export,
}


def _offer_save_retry(store, color) -> None:
    while store.dirty:
        if not click.confirm("Retry saving?", default=True):
            click.echo(render.warning("Unsaved changes remain in memory only.", color))
            return
        try:
            store.save()
        except PersistenceError as exc:
            click.echo(render.error(f"Save failed: {exc}", color), err=True)
        else:
            click.echo(render.success("Saved.", color))


def run_menu(store, config, color: bool = True) -> None:
    """Prompt for menu choices until the user quits or input ends."""
    click.echo(render.success("Welcome to the expense tracker!", color))
    while True:
        click.echo("")
        for choice, label in MENU:
            click.echo(f"  {choice}. {label}")
        try:
            choice = click.prompt(
                "Choose an option", type=click.Choice([c for c, _ in MENU]), show_choices=False
            )
            if choice == "9":
                break
            ACTIONS[choice](store, config, color)
        except click.Abort:
            click.echo("")
            break
        except PersistenceError as exc:
            logger.warning("Save failed: %s", exc)
            click.echo(render.error(
                f"Could not save: {exc}. The change is kept in memory but not on disk.", color),
                err=True)
            try:
                _offer_save_retry(store, color)
            except click.Abort:
                break
        except ExpenseTrackerError as exc:
            click.echo(render.error(str(exc), color), err=True)
        except OSError as exc:
            click.echo(render.error(f"Export failed: {exc}", color), err=True)

    if store.dirty and store.path is not None:
        try:
            store.save()
        except PersistenceError as exc:
            click.echo(render.error(f"Could not save on exit: {exc}", color), err=True)
    click.echo("Goodbye!")

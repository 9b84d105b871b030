# expense_tracker/cli.py
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from pathlib import Path

import click
from dotenv import load_dotenv

from expense_tracker import codec, render
from expense_tracker.config import DEFAULT_CONFIG, load_config, save_config
from expense_tracker.core.models import Month, SortDirection, SortKey
from expense_tracker.errors import ExpenseTrackerError, PersistenceError
from expense_tracker.menu import run_menu
from expense_tracker.outputs import get_output
from expense_tracker.queries import (
    filter_by_category,
    filter_by_month,
    monthly_summary,
    sort_expenses,
)
from expense_tracker.store import ExpenseStore


class MonthType(click.ParamType):
    name = "YYYY-MM"

    def convert(self, value, param, ctx):
        if isinstance(value, Month):
            return value
        try:
            return Month.parse(value)
        except ExpenseTrackerError as exc:
            self.fail(str(exc), param, ctx)


MONTH = MonthType()


@dataclass
class App:
    config: dict
    color: bool
    _store: ExpenseStore = None

    @property
    def store(self) -> ExpenseStore:
        if self._store is None:
            self._store = ExpenseStore.open(
                self.config["data_file"], autosave=bool(self.config.get("autosave", True))
            )
            for problem in self._store.load_problems:
                click.echo(render.warning(f"Skipped corrupt record: {problem}", self.color), err=True)
            if self._store.load_problems:
                rejected = codec.rejected_path(self.config["data_file"])
                click.echo(render.warning(
                    f"Skipped lines will be moved to {rejected} on the next save.", self.color), err=True)
        return self._store


pass_app = click.make_pass_decorator(App)


@contextmanager
def reporting_errors():
    """Turn core errors into a clean CLI failure."""
    try:
        yield
    except PersistenceError as exc:
        raise click.ClickException(f"Could not save changes: {exc}") from exc
    except ExpenseTrackerError as exc:
        raise click.ClickException(str(exc)) from exc


@click.group(invoke_without_command=True)
@click.option(
    '--config', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help='Path to config.yaml (defaults to ./config.yaml when present)'
)
@click.option(
    '--data-file', 'data_file',
    default=None,
    type=click.Path(dir_okay=False),
    help='Expense data file (overrides config)'
)
@click.option(
    '--env-file', 'env_file',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help='Optional .env file with EXPTRACK_* settings'
)
@click.option(
    '--no-color',
    is_flag=True,
    default=False,
    help='Disable colored output'
)
@click.pass_context
def main(ctx, config_path, data_file, env_file, no_color):
    """
    Record, review and export personal expenses with monthly budgets.
    Without a command, starts the interactive menu.
    """
    if env_file:
        load_dotenv(env_file)

    try:
        cfg = load_config(config_path)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    if data_file:
        cfg['data_file'] = data_file

    level = str(cfg.get('log_level', 'WARNING')).upper()
    if not isinstance(logging.getLevelName(level), int):
        raise click.ClickException(f"Invalid log_level '{level}'.")
    logging.basicConfig(level=level)
    color = bool(cfg.get('color', True)) and not no_color
    ctx.obj = App(config=cfg, color=color)

    if ctx.invoked_subcommand is None:
        ctx.invoke(menu)


@main.command()
@pass_app
def menu(app):
    """Start the interactive menu."""
    with reporting_errors():
        store = app.store
    run_menu(store, app.config, app.color)


@main.command()
@click.argument('amount')
@click.argument('category')
@click.option(
    '--date', 'day',
    default=None,
    type=click.DateTime(formats=['%Y-%m-%d']),
    help='Date of the expense (defaults to today)'
)
@pass_app
def add(app, amount, category, day):
    """Record an expense of AMOUNT in CATEGORY."""
    with reporting_errors():
        expense = app.store.add_expense(amount, category, day.date() if day else None)
        click.echo(render.success(
            f"Added expense #{expense.id}: {render.format_amount(expense.amount)} "
            f"for {expense.category} on {expense.date.isoformat()}", app.color))
        for status in app.store.budget_alerts(Month.of(expense.date)):
            click.echo(render.render_budget_status(status, app.color))


@main.command()
@click.argument('expense_id', type=int)
@pass_app
def delete(app, expense_id):
    """Delete the expense with EXPENSE_ID."""
    with reporting_errors():
        expense = app.store.delete_expense(expense_id)
    click.echo(render.success(f"Deleted expense #{expense.id} ({expense.category})", app.color))


@main.command(name='list')
@click.option(
    '--sort', 'sort_key',
    default=None,
    type=click.Choice([k.value for k in SortKey]),
    help='Sort key (default: insertion order)'
)
@click.option('--desc', is_flag=True, default=False, help='Sort descending')
@click.option('--category', default=None, help='Only show this category (case-insensitive)')
@click.option('--month', default=None, type=MONTH, help='Only show this month')
@pass_app
def list_command(app, sort_key, desc, category, month):
    """Show recorded expenses."""
    with reporting_errors():
        expenses = list(app.store.list_expenses())
    if category:
        expenses = filter_by_category(expenses, category)
    if month:
        expenses = filter_by_month(expenses, month)
    if sort_key:
        direction = SortDirection.DESCENDING if desc else SortDirection.ASCENDING
        expenses = sort_expenses(expenses, SortKey(sort_key), direction)
    click.echo(render.render_expenses(expenses, app.color))


@main.command()
@click.argument('month', required=False, type=MONTH)
@pass_app
def summary(app, month):
    """Totals per category for MONTH (YYYY-MM, default: current month)."""
    month = month or Month.of(date.today())
    with reporting_errors():
        totals = monthly_summary(app.store.list_expenses(), month)
    click.echo(render.render_summary(month, totals, app.color))


@main.group()
def budget():
    """Manage monthly budget limits per category."""


@budget.command(name='set')
@click.argument('category')
@click.argument('limit')
@pass_app
def budget_set(app, category, limit):
    """Set the monthly LIMIT for CATEGORY."""
    with reporting_errors():
        budget_limit = app.store.set_budget(category, limit)
    click.echo(render.success(
        f"Budget for {budget_limit.category} set to {render.format_amount(budget_limit.limit)}",
        app.color))


@budget.command(name='check')
@click.argument('category')
@click.option('--month', default=None, type=MONTH, help='Month to check (default: current)')
@pass_app
def budget_check(app, category, month):
    """Compare spending in CATEGORY against its limit."""
    month = month or Month.of(date.today())
    with reporting_errors():
        status = app.store.check_budget(category, month)
    click.echo(render.render_budget_status(status, app.color))


@budget.command(name='list')
@pass_app
def budget_list(app):
    """Show every configured budget."""
    with reporting_errors():
        budgets = app.store.budgets()
    click.echo(render.render_budgets(budgets, app.color))


@budget.command(name='remove')
@click.argument('category')
@pass_app
def budget_remove(app, category):
    """Remove the limit for CATEGORY."""
    with reporting_errors():
        removed = app.store.remove_budget(category)
    click.echo(render.success(f"Removed budget for {removed.category}", app.color))


@main.command()
@click.option(
    '--format', 'output_format',
    default='csv',
    type=click.Choice(['csv', 'excel']),
    help='Export target: csv or excel'
)
@click.option(
    '--out', 'out_path',
    default=None,
    type=click.Path(dir_okay=False),
    help='Output file (default: inside export_dir)'
)
@pass_app
def export(app, output_format, out_path):
    """Export all expenses."""
    with reporting_errors():
        expenses = app.store.list_expenses()
        outputter = get_output(output_format, app.config)
    try:
        written = outputter.write(expenses, out_path)
    except OSError as exc:
        raise click.ClickException(f"Export failed: {exc}") from exc
    click.echo(f"Exported {len(expenses)} expense(s) to {written}.")


@main.command(name='init-config')
@click.argument('path', default='config.yaml', type=click.Path(dir_okay=False))
@click.option('--force', is_flag=True, default=False, help='Overwrite an existing file')
def init_config(path, force):
    """Write a config file with the default settings."""
    if Path(path).exists() and not force:
        raise click.ClickException(f"{path} already exists (use --force to overwrite).")
    save_config(DEFAULT_CONFIG, path)
    click.echo(f"Wrote default config to {path}.")

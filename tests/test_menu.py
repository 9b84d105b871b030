from click.testing import CliRunner

from expense_tracker import codec
from expense_tracker.cli import main as cli
from expense_tracker.errors import PersistenceError
from tests.test_cli import write_config


def run_menu(tmp_path, *lines):
    runner = CliRunner()
    return runner.invoke(
        cli,
        ['--config', str(write_config(tmp_path)), 'menu'],
        input=''.join(f'{line}\n' for line in lines),
    )


def data_lines(tmp_path):
    return (tmp_path / 'data' / 'expenses.txt').read_text().splitlines()


def test_budget_alert_after_add(tmp_path):
    res = run_menu(
        tmp_path,
        '6', 'set', 'Food', '50',
        '1', '60', 'food', '2025-03-01',
        '6', 'check', 'Food', '2025-03',
        '9',
    )
    assert res.exit_code == 0, res.output
    assert 'Budget for Food set to 50.00' in res.output
    assert res.output.count('over budget by 10.00') == 2


def test_errors_do_not_end_the_loop(tmp_path):
    res = run_menu(
        tmp_path,
        '7', '42',
        '1', 'abc', 'Food', '2025-03-01',
        '1', '5', 'Food', 'yesterday',
        '5', '2025-3',
        '9',
    )
    assert res.exit_code == 0, res.output
    assert 'No expense with id 42' in res.output
    assert "Invalid amount: 'abc'" in res.output
    assert "Invalid date 'yesterday'" in res.output
    assert 'No expenses in this month.' in res.output
    assert 'Goodbye!' in res.output


def test_sort_filter_delete_and_export(tmp_path):
    res = run_menu(
        tmp_path,
        '1', '10', 'Food', '2025-03-01',
        '1', '50', 'Travel', '2025-03-02',
        '1', '5', 'food', '2025-03-03',
        '3', 'amount', 'desc',
        '4', 'FOOD',
        '7', '2',
        '8', 'csv',
        '9',
    )
    assert res.exit_code == 0, res.output
    assert 'Deleted expense #2 (Travel)' in res.output
    assert data_lines(tmp_path) == ['1|10|Food|2025-03-01', '3|5|food|2025-03-03']
    exported = (tmp_path / 'exports' / 'expenses.csv').read_text().splitlines()
    assert exported[1:] == ['1,10,Food,2025-03-01', '3,5,food,2025-03-03']


def test_end_of_input_quits(tmp_path):
    res = run_menu(tmp_path, '1', '10', 'Food', '2025-03-01')
    assert res.exit_code == 0, res.output
    assert 'Goodbye!' in res.output
    assert data_lines(tmp_path) == ['1|10|Food|2025-03-01']


def test_failed_save_offers_retry(tmp_path, monkeypatch):
    real_save = codec.save_expenses
    calls = {'n': 0}

    def flaky_save(expenses, path):
        calls['n'] += 1
        if calls['n'] == 1:
            raise PersistenceError('disk full')
        real_save(expenses, path)

    monkeypatch.setattr(codec, 'save_expenses', flaky_save)
    res = run_menu(tmp_path, '1', '10', 'Food', '2025-03-01', 'y', '9')
    assert res.exit_code == 0, res.output
    assert 'Could not save: disk full' in res.output
    assert 'Saved.' in res.output
    assert data_lines(tmp_path) == ['1|10|Food|2025-03-01']


def test_remove_budget(tmp_path):
    res = run_menu(
        tmp_path,
        '6', 'set', 'Food', '50',
        '6', 'remove', 'FOOD',
        '6', 'list',
        '6', 'remove', 'Food',
        '9',
    )
    assert res.exit_code == 0, res.output
    assert 'Removed budget for Food' in res.output
    assert 'No budgets set.' in res.output
    assert "No budget set for 'Food'." in res.output

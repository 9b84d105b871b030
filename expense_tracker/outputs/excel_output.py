# expense_tracker/outputs/excel_output.py

"""Excel output module backed by XlsxWriter.

The workbook has an ``Expenses`` worksheet listing every expense as an
Excel table, and a ``Summary`` worksheet aggregating spending by category
for each month, with a total per month and a grand total.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import xlsxwriter

from expense_tracker.core.models import Month
from expense_tracker.outputs.base import BaseOutput
from expense_tracker.queries import monthly_summary, total

logger = logging.getLogger(__name__)


class ExcelOutput(BaseOutput):
    """Generate a local Excel workbook of expenses and monthly totals."""

    EXPENSES = "Expenses"
    SUMMARY = "Summary"
    HEADERS = ["id", "amount", "category", "timestamp"]

    def __init__(self, config: dict):
        self.config = config
        self.output_dir = config.get("export_dir", "exports")

    def write(self, expenses, path=None):
        expenses = list(expenses)
        out_path = Path(path) if path else Path(self.output_dir) / "expenses.xlsx"
        os.makedirs(out_path.parent, exist_ok=True)

        workbook = xlsxwriter.Workbook(str(out_path))
        amount_fmt = workbook.add_format({"num_format": "#,##0.00"})

        ws = workbook.add_worksheet(self.EXPENSES)
        ws.freeze_panes(1, 0)
        ws.write_row(0, 0, self.HEADERS)
        for idx, e in enumerate(expenses, start=1):
            ws.write_number(idx, 0, e.id)
            ws.write_number(idx, 1, float(e.amount), amount_fmt)
            ws.write_string(idx, 2, e.category)
            ws.write_string(idx, 3, e.date.isoformat())
        ws.set_column(1, 1, None, amount_fmt)
        ws.set_column(2, 2, 24)
        ws.set_column(3, 3, 12)
        if expenses:
            ws.add_table(0, 0, len(expenses), 3, {
                "columns": [{"header": h} for h in self.HEADERS]
            })

        summary_ws = workbook.add_worksheet(self.SUMMARY)
        summary_ws.freeze_panes(1, 0)
        summary_ws.set_column(2, 2, None, amount_fmt)
        summary_ws.write_row(0, 0, ["month", "category", "amount"])
        row_idx = 1
        for month, totals in self._build_summary_rows(expenses):
            for i, (category, amount) in enumerate(totals):
                if i == 0:
                    summary_ws.write_string(row_idx, 0, str(month))
                summary_ws.write_string(row_idx, 1, category)
                summary_ws.write_number(row_idx, 2, amount, amount_fmt)
                row_idx += 1
            summary_ws.write_string(row_idx, 0, f"{month} Total")
            summary_ws.write_number(row_idx, 2, sum(a for _, a in totals), amount_fmt)
            row_idx += 1
        summary_ws.write_string(row_idx, 0, "Grand Total")
        summary_ws.write_number(
            row_idx, 2, float(total(expenses)), amount_fmt
        )

        workbook.close()
        logger.info("Written Excel workbook %s", out_path)
        return out_path

    def _build_summary_rows(self, expenses):
        """Return ``[(Month, [(category, amount), ...]), ...]`` oldest month first.

        Categories within a month are sorted by name ignoring case.
        """
        months = sorted({Month.of(e.date) for e in expenses})
        rows = []
        for month in months:
            totals = monthly_summary(expenses, month)
            ordered = sorted(totals.items(), key=lambda item: item[0].casefold())
            rows.append((month, [(cat, float(amount)) for cat, amount in ordered]))
        return rows

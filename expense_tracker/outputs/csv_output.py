# expense_tracker/outputs/csv_output.py

import os
import csv
import logging
from pathlib import Path
from expense_tracker.outputs.base import BaseOutput

logger = logging.getLogger(__name__)

HEADERS = ['id', 'amount', 'category', 'timestamp']


class CSVOutput(BaseOutput):
    """
    Writes expenses, in the order given, to a single CSV file
    (``<export_dir>/expenses.csv`` unless a path is passed).
    """
    def __init__(self, config):
        self.config     = config
        self.output_dir = config.get('export_dir', 'exports')

    def write(self, expenses, path=None):
        out_path = Path(path) if path else Path(self.output_dir) / 'expenses.csv'
        os.makedirs(out_path.parent, exist_ok=True)

        count = 0
        with open(out_path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow(HEADERS)
            for e in expenses:
                writer.writerow([
                    e.id,
                    format(e.amount, 'f'),
                    e.category,
                    e.date.isoformat(),
                ])
                count += 1

        logger.info("Written %d expense(s) to %s", count, out_path)
        return out_path

# expense_tracker/codec.py
"""Flat-file persistence for expenses.

Each line holds one expense as ``id|amount|category|date`` with the amount
in plain decimal notation and the date as ISO ``YYYY-MM-DD``. Budgets and
the id high-water mark live in a YAML sidecar next to the data file so the
record format stays one line per expense.
"""
from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Dict, Iterable, List, Union

import yaml

from expense_tracker.core.models import (
    SEPARATOR,
    Expense,
    clean_category,
    to_amount,
)
from expense_tracker.errors import CorruptData, InvalidInput, PersistenceError

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]
META_SUFFIX = ".meta.yaml"
REJECTED_SUFFIX = ".rejected"


@dataclass
class LoadResult:
    expenses: List[Expense] = field(default_factory=list)
    problems: List[CorruptData] = field(default_factory=list)


@dataclass
class Metadata:
    next_id: int = 1
    budgets: Dict[str, Decimal] = field(default_factory=dict)


def parse_line(line: str, line_number: int = 0) -> Expense:
    raw = line.rstrip("\r\n")
    parts = [p.strip() for p in raw.split(SEPARATOR)]
    if len(parts) != 4:
        raise CorruptData(f"expected 4 fields, found {len(parts)}", line_number, raw)
    id_s, amount_s, category_s, date_s = parts

    try:
        expense_id = int(id_s)
    except ValueError:
        raise CorruptData(f"invalid id '{id_s}'", line_number, raw) from None
    if expense_id <= 0:
        raise CorruptData(f"invalid id '{id_s}'", line_number, raw)

    try:
        amount = to_amount(amount_s)
        category = clean_category(category_s)
    except InvalidInput as exc:
        raise CorruptData(str(exc), line_number, raw) from None

    try:
        day = date.fromisoformat(date_s)
    except ValueError:
        raise CorruptData(f"invalid date '{date_s}'", line_number, raw) from None

    return Expense(id=expense_id, amount=amount, category=category, date=day)


def format_line(expense: Expense) -> str:
    return SEPARATOR.join(
        [
            str(expense.id),
            format(expense.amount, "f"),
            expense.category,
            expense.date.isoformat(),
        ]
    )


def load_expenses(path: PathLike) -> LoadResult:
    """Read every expense in ``path``.

    A missing file is an empty store. Malformed lines, lines that are not
    valid UTF-8, and lines reusing an id already seen, are skipped and
    returned in ``problems``.
    """
    target = Path(path)
    result = LoadResult()
    if not target.exists():
        logger.debug("Data file %s does not exist, starting empty", target)
        return result

    seen_ids = set()
    try:
        with target.open("rb") as fp:
            for line_number, raw in enumerate(fp, start=1):
                try:
                    try:
                        line = raw.decode("utf-8")
                    except UnicodeDecodeError as exc:
                        raise CorruptData(
                            f"not valid UTF-8 ({exc.reason})", line_number, repr(raw.rstrip(b"\r\n"))
                        ) from None
                    if not line.strip():
                        continue
                    expense = parse_line(line, line_number)
                    if expense.id in seen_ids:
                        raise CorruptData(
                            f"duplicate id {expense.id}", line_number, line.rstrip("\r\n")
                        )
                except CorruptData as exc:
                    logger.warning("Skipping corrupt record in %s: %s", target, exc)
                    result.problems.append(exc)
                    continue
                seen_ids.add(expense.id)
                result.expenses.append(expense)
    except OSError as exc:
        raise PersistenceError(f"Could not read {target}: {exc}") from exc

    logger.debug(
        "Loaded %d expense(s) from %s, skipped %d", len(result.expenses), target, len(result.problems)
    )
    return result


def _atomic_write(target: Path, text: str) -> None:
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{target.name}.", suffix=".tmp", dir=str(target.parent)
        )
    except OSError as exc:
        raise PersistenceError(f"Could not write {target}: {exc}") from exc

    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as fp:
            fp.write(text)
            fp.flush()
            os.fsync(fp.fileno())
        os.replace(tmp_name, target)
    except OSError as exc:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise PersistenceError(f"Could not write {target}: {exc}") from exc


def save_expenses(expenses: Iterable[Expense], path: PathLike) -> None:
    """Overwrite ``path`` with ``expenses`` via a temp file and rename."""
    lines = [format_line(e) + "\n" for e in expenses]
    _atomic_write(Path(path), "".join(lines))
    logger.debug("Saved %d expense(s) to %s", len(lines), path)


def rejected_path(data_path: PathLike) -> Path:
    data_path = Path(data_path)
    return data_path.with_name(data_path.name + REJECTED_SUFFIX)


def append_rejected(problems: Iterable[CorruptData], path: PathLike) -> None:
    """Append the raw text of skipped lines to ``path``, one per line."""
    target = Path(path)
    lines = [f"{p.line}\n" for p in problems if p.line is not None]
    if not lines:
        return
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("a", encoding="utf-8") as fp:
            fp.writelines(lines)
    except OSError as exc:
        raise PersistenceError(f"Could not write {target}: {exc}") from exc
    logger.info("Kept %d rejected line(s) in %s", len(lines), target)


def metadata_path(data_path: PathLike) -> Path:
    data_path = Path(data_path)
    return data_path.with_name(data_path.name + META_SUFFIX)


def load_metadata(path: PathLike) -> Metadata:
    target = Path(path)
    if not target.exists():
        return Metadata()
    try:
        with target.open("r", encoding="utf-8") as fp:
            data = yaml.safe_load(fp) or {}
    except yaml.YAMLError as exc:
        raise CorruptData(f"{target} is not valid YAML: {exc}") from exc
    except OSError as exc:
        raise PersistenceError(f"Could not read {target}: {exc}") from exc

    if not isinstance(data, dict):
        raise CorruptData(f"{target} must contain a mapping")

    try:
        next_id = int(data.get("next_id", 1))
    except (TypeError, ValueError):
        raise CorruptData(f"{target}: invalid next_id {data.get('next_id')!r}") from None

    budgets = {}
    raw_budgets = data.get("budgets") or {}
    if not isinstance(raw_budgets, dict):
        raise CorruptData(f"{target}: budgets must be a mapping")
    for category, limit in raw_budgets.items():
        try:
            budgets[clean_category(category)] = to_amount(limit, "limit")
        except InvalidInput as exc:
            raise CorruptData(f"{target}: budget '{category}': {exc}") from None

    return Metadata(next_id=max(next_id, 1), budgets=budgets)


def save_metadata(metadata: Metadata, path: PathLike) -> None:
    data = {
        "next_id": metadata.next_id,
        # limits kept as strings so YAML never turns them into floats
        "budgets": {cat: format(limit, "f") for cat, limit in metadata.budgets.items()},
    }
    _atomic_write(Path(path), yaml.safe_dump(data, sort_keys=False))

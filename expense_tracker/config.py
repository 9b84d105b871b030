from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Dict, Optional

import yaml

DEFAULT_CONFIG: Dict[str, object] = {
    "data_file": "expenses.txt",
    "export_dir": "exports",
    "autosave": True,
    "color": True,
    "log_level": "WARNING",
    "output_modules": {
        "csv": "expense_tracker.outputs.csv_output.CSVOutput",
        "excel": "expense_tracker.outputs.excel_output.ExcelOutput",
    },
}

CONFIG_PATH = Path("config.yaml")

# environment variable -> config key
ENV_OVERRIDES = {
    "EXPTRACK_DATA_FILE": "data_file",
    "EXPTRACK_EXPORT_DIR": "export_dir",
    "EXPTRACK_LOG_LEVEL": "log_level",
}


def _merge_defaults(current: Dict[str, object], defaults: Dict[str, object]) -> Dict[str, object]:
    """Merge missing default keys into the current config recursively."""
    merged = dict(current)
    for key, value in defaults.items():
        if key not in merged:
            merged[key] = copy.deepcopy(value)
        elif isinstance(value, dict) and isinstance(merged[key], dict):
            merged[key] = _merge_defaults(merged[key], value)
    return merged


def load_config(path: Optional[Path | str] = None) -> Dict[str, object]:
    """Read the YAML config at ``path`` merged over DEFAULT_CONFIG.

    A missing file yields the defaults. Environment overrides from
    ENV_OVERRIDES are applied last.
    """
    target = Path(path) if path is not None else CONFIG_PATH
    data: Dict[str, object] = {}
    if target.exists():
        with target.open("r", encoding="utf-8") as fp:
            data = yaml.safe_load(fp) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {target} must contain a mapping")
    config = _merge_defaults(data, DEFAULT_CONFIG)

    for env_name, key in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            config[key] = value
    return config


def save_config(config: Dict[str, object], path: Optional[Path | str] = None) -> None:
    target = Path(path) if path is not None else CONFIG_PATH
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", encoding="utf-8") as fp:
        yaml.safe_dump(config, fp, sort_keys=False)

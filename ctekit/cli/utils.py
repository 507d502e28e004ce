"""
CLI utility functions.

Pure, stateless utility functions used across CLI commands.
"""

import json
import logging
from pathlib import Path
from typing import Any, Literal

import yaml

OutputFormat = Literal["json", "yaml"]


def setup_logging(verbose: bool = False) -> None:
    """
    Set up logging configuration.

    Args:
        verbose: If True, set logging level to DEBUG, otherwise INFO
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s - %(name)s - %(message)s")


def read_sql_file(path: str | Path) -> str:
    """
    Read a SQL file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is empty
    """
    sql_path = Path(path)
    if not sql_path.is_file():
        raise FileNotFoundError(f"SQL file not found: {sql_path}")
    content = sql_path.read_text(encoding="utf-8").strip()
    if not content:
        raise ValueError(f"SQL file is empty: {sql_path}")
    return content


def format_output(data: Any, format: OutputFormat = "json") -> str:
    """
    Serialize a report for printing.

    Args:
        data: JSON-compatible data (tuples are written as lists)
        format: "json" or "yaml"
    """
    data = _to_plain(data)
    if format == "yaml":
        return yaml.safe_dump(data, sort_keys=False, default_flow_style=False)
    return json.dumps(data, indent=2)


def _to_plain(data: Any) -> Any:
    if isinstance(data, dict):
        return {key: _to_plain(value) for key, value in data.items()}
    if isinstance(data, (list, tuple)):
        return [_to_plain(item) for item in data]
    return data

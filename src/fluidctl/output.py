"""Output formatting: json, yaml, table."""

from __future__ import annotations

import json
from typing import Any

import click
import yaml
from tabulate import tabulate


def _unwrap(data: Any) -> list[dict]:
    """Normalise API data to a flat list of dicts.

    Handles:
      - bare list
      - single dict (wrap in list)
    """
    if isinstance(data, list):
        return [row for row in data if isinstance(row, dict)]
    if isinstance(data, dict):
        return [data]
    return []


def format_output(
    data: Any,
    *,
    columns: list[tuple[str, str]] | None = None,
    fmt: str = "yaml",
) -> None:
    """Write formatted output to stdout.

    Args:
        data: Decoded API response (list or single dict).
        columns: List of (key, header_label) pairs for table mode.
                 If None, auto-detect from first record.
        fmt: One of "json", "yaml", "table".
    """
    if fmt == "json":
        click.echo(json.dumps(data, indent=2, default=str))
    elif fmt == "table":
        _fmt_table(data, columns)
    else:
        click.echo(yaml.safe_dump(data, sort_keys=False, default_flow_style=False).rstrip())


def _fmt_table(data: Any, columns: list[tuple[str, str]] | None) -> None:
    rows = _unwrap(data)
    if not rows:
        click.echo("No results.")
        return
    cols = columns or [(k, k.upper()) for k in rows[0].keys()]
    headers = [h for _, h in cols]
    table_rows = [[_truncate(row.get(k, ""), 60) for k, _ in cols] for row in rows]
    click.echo(tabulate(table_rows, headers=headers, tablefmt="plain"))


def _truncate(value: Any, max_len: int) -> str:
    s = str(value) if value is not None else ""
    if len(s) > max_len:
        return s[: max_len - 3] + "..."
    return s

"""Render query results as titled, boxed tables.

Output follows psql's aligned format with unicode single-line borders.
Interval cells arrive as the server's own text (see database.INTERVAL_TEXT),
so 151 hours stay '151:30:00':

            Jours
  ┌────────────┬──────────┐
  │ jour       │ heures   │
  ├────────────┼──────────┤
  │ 2022-01-03 │ 07:30:00 │
  └────────────┴──────────┘
"""
from decimal import Decimal
from typing import Any

from tabulate import tabulate

from .models import QueryResult

TABLE_FORMAT = "simple_outline"


def format_value(value: Any) -> Any:
    if value is None:
        return ""
    return value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _column_alignment(result: QueryResult) -> list[str]:
    """Numbers right, everything else left, as psql does."""
    aligns = []
    for i in range(len(result.columns)):
        values = [row[i] for row in result.rows if row[i] is not None]
        numeric = bool(values) and all(_is_number(v) for v in values)
        aligns.append("right" if numeric else "left")
    return aligns


def render_table(title: str, result: QueryResult) -> str:
    """Render *result* with *title* centred above it."""
    rows = [[format_value(v) for v in row] for row in result.rows]
    table = tabulate(
        rows,
        headers=result.columns,
        tablefmt=TABLE_FORMAT,
        colalign=_column_alignment(result),
        disable_numparse=True,
    )
    width = len(table.splitlines()[0]) if table else 0
    pad = max((width - len(title)) // 2, 0)
    return f"{' ' * pad}{title}\n{table}"

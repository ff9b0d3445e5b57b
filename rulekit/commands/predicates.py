"""Predicate registry listing."""

from __future__ import annotations

import inspect
import json

from rich.console import Console
from rich.table import Table

from ..predicates import NEGATION_PREFIX, resolve
from ..predicates import list_predicates as registered_names


def _summary(fn) -> str:
    doc = inspect.getdoc(fn) or ""
    return doc.splitlines()[0] if doc else ""


def _signature(fn) -> str:
    try:
        return str(inspect.signature(fn))
    except (TypeError, ValueError):
        return "(value, ...)"


def run_predicates(output_json: bool = False) -> int:
    """List registered predicates with their signatures.

    Returns:
        Exit code (always 0)
    """
    rows = []
    for name in registered_names():
        fn = resolve(name)
        rows.append(
            {
                "name": name,
                "negated": NEGATION_PREFIX + name,
                "signature": _signature(fn),
                "summary": _summary(fn),
            }
        )

    if output_json:
        print(json.dumps({"predicates": rows}, indent=2))
        return 0

    table = Table(title="Predicates")
    table.add_column("Name", style="bold")
    table.add_column("Signature", style="cyan")
    table.add_column("Negated", style="yellow")
    table.add_column("Description")
    for row in rows:
        table.add_row(row["name"], row["signature"], row["negated"], row["summary"])

    Console().print(table)
    return 0

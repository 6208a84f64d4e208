"""
CLI utility helpers: record loading and output formatting.
"""

from __future__ import annotations

import importlib
import json
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tagorm.metadata import TableMetadata
from tagorm.types import SINGLE_ROLES

console = Console()
err_console = Console(stderr=True)


def load_record_type(target: str) -> type:
    """Import ``module:QualName`` and return the attribute it names."""
    module_name, sep, qualname = target.partition(":")
    if not sep or not module_name or not qualname:
        raise typer.BadParameter(f"expected 'module:Record', got {target!r}")
    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise typer.BadParameter(f"cannot import module {module_name!r}: {e}") from e
    for part in qualname.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise typer.BadParameter(f"{module_name!r} has no attribute {qualname!r}") from e
    return obj


def role_tokens(roles: Any) -> str:
    return ",".join(role.token for role in SINGLE_ROLES if role in roles)


def describe_payload(table: TableMetadata, schema: str, statements: dict[str, str]) -> dict[str, Any]:
    """Plain-dict view of a table for ``--json`` output."""
    return {
        "record_type": table.record_name,
        "table": table.qualified_name(schema),
        "columns": [
            {
                "position": col.position,
                "attribute": col.attribute,
                "name": col.name,
                "type": col.column_type.value,
                "roles": role_tokens(col.roles),
            }
            for col in table.columns
        ],
        "sql": statements,
    }


def output_description(payload: dict[str, Any], *, as_json: bool = False) -> None:
    """Render a :func:`describe_payload` result to the terminal."""
    if as_json:
        console.print_json(json.dumps(payload))
        return

    table = Table(
        title=f"{payload['record_type']} → {payload['table']}",
        show_lines=False,
        pad_edge=False,
    )
    for heading in ("#", "Field", "Column", "Type", "Roles"):
        table.add_column(heading, overflow="fold")
    for col in payload["columns"]:
        table.add_row(
            str(col["position"]), col["attribute"], col["name"], col["type"], col["roles"]
        )
    console.print(table)

    for kind, sql in payload["sql"].items():
        console.print(f"  [cyan]{kind}[/cyan]: {escape(sql)}", soft_wrap=True)


def output_error(message: str) -> None:
    err_console.print(f"[bold red]Error[/bold red]: {message}")
    raise typer.Exit(code=1)

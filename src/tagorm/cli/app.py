"""
Root Typer application for the tagorm CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from tagorm.errors import MissingRoleError, TagormError

app = Typer(
    name="tagorm",
    help="tagorm: map dataclass records to relational tables.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        from tagorm import __version__

        try:
            v = pkg_version("tagorm")
        except PackageNotFoundError:
            v = __version__
        typer.echo(f"tagorm {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """tagorm CLI: inspect record metadata and generated SQL."""
    from tagorm.logging import configure_from_settings

    configure_from_settings()


# ── Commands ─────────────────────────────────────────────────────────────


@app.command()
def describe(
    target: str = typer.Argument(..., help="Record type as 'module:Record'"),
    schema: str | None = typer.Option(None, "--schema", "-s", help="Schema prefix"),
    table_name: str | None = typer.Option(None, "--table", "-t", help="Explicit table name"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Show the columns of a record type and the SQL generated for it."""
    from tagorm.cli.utils import describe_payload, load_record_type, output_description, output_error
    from tagorm.mapper import Mapper
    from tagorm.statements import render_delete_sql, render_insert_sql, render_select_sql

    record_type = load_record_type(target)
    mapper = Mapper(schema=schema)
    try:
        if table_name:
            table = mapper.register_table(record_type, table_name)
        else:
            table = mapper.table_for(record_type)
    except TagormError as e:
        output_error(e.message)
        return

    statements = {
        "select": render_select_sql(table, mapper.schema),
        "insert": render_insert_sql(table, mapper.schema),
    }
    try:
        statements["delete"] = render_delete_sql(table, mapper.schema)
    except MissingRoleError:
        statements["delete"] = "(no primary key)"

    output_description(describe_payload(table, mapper.schema, statements), as_json=json_out)

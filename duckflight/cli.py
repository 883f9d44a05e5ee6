# -*- coding: utf-8 -*-
"""duckflight Command Line Interface - run DuckDB statements and inspect their Arrow output."""

import logging
import sys
from typing import List, Optional

import duckdb
import pyarrow as pa
import typer
from rich.console import Console
from rich.table import Table

from .config import get_config
from .errors import BridgeError
from .statement import DuckDBStatement

# Console for rich output
console = Console()

FLIGHT_SQL_PREFIX = "ARROW:FLIGHT:SQL:"

# Main CLI app
app = typer.Typer(
    name="duckflight",
    help="Execute DuckDB statements and expose results as Arrow record batches",
    add_completion=False,
)


def _configure_logging(log_level: Optional[str]) -> None:
    level = (log_level or get_config().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def _connect(database: Optional[str]) -> duckdb.DuckDBPyConnection:
    return duckdb.connect(database or get_config().database)


def _schema_table(schema: pa.Schema, title: str) -> Table:
    table = Table(title=title)
    table.add_column("Column", style="cyan")
    table.add_column("Arrow Type", style="green")
    table.add_column("Engine Type", style="yellow")
    table.add_column("Metadata", style="magenta")

    for field in schema:
        metadata = {
            key.decode().replace(FLIGHT_SQL_PREFIX, ""): value.decode()
            for key, value in (field.metadata or {}).items()
        }
        engine_type = metadata.pop("TYPE_NAME", "")
        extra = ", ".join(f"{key}={value}" for key, value in metadata.items())
        table.add_row(field.name, str(field.type), engine_type, extra)

    return table


def _rows_table(batch: pa.RecordBatch, limit: int) -> Table:
    table = Table(title=f"Result ({batch.num_rows} rows)")
    for name in batch.schema.names:
        table.add_column(name)

    columns = [column.to_pylist() for column in batch.slice(0, limit).columns]
    for row in zip(*columns):
        table.add_row(*["NULL" if value is None else str(value) for value in row])

    return table


@app.callback()
def main_callback():
    """duckflight CLI - DuckDB to Arrow statement bridge."""
    pass


@app.command()
def version():
    """Show duckflight version."""
    from . import __version__
    console.print(f"[bold blue]duckflight[/bold blue] version [bold green]{__version__}[/bold green]")


@app.command()
def schema(
    sql: str = typer.Argument(..., help="SQL statement to describe"),
    database: Optional[str] = typer.Option(None, "-d", "--database", help="DuckDB database path"),
    log_level: Optional[str] = typer.Option(None, "-l", "--loglevel", help="Logging level"),
):
    """Show the Arrow schema a statement declares, without executing it."""
    _configure_logging(log_level)
    connection = _connect(database)
    try:
        with DuckDBStatement.create(connection, sql) as statement:
            console.print(_schema_table(statement.get_schema(), "Declared Schema"))
    except BridgeError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1)
    finally:
        connection.close()


@app.command()
def query(
    sql: str = typer.Argument(..., help="SQL statement to execute"),
    params: Optional[List[str]] = typer.Option(None, "-p", "--param", help="Positional parameter value"),
    database: Optional[str] = typer.Option(None, "-d", "--database", help="DuckDB database path"),
    limit: int = typer.Option(20, "-n", "--limit", help="Maximum rows to display"),
    log_level: Optional[str] = typer.Option(None, "-l", "--loglevel", help="Logging level"),
):
    """Execute a statement and show its Arrow schema and rows."""
    _configure_logging(log_level)
    connection = _connect(database)
    try:
        with DuckDBStatement.create(connection, sql) as statement:
            if params:
                statement.bind(params)
            statement.execute()
            batch = statement.get_result()

            console.print(_schema_table(batch.schema, "Result Schema"))
            console.print(_rows_table(batch, limit))
    except BridgeError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1)
    finally:
        connection.close()


def main():
    """Main CLI entry point - equivalent to 'duckflight' command."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[dim]Interrupted by user[/dim]")
        sys.exit(1)

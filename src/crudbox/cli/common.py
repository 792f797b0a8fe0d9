"""Helpers shared by the CLI command modules."""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from crudbox.core.ports.store import EndpointStore
from crudbox.errors import CrudboxError

console = Console()

T = TypeVar("T")


def render_table(headers: Sequence[str], rows: Sequence[tuple[Any, ...]], title: str | None = None) -> None:
    table = Table(show_lines=False, title=title)
    for h in headers:
        table.add_column(h)
    for row in rows:
        table.add_row(*(str(v) for v in row))
    console.print(table)
    console.print(f"({len(rows)} rows)")


def get_store() -> EndpointStore:
    from crudbox.db import create_store

    return create_store()


def run_with_store(action: Callable[[EndpointStore], Awaitable[T]]) -> T:
    """Run ``action`` against a fresh store, disposing it afterwards.

    Domain errors are printed and turned into exit code 1.
    """
    store = get_store()

    async def _run() -> T:
        try:
            await store.ensure_ready()
            return await action(store)
        finally:
            await store.dispose()

    try:
        return asyncio.run(_run())
    except CrudboxError as exc:
        console.print(f"[red]{type(exc).__name__}: {exc}[/red]")
        raise typer.Exit(1) from exc

"""callcontract symbols command - list symbols from a SCIP index."""

import json
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from callcontract.core.errors import CallContractError
from callcontract.index.query import SymbolIndexQuery
from callcontract.index.store import SymbolIndexStore


@click.command()
@click.argument("scip_json", type=click.Path(path_type=Path))
@click.option("--pattern", "-p", default=None, help="Glob or class name to match symbols")
@click.option("--classes", is_flag=True, help="Only class symbols")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def symbols_command(scip_json: Path, pattern: str | None, classes: bool, as_json: bool) -> None:
    """List symbols in SCIP_JSON with their occurrence counts."""
    try:
        store = SymbolIndexStore.load(scip_json)
    except CallContractError as e:
        raise click.ClickException(str(e)) from e

    scip = SymbolIndexQuery(store)
    query = scip.symbol(pattern) if pattern else scip.symbols()
    if classes:
        query = query.is_class()
    symbols = query.all()

    rows = [(s.name, s.kind, len(store.occurrences_for(s.name))) for s in symbols]

    if as_json:
        click.echo(
            json.dumps([{"symbol": name, "kind": kind, "occurrences": n} for name, kind, n in rows])
        )
        return

    console = Console()
    if not rows:
        console.print("[yellow]No matching symbols[/yellow]")
        return
    table = Table(box=None, padding=(0, 1), pad_edge=False)
    table.add_column("Symbol")
    table.add_column("Kind")
    table.add_column("Occurrences", justify="right")
    for name, kind, n in rows:
        table.add_row(name, kind or "-", str(n))
    console.print(table)

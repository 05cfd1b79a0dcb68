"""callcontract catalog command - list registered contract tests."""

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from callcontract.catalog import ContractCatalog
from callcontract.core.errors import CallContractError


@click.command()
@click.argument("catalog_file", type=click.Path(path_type=Path))
@click.option("--category", "-c", default=None, help="Only entries in this category")
def catalog_command(catalog_file: Path, category: str | None) -> None:
    """List the contract tests described in CATALOG_FILE."""
    try:
        catalog = ContractCatalog.from_yaml(catalog_file)
    except CallContractError as e:
        raise click.ClickException(str(e)) from e

    entries = catalog.by_category(category) if category else dict(catalog)

    console = Console()
    if not entries:
        console.print("[yellow]No contract tests registered[/yellow]")
        return
    table = Table(box=None, padding=(0, 1), pad_edge=False)
    table.add_column("Test")
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Status")
    for test_id, meta in entries.items():
        status = meta.status + (" (experimental)" if meta.experimental else "")
        table.add_row(test_id, meta.name, meta.category or "-", status)
    console.print(table)

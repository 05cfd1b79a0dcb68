"""callcontract report command - run every integrity check over calls.json."""

import json
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from callcontract.assertions import DataIntegrityAssertion, IntegrityReport
from callcontract.core.errors import CallContractError
from callcontract.graph.store import CallGraphStore


@click.command()
@click.argument("calls_json", type=click.Path(path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output the report as JSON")
@click.pass_context
def report_command(ctx: click.Context, calls_json: Path, as_json: bool) -> None:
    """Run all data integrity checks against CALLS_JSON.

    Exits with status 1 when any check finds a violation.
    """
    try:
        store = CallGraphStore.load(calls_json)
    except CallContractError as e:
        raise click.ClickException(str(e)) from e

    report = DataIntegrityAssertion(store).all_checks().report()

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        console = Console()
        console.print(
            f"[bold]{calls_json}[/bold]: {store.value_count} values, {store.call_count} calls"
        )
        console.print(_make_report_table(report))
        for name in report.violated_checks:
            console.print(f"\n[red]{name}[/red]")
            for violation in report[name].violations:
                console.print(f"  [cyan]•[/cyan] {violation.message}")
        console.print()
        color = "red" if report.has_issues else "green"
        console.print(f"[{color}]{report.summary()}[/{color}]")

    if report.has_issues:
        ctx.exit(1)


def _make_report_table(report: IntegrityReport) -> Table:
    table = Table(box=None, padding=(0, 1), pad_edge=False)
    table.add_column("Check")
    table.add_column("Issues", justify="right")
    for check in report.checks:
        mark = "[green]✓[/green]" if check.passed else "[red]✗[/red]"
        table.add_row(f"{mark} {check.name}", str(check.count))
    return table

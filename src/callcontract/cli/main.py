"""callcontract CLI - inspect generated call-graph data outside of pytest."""

import click

from callcontract.cli.catalog import catalog_command
from callcontract.cli.report import report_command
from callcontract.cli.symbols import symbols_command
from callcontract.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="callcontract")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """callcontract - validate call/value graphs and SCIP indexes."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "WARNING")


cli.add_command(report_command, name="report")
cli.add_command(symbols_command, name="symbols")
cli.add_command(catalog_command, name="catalog")


if __name__ == "__main__":
    cli()

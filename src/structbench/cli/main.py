"""structbench CLI entry point."""

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from structbench import __version__
from structbench.cli.report_cmd import delete, list_runs
from structbench.cli.report_cmd import report as report_cmd
from structbench.cli.run_cmd import run
from structbench.models.catalog import MODEL_DEFINITIONS, PROVIDER_DISPLAY_NAMES, has_credentials

app = typer.Typer(
    name="structbench",
    help="Structured-output reliability benchmark for LLM providers",
    no_args_is_help=True,
)

# Register subcommands
app.command()(run)
app.command(name="report")(report_cmd)
app.command(name="list")(list_runs)
app.command()(delete)


@app.command()
def models() -> None:
    """List the model catalog and which models have credentials."""
    table = Table(box=box.SIMPLE)
    table.add_column("Id")
    table.add_column("Name")
    table.add_column("Provider")
    table.add_column("Strict")
    table.add_column("Key")
    for definition in MODEL_DEFINITIONS:
        table.add_row(
            definition.id,
            definition.name,
            PROVIDER_DISPLAY_NAMES[definition.provider],
            "yes" if definition.supports_strict_mode else "no",
            "[green]set[/green]" if has_credentials(definition.id) else "[dim]missing[/dim]",
        )
    Console().print(table)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"structbench {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Structured-output reliability benchmark for LLM providers."""

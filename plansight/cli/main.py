"""plansight CLI - Main entrypoint."""

import typer
from rich.console import Console

from plansight import __version__
from plansight.cli.commands import enrich_cmd
from plansight.core.logging import configure_logging

# Create the main Typer app
app = typer.Typer(
    name="plansight",
    help="plansight - Enrich query-engine execution plans into readable, tiered DAGs.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_enable=False,
    invoke_without_command=True,
)

# Create console for rich output
console = Console()

app.command("enrich")(enrich_cmd.enrich)
app.command("tiers")(enrich_cmd.tiers)

_LOG_LEVELS = {
    "trace": "TRACE",
    "debug": "DEBUG",
    "info": "INFO",
    "warn": "WARNING",
    "warning": "WARNING",
    "error": "ERROR",
    "critical": "CRITICAL",
}


@app.callback()
def callback(
    ctx: typer.Context,
    *,
    log_level: str = typer.Option(
        "warning", "--log-level", help="Log level: trace|debug|info|warn|error"
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit",
    ),
) -> None:
    """plansight CLI - execution plan enrichment.

    Global flags are parsed here and stored on `ctx.obj` for subcommands.
    """
    if ctx.obj is None:
        ctx.obj = {}

    level = _LOG_LEVELS.get(log_level.lower())
    if level is None:
        console.print(f"[red]✗ Unknown log level:[/red] {log_level}")
        raise typer.Exit(1)

    ctx.obj.update({"log_level": level, "version": __version__})

    configure_logging(level=level, format="console", include_timestamp=False)

    if version:
        console.print(f"[bold blue]plansight[/bold blue] version [green]{__version__}[/green]")
        raise typer.Exit()


def main() -> None:
    """Main CLI entrypoint."""
    app()


if __name__ == "__main__":
    main()

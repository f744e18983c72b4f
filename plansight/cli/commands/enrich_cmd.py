"""Enrichment commands for the plansight CLI."""

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from plansight.core.config import load_config
from plansight.core.domain.inputs import SnapshotBundle
from plansight.core.domain.models import Execution, ExecutionStore, TierView
from plansight.core.exceptions import PlanSightError
from plansight.enrichment.metrics import (
    CROSS_JOIN_SCANNED_ROWS,
    JOIN_ROWS_FILTERED,
    JOIN_ROWS_INCREASE_RATIO,
    ROWS_FILTERED,
)
from plansight.store import SqlAggregator, store_to_dict

console = Console()

TIER_NAMES = ("io", "basic", "advanced")
_DERIVED_METRICS = (
    ROWS_FILTERED,
    CROSS_JOIN_SCANNED_ROWS,
    JOIN_ROWS_INCREASE_RATIO,
    JOIN_ROWS_FILTERED,
)

BundleFile = Annotated[
    Path,
    typer.Argument(
        help="Path to a JSON or YAML snapshot bundle",
        dir_okay=False,
    ),
]


def _load_store(bundle_file: Path, config_path: Path | None = None) -> ExecutionStore:
    """Read a bundle and aggregate it into a fresh store, exiting on bad input."""
    try:
        bundle = SnapshotBundle.from_file(bundle_file)
    except OSError as e:
        console.print(f"[red]✗ File Error:[/red] {e}")
        raise typer.Exit(1) from e
    except ValueError as e:
        console.print(f"[red]✗ Invalid bundle:[/red] {bundle_file}")
        console.print(f"  {e}")
        raise typer.Exit(1) from e

    try:
        config = load_config(config_path)
    except PlanSightError as e:
        console.print(f"[red]✗ Configuration Error:[/red] {e}")
        raise typer.Exit(1) from e

    aggregator = SqlAggregator(config=config.enrichment)
    return aggregator.calculate_store(
        ExecutionStore(),
        bundle.executions,
        plans=bundle.plans,
        commits=bundle.commits,
        stages=bundle.stages,
    )


def _format_edges(tier: TierView) -> str:
    if not tier.edges:
        return "(none)"
    return ", ".join(f"{edge.from_id} → {edge.to_id}" for edge in tier.edges)


def _render_execution(execution: Execution, tier_name: str) -> None:
    tier = execution.filter_tiers.get(tier_name)
    table = Table(
        title=f"Execution {execution.id} ({execution.status.value}) - {tier_name} tier",
        show_header=True,
        border_style="cyan",
    )
    table.add_column("ID", style="dim")
    table.add_column("Operator", style="cyan")
    table.add_column("Display Name", style="green")
    table.add_column("Category", style="yellow")
    table.add_column("Derived Metrics", style="white")

    for node in execution.nodes:
        if node.node_id not in tier.visible_node_ids:
            continue
        derived = [
            f"{name}: {value}"
            for name in _DERIVED_METRICS
            if (value := node.metric(name)) is not None
        ]
        table.add_row(
            str(node.node_id),
            node.node_name,
            node.display_name,
            node.category.value,
            "\n".join(derived) or "-",
        )

    console.print(table)
    console.print(f"[bold]Edges:[/bold] {_format_edges(tier)}")
    console.print()


def enrich(
    bundle_file: BundleFile,
    tier: Annotated[
        str,
        typer.Option("--tier", "-t", help="Tier to display: io|basic|advanced"),
    ] = "io",
    execution_id: Annotated[
        str | None,
        typer.Option("--execution", "-e", help="Only show this execution id"),
    ] = None,
    json_out: Annotated[
        bool,
        typer.Option("--json", help="Print the serialized store as JSON"),
    ] = False,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to a plansight TOML config file"),
    ] = None,
) -> None:
    """Enrich the executions of a snapshot bundle and display one tier.

    Examples
    --------
    plansight enrich bundle.json
    plansight enrich bundle.yaml --tier basic --execution 3
    plansight enrich bundle.json --json
    """
    if tier not in TIER_NAMES:
        expected = ", ".join(TIER_NAMES)
        console.print(f"[red]✗ Unknown tier:[/red] {tier} (expected one of {expected})")
        raise typer.Exit(1)

    store = _load_store(bundle_file, config_path)

    executions = store.executions
    if execution_id is not None:
        execution = store.get(execution_id)
        if execution is None:
            console.print(f"[red]✗ Execution not found:[/red] {execution_id}")
            raise typer.Exit(1)
        executions = (execution,)

    if json_out:
        typer.echo(json.dumps(store_to_dict(ExecutionStore(executions=executions)), indent=2))
        return

    if not executions:
        console.print("[yellow]No executions in bundle[/yellow]")
        return

    for execution in executions:
        _render_execution(execution, tier)


def tiers(
    bundle_file: BundleFile,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to a plansight TOML config file"),
    ] = None,
) -> None:
    """Show node and edge counts of every tier per execution."""
    store = _load_store(bundle_file, config_path)

    table = Table(title="Filter Tiers", show_header=True, border_style="blue")
    table.add_column("Execution", style="cyan")
    table.add_column("Status", style="yellow")
    for name in TIER_NAMES:
        table.add_column(f"{name} nodes", justify="right")
        table.add_column(f"{name} edges", justify="right")

    for execution in store.executions:
        counts: list[str] = []
        for name in TIER_NAMES:
            view = execution.filter_tiers.get(name)
            counts.extend((str(len(view.visible_node_ids)), str(len(view.edges))))
        table.add_row(execution.id, execution.status.value, *counts)

    console.print(table)

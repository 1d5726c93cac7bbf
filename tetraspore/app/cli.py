"""Tetraspore CLI - validate, plan and run action scripts.

Usage:
    tetraspore validate ./scripts/planet_intro.json
    tetraspore plan ./scripts/planet_intro.json
    tetraspore run ./scripts/planet_intro.json --storage-dir ./public/assets
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from tetraspore.actions.graph import ActionGraph
from tetraspore.actions.parser import ActionParser, ParseResult, execution_stats
from tetraspore.app.config import TetrasporeConfig
from tetraspore.core.processor import ActionProcessor, BatchResult
from tetraspore.utils.logging import setup_logging

app = typer.Typer(
    name="tetraspore",
    help="Tetraspore action script compiler and executor",
    add_completion=False,
)

console = Console()


def _parse_or_exit(file: Path) -> ParseResult:
    if not file.exists():
        console.print(f"[red]Error:[/red] File not found: {file}")
        raise typer.Exit(1)

    result = ActionParser().parse_file(file)
    if not result.success:
        table = Table(title=f"{len(result.errors)} error(s) in {file.name}", show_lines=False)
        table.add_column("Kind", style="red")
        table.add_column("Where")
        table.add_column("Message")
        for error in result.errors:
            table.add_row(error.kind.value, error.path or error.action_id or "-", error.message)
        console.print(table)
        raise typer.Exit(1)
    return result


def _print_plan(graph: ActionGraph) -> None:
    table = Table(title="Execution order")
    table.add_column("#", justify="right")
    table.add_column("ID", style="cyan")
    table.add_column("Type")
    table.add_column("Kind")
    table.add_column("Depends on")
    table.add_column("Status")
    for position, node in enumerate(graph, start=1):
        if node.id in graph.asset_actions:
            kind = "[green]asset[/green]"
        elif node.id in graph.game_actions:
            kind = "[blue]game[/blue]"
        else:
            kind = "[dim]reasoning[/dim]"
        table.add_row(
            str(position),
            node.id,
            node.type,
            kind,
            ", ".join(sorted(node.dependencies)) or "-",
            node.status.value,
        )
    console.print(table)


def _print_batch(result: BatchResult) -> None:
    if result.assets_generated:
        assets = Table(title="Generated assets")
        assets.add_column("ID", style="cyan")
        assets.add_column("Kind")
        assets.add_column("URL")
        assets.add_column("Cost", justify="right")
        for asset in result.assets_generated:
            assets.add_row(asset.action_id, asset.kind, asset.result.url, f"${asset.result.cost:.4f}")
        console.print(assets)

    for marker in result.game_actions:
        console.print(f"[blue]→[/blue] {marker.kind}: {marker.action_id} ({marker.action_type})")

    for error in result.errors:
        console.print(f"[red]✗[/red] {error.action_id or '-'}: {error.message}")

    style = "green" if result.success else "red"
    console.print(Panel(
        f"[bold]Executed:[/bold] {len(result.actions_executed)}\n"
        f"[bold]Assets:[/bold] {len(result.assets_generated)}\n"
        f"[bold]Errors:[/bold] {len(result.errors)}\n"
        f"[bold]Total cost:[/bold] ${result.total_cost:.4f}\n"
        f"[bold]Time:[/bold] {result.execution_time_ms:.0f}ms",
        title="Batch succeeded" if result.success else "Batch finished with errors",
        border_style=style,
    ))


@app.command("validate")
def validate_file(
    file: Annotated[Path, typer.Argument(help="Action script (.json, .yaml, .yml)")],
) -> None:
    """Validate an action script without executing it."""
    result = _parse_or_exit(file)
    stats = execution_stats(result)
    console.print(
        f"[green]✓[/green] {file.name} is valid: {stats['total_actions']} node(s), "
        f"{stats['asset_actions']} asset, {stats['game_actions']} game, "
        f"{stats['ready_actions']} ready"
    )


@app.command("plan")
def plan_file(
    file: Annotated[Path, typer.Argument(help="Action script (.json, .yaml, .yml)")],
) -> None:
    """Show the execution order the processor would follow."""
    result = _parse_or_exit(file)
    _print_plan(result.graph)


@app.command("run")
def run_file(
    file: Annotated[Path, typer.Argument(help="Action script (.json, .yaml, .yml)")],
    config_path: Annotated[Path | None, typer.Option("--config", "-c", help="Config JSON file")] = None,
    storage_dir: Annotated[Path | None, typer.Option("--storage-dir", "-s", help="Write assets to this directory")] = None,
    latency: Annotated[float | None, typer.Option("--latency", help="Simulated provider latency in seconds")] = None,
    log_level: Annotated[str | None, typer.Option("--log-level", "-l", help="DEBUG, INFO, WARNING or ERROR")] = None,
) -> None:
    """Execute an action script against the simulated providers."""
    config = TetrasporeConfig.load(config_path)
    if storage_dir is not None:
        config.storage.backend = "local"
        config.storage.base_dir = storage_dir
    if latency is not None:
        config.execution.simulated_latency = latency
    setup_logging(level=(log_level or config.log_level).upper(), file_output=False)

    result = _parse_or_exit(file)
    processor = ActionProcessor(config=config)
    batch = asyncio.run(processor.execute(result.graph))
    _print_batch(batch)
    if not batch.success:
        raise typer.Exit(1)


@app.command("init-config")
def init_config(
    path: Annotated[Path, typer.Argument(help="Where to write the config")] = Path("tetraspore_config.json"),
) -> None:
    """Write a config file with default settings."""
    saved = TetrasporeConfig().save(path)
    console.print(f"[green]Wrote default config to {saved}[/green]")


def main() -> None:
    app()


if __name__ == "__main__":
    main()

"""
Agent Battalion CLI - Command-line interface.

Run the app generation pipeline and inspect contracts, stages and run
history from the terminal.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from agent_battalion.contracts.registry import get_stage_io, list_contracts
from agent_battalion.core.exceptions import BattalionError
from agent_battalion.orchestration.config import PipelineConfig
from agent_battalion.orchestration.pipeline import (
    Pipeline,
    PipelineDefinition,
    StageResult,
    pipeline_summary,
)

app = typer.Typer(
    name="battalion",
    help="Agent Battalion - Contract-enforced multi-agent app generation",
    no_args_is_help=True,
)
console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


@app.command()
def run(
    prompt: str = typer.Argument(..., help="Description of the app to build"),
    name: str = typer.Option("my-app", "--name", "-n", help="Project name"),
    output: Path = typer.Option(Path("./output"), "--output", "-o", help="Output directory"),
    max_repairs: Optional[int] = typer.Option(
        None, "--max-repairs", min=0, help="Repair attempts after a failed gate"
    ),
    no_escalate: bool = typer.Option(
        False, "--no-escalate", help="Finish the run even if repairs are exhausted"
    ),
    stage_timeout: Optional[float] = typer.Option(
        None, "--stage-timeout", help="Per-stage timeout in seconds"
    ),
    record: bool = typer.Option(False, "--record", "-r", help="Record run in state"),
    save: bool = typer.Option(
        False, "--save", "-s", help="Write artifacts to <output>/.battalion/<run_id>"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Run the app generation pipeline."""
    _configure_logging(verbose)

    try:
        config = PipelineConfig.from_env(
            prompt=prompt,
            project_name=name,
            output_dir=str(output),
            max_repair_attempts=max_repairs,
            escalate_on_failure=False if no_escalate else None,
            stage_timeout=stage_timeout,
        )
    except BattalionError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    console.print(
        Panel.fit(
            f"[bold blue]Agent Battalion[/bold blue]\n"
            f"Project: {config.project_name}\n"
            f"Output: {config.output_dir}\n"
            f"Max repairs: {config.max_repair_attempts}",
        )
    )

    def on_stage(stage_result: StageResult) -> None:
        symbol = "[green]✓[/green]" if stage_result.error is None else "[red]✗[/red]"
        console.print(f"{symbol} {stage_result.name}")

    pipeline = Pipeline(config, on_stage_complete=on_stage)
    result = asyncio.run(pipeline.run())

    console.print("\n")
    console.print(pipeline_summary(result))

    if record:
        from agent_battalion.state.manager import StateManager

        run_record = StateManager().record_run(config, result)
        console.print(f"\n[green]Run recorded:[/green] {run_record.run_id}")

    if save:
        from agent_battalion.state.manager import StateManager

        run_dir = StateManager().persist_artifacts(result, output)
        console.print(f"\n[green]Artifacts saved to:[/green] {run_dir}")

    if not result.success:
        raise typer.Exit(1)


@app.command()
def contracts(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed info"),
):
    """List agent contracts."""
    contract_list = list_contracts()

    table = Table(title=f"Agent Contracts ({len(contract_list)})")
    table.add_column("Agent", style="cyan", no_wrap=True)
    table.add_column("Inputs")
    table.add_column("Outputs", style="green")

    for contract in contract_list:
        inputs = ", ".join(
            ref.type.value if ref.required else f"{ref.type.value}?" for ref in contract.inputs
        )
        outputs = ", ".join(ref.type.value for ref in contract.outputs)
        if verbose:
            if contract.invariants:
                outputs += "\nInvariants: " + "; ".join(contract.invariants)
            if contract.forbidden_actions:
                outputs += "\nForbidden: " + "; ".join(contract.forbidden_actions)
        table.add_row(contract.agent_id, inputs or "-", outputs or "-")

    console.print(table)


@app.command()
def stages():
    """List pipeline stages."""
    definition = PipelineDefinition.create_app()

    table = Table(title=f"Pipeline: {definition.name}")
    table.add_column("#", style="dim")
    table.add_column("Stage", style="cyan", no_wrap=True)
    table.add_column("Agent")
    table.add_column("Requires")
    table.add_column("Produces", style="green")

    for i, stage in enumerate(definition.stages, start=1):
        stage_io = get_stage_io(stage.name)
        requires = ", ".join(t.value for t in stage_io.requires) if stage_io else ""
        produces = ", ".join(t.value for t in stage.produces)
        table.add_row(str(i), stage.name, stage.agent_id, requires or "-", produces or "-")

    console.print(table)


@app.command()
def history(
    limit: int = typer.Option(20, "--limit", "-n", help="Number of runs to show"),
):
    """Show recorded pipeline runs."""
    from agent_battalion.state.manager import StateManager

    runs = StateManager().list_runs(limit=limit)

    if not runs:
        console.print("[yellow]No runs recorded[/yellow]")
        return

    table = Table(title=f"Run History ({len(runs)} runs)")
    table.add_column("Time", style="cyan")
    table.add_column("Project")
    table.add_column("Status")
    table.add_column("Repairs")
    table.add_column("Duration")
    table.add_column("Run ID", style="dim")

    for record in runs:
        status_style = "green" if record.status.value == "complete" else "red"
        duration = f"{record.execution_time_ms:.0f}ms" if record.execution_time_ms else "-"
        table.add_row(
            record.started_at[:19],
            record.project_name,
            f"[{status_style}]{record.status.value}[/{status_style}]",
            str(record.repair_attempts),
            duration,
            record.run_id[:12],
        )

    console.print(table)


@app.command()
def version():
    """Show Agent Battalion version."""
    from agent_battalion import __version__

    console.print(f"Agent Battalion v{__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()

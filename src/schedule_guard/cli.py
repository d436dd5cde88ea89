"""
schedule-guard CLI - validate a generated schedule against its source documents.

Commands:
    schedule-guard validate SCHEDULE.json --docs DIR   Run one validation job
    schedule-guard gates                               List the built-in quality gates
    schedule-guard version                             Show the installed version
"""

import asyncio
import json
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import PipelineConfig
from .errors import ScheduleGuardError, StructuralValidationError
from .gates import QualityGateManager
from .gates.models import GateEvaluation
from .orchestration import JobInput, ScheduleValidationOrchestrator

app = typer.Typer(help="Validate, gate and repair AI-generated project schedules")
console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def load_documents(docs_dir: Path | None) -> list[dict[str, str]]:
    """Read every file in a directory as a {name, content} source document."""
    if docs_dir is None:
        return []
    documents = []
    for path in sorted(docs_dir.iterdir()):
        if path.is_file():
            documents.append({"name": path.name, "content": path.read_text(errors="replace")})
    return documents


def _gate_table(evaluation: GateEvaluation) -> Table:
    table = Table(title="Quality Gates")
    table.add_column("Gate", style="bold")
    table.add_column("Status")
    table.add_column("Score")
    table.add_column("Threshold")
    table.add_column("Details")

    for failure in evaluation.failures:
        table.add_row(
            failure.gate, "[red]BLOCKING[/red]", str(failure.score), str(failure.threshold),
            failure.error or "\n".join(failure.detail[:5]),
        )
    for warning in evaluation.warnings:
        table.add_row(
            warning.gate, "[yellow]WARNING[/yellow]", str(warning.score), str(warning.threshold),
            warning.error or "\n".join(warning.detail[:5]),
        )
    if evaluation.clean:
        table.add_row("ALL", "[green]PASS[/green]", "", "", "Every gate passed")
    return table


# =============================================================================
# VALIDATE
# =============================================================================


@app.command()
def validate(
    schedule_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Schedule JSON file"),
    docs: Path = typer.Option(None, "--docs", exists=True, file_okay=False, help="Directory of source documents"),
    output: Path = typer.Option(None, "--output", "-o", help="Write the job result JSON here"),
    max_attempts: int = typer.Option(None, "--max-attempts", min=0, help="Repair attempt bound"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Run one validation job and print the quality gate report."""
    _configure_logging(verbose)
    config = PipelineConfig.from_env()
    if max_attempts is not None:
        config.max_repair_attempts = max_attempts

    try:
        schedule = json.loads(schedule_path.read_text())
    except json.JSONDecodeError as e:
        console.print(f"[bold red]Error:[/bold red] {schedule_path} is not valid JSON: {e}")
        raise typer.Exit(1)

    console.print(f"\n[bold blue]schedule-guard validate[/bold blue]")
    console.print(f"Schedule: {schedule_path}\n")

    orchestrator = ScheduleValidationOrchestrator(config=config)
    try:
        result = asyncio.run(
            orchestrator.run(JobInput(schedule=schedule, documents=load_documents(docs)))
        )
    except StructuralValidationError as e:
        console.print(f"\n[bold red]Job failed:[/bold red] {e}")
        raise typer.Exit(2)
    except ScheduleGuardError as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    console.print(_gate_table(result.final_quality_gates))
    if result.repair_log is not None:
        log = result.repair_log
        console.print(
            f"\nRepairs: {len(log.successful_repairs)} succeeded, {len(log.failed_repairs)} failed"
        )

    if output:
        output.write_text(json.dumps(result.to_dict(), indent=2, default=str))
        console.print(f"Result written to {output}")

    if not result.final_quality_gates.passed:
        console.print("\n[bold red]Blocking gates still failing. Needs manual review.[/bold red]")
        raise typer.Exit(1)
    if result.final_quality_gates.warnings:
        console.print(f"\n[yellow]{len(result.final_quality_gates.warnings)} warning(s).[/yellow]")
    else:
        console.print("\n[bold green]All gates passed![/bold green]")


# =============================================================================
# GATES
# =============================================================================


@app.command()
def gates():
    """List the built-in quality gates and their thresholds."""
    manager = QualityGateManager(config=PipelineConfig.from_env())

    table = Table(title="Built-in Quality Gates")
    table.add_column("Gate", style="bold")
    table.add_column("Threshold")
    table.add_column("Kind")
    for gate in manager.gates():
        kind = "[red]blocking[/red]" if gate["blocker"] else "[yellow]advisory[/yellow]"
        table.add_row(gate["name"], str(gate["threshold"]), kind)
    console.print(table)


# =============================================================================
# VERSION
# =============================================================================


@app.command()
def version():
    """Show schedule-guard version."""
    from schedule_guard import __version__
    console.print(f"schedule-guard v{__version__}")


if __name__ == "__main__":
    app()

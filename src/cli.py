"""
Resume-Ingest Command Line Interface

Provides CLI commands for running the resume ingestion pipeline,
inspecting pipeline statuses, and exercising the data rules on files.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="resume-ingest",
    help="Asynchronous resume ingestion pipeline CLI",
    add_completion=False,
)
console = Console()


def _load_json(path: Path) -> Any:
    """Read a JSON file, exiting with an error message if it is unusable."""
    if not path.exists():
        console.print(f"[red]Error: File does not exist: {path}[/red]")
        raise typer.Exit(1)
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        console.print(f"[red]Error: Invalid JSON in {path}: {e}[/red]")
        raise typer.Exit(1)


def _load_jobs(path: Path) -> list[dict[str, Any]]:
    """Read intake payloads, one JSON object per line."""
    if not path.exists():
        console.print(f"[red]Error: File does not exist: {path}[/red]")
        raise typer.Exit(1)

    payloads = []
    for line_no, line in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1):
        if not line.strip():
            continue
        try:
            payloads.append(json.loads(line))
        except json.JSONDecodeError as e:
            console.print(f"[red]Error: Invalid JSON on line {line_no}: {e}[/red]")
            raise typer.Exit(1)
    return payloads


@app.command()
def version():
    """Show application version."""
    from src import __app_name__, __version__

    console.print(f"[bold blue]{__app_name__}[/bold blue] version [green]{__version__}[/green]")


@app.command()
def info():
    """Show system information and configuration."""
    from src.utils.config import get_settings

    settings = get_settings()
    pipeline = settings.pipeline

    table = Table(title="Resume-Ingest Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Environment", settings.environment)
    table.add_row("Debug Mode", str(settings.debug))
    table.add_row("Database Host", settings.database.host)
    table.add_row("Database Name", settings.database.name)
    table.add_row("Workers", str(pipeline.worker_count))
    table.add_row("Max Attempts", str(pipeline.max_attempts))
    table.add_row("Stage Timeout", f"{pipeline.stage_timeout_seconds:g}s")
    table.add_row("Max Job Duration", f"{pipeline.max_job_duration_seconds:g}s")
    table.add_row("Status Backend", pipeline.status_backend)
    table.add_row("Allowed MIME Types", ", ".join(pipeline.allowed_mime_types))
    table.add_row("Log Level", settings.logging.level)

    console.print(table)


@app.command()
def init_db():
    """Initialize the database with required collections and indexes."""
    from src.data.database import get_database_manager

    console.print("[yellow]Initializing database...[/yellow]")

    try:
        db_manager = get_database_manager()

        console.print("  Checking database connection...")
        if not db_manager.check_connection():
            console.print("[red]Error: Could not connect to MongoDB.[/red]")
            console.print("[dim]Make sure MongoDB is running and connection settings are correct.[/dim]")
            raise typer.Exit(1)

        console.print("  [green]✓[/green] Connected to MongoDB")

        console.print("  Creating indexes...")
        db_manager.ensure_indexes()
        console.print("  [green]✓[/green] Indexes created")

        console.print("\n[green]Database initialized successfully![/green]")

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[red]Error initializing database: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def normalize_skills(
    file: Path = typer.Argument(..., help="JSON file with a skill list (names or objects)"),
):
    """Deduplicate, categorize and canonicalize a skill list."""
    from pydantic import ValidationError

    from src.core.ingestion.skill_normalizer import normalize_skills as normalize

    data = _load_json(file)
    raw_skills = data.get("skills", []) if isinstance(data, dict) else data
    if not isinstance(raw_skills, list):
        console.print("[red]Error: Expected a list of skills[/red]")
        raise typer.Exit(1)

    try:
        skills = normalize({"name": s} if isinstance(s, str) else s for s in raw_skills)
    except ValidationError as e:
        console.print(f"[red]Error: Invalid skill entry: {e}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"Normalized Skills ({len(raw_skills)} in, {len(skills)} out)")
    table.add_column("Name", style="cyan")
    table.add_column("Category", style="green")
    table.add_column("Proficiency", justify="right")

    for skill in skills:
        table.add_row(
            skill.name,
            skill.category or "",
            f"{skill.proficiency:g}" if skill.proficiency is not None else "-",
        )

    console.print(table)


@app.command()
def experience(
    file: Path = typer.Argument(..., help="JSON file with a work experience list"),
    now: Optional[datetime] = typer.Option(
        None, "--now", help="Reference date for current positions", formats=["%Y-%m-%d"]
    ),
):
    """Compute total years of experience from a work history."""
    from pydantic import ValidationError

    from src.core.ingestion.experience import ExperienceAggregator
    from src.data.models.resume import WorkExperience

    data = _load_json(file)
    if isinstance(data, dict):
        data = data.get("work_experience") or data.get("workExperience") or data.get("experience") or []

    try:
        entries = [WorkExperience.model_validate(item) for item in data]
    except ValidationError as e:
        console.print(f"[red]Error: Invalid work experience entry: {e}[/red]")
        raise typer.Exit(1)

    aggregator = ExperienceAggregator()
    reference = now.date() if now else None
    months = aggregator.total_months(entries, reference)
    years = aggregator.total_years(entries, reference)

    counted = sum(1 for e in entries if e.start_date is not None)
    console.print(f"Entries counted: [cyan]{counted}[/cyan] of {len(entries)}")
    console.print(f"Total months:    [cyan]{months}[/cyan]")
    console.print(f"Total experience: [bold green]{years}[/bold green] years")


@app.command()
def status(
    job_id: str = typer.Argument(..., help="Job ID to inspect"),
):
    """Show the pipeline status of a job."""
    from src.core.ingestion.pipeline import create_status_store

    current = create_status_store().get(job_id)
    if current is None:
        console.print(f"[red]Error: No pipeline status for job {job_id}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"Pipeline Status: {job_id}")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Candidate", current.candidate_id or "-")
    table.add_row("Stage", current.stage.value)
    table.add_row("Phase", current.phase or "-")
    table.add_row("Progress", f"{current.progress}%")
    table.add_row("Attempts", str(current.attempts))
    table.add_row("Retrying", "Yes" if current.retrying else "No")
    table.add_row("Message", current.message or "-")
    table.add_row("Started", current.started_at.strftime("%Y-%m-%d %H:%M:%S"))
    table.add_row("Updated", current.updated_at.strftime("%Y-%m-%d %H:%M:%S"))
    if current.last_error:
        table.add_row("Last Error", f"[red]{current.last_error}[/red]")

    console.print(table)

    if current.notifications:
        console.print("\n[bold]Notifications:[/bold]")
        for note in current.notifications[-10:]:
            console.print(f"  [dim]{note.timestamp:%H:%M:%S}[/dim] [{note.stage}] {note.type}: {note.message}")


@app.command()
def stats():
    """Show pipeline status counts."""
    from src.core.ingestion.pipeline import create_status_store
    from src.utils.config import get_settings

    statistics = create_status_store().statistics()

    table = Table(title="Pipeline Statistics")
    table.add_column("State", style="cyan")
    table.add_column("Count", justify="right", style="green")

    table.add_row("Total", str(statistics.total))
    table.add_row("Active", str(statistics.active))
    table.add_row("Retrying", str(statistics.retrying))
    table.add_row("Completed", str(statistics.completed))
    table.add_row("Failed", str(statistics.failed))

    console.print(table)

    if get_settings().pipeline.status_backend == "memory":
        console.print("[dim]Status backend is 'memory'; only this process's jobs are counted.[/dim]")


@app.command()
def worker(
    engine: str = typer.Option(..., "--engine", "-e", help="Parsing engine as module:factory"),
    jobs: Path = typer.Option(..., "--jobs", "-j", help="JSON Lines file of intake payloads"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", help="Number of worker threads"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Seconds to wait for the queue to drain"),
):
    """Process intake payloads through the ingestion pipeline."""
    from pydantic import ValidationError

    from src.core.ingestion.pipeline import build_pipeline, load_engine
    from src.core.ingestion.worker import InMemoryJobQueue, WorkerPool
    from src.data.database import get_database_manager
    from src.data.models.pipeline import ProcessingJob
    from src.data.repositories import MongoResumePersistence

    payloads = _load_jobs(jobs)
    if not payloads:
        console.print("[yellow]No jobs found.[/yellow]")
        raise typer.Exit(0)

    try:
        parsing_engine = load_engine(engine)
    except (ImportError, ValueError) as e:
        console.print(f"[red]Error loading engine: {e}[/red]")
        raise typer.Exit(1)

    if not get_database_manager().check_connection():
        console.print("[red]Error: Could not connect to MongoDB. Run 'init-db' first.[/red]")
        raise typer.Exit(1)

    pipeline = build_pipeline(parsing_engine, MongoResumePersistence())
    job_queue = InMemoryJobQueue()

    rejected = 0
    for payload in payloads:
        try:
            job_queue.put(ProcessingJob.from_intake(payload))
        except ValidationError as e:
            console.print(f"[yellow]Skipping malformed payload {payload.get('jobId', '?')}: {e}[/yellow]")
            rejected += 1

    console.print(f"Queued [cyan]{len(payloads) - rejected}[/cyan] job(s)")

    pool = WorkerPool(pipeline.coordinator, job_queue, worker_count=workers)
    pipeline.watchdog.start()
    try:
        with console.status("Processing resumes..."):
            results = pool.run_until_idle(timeout=timeout)
    finally:
        job_queue.close()
        pipeline.shutdown()

    table = Table(title="Ingestion Results")
    table.add_column("Job", style="cyan")
    table.add_column("Candidate")
    table.add_column("Result")
    table.add_column("Time (ms)", justify="right")
    table.add_column("Error", style="red")

    for result in results:
        table.add_row(
            result.job_id or "-",
            result.candidate_id or "-",
            "[green]✓ success[/green]" if result.success else "[red]✗ failed[/red]",
            str(result.processing_time),
            result.error or "",
        )

    console.print(table)

    failed = sum(1 for r in results if not r.success)
    console.print(
        f"\n[bold]Summary:[/bold] {len(results) - failed} succeeded, {failed} failed, {rejected} rejected"
    )
    if failed or rejected:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()

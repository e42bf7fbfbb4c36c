"""CLI entry point for SessionSifter."""

import json
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from sessionsifter.config import ConfigurationError, Settings, load_settings
from sessionsifter.fusion.directory import CachedDirectory
from sessionsifter.fusion.engine import MetadataFusionEngine
from sessionsifter.ingest.evidence import LocalFetcher, evidence_from_payload
from sessionsifter.process import analyze_folders, process_recording, result_to_dict, summarize
from sessionsifter.storage.database import Database
from sessionsifter.storage.export import export_results
from sessionsifter.storage.layout import LocalLayout
from sessionsifter.storage.repository import Repository

console = Console(force_terminal=True)


def _settings(ctx) -> Settings:
    return ctx.obj["settings"]


def _read_directory(db_path: Path):
    with Database(db_path) as db:
        return Repository(db).load_directory()


def _load_directory(db_path: Path):
    """Directory for one batch, loaded fresh from the database; None when empty."""
    if not db_path.exists():
        return None
    directory = CachedDirectory(lambda: _read_directory(db_path))
    return directory if len(directory.refresh()) else None


def _confidence(field) -> str:
    if not field.known:
        return "[dim]-[/dim]"
    color = "green" if field.confidence >= 0.8 else "yellow" if field.confidence >= 0.5 else "red"
    return f"[{color}]{field.confidence:.2f}[/{color}]"


@click.group()
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(),
    help="Settings JSON file (default: $SESSIONSIFTER_CONFIG or sessionsifter.json)",
)
@click.option(
    "--db",
    default=None,
    help="Database path (overrides settings)",
    type=click.Path(),
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, config_path, db, verbose):
    """SessionSifter - Name and file coaching-call recordings."""
    ctx.ensure_object(dict)

    if verbose:
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.INFO, format="%(message)s")

    try:
        settings = load_settings(config_path)
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e

    ctx.obj["settings"] = settings
    ctx.obj["db_path"] = Path(db) if db else settings.db_path


# ---------------------------------------------------------------------------
# Recording Commands
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("root", type=click.Path(exists=True, file_okay=False))
@click.option("--save", is_flag=True, help="Write detailed results to a JSON file")
@click.option("--record", is_flag=True, help="Also write results to the ledger")
@click.pass_context
def analyze(ctx, root, save, record):
    """Analyze each sub-folder of ROOT as one local recording."""
    settings = _settings(ctx)
    db_path = ctx.obj["db_path"]
    engine = MetadataFusionEngine(settings, _load_directory(db_path))

    if record:
        with Database(db_path) as db:
            results = analyze_folders(Path(root), engine, Repository(db))
    else:
        results = analyze_folders(Path(root), engine)

    if not results:
        console.print(f"[yellow]No new recording folders in {root}.[/yellow]")
        return

    table = Table(title="Recording Analysis")
    table.add_column("Folder", style="cyan", max_width=40)
    table.add_column("Category")
    table.add_column("Coach", style="bold")
    table.add_column("Conf", justify="right")
    table.add_column("Student", style="bold")
    table.add_column("Conf", justify="right")
    table.add_column("Week", justify="right")
    table.add_column("Review", justify="center")

    for result in results:
        rec = result["record"]
        table.add_row(
            result["folder"],
            rec.category.value,
            rec.coach.value or "",
            _confidence(rec.coach),
            rec.student.value or "",
            _confidence(rec.student),
            rec.week_number.value or "",
            "[red]![/red]" if rec.needs_review else "",
        )
    console.print(table)

    for result in results:
        if not result["files"]:
            continue
        console.print(f"\n[bold]{result['folder']}[/bold]")
        for source, _, name in result["files"]:
            console.print(f"  {Path(source).name} [dim]->[/dim] {name}", highlight=False)

    summary = summarize(results)
    console.print()
    summary_table = Table(title="Summary")
    summary_table.add_column("Field", style="cyan")
    for bucket in ("high", "medium", "low"):
        summary_table.add_column(bucket.capitalize(), justify="right")
    for key in ("coach", "student"):
        summary_table.add_row(key.capitalize(), *(str(summary[key][b]) for b in ("high", "medium", "low")))
    console.print(summary_table)
    console.print(
        f"Analyzed [bold]{summary['total']}[/bold] recordings, "
        f"[bold]{summary['needs_review']}[/bold] need review."
    )

    if save:
        path = export_results([result_to_dict(r) for r in results], db_path.parent / "exports", summary)
        console.print(f"Saved detailed results to [bold]{path}[/bold]")


@cli.command()
@click.argument("payload", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--files-dir",
    type=click.Path(exists=True, file_okay=False),
    default=None,
    help="Directory holding the downloaded recording files (default: payload's folder)",
)
@click.option(
    "--organize",
    "organize_dest",
    type=click.Path(file_okay=False),
    default=None,
    help="Copy named files into a By Program / By Coach / By Student tree here",
)
@click.pass_context
def process(ctx, payload, files_dir, organize_dest):
    """Process one recording-completed webhook PAYLOAD file."""
    settings = _settings(ctx)
    db_path = ctx.obj["db_path"]
    payload_path = Path(payload)

    try:
        data = json.loads(payload_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise click.ClickException(f"Cannot read payload: {e}") from e
    if not isinstance(data, dict):
        raise click.ClickException("Payload must be a JSON object")

    fetcher = LocalFetcher(Path(files_dir) if files_dir else payload_path.parent)
    evidence = evidence_from_payload(data, fetcher)
    engine = MetadataFusionEngine(settings, _load_directory(db_path))
    layout = LocalLayout(Path(organize_dest)) if organize_dest else None

    with Database(db_path) as db:
        result = process_recording(
            evidence, engine, repo=Repository(db), layout=layout, resolve=fetcher.resolve,
        )

    if result["skipped"]:
        console.print(f"[yellow]Recording {result['recording_id']} already processed.[/yellow]")
        return

    rec = result["record"]
    console.print(f"[green]Processed[/green] {result['recording_id']}: [bold]{result['base_name']}[/bold]")
    console.print(f"  Coach:   {rec.coach.value or '-'} ({_confidence(rec.coach)}, {rec.coach.source.value})")
    console.print(f"  Student: {rec.student.value or '-'} ({_confidence(rec.student)}, {rec.student.source.value})")
    console.print(f"  Week:    {rec.week_number.value or '-'}  Category: {rec.category.value}")
    for _, _, name in result["files"]:
        console.print(f"  [dim]-[/dim] {name}", highlight=False)
    if result["placed"]:
        console.print(f"  Placed {len(result['placed'])} file copies under {organize_dest}")
    if rec.needs_review:
        console.print("[yellow]Low confidence: queued for review.[/yellow]")


# ---------------------------------------------------------------------------
# Student Directory Commands
# ---------------------------------------------------------------------------


@cli.group(name="directory")
def directory_group():
    """Manage the student directory."""
    pass


@directory_group.command(name="import")
@click.argument("csv_path", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def directory_import(ctx, csv_path):
    """Import students from a CSV file with a header row."""
    with Database(ctx.obj["db_path"]) as db:
        count = Repository(db).import_students_csv(Path(csv_path))
    console.print(f"[green]Imported[/green] [bold]{count}[/bold] students.")


@directory_group.command(name="list")
@click.pass_context
def directory_list(ctx):
    """List students in the directory."""
    db_path = ctx.obj["db_path"]
    if not db_path.exists():
        console.print("[yellow]No database found.[/yellow] Run 'directory import' first.")
        return

    with Database(db_path) as db:
        entries = Repository(db).load_directory()

    if not entries:
        console.print("[yellow]No students in the directory.[/yellow]")
        return

    table = Table(title="Student Directory")
    table.add_column("Email", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Coach")
    table.add_column("Program")
    table.add_column("Start", justify="right")
    for e in entries:
        table.add_row(
            e.email, e.display_name, e.coach_name, e.program,
            e.start_date.isoformat() if e.start_date else "",
        )
    console.print(table)


# ---------------------------------------------------------------------------
# Ledger Commands
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--all", "show_all", is_flag=True, help="Include resolved items")
@click.pass_context
def review(ctx, show_all):
    """Show recordings queued for manual review."""
    db_path = ctx.obj["db_path"]
    if not db_path.exists():
        console.print("[yellow]No database found.[/yellow]")
        return

    with Database(db_path) as db:
        items = Repository(db).get_review_queue(include_resolved=show_all)

    if not items:
        console.print("[green]Nothing to review.[/green]")
        return

    table = Table(title="Review Queue")
    table.add_column("Recording", style="cyan")
    table.add_column("Reason")
    table.add_column("Flagged")
    table.add_column("Resolved", justify="center")
    for item in items:
        table.add_row(
            item["recording_id"],
            item["reason"],
            item["created_at"] or "",
            "[green]✓[/green]" if item["resolved"] else "",
        )
    console.print(table)


@cli.command()
@click.argument("recording_id")
@click.pass_context
def resolve(ctx, recording_id):
    """Mark a queued recording as reviewed."""
    with Database(ctx.obj["db_path"]) as db:
        resolved = Repository(db).resolve_review(recording_id)
    if resolved:
        console.print(f"[green]Resolved[/green] {recording_id}")
    else:
        console.print(f"[yellow]No open review item for {recording_id}.[/yellow]")


@cli.command()
@click.pass_context
def status(ctx):
    """Show ledger totals."""
    db_path = ctx.obj["db_path"]

    if not db_path.exists():
        console.print("[yellow]No database found.[/yellow] Run 'process' or 'analyze --record' first.")
        return

    with Database(db_path) as db:
        summary = Repository(db).get_progress_summary()

    console.print()
    console.print("[bold]SessionSifter Status[/bold]")
    console.print(f"Sessions: [bold]{summary['total_sessions']}[/bold]")
    console.print(f"Students in directory: [bold]{summary['students']}[/bold]")
    console.print(f"Pending review: [bold]{summary['pending_review']}[/bold]")

    if summary["by_coach"]:
        console.print()
        table = Table(title="Sessions by Coach")
        table.add_column("Coach", style="cyan")
        table.add_column("Sessions", justify="right")
        for coach, count in summary["by_coach"].items():
            table.add_row(coach, str(count))
        console.print(table)

    if summary["by_category"]:
        console.print()
        table = Table(title="Sessions by Category")
        table.add_column("Category", style="cyan")
        table.add_column("Sessions", justify="right")
        for category, count in summary["by_category"].items():
            table.add_row(category, str(count))
        console.print(table)


if __name__ == "__main__":
    cli()

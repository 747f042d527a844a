"""CLI: python -m job_tracker"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .analytics import compute_analytics
from .config import TrackerConfig, load_config
from .errors import JobNotFoundError, TrackerError
from .insights import generate_insights
from .listing import export_csv, filter_jobs, job_stats, sort_jobs
from .models import AnalysisType, parse_create, parse_update
from .store import JobRepository, open_store

app = typer.Typer(help="Personal job-application tracker with AI career insights")
console = Console()

_STATUS_STYLE = {
    "Applied": "blue",
    "Interviewing": "yellow",
    "Offer": "green",
    "Rejected": "red",
}


def _config(ctx: typer.Context) -> TrackerConfig:
    return ctx.obj


def _store(ctx: typer.Context) -> JobRepository:
    return open_store(_config(ctx).store)


def _fail(exc: Exception) -> None:
    console.print(f"[red]Error:[/red] {escape(str(exc))}")
    raise typer.Exit(1)


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to YAML config override"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
        datefmt="%H:%M:%S",
    )
    ctx.obj = load_config(config)


@app.command()
def serve(
    ctx: typer.Context,
    host: Optional[str] = typer.Option(None, help="Bind address (default from config)"),
    port: Optional[int] = typer.Option(None, help="Port (default from config)"),
):
    """Run the dashboard API."""
    import uvicorn

    from dashboard.server import create_app

    logging.getLogger().setLevel(logging.INFO)
    cfg = _config(ctx)
    uvicorn.run(
        create_app(config=cfg),
        host=host or cfg.server.host,
        port=port or cfg.server.port,
    )


@app.command("list")
def list_(
    ctx: typer.Context,
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Match title or company"),
    status: Optional[str] = typer.Option(None, "--status", help="Applied, Interviewing, Offer or Rejected"),
    sort: str = typer.Option("dateApplied", "--sort", help="dateApplied, title, company or status"),
    ascending: bool = typer.Option(False, "--asc", help="Sort ascending"),
):
    """Show tracked applications."""
    with _store(ctx) as store:
        jobs = filter_jobs(store.list_jobs(), search=search, status=status)
    try:
        jobs = sort_jobs(jobs, field=sort, direction="asc" if ascending else "desc")
    except ValueError as exc:
        _fail(exc)

    if not jobs:
        console.print("No applications yet.")
        return

    table = Table(title=f"{len(jobs)} Applications")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Title")
    table.add_column("Company")
    table.add_column("Status")
    table.add_column("Applied")
    table.add_column("ID", style="dim")
    for i, job in enumerate(jobs, 1):
        style = _STATUS_STYLE.get(job.status.value, "")
        table.add_row(
            str(i),
            job.title[:50],
            job.company[:30],
            f"[{style}]{job.status.value}[/{style}]",
            job.date_applied.strftime("%Y-%m-%d"),
            job.id[:8],
        )
    console.print(table)


@app.command()
def add(
    ctx: typer.Context,
    title: str = typer.Option(..., "--title", "-t"),
    company: str = typer.Option(..., "--company"),
    link: str = typer.Option(..., "--link", "-l", help="Application URL"),
    status: str = typer.Option("Applied", "--status"),
):
    """Record a new application."""
    try:
        data = parse_create({"title": title, "company": company, "applicationLink": link, "status": status})
        with _store(ctx) as store:
            job = store.create_job(data)
    except TrackerError as exc:
        _fail(exc)
    console.print(f"Added [bold]{job.title}[/bold] @ {job.company} ({job.id})")


def _resolve_id(store: JobRepository, prefix: str) -> str:
    matches = [j.id for j in store.list_jobs() if j.id.startswith(prefix)]
    if not matches:
        raise JobNotFoundError(prefix)
    if len(matches) > 1:
        raise TrackerError(f"Id prefix {prefix!r} is ambiguous")
    return matches[0]


@app.command()
def update(
    ctx: typer.Context,
    job_id: str = typer.Argument(..., help="Job id (a unique prefix is enough)"),
    status: Optional[str] = typer.Option(None, "--status"),
    title: Optional[str] = typer.Option(None, "--title", "-t"),
    company: Optional[str] = typer.Option(None, "--company"),
    link: Optional[str] = typer.Option(None, "--link", "-l"),
):
    """Change fields of an application."""
    fields = {"status": status, "title": title, "company": company, "applicationLink": link}
    try:
        data = parse_update({k: v for k, v in fields.items() if v is not None})
        with _store(ctx) as store:
            job = store.update_job(_resolve_id(store, job_id), data)
    except TrackerError as exc:
        _fail(exc)
    console.print(f"Updated [bold]{job.title}[/bold] @ {job.company} → {job.status.value}")


@app.command()
def delete(
    ctx: typer.Context,
    job_id: str = typer.Argument(..., help="Job id (a unique prefix is enough)"),
):
    """Remove an application."""
    try:
        with _store(ctx) as store:
            full_id = _resolve_id(store, job_id)
            store.delete_job(full_id)
    except TrackerError as exc:
        _fail(exc)
    console.print(f"Deleted {full_id}")


@app.command()
def stats(ctx: typer.Context):
    """Show counts per status."""
    with _store(ctx) as store:
        counts = job_stats(store.list_jobs())

    table = Table(title="Applications")
    table.add_column("Metric", style="bold")
    table.add_column("Count", justify="right")
    for key, value in counts.items():
        table.add_row(key.capitalize(), str(value))
    console.print(table)


@app.command()
def analytics(
    ctx: typer.Context,
    date_range: str = typer.Option("all", "--range", "-r", help="30d, 90d, 6m, 1y or all"),
):
    """Conversion rates and top companies."""
    with _store(ctx) as store:
        summary = compute_analytics(store.list_jobs(), date_range)

    table = Table(title=f"Analytics ({summary.date_range})")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Applications", str(summary.total_applications))
    rates = summary.conversion_rates
    table.add_row("Application → interview", f"{rates.application_to_interview}%")
    table.add_row("Interview → offer", f"{rates.interview_to_offer}%")
    table.add_row("Overall success", f"{rates.overall_success}%")
    avg = summary.average_response_time
    table.add_row("Avg. response time", f"{avg} days" if avg is not None else "n/a")
    console.print(table)

    if summary.top_companies:
        companies = Table(title="Top Companies")
        companies.add_column("Company")
        companies.add_column("Applications", justify="right")
        companies.add_column("Response rate", justify="right")
        for c in summary.top_companies:
            companies.add_row(c.company, str(c.applications), f"{c.success_rate}%")
        console.print(companies)


@app.command()
def insights(
    ctx: typer.Context,
    analysis_type: str = typer.Option(
        "comprehensive", "--type",
        help="comprehensive, job-analysis, application-status or interview-preparation",
    ),
    status: Optional[str] = typer.Option(None, "--status", help="Only include this status"),
    prompt_only: bool = typer.Option(False, "--prompt-only", help="Print the prompt without calling the provider"),
):
    """Ask the AI provider for advice, or print a prompt to paste elsewhere."""
    cfg = _config(ctx)
    with open_store(cfg.store) as store:
        jobs = filter_jobs(store.list_jobs(), status=status)
    if not jobs:
        _fail(TrackerError("No applications to analyze"))

    result = generate_insights(
        jobs, AnalysisType.resolve(analysis_type), cfg.ai,
        api_key="" if prompt_only else None,
    )
    if result.mode == "ai":
        console.print(result.text)
        console.print(f"\n[dim]{result.tokens_used} tokens[/dim]")
        return
    if result.error or (result.message and not prompt_only):
        console.print(f"[yellow]{result.error or result.message}[/yellow]\n")
    console.print(result.prompt, markup=False, highlight=False)


@app.command()
def export(
    ctx: typer.Context,
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write CSV to file instead of stdout"),
    status: Optional[str] = typer.Option(None, "--status"),
):
    """Export applications as CSV."""
    with _store(ctx) as store:
        content = export_csv(filter_jobs(store.list_jobs(), status=status))
    if output:
        output.write_text(content, encoding="utf-8")
        console.print(f"CSV written to [bold]{output}[/bold]")
    else:
        typer.echo(content, nl=False)


if __name__ == "__main__":
    app()

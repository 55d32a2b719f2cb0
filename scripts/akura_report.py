# ABOUTME: Provides a CLI that prints student rosters and fairness dashboards from a store export.
# ABOUTME: Mirrors the mobile client's list, drill-down, and fairness screens as Rich tables.

from dataclasses import replace
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from src.common.config import DEFAULT_CONFIG_PATH, AppConfig, load_config
from src.common.ordering import ALL
from src.common.pagination import paginate
from src.common.repository import FileRecordRepository
from src.common.schemas import normalize_category
from src.common.validation import ValidationError, ValidationPolicy, partition_valid, validate_report, validate_upload
from src.fairness.reports import BiasStatus, ReportMode, classify_bias, reduce_reports_by_category, reports_to_frame
from src.fairness.service import load_reports
from src.roster.aggregation import aggregate_by_student, summaries_to_frame
from src.roster.analytics import student_analytics, upload_stats
from src.roster.service import find_student, load_upload_records

console = Console()
app = typer.Typer(help="Summarize essay uploads per student and review fairness reports.")

STATUS_COLORS = {
    BiasStatus.BIAS_AGAINST: "red",
    BiasStatus.BIAS_IN_FAVOR: "orange3",
    BiasStatus.NO_BIAS: "green",
}


def _load_settings(config: Optional[Path], lenient: bool) -> AppConfig:
    if config is None and DEFAULT_CONFIG_PATH.exists():
        config = DEFAULT_CONFIG_PATH
    settings = load_config(config)
    if lenient:
        settings = AppConfig(
            store=settings.store,
            roster=replace(settings.roster, validation=ValidationPolicy.SKIP),
            fairness=replace(settings.fairness, validation=ValidationPolicy.SKIP),
        )
    return settings


def _open_store(store: Optional[Path], settings: AppConfig) -> FileRecordRepository:
    path = store or settings.store.path
    try:
        return FileRecordRepository(path)
    except FileNotFoundError as exc:
        raise typer.BadParameter(str(exc), param_hint="--store") from exc


def _grade_filter(grade: str, settings: AppConfig):
    if grade.strip().upper() == ALL:
        return ALL
    value = normalize_category(grade.strip())
    allowed = [normalize_category(g) for g in settings.fairness.grades]
    if value not in allowed:
        choices = ", ".join(str(g) for g in allowed)
        raise typer.BadParameter(
            f"Unknown grade '{grade}'. Expected ALL or one of: {choices}.", param_hint="--grade"
        )
    return value


def _format_date(value) -> str:
    return value.strftime("%b %d, %Y") if value else "—"


def _format_number(value, digits: int = 3) -> str:
    if value is None or value != value:
        return "—"
    return f"{value:.{digits}f}"


@app.command()
def students(
    owner_id: str = typer.Option(..., "--owner-id", help="Teacher account whose uploads are summarized."),
    page: int = typer.Option(1, "--page", help="1-based page of the roster to show."),
    page_size: Optional[int] = typer.Option(None, "--page-size", help="Students per page; defaults to config."),
    store: Optional[Path] = typer.Option(None, "--store", help="Record store export (JSON file or parquet dir)."),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to akura config YAML."),
    lenient: bool = typer.Option(False, "--lenient", help="Skip invalid records instead of failing."),
    output: Optional[Path] = typer.Option(None, "--output", help="Optional CSV or parquet export of the full roster."),
) -> None:
    """
    List students ordered by their most recent upload.
    """
    settings = _load_settings(config, lenient)
    repository = _open_store(store, settings)
    records = load_upload_records(repository, owner_id)
    typer.echo(f"[roster] Loaded {len(records)} uploads for owner '{owner_id}'")

    if settings.roster.validation is ValidationPolicy.SKIP:
        _, errors = partition_valid(records, validate_upload)
        for error in errors:
            typer.echo(f"[roster] Skipping: {error}")

    try:
        summaries = aggregate_by_student(
            records,
            policy=settings.roster.validation,
            attribute_policy=settings.roster.attribute_policy,
        )
    except ValidationError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)

    if output:
        _write_frame(summaries_to_frame(summaries), output)
        typer.echo(f"[roster] Wrote {len(summaries)} students to {output}")

    if not summaries:
        console.print("[yellow]No students yet. Upload an essay to get started.[/yellow]")
        return

    current = paginate(summaries, page=page, page_size=page_size or settings.roster.page_size)
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Student")
    table.add_column("Details")
    table.add_column("Essays", justify="right")
    table.add_column("Avg", justify="right")
    table.add_column("Last upload")
    for summary in current.items:
        details = " • ".join(
            str(v)
            for v in (
                f"Age: {summary.student_age}" if summary.student_age else None,
                summary.student_grade,
                summary.student_gender,
            )
            if v
        )
        table.add_row(
            summary.student_id,
            details,
            str(summary.essay_count),
            "-" if summary.average_score is None else f"{summary.average_score}",
            _format_date(summary.last_upload_date),
        )
    console.rule(f"[bold blue]Students ({len(summaries)})[/bold blue]")
    console.print(table)
    console.print(f"Page {current.page} of {current.total_pages}")


@app.command()
def student(
    owner_id: str = typer.Option(..., "--owner-id", help="Teacher account that uploaded the essays."),
    student_id: str = typer.Option(..., "--student-id", help="Student identifier to drill into."),
    store: Optional[Path] = typer.Option(None, "--store", help="Record store export (JSON file or parquet dir)."),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to akura config YAML."),
    lenient: bool = typer.Option(False, "--lenient", help="Skip invalid records instead of failing."),
) -> None:
    """
    Show one student's essays and performance analytics.
    """
    settings = _load_settings(config, lenient)
    repository = _open_store(store, settings)
    try:
        summaries = aggregate_by_student(
            load_upload_records(repository, owner_id),
            policy=settings.roster.validation,
            attribute_policy=settings.roster.attribute_policy,
        )
    except ValidationError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)

    summary = find_student(summaries, student_id)
    if summary is None:
        console.print(f"[yellow]No essays found for {student_id}[/yellow]")
        raise typer.Exit(code=1)

    console.rule(f"[bold blue]{summary.student_id}[/bold blue]")
    essays = Table(show_header=True, header_style="bold magenta")
    essays.add_column("Essay")
    essays.add_column("Uploaded")
    essays.add_column("Score", justify="right")
    for essay in summary.essays:
        essays.add_row(essay.file_name or essay.id, _format_date(essay.uploaded_at), _format_number(essay.score, 1))
    console.print(essays)

    analytics = student_analytics(summary.essays, settings.roster.score_bands)
    if analytics is None:
        console.print("[yellow]No analytics available yet. Score essays to unlock insights.[/yellow]")
        return

    console.print(f"[bold]Essays scored:[/] {analytics.scored_count}")
    console.print(f"[bold]Avg score:[/] {analytics.average_score:.1f}")
    console.print(f"[bold]Highest / lowest:[/] {analytics.max_score:.1f} / {analytics.min_score:.1f}")
    color = "green" if analytics.trend >= 0 else "red"
    console.print(f"[bold]Trend:[/] [{color}]{analytics.trend:+.1f} ({analytics.trend_pct:+.1f}%)[/{color}]")
    bands = analytics.bands
    console.print(
        f"[bold]Distribution:[/] excellent={bands.excellent} good={bands.good} "
        f"average={bands.average} needs work={bands.needs_work}"
    )
    for component, value in analytics.rubric_averages.items():
        console.print(f"  {component}: {value:.2f}")
    console.print(f"[bold]Dyslexia flag rate:[/] {analytics.dyslexic_rate:.0f}%")
    if analytics.fairness_averages is not None:
        averages = analytics.fairness_averages
        console.print(
            f"[bold]Fairness averages:[/] SPD={averages['spd']:.3f} "
            f"DIR={averages['dir']:.3f} EOD={averages['eod']:.3f}"
        )


@app.command()
def stats(
    owner_id: str = typer.Option(..., "--owner-id", help="Teacher account to report on."),
    store: Optional[Path] = typer.Option(None, "--store", help="Record store export (JSON file or parquet dir)."),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to akura config YAML."),
) -> None:
    """
    Print upload totals for an account.
    """
    settings = _load_settings(config, lenient=False)
    result = upload_stats(load_upload_records(_open_store(store, settings), owner_id))
    console.print(f"[bold]Images:[/] {result.total_images}")
    console.print(f"[bold]Total size:[/] {result.total_size:,} bytes")
    console.print(f"[bold]First upload:[/] {_format_date(result.first_upload)}")
    console.print(f"[bold]Last upload:[/] {_format_date(result.last_upload)}")


@app.command()
def fairness(
    history: bool = typer.Option(False, "--history", help="Show every report instead of the latest per grade."),
    grade: str = typer.Option(ALL, "--grade", help="Grade to show, or ALL."),
    store: Optional[Path] = typer.Option(None, "--store", help="Record store export (JSON file or parquet dir)."),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to akura config YAML."),
    lenient: bool = typer.Option(False, "--lenient", help="Skip invalid reports instead of failing."),
    output: Optional[Path] = typer.Option(None, "--output", help="Optional CSV or parquet export of the rows shown."),
) -> None:
    """
    Batch-level bias analysis per grade, newest first.
    """
    settings = _load_settings(config, lenient)
    category_filter = _grade_filter(grade, settings)
    reports = load_reports(_open_store(store, settings))
    mode = ReportMode.HISTORY if history else ReportMode.LATEST

    if settings.fairness.validation is ValidationPolicy.SKIP:
        _, errors = partition_valid(reports, validate_report)
        for error in errors:
            typer.echo(f"[fairness] Skipping: {error}")

    try:
        rows = reduce_reports_by_category(
            reports, mode=mode, category_filter=category_filter, policy=settings.fairness.validation
        )
    except ValidationError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)

    if output:
        _write_frame(reports_to_frame(rows, settings.fairness.thresholds), output)
        typer.echo(f"[fairness] Wrote {len(rows)} reports to {output}")

    console.rule("[bold blue]Fairness Evaluation Dashboard[/bold blue]")
    console.print("Showing history" if history else "Showing latest only")
    if not rows:
        console.print("[yellow]No data for selected filter.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    for column in ("Grade", "SPD", "DIR", "Samples", "Date", "Status"):
        table.add_column(column)
    for report in rows:
        if report.dir is None:
            status_text = "—"
        else:
            status = classify_bias(report.dir, report.spd, settings.fairness.thresholds)
            color = STATUS_COLORS[status]
            status_text = f"[{color}]{status.label}[/{color}]"
        table.add_row(
            str(report.category),
            _format_number(report.spd),
            _format_number(report.dir),
            "—" if report.sample_size is None else str(report.sample_size),
            report.evaluated_at.strftime("%Y-%m-%d %H:%M"),
            status_text,
        )
    console.print(table)


def _write_frame(frame, output: Path) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)
    if output.suffix == ".parquet":
        frame.to_parquet(output, index=False)
    else:
        frame.to_csv(output, index=False)


def main():
    app()


if __name__ == "__main__":
    main()

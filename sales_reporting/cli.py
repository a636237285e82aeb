"""Typer CLI application for the sales reports.

Commands:
    report     Compute one report from a CSV dataset and print it
    export     Export every report from a CSV dataset to dated CSV files
    reconcile  Compare the SQL and dataframe reports on the configured database
"""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from sales_reporting.core.config import get_settings
from sales_reporting.core.exceptions import ReportingError
from sales_reporting.models import ReportName

console = Console()
app = typer.Typer(
    name="sales-reports",
    help="Sales reports: top sellers, weekday revenue, age groups, monthly income and more.",
    add_completion=False,
    no_args_is_help=True,
)


def _setup_logging(verbose: bool = False) -> None:
    """Configure logging level and format."""
    level = logging.DEBUG if verbose else get_settings().log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _resolve_data_dir(data_dir: Optional[Path]) -> Path:
    """Fall back to DATA_DIR when --data-dir is omitted."""
    if data_dir is not None:
        return data_dir
    configured = get_settings().data_dir
    if not configured:
        console.print("[red]No dataset directory: pass --data-dir or set DATA_DIR[/red]")
        raise typer.Exit(code=2)
    return Path(configured)


def _load_csv_dataset(data_dir: Optional[Path]):
    from sales_reporting.services.dataset import load_dataset_from_csv

    try:
        return load_dataset_from_csv(_resolve_data_dir(data_dir))
    except ReportingError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)


# ------------------------------------------------------------------
# report
# ------------------------------------------------------------------
@app.command()
def report(
    name: ReportName = typer.Argument(..., help="Report to compute."),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", "-d", help="Directory with the four CSV files."),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=1, help="Row limit for top_sellers."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Compute one report from a CSV dataset and print it."""
    from sales_reporting.services.reports import compute_report

    _setup_logging(verbose)
    dataset = _load_csv_dataset(data_dir)

    try:
        df = compute_report(name, dataset, top_sellers_limit=limit or get_settings().top_sellers_limit)
    except ReportingError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)

    table = Table(title=name.description, show_header=True, header_style="bold magenta")
    for column in df.columns:
        table.add_column(column)
    for row in df.itertuples(index=False):
        table.add_row(*(str(value) for value in row))
    console.print(table)


# ------------------------------------------------------------------
# export
# ------------------------------------------------------------------
@app.command()
def export(
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", "-d", help="Directory with the four CSV files."),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", "-o", help="Export directory (default: EXPORT_DIR)."),
    run_date: Optional[datetime] = typer.Option(None, "--date", formats=["%Y-%m-%d"], help="Run date stamped into file names."),
    force: bool = typer.Option(False, "--force", help="Replace existing exports for the run date."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Export every report to dated CSV files."""
    from sales_reporting.jobs.export_reports import export_reports

    _setup_logging(verbose)
    dataset = _load_csv_dataset(data_dir)

    result = export_reports(
        dataset,
        output_dir=output_dir,
        run_date=run_date.date() if run_date else None,
        force=force,
    )

    table = Table(title=f"Export {result['date']}", show_header=True, header_style="bold magenta")
    table.add_column("Report", style="cyan")
    table.add_column("Status")
    table.add_column("Details")
    for item in result['results']:
        if not item['success']:
            status, details = "[red]error[/red]", item['error'] or ""
        elif item['skipped']:
            status, details = "[yellow]skipped[/yellow]", item['path']
        else:
            status, details = "[green]exported[/green]", f"{item['rows']} rows -> {item['path']}"
        table.add_row(item['report'], status, details)
    console.print(table)

    if not result['success']:
        raise typer.Exit(code=1)


# ------------------------------------------------------------------
# reconcile
# ------------------------------------------------------------------
@app.command()
def reconcile(
    data_dir: Optional[Path] = typer.Option(
        None, "--data-dir", "-d",
        help="Compare against a CSV dataset instead of a database snapshot.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Compare SQL and dataframe results for every report."""
    from sales_reporting.core.database import close_db, get_db_pool
    from sales_reporting.services.reporting import reconcile_reports

    _setup_logging(verbose)
    dataset = _load_csv_dataset(data_dir) if data_dir is not None else None

    async def _run():
        pool = await get_db_pool()
        try:
            async with pool.acquire() as conn:
                return await reconcile_reports(
                    conn, dataset, top_sellers_limit=get_settings().top_sellers_limit
                )
        finally:
            await close_db()

    try:
        summary = asyncio.run(_run())
    except (ReportingError, RuntimeError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)

    table = Table(title="SQL vs dataframe", show_header=True, header_style="bold magenta")
    table.add_column("Report", style="cyan")
    table.add_column("Status")
    table.add_column("SQL rows")
    table.add_column("Dataframe rows")
    for report_name, entry in summary.items():
        status = "[green]match[/green]" if entry['matches'] else "[red]mismatch[/red]"
        table.add_row(report_name, status, str(entry['sql_rows']), str(entry['dataframe_rows']))
    console.print(table)

    if not all(entry['matches'] for entry in summary.values()):
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()

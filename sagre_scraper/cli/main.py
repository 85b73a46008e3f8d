"""Unified CLI for the sagre scraper.

Usage:
    sagre crawl --source assosagre
    sagre crawl --upload --max-requests 50
    sagre sources --verbose
    sagre cleanup --dry-run
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from sagre_scraper import __version__
from sagre_scraper.config.settings import get_settings
from sagre_scraper.config.sources import SourceRegistry
from sagre_scraper.core.cleanup import CleanupResult, cleanup_past_festivals
from sagre_scraper.core.exceptions import UploadError
from sagre_scraper.core.pipeline import (
    FestivalPipeline,
    PipelineConfig,
    PipelineResult,
    create_uploader,
)
from sagre_scraper.core.scraper_config import CrawlerConfig
from sagre_scraper.core.sink import JsonlDatasetSink, MemorySink
from sagre_scraper.core.strapi_client import StrapiClient
from sagre_scraper.logging import setup_logging

app = typer.Typer(
    name="sagre",
    help="Festival (sagre) scraper for Emilia-Romagna listing sites",
    add_completion=False,
)
console = Console()


@app.callback()
def configure() -> None:
    """Set up logging from settings before any command runs."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format, settings.log_file)


@app.command()
def crawl(
    source: Optional[list[str]] = typer.Option(
        None,
        "--source", "-s",
        help="Crawl only this source slug (repeatable)",
    ),
    upload: Optional[bool] = typer.Option(
        None,
        "--upload/--no-upload",
        help="Upload to Strapi (default: ENABLE_STRAPI_UPLOAD)",
    ),
    max_requests: Optional[int] = typer.Option(
        None,
        "--max-requests",
        help="Request budget for the whole crawl",
    ),
    concurrency: Optional[int] = typer.Option(
        None,
        "--concurrency", "-c",
        help="Concurrent page fetches",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output", "-o",
        help="Dataset file (default: <STORAGE_DIR>/datasets/festivals.jsonl)",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Parse and validate without writing the dataset or uploading",
    ),
):
    """Crawl festival sources and write accepted records to the dataset.

    Examples:
        sagre crawl
        sagre crawl -s assosagre -s viviromagna
        sagre crawl --upload --max-requests 200
    """
    settings = get_settings()

    for slug in source or []:
        if SourceRegistry.get(slug) is None:
            console.print(f"[red]Error:[/red] Unknown source: {slug}")
            console.print(f"Available: {', '.join(SourceRegistry.slugs())}")
            raise typer.Exit(1)

    crawler_config = CrawlerConfig.from_settings(settings)
    if max_requests is not None:
        crawler_config.max_requests_per_crawl = max_requests
    if concurrency is not None:
        crawler_config.max_concurrency = concurrency

    if dry_run:
        sink = MemorySink()
    elif output is not None:
        sink = JsonlDatasetSink(output)
    else:
        sink = JsonlDatasetSink.in_storage(settings.storage_dir)

    want_upload = settings.enable_strapi_upload if upload is None else upload
    if want_upload and not dry_run:
        settings = settings.model_copy(update={"enable_strapi_upload": True})
        uploader = create_uploader(settings)
    else:
        uploader = None

    config = PipelineConfig(source_slugs=list(source or []), crawler=crawler_config)

    console.print()
    console.print("[bold blue]SAGRE CRAWL[/bold blue]")
    console.print(
        f"Sources: {', '.join(source) if source else 'all'}, "
        f"Max requests: {crawler_config.max_requests_per_crawl}, "
        f"Concurrency: {crawler_config.max_concurrency}"
    )
    console.print(f"Dry run: {dry_run}, Upload: {uploader is not None}")
    if isinstance(sink, JsonlDatasetSink):
        console.print(f"Dataset: {sink.path}")
    console.print()

    result = asyncio.run(FestivalPipeline(config, sink=sink, uploader=uploader).run())
    print_summary(result)

    if not result.success:
        console.print(f"[red]ERROR[/red]: {result.error}")
        raise typer.Exit(1)


def print_summary(result: PipelineResult) -> None:
    """Print run summary table."""
    console.print()
    console.print("[bold blue]RUN SUMMARY[/bold blue]")
    console.print()

    table = Table(show_header=True, header_style="bold")
    table.add_column("Metric")
    table.add_column("Count", justify="right")

    table.add_row("Scraped", str(result.scraped))
    table.add_row("Skipped (past)", str(result.skipped_past))
    table.add_row("Skipped (duplicate)", str(result.skipped_duplicate))
    table.add_row("Failed validation", str(result.failed_validation))
    table.add_row("Failed pages", str(result.failed_pages))
    if result.upload_enabled:
        table.add_row("Uploads OK", f"[green]{result.uploads_succeeded}[/green]")
        table.add_row("Uploads failed", f"[red]{result.uploads_failed}[/red]")

    console.print(table)

    if result.per_source:
        console.print()
        for source, count in sorted(result.per_source.items()):
            console.print(f"  {source}: {count}")

    console.print()
    console.print(f"[bold]Duration:[/bold] {result.duration_seconds}s")


@app.command()
def sources(
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Show start URLs and strategies",
    ),
):
    """List available festival sources."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("Slug")
    table.add_column("Name")
    table.add_column("Identifiers")
    if verbose:
        table.add_column("Start URLs")
        table.add_column("Dates")
        table.add_column("Location")

    for s in SourceRegistry.all():
        row = [s.slug, s.name[:40], ", ".join(src.value for src in s.sources)]
        if verbose:
            row += ["\n".join(s.start_urls), s.date_strategy.value, s.location_strategy.value]
        table.add_row(*row)

    console.print(table)
    console.print()
    console.print(f"[bold]Total:[/bold] {SourceRegistry.count()} sources")


@app.command()
def cleanup(
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="List past festivals without deleting them",
    ),
):
    """Delete festivals that have already ended from Strapi."""
    settings = get_settings()
    if not settings.strapi_url:
        console.print("[red]Error:[/red] STRAPI_URL is not set")
        raise typer.Exit(1)

    client = StrapiClient(settings.strapi_url, settings.strapi_token)

    async def run() -> CleanupResult:
        try:
            return await cleanup_past_festivals(client, dry_run=dry_run)
        finally:
            await client.close()

    try:
        result = asyncio.run(run())
    except UploadError as e:
        console.print(f"[red]ERROR[/red]: {e}")
        raise typer.Exit(1)

    table = Table(show_header=True, header_style="bold")
    table.add_column("Document")
    table.add_column("Title")
    table.add_column("Ended")
    table.add_column("Status")
    colors = {"deleted": "green", "failed": "red", "skipped": "yellow"}
    for entry in result.entries:
        color = colors[entry.status]
        table.add_row(
            entry.document_id,
            entry.title[:40],
            entry.end_date or "",
            f"[{color}]{entry.status}[/{color}]",
        )

    console.print(table)
    console.print()
    label = "[yellow]DRY RUN[/yellow] " if dry_run else ""
    console.print(
        f"{label}[bold]Past:[/bold] {result.total}, "
        f"Deleted: {result.deleted}, Failed: {result.failed}"
    )
    if result.failed:
        raise typer.Exit(1)


@app.command()
def version():
    """Show version information."""
    console.print("[bold]Sagre Scraper[/bold]")
    console.print(f"Version: {__version__}")
    console.print(f"Registered sources: {SourceRegistry.count()}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()

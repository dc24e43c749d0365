"""
Main CLI Application
Typer commands for JPEG archives and PDF documents
"""

import asyncio
from pathlib import Path
from typing import Annotated, List, Optional

import typer
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn
from rich.table import Table

from imagebatch import __version__
from imagebatch.config import settings
from imagebatch.core.document.layout import DocumentOptions, MarginSize, Orientation
from imagebatch.core.exceptions import ImageBatchError
from imagebatch.core.packaging.delivery import DirectoryDelivery
from imagebatch.core.registry.models import ItemStatus, OutputMode
from imagebatch.services.ingestion import accepted_mime, load_sources
from imagebatch.services.pipeline_service import PipelineService
from imagebatch.utils.logging import setup_logging

console = Console()

app = typer.Typer(
    name="imagebatch",
    help="Convert WebP images to JPEG archives or assemble images into a PDF",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)

STATUS_STYLES = {
    ItemStatus.IDLE: "dim",
    ItemStatus.CONVERTING: "yellow",
    ItemStatus.COMPLETED: "green",
    ItemStatus.ERROR: "red",
}


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"imagebatch {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    verbose: Annotated[
        bool, typer.Option("--verbose", help="Enable debug logging")
    ] = False,
    json_logs: Annotated[
        bool, typer.Option("--json-logs", help="Render logs as JSON lines")
    ] = False,
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version", "-v", callback=_version_callback, is_eager=True, help="Show version"
        ),
    ] = None,
):
    """Local batch image conversion"""
    setup_logging(
        log_level="DEBUG" if verbose else settings.log_level,
        json_logs=json_logs or settings.json_logs,
        enable_file_logging=settings.logging_enabled,
        log_dir=settings.log_dir,
        max_log_size_mb=settings.max_log_size_mb,
        backup_count=settings.log_backup_count,
    )


def _build_service(output_dir: Optional[Path], quality: Optional[float] = None) -> PipelineService:
    overrides = {}
    if quality is not None:
        overrides["jpeg_quality"] = quality
    run_settings = settings.model_copy(update=overrides) if overrides else settings
    return PipelineService(
        settings=run_settings,
        sink=DirectoryDelivery(output_dir or Path(settings.output_dir)),
    )


def _load(service: PipelineService, paths: List[Path], mode: OutputMode) -> None:
    sources, rejected = load_sources(paths, mode, max_file_size=service.settings.max_file_size)

    for path, reason in rejected:
        console.print(f"[yellow]Skipped {path.name}: {reason}[/yellow]")

    if not sources:
        console.print(f"[red]No files accepted (expected {accepted_mime(mode)})[/red]")
        raise typer.Exit(1)

    service.add_sources(sources)


def _print_results(service: PipelineService) -> None:
    table = Table(title="Conversion Results", show_header=True)
    table.add_column("#", justify="right", style="dim")
    table.add_column("File", style="cyan")
    table.add_column("Status")
    table.add_column("Error", style="red")

    for index, item in enumerate(service.items(), start=1):
        style = STATUS_STYLES[item.status]
        table.add_row(
            str(index),
            item.source.name,
            f"[{style}]{item.status.value}[/{style}]",
            item.error or "",
        )

    console.print(table)
    stats = service.stats()
    console.print(
        f"Total: {stats.total}  Completed: [green]{stats.completed}[/green]  "
        f"Failed: [red]{stats.failed}[/red]"
    )


def _deliver(service: PipelineService, mode: OutputMode) -> None:
    try:
        path = service.download(mode)
    except ImageBatchError as e:
        console.print(f"[red]{e.error_code}: {e.message}[/red]")
        raise typer.Exit(1)

    if path is None:
        console.print("[red]Nothing to deliver[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Saved {path}[/green]")


@app.command(name="jpeg")
def convert_jpeg(
    paths: Annotated[
        List[Path], typer.Argument(help="WebP files or directories to convert")
    ],
    output_dir: Annotated[
        Optional[Path],
        typer.Option("-o", "--output-dir", help="Directory for the ZIP archive"),
    ] = None,
    quality: Annotated[
        Optional[float],
        typer.Option("-q", "--quality", min=0.01, max=1.0, help="JPEG quality (0-1)"),
    ] = None,
):
    """
    Convert WebP images to JPEG and bundle them in a ZIP archive

    Examples:
      imagebatch jpeg photos/ -o out/
      imagebatch jpeg a.webp b.webp -q 0.8
    """
    service = _build_service(output_dir, quality)
    _load(service, paths, OutputMode.JPEG)

    with console.status("Converting..."):
        asyncio.run(service.start(OutputMode.JPEG))

    _print_results(service)
    _deliver(service, OutputMode.JPEG)


@app.command(name="pdf")
def assemble_pdf(
    paths: Annotated[
        List[Path], typer.Argument(help="Images or directories, one page each")
    ],
    output_dir: Annotated[
        Optional[Path],
        typer.Option("-o", "--output-dir", help="Directory for the PDF"),
    ] = None,
    margin: Annotated[
        MarginSize, typer.Option("--margin", help="Page margin")
    ] = MarginSize(settings.default_margin),
    orientation: Annotated[
        Orientation, typer.Option("--orientation", help="Page orientation")
    ] = Orientation(settings.default_orientation),
):
    """
    Assemble images into a single A4 PDF, one image per page

    Examples:
      imagebatch pdf scans/ --margin none
      imagebatch pdf cover.png page1.jpg --orientation landscape
    """
    service = _build_service(output_dir)
    service.set_mode(OutputMode.PDF)
    service.set_options(DocumentOptions(margin=margin, orientation=orientation))
    _load(service, paths, OutputMode.PDF)

    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Building PDF", total=len(service.items()))
        service.subscribe_progress(
            lambda index, total: progress.update(task, completed=index + 1)
        )
        asyncio.run(service.start(OutputMode.PDF))

    _print_results(service)
    _deliver(service, OutputMode.PDF)


def main() -> None:
    app()


if __name__ == "__main__":
    main()

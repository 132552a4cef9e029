"""Command line interface for generating PDFs from HTML, URLs and asset files."""

import asyncio
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from tqdm import tqdm

from .attributes import page_size_by_name
from .chromium import ChromiumRenderer, PlaywrightPdfExporter
from .completion import CompletionResult, Failure, Success
from .config import BatchManifest, GeneratorSettings, load_manifest, load_settings
from .errors import ConfigurationError, GenerationTimeout
from .generator import PdfGenerator
from .printing import LpPrintService

console = Console()


def setup_logging(verbose: bool) -> None:
    """Configure Rich logging and quiet noisy third-party loggers."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(message)s',
        handlers=[RichHandler(
            console=console,
            rich_tracebacks=True,
            show_time=False,
            show_path=False,
            markup=False,
        )]
    )
    for name in ('asyncio', 'playwright'):
        logging.getLogger(name).setLevel(logging.WARNING)


def parse_margins(value: str | None) -> tuple[float, float, float, float] | None:
    """Parse ``"L,T,R,B"`` (millimetres); a single number applies to all sides."""
    if value is None:
        return None
    parts = [p.strip() for p in value.split(",")]
    try:
        numbers = [float(p) for p in parts]
    except ValueError:
        raise click.BadParameter(f"margins must be numbers: {value}")
    if len(numbers) == 1:
        return (numbers[0],) * 4
    if len(numbers) != 4:
        raise click.BadParameter("margins need one value or four (left,top,right,bottom)")
    return tuple(numbers)


def _print_service(settings: GeneratorSettings) -> LpPrintService:
    return LpPrintService(PlaywrightPdfExporter(), printer=settings.printer)


async def _run_generate(settings: GeneratorSettings, configure) -> CompletionResult:
    async with ChromiumRenderer(headless=settings.headless, browser_args=settings.browser_args) as renderer:
        generator = renderer.generator(
            asset_store=settings.asset_store(),
            print_service=_print_service(settings),
        )
        configure(settings.apply(generator))
        return await generator.create_async()


async def _run_batch(manifest: BatchManifest) -> list[tuple[str, CompletionResult]]:
    settings = manifest.settings
    results = []
    async with ChromiumRenderer(headless=settings.headless, browser_args=settings.browser_args) as renderer:
        with tqdm(total=len(manifest.jobs), desc="   Generating PDFs", unit="pdf") as pbar:
            for job in manifest.jobs:
                generator: PdfGenerator = settings.apply(renderer.generator(
                    asset_store=settings.asset_store(),
                    print_service=_print_service(settings),
                ))
                generator.set_pdf_name(job.name).set_content_source(job.content).open_print_dialog(job.print)
                try:
                    result = await generator.create_async()
                except GenerationTimeout as e:
                    result = Failure(e)
                results.append((job.name, result))
                pbar.update(1)
    return results


def _report(name: str, result: CompletionResult) -> None:
    if isinstance(result, Success):
        console.print(f"   ✅ {name}: {result.path}")
    else:
        console.print(f"   ❌ {name}: {result.message}")


@click.group()
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging")
def main(verbose: bool) -> None:
    """Generate PDF documents from HTML content with headless Chromium."""
    setup_logging(verbose)


@main.command()
@click.argument("name")
@click.option("--content", "markup", default=None, help="Inline HTML content to render")
@click.option("--url", default=None, help="Web page URL to render")
@click.option("--asset", default=None, help="HTML file path relative to the asset root")
@click.option("--base-url", default=None, help="Base URL for relative references in --content")
@click.option("--asset-root", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Directory --asset paths are relative to (default: current directory)")
@click.option("-o", "--output-dir", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Directory for the PDF (default: temporary cache directory)")
@click.option("--page-size", default=None, help="Page size, e.g. A4, LETTER, ISO_A3")
@click.option("--landscape/--portrait", default=None, help="Page orientation")
@click.option("--margins", default=None, help="Margins in mm: 'L,T,R,B' or a single value")
@click.option("--dpi", type=int, default=None, help="Resolution in DPI")
@click.option("--timeout", "timeout_ms", type=int, default=None, help="Timeout in milliseconds")
@click.option("--print", "do_print", is_flag=True, default=False, help="Send the PDF to the printer afterwards")
@click.option("--printer", default=None, help="CUPS printer name")
@click.option("-c", "--config", "config_path", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              default=None, help="YAML settings file")
def generate(name: str, markup: str | None, url: str | None, asset: str | None, base_url: str | None,
             asset_root: Path | None, output_dir: Path | None, page_size: str | None, landscape: bool | None,
             margins: str | None, dpi: int | None, timeout_ms: int | None, do_print: bool, printer: str | None,
             config_path: Path | None) -> None:
    """Generate NAME.pdf from --content, --url or --asset."""
    sources = [s for s in (markup, url, asset) if s is not None]
    if len(sources) != 1:
        raise click.UsageError("exactly one of --content, --url or --asset is required")

    settings = load_settings(config_path)
    overrides = {
        "output_dir": output_dir,
        "page_size": page_size,
        "landscape": landscape,
        "resolution_dpi": dpi,
        "timeout_ms": timeout_ms,
        "printer": printer,
        "asset_root": asset_root,
    }
    settings = settings.model_copy(update={k: v for k, v in overrides.items() if v is not None})
    if asset is not None and settings.asset_root is None:
        settings = settings.model_copy(update={"asset_root": Path.cwd()})
    margin_values = parse_margins(margins)
    try:
        page_size_by_name(settings.page_size)
    except ConfigurationError as e:
        raise click.BadParameter(str(e), param_hint="--page-size")

    def configure(generator: PdfGenerator) -> None:
        generator.set_pdf_name(name).set_content_base_url(base_url).open_print_dialog(do_print)
        if margin_values is not None:
            generator.set_margins(*margin_values)
        if markup is not None:
            generator.set_content(markup)
        elif url is not None:
            generator.set_url(url)
        else:
            generator.set_asset_path(asset)

    try:
        result = asyncio.run(_run_generate(settings, configure))
    except GenerationTimeout as e:
        result = Failure(e)

    _report(name, result)
    if isinstance(result, Failure):
        sys.exit(1)


@main.command()
@click.argument("manifest_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-c", "--config", "config_path", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              default=None, help="YAML settings file used when the manifest has no settings section")
def batch(manifest_path: Path, config_path: Path | None) -> None:
    """Generate every job listed in a YAML manifest."""
    manifest = load_manifest(manifest_path, load_settings(config_path) if config_path else None)
    console.print(f"[dim]{len(manifest.jobs)} job(s) from {manifest_path}[/dim]")

    results = asyncio.run(_run_batch(manifest))
    for name, result in results:
        _report(name, result)

    failed = sum(isinstance(result, Failure) for _, result in results)
    if failed:
        console.print(f"\n[bold red]{failed} of {len(results)} PDF(s) failed[/]\n")
        sys.exit(1)
    console.print("\n[bold green]✅ All PDFs generated successfully![/]\n")


if __name__ == "__main__":
    main()

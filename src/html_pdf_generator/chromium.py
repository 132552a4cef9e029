"""Headless Chromium rendering engine and PDF exporter built on Playwright."""

import asyncio
import html
import logging
import re
import tempfile
from pathlib import Path

from playwright.async_api import Browser, BrowserContext, Page, async_playwright
from playwright.async_api import Error as PlaywrightError
from pypdf import PdfReader
from pypdf.errors import PyPdfError

from .attributes import PrintAttributes, mils_to_css_inches
from .content import DEFAULT_ENCODING, DEFAULT_MIME_TYPE
from .engine import DocumentExporter, ExportHandle, PrintService, RenderingEngine
from .errors import EngineError, ExportError
from .generator import PdfGenerator

logger = logging.getLogger(__name__)

DEFAULT_BROWSER_ARGS = ['--no-sandbox', '--disable-dev-shm-usage']
BLANK_URL = "about:blank"

_HEAD_TAG = re.compile(r"<head(\s[^>]*)?>", re.IGNORECASE)
_DOCUMENT_PROLOG = re.compile(r"\s*(<!DOCTYPE[^>]*>)?\s*(<html(\s[^>]*)?>)?", re.IGNORECASE)


def with_base_href(markup: str, base_url: str) -> str:
    """Insert a ``<base href>`` element so relative references resolve against ``base_url``."""
    base_tag = f'<base href="{html.escape(base_url, quote=True)}">'
    if match := _HEAD_TAG.search(markup):
        return markup[:match.end()] + base_tag + markup[match.end():]
    # Keep any doctype first, or Chromium falls back to quirks mode
    prolog_end = _DOCUMENT_PROLOG.match(markup).end()
    return markup[:prolog_end] + f"<head>{base_tag}</head>" + markup[prolog_end:]


class PlaywrightEngine(RenderingEngine):
    """Renders one document in its own browser context and page."""

    def __init__(self, browser: Browser):
        super().__init__()
        self.browser = browser
        self.context: BrowserContext | None = None
        self.page: Page | None = None
        self._load_task: asyncio.Task | None = None
        self._document_file: Path | None = None
        self._destroyed = False

    async def open(self) -> None:
        """Create the browser context and page."""
        self.context = await self.browser.new_context(java_script_enabled=True)
        self.page = await self.context.new_page()
        # The attempt's deadline bounds loading
        self.page.set_default_navigation_timeout(0)
        if self._destroyed:
            await self.destroy()
            raise EngineError("Engine was destroyed while opening")

    def _require_page(self) -> Page:
        if self.page is None or self._destroyed:
            raise EngineError("Engine is not open")
        return self.page

    def load_markup(self, markup: str, base_url: str | None = None,
                    mime_type: str = DEFAULT_MIME_TYPE, encoding: str = DEFAULT_ENCODING) -> None:
        page = self._require_page()
        if mime_type != DEFAULT_MIME_TYPE:
            raise EngineError(f"Unsupported mime type: {mime_type}")

        if base_url is None:
            self._start_load(page.set_content(markup, wait_until='load'))
        elif base_url.startswith("file:"):
            # about:blank pages may not load file resources, so render from a file
            self._document_file = self._write_document(with_base_href(markup, base_url), encoding)
            self._start_load(page.goto(self._document_file.as_uri(), wait_until='load'))
        else:
            self._start_load(page.set_content(with_base_href(markup, base_url), wait_until='load'))

    def load_url(self, url: str) -> None:
        page = self._require_page()
        self._start_load(page.goto(url, wait_until='load'))

    @staticmethod
    def _write_document(markup: str, encoding: str) -> Path:
        with tempfile.NamedTemporaryFile(mode='w', suffix='.html', delete=False, encoding=encoding) as temp_html:
            temp_html.write(markup)
            return Path(temp_html.name)

    def _start_load(self, navigation) -> None:
        self._load_task = asyncio.ensure_future(self._load(navigation))

    async def _load(self, navigation) -> None:
        try:
            await navigation
        except PlaywrightError as e:
            logger.debug(f"Page load failed: {e}")
            if self.listener is not None:
                self.listener.on_render_error(e.message)
            return
        if self.listener is not None:
            self.listener.on_render_ready()

    def create_export_handle(self, name: str) -> ExportHandle:
        return ExportHandle(name, self._require_page())

    # ========== CLEANUP STEPS ==========

    async def stop_loading(self) -> None:
        if self._load_task is not None and not self._load_task.done():
            self._load_task.cancel()

    async def clear_cache(self) -> None:
        if self.context is not None:
            await self.context.clear_cookies()

    async def load_blank(self) -> None:
        if self.page is not None and not self.page.is_closed():
            await self.page.goto(BLANK_URL)

    async def destroy(self) -> None:
        self._destroyed = True
        try:
            if self.context is not None:
                await self.context.close()
        finally:
            self.context = None
            self.page = None
            if self._document_file is not None:
                self._document_file.unlink(missing_ok=True)
                self._document_file = None


class PlaywrightPdfExporter(DocumentExporter):
    """Prints a Playwright page to PDF with Chromium's print pipeline."""

    def __init__(self, print_background: bool = True):
        self.print_background = print_background

    async def export(self, handle: ExportHandle, attributes: PrintAttributes,
                     directory: Path, file_name: str) -> Path:
        page: Page = handle.consume()
        output_path = self._prepare_output(Path(directory), file_name)

        media = attributes.media_size
        margins = attributes.min_margins
        try:
            # Chromium writes vector output; the requested resolution applies to rasterized content only
            await page.pdf(
                path=str(output_path),
                width=mils_to_css_inches(media.width_mils),
                height=mils_to_css_inches(media.height_mils),
                margin={
                    "top": mils_to_css_inches(margins.top),
                    "right": mils_to_css_inches(margins.right),
                    "bottom": mils_to_css_inches(margins.bottom),
                    "left": mils_to_css_inches(margins.left),
                },
                print_background=self.print_background,
                prefer_css_page_size=False,
                display_header_footer=False,
            )
        except PlaywrightError as e:
            raise ExportError(f"PDF write failed: {e.message}") from e

        page_count = await asyncio.to_thread(self._count_pages, output_path)
        if page_count == 0:
            raise ExportError("No pages were written to PDF")
        logger.debug(f"PDF has {page_count} page(s): {output_path}")
        return output_path.resolve()

    @staticmethod
    def _prepare_output(directory: Path, file_name: str) -> Path:
        """Create the target directory and remove any previous file."""
        try:
            directory.mkdir(parents=True, exist_ok=True)
            output_path = directory / file_name
            output_path.unlink(missing_ok=True)
        except OSError as e:
            raise ExportError(f"Failed to create output file. Check permissions and path: {e}") from e
        return output_path

    @staticmethod
    def _count_pages(pdf_path: Path) -> int:
        try:
            with open(pdf_path, 'rb') as pdf_file:
                return len(PdfReader(pdf_file).pages)
        except (OSError, PyPdfError) as e:
            raise ExportError(f"Written PDF could not be read: {e}") from e


class ChromiumRenderer:
    """Owns the Playwright Chromium instance shared by all engines it creates."""

    def __init__(self, headless: bool = True, browser_args: list[str] | None = None):
        self.headless = headless
        self.browser_args = DEFAULT_BROWSER_ARGS if browser_args is None else browser_args
        self.playwright = None
        self.browser: Browser | None = None

    async def __aenter__(self):
        """Async context manager entry."""
        self.playwright = await async_playwright().start()
        self.browser = await self.playwright.chromium.launch(
            headless=self.headless,
            args=self.browser_args,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.browser.close()
        await self.playwright.stop()

    def new_engine(self) -> PlaywrightEngine:
        if self.browser is None:
            raise EngineError("Chromium is not running; use 'async with ChromiumRenderer()'")
        return PlaywrightEngine(self.browser)

    def generator(self, *, asset_store=None, print_service: PrintService | None = None) -> PdfGenerator:
        """Return a :class:`PdfGenerator` rendering with this browser."""
        return PdfGenerator(
            self.new_engine,
            PlaywrightPdfExporter(),
            asset_store=asset_store,
            print_service=print_service,
        )

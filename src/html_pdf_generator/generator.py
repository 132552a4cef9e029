"""Chained builder that configures and launches PDF generation attempts."""

import asyncio
import logging
from pathlib import Path

from .attributes import ISO_A4, NO_MARGINS, Margins, PageSize
from .completion import CompletionBridge, CompletionResult, Failure, PdfCallbackListener
from .content import AssetContent, AssetStore, ContentSource, InlineContent, RemoteContent
from .engine import DocumentExporter, EngineFactory, PrintService
from .errors import ConfigurationError, GenerationTimeout
from .request import DEFAULT_DPI, DEFAULT_TIMEOUT_MS, GenerationRequest, normalize_pdf_name
from .state_machine import GenerationAttempt

logger = logging.getLogger(__name__)


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class PdfGenerator:
    """Create PDFs from inline HTML, web URLs or bundled asset files.

    Configure with the chained ``set_*`` methods, then call :meth:`create`
    (results go to the callback listener) or await :meth:`create_async`.
    Each call snapshots the current configuration into an immutable
    :class:`GenerationRequest` and runs it with a fresh engine, so the
    builder may be reconfigured between calls.

    Usage:
        async with ChromiumRenderer() as renderer:
            result = await (renderer.generator()
                            .set_pdf_name("invoice")
                            .set_content("<h1>Invoice</h1>")
                            .create_async())
    """

    def __init__(self, engine_factory: EngineFactory, exporter: DocumentExporter, *,
                 asset_store: AssetStore | None = None,
                 print_service: PrintService | None = None,
                 loop: asyncio.AbstractEventLoop | None = None):
        """
        Args:
            engine_factory: Creates one rendering engine per attempt
            exporter: Writes rendered pages to PDF files
            asset_store: Source for :meth:`set_asset_path` documents
            print_service: Receives the document when printing is enabled
            loop: Event loop owning the engines; defaults to the loop running
                when an attempt is created
        """
        self.engine_factory = engine_factory
        self.exporter = exporter
        self.asset_store = asset_store
        self.print_service = print_service
        self._loop = loop

        self._pdf_name = ""
        self._base_url: str | None = None
        self._content: ContentSource | None = None
        self._print_after = False
        self._output_dir: Path | None = None
        self._page_size: PageSize = ISO_A4
        self._margins: Margins = NO_MARGINS
        self._landscape = False
        self._resolution_dpi = DEFAULT_DPI
        self._timeout_ms = DEFAULT_TIMEOUT_MS
        self._listener: PdfCallbackListener | None = None

    # ========== BUILDER METHODS ==========

    def set_pdf_name(self, pdf_name: str) -> 'PdfGenerator':
        """Set the output file name; ``.pdf`` is appended when missing."""
        self._pdf_name = normalize_pdf_name(pdf_name)
        return self

    def set_content_base_url(self, base_url: str | None) -> 'PdfGenerator':
        """Base URL for relative references in inline content.

        Asset documents always resolve against the asset store root instead.
        """
        self._base_url = base_url
        if isinstance(self._content, InlineContent):
            self._content = InlineContent(markup=self._content.markup, base_url=base_url)
        return self

    def set_content(self, content: str) -> 'PdfGenerator':
        """Render ``content`` (HTML or plain text). Replaces any URL or asset source."""
        return self.set_content_source(InlineContent(markup=content, base_url=self._base_url))

    def set_url(self, url: str) -> 'PdfGenerator':
        """Load and render a web page. Replaces any inline or asset source."""
        return self.set_content_source(RemoteContent(url=url))

    def set_asset_path(self, asset_path: str) -> 'PdfGenerator':
        """Render a bundled HTML file. Replaces any inline or URL source."""
        return self.set_content_source(AssetContent(path=asset_path))

    def set_content_source(self, source: ContentSource) -> 'PdfGenerator':
        self._content = source
        return self

    def open_print_dialog(self, do_print: bool) -> 'PdfGenerator':
        """Hand the document to the print service after it has been saved."""
        self._print_after = do_print
        return self

    def set_file_path(self, pdf_file_path: str | Path | None) -> 'PdfGenerator':
        """Directory for the PDF; defaults to a temporary cache directory."""
        self._output_dir = Path(pdf_file_path) if pdf_file_path else None
        return self

    def set_page_size(self, size: PageSize) -> 'PdfGenerator':
        self._page_size = size
        return self

    def set_landscape(self, landscape: bool) -> 'PdfGenerator':
        self._landscape = landscape
        return self

    def set_margins(self, left: float, top: float, right: float, bottom: float) -> 'PdfGenerator':
        """Set page margins in millimetres."""
        self._margins = Margins.from_millimeters(left, top, right, bottom)
        return self

    def set_resolution(self, dpi: int) -> 'PdfGenerator':
        self._resolution_dpi = dpi
        return self

    def set_timeout(self, timeout_ms: int) -> 'PdfGenerator':
        """Fail the attempt if no PDF was produced within ``timeout_ms``."""
        self._timeout_ms = timeout_ms
        return self

    def set_callback_listener(self, callbacks: PdfCallbackListener | None) -> 'PdfGenerator':
        self._listener = callbacks
        return self

    def build(self) -> GenerationRequest:
        """Snapshot the configuration into a validated request.

        Raises:
            ConfigurationError: If the name is empty or no content source is set
        """
        return GenerationRequest.validated(
            self._pdf_name,
            self._content,
            output_dir=self._output_dir,
            page_size=self._page_size,
            margins=self._margins,
            landscape=self._landscape,
            resolution_dpi=self._resolution_dpi,
            timeout_ms=self._timeout_ms,
            print_after=self._print_after,
        )

    # ========== CREATE METHODS ==========

    def create(self) -> GenerationAttempt | None:
        """Start generation; results are delivered to the callback listener.

        Validation runs synchronously on the calling thread. When called off
        the owning event loop, the attempt is marshalled onto it.

        Returns:
            The running attempt, or None if the configuration was rejected
        """
        loop = self._loop or _running_loop()
        if loop is None:
            raise RuntimeError("create() needs a running event loop or an explicit loop")
        return self._launch(CompletionBridge(self._listener), loop)

    async def create_async(self) -> CompletionResult:
        """Generate the PDF and return its :class:`CompletionResult`.

        The callback listener, if any, is notified before this returns.
        Cancelling the awaiting task disposes the engine and produces no result.

        Raises:
            GenerationTimeout: If the deadline elapsed first
        """
        running = asyncio.get_running_loop()
        owner = self._loop or running
        if owner is running:
            return await self._create_on_loop(running)
        future = asyncio.run_coroutine_threadsafe(self._create_on_loop(owner), owner)
        return await asyncio.wrap_future(future)

    async def _create_on_loop(self, loop: asyncio.AbstractEventLoop) -> CompletionResult:
        future = loop.create_future()
        attempt = self._launch(CompletionBridge(self._listener, future), loop)
        try:
            result = await future
        except asyncio.CancelledError:
            if attempt is not None:
                attempt.cancel()
            raise
        if isinstance(result, Failure) and isinstance(result.error, GenerationTimeout):
            raise result.error
        return result

    def _launch(self, bridge: CompletionBridge, loop: asyncio.AbstractEventLoop) -> GenerationAttempt | None:
        try:
            request = self.build()
        except ConfigurationError as e:
            logger.error(f"Invalid PDF configuration: {e}")
            bridge.deliver(Failure(e))
            return None

        attempt = GenerationAttempt(
            request,
            engine_factory=self.engine_factory,
            exporter=self.exporter,
            bridge=bridge,
            loop=loop,
            asset_store=self.asset_store,
            print_service=self.print_service,
        )
        if _running_loop() is loop:
            attempt.start()
        else:
            loop.call_soon_threadsafe(attempt.start)
        return attempt

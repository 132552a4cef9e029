"""Error taxonomy for PDF generation attempts."""


class PdfGenerationError(Exception):
    """Base class for every failure reported by a generation attempt."""


class ConfigurationError(PdfGenerationError):
    """Invalid request, detected before any asynchronous work starts."""


class AssetReadError(PdfGenerationError):
    """A bundled asset could not be read."""

    def __init__(self, path: str, reason: str | None = None):
        self.path = path
        message = f"Failed to load asset file: {path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class EngineError(PdfGenerationError):
    """The rendering engine failed to initialize or reported a load error."""


class ExportError(PdfGenerationError):
    """The document exporter failed to produce output."""


class GenerationTimeout(PdfGenerationError, TimeoutError):
    """The deadline elapsed before the attempt reached a terminal state."""

    def __init__(self, timeout_ms: int, elapsed_ms: int | None = None):
        self.timeout_ms = timeout_ms
        self.elapsed_ms = elapsed_ms if elapsed_ms is not None else timeout_ms
        super().__init__(
            f"PDF generation timed out after {self.elapsed_ms}ms (deadline {timeout_ms}ms)"
        )

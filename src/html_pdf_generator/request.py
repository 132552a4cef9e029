"""Immutable generation request and output location helpers."""

import tempfile
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from .attributes import ISO_A4, NO_MARGINS, Margins, PageSize, PrintAttributes, Resolution
from .content import ContentSource
from .errors import ConfigurationError

PDF_EXTENSION = ".pdf"
DEFAULT_DPI = 600
DEFAULT_TIMEOUT_MS = 30_000
CACHE_DIR_NAME = "html_pdf_generator"


def normalize_pdf_name(name: str) -> str:
    """Append the ``.pdf`` extension when absent; blank names normalize to ``""``."""
    name = name.strip()
    if not name:
        return ""
    return name if name.endswith(PDF_EXTENSION) else f"{name}{PDF_EXTENSION}"


def default_cache_dir() -> Path:
    """Temporary directory used when no output directory is configured."""
    return Path(tempfile.gettempdir()) / CACHE_DIR_NAME


def default_save_path(base_dir: Path, subdirectory: str = "PDF") -> Path:
    """Return ``base_dir / subdirectory``, creating it if needed."""
    directory = Path(base_dir) / subdirectory
    directory.mkdir(parents=True, exist_ok=True)
    return directory


class GenerationRequest(BaseModel):
    """Validated parameters of one generation attempt."""
    model_config = ConfigDict(frozen=True)

    name: str
    content: ContentSource
    output_dir: Path = Field(default_factory=default_cache_dir)
    page_size: PageSize = ISO_A4
    margins: Margins = NO_MARGINS
    landscape: bool = False
    resolution_dpi: int = DEFAULT_DPI
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    print_after: bool = False

    @classmethod
    def validated(cls, name: str, content: ContentSource | None, **kwargs) -> 'GenerationRequest':
        """Build a request, raising :class:`ConfigurationError` for invalid input."""
        name = normalize_pdf_name(name)
        if not name:
            raise ConfigurationError("name must not be empty")
        if content is None:
            raise ConfigurationError("content source required")
        if kwargs.get("timeout_ms", DEFAULT_TIMEOUT_MS) <= 0:
            raise ConfigurationError("timeout must be positive")
        if kwargs.get("resolution_dpi", DEFAULT_DPI) <= 0:
            raise ConfigurationError("resolution must be positive")
        if kwargs.get("output_dir") is None:
            kwargs.pop("output_dir", None)
        return cls(name=name, content=content, **kwargs)

    @property
    def output_path(self) -> Path:
        return self.output_dir / self.name

    def print_attributes(self) -> PrintAttributes:
        """Exporter attributes with landscape orientation applied."""
        media_size = self.page_size.as_landscape() if self.landscape else self.page_size
        return PrintAttributes(
            media_size=media_size,
            resolution=Resolution(horizontal_dpi=self.resolution_dpi, vertical_dpi=self.resolution_dpi),
            min_margins=self.margins,
        )

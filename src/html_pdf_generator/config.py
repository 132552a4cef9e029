"""YAML settings and batch manifests using Pydantic models."""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from .attributes import page_size_by_name
from .content import ContentSource, DirectoryAssetStore
from .generator import PdfGenerator
from .request import DEFAULT_DPI, DEFAULT_TIMEOUT_MS
from .chromium import DEFAULT_BROWSER_ARGS


class GeneratorSettings(BaseModel):
    """Defaults applied to every generator created by the command line."""

    page_size: str = "ISO_A4"
    landscape: bool = False
    margins: dict[str, float] = {
        "top": 0,
        "bottom": 0,
        "left": 0,
        "right": 0,
    }
    resolution_dpi: int = DEFAULT_DPI
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    output_dir: Path | None = None
    asset_root: Path | None = None
    printer: str | None = None
    headless: bool = True
    browser_args: list[str] = Field(default_factory=lambda: list(DEFAULT_BROWSER_ARGS))

    def _margins_mm(self) -> tuple[float, float, float, float]:
        return tuple(self.margins.get(side, 0) for side in ("left", "top", "right", "bottom"))

    def asset_store(self) -> DirectoryAssetStore | None:
        return DirectoryAssetStore(self.asset_root) if self.asset_root else None

    def apply(self, generator: PdfGenerator) -> PdfGenerator:
        """Configure ``generator`` with these settings and return it."""
        generator.set_page_size(page_size_by_name(self.page_size))
        generator.set_landscape(self.landscape)
        generator.set_margins(*self._margins_mm())
        generator.set_resolution(self.resolution_dpi)
        generator.set_timeout(self.timeout_ms)
        generator.set_file_path(self.output_dir)
        return generator


class BatchJob(BaseModel):
    """One document of a batch manifest."""

    name: str
    content: ContentSource
    print: bool = False


class BatchManifest(BaseModel):
    settings: GeneratorSettings = Field(default_factory=GeneratorSettings)
    jobs: list[BatchJob] = Field(default_factory=list)


def _read_yaml(path: Path) -> dict:
    with open(path, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f) or {}


def load_settings(path: Path | None) -> GeneratorSettings:
    """Load settings from a YAML file; missing path means defaults."""
    if path is None:
        return GeneratorSettings()
    return GeneratorSettings(**_read_yaml(path))


def load_manifest(path: Path, settings: GeneratorSettings | None = None) -> BatchManifest:
    """Load a batch manifest; its own ``settings`` section overrides ``settings``."""
    raw = _read_yaml(path)
    if settings is not None and "settings" not in raw:
        raw["settings"] = settings.model_dump()
    return BatchManifest(**raw)

"""Content sources and their resolution into engine payloads."""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from .errors import AssetReadError

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "text/html"
DEFAULT_ENCODING = "utf-8"


# ========== CONTENT SOURCES ==========

class InlineContent(BaseModel):
    """HTML markup passed directly, resolved against an optional base URL."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["inline"] = "inline"
    markup: str
    base_url: str | None = None


class RemoteContent(BaseModel):
    """A web page loaded by URL."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["remote"] = "remote"
    url: str


class AssetContent(BaseModel):
    """An HTML file bundled with the application, relative to the asset root."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["asset"] = "asset"
    path: str


ContentSource = Annotated[
    Union[InlineContent, RemoteContent, AssetContent],
    Field(discriminator="kind"),
]


# ========== ASSET STORES ==========

class AssetStore(ABC):
    """Read-only store of bundled resources."""

    @property
    @abstractmethod
    def root_url(self) -> str:
        """Base URL against which asset documents resolve relative references."""

    @abstractmethod
    def read_text(self, path: str) -> str:
        """Return the asset's text or raise :class:`AssetReadError`."""


class DirectoryAssetStore(AssetStore):
    """Assets stored under a directory on the local filesystem."""

    def __init__(self, root: Path, encoding: str = DEFAULT_ENCODING):
        self.root = Path(root).resolve()
        self.encoding = encoding

    @property
    def root_url(self) -> str:
        return self.root.as_uri() + "/"

    def read_text(self, path: str) -> str:
        asset_path = (self.root / path).resolve()
        if not asset_path.is_relative_to(self.root):
            raise AssetReadError(path, "path escapes the asset root")
        try:
            return asset_path.read_text(encoding=self.encoding)
        except (OSError, UnicodeDecodeError) as e:
            raise AssetReadError(path, str(e)) from e


# ========== RESOLUTION ==========

class ResolvedContent(BaseModel):
    """The single payload handed to the rendering engine."""
    model_config = ConfigDict(frozen=True)

    markup: str | None = None
    url: str | None = None
    base_url: str | None = None
    mime_type: str = DEFAULT_MIME_TYPE
    encoding: str = DEFAULT_ENCODING

    @property
    def is_remote(self) -> bool:
        return self.url is not None

    def load_into(self, engine) -> None:
        """Start loading this payload in ``engine``."""
        if self.url is not None:
            engine.load_url(self.url)
        else:
            engine.load_markup(self.markup, self.base_url, self.mime_type, self.encoding)


def resolve_content(source: ContentSource, asset_store: AssetStore | None = None) -> ResolvedContent:
    """Resolve how ``source`` reaches the rendering engine.

    Args:
        source: The request's content source
        asset_store: Store used for :class:`AssetContent`

    Returns:
        ResolvedContent: markup with its base URL, or a URL to navigate to

    Raises:
        AssetReadError: If the asset cannot be read
    """
    if isinstance(source, InlineContent):
        return ResolvedContent(markup=source.markup, base_url=source.base_url)

    if isinstance(source, RemoteContent):
        return ResolvedContent(url=source.url)

    if isinstance(source, AssetContent):
        if asset_store is None:
            raise AssetReadError(source.path, "no asset store configured")
        markup = asset_store.read_text(source.path)
        logger.debug(f"Loaded asset {source.path} ({len(markup)} chars)")
        # Asset documents always resolve against the asset root
        return ResolvedContent(markup=markup, base_url=asset_store.root_url)

    raise TypeError(f"Unsupported content source: {type(source).__name__}")

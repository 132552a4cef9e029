"""Contracts of the external collaborators driven by a generation attempt."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Protocol

from .attributes import PrintAttributes
from .content import DEFAULT_ENCODING, DEFAULT_MIME_TYPE
from .errors import ExportError


class RenderListener(Protocol):
    """Receives the rendering engine's load signals."""

    def on_render_ready(self) -> None: ...

    def on_render_error(self, description: str) -> None: ...


class ExportHandle:
    """Single-use capability to turn the rendered content into paginated output.

    Each consumer (file export, print handoff) needs its own handle.
    """

    def __init__(self, name: str, target: Any):
        self.name = name
        self._target = target
        self._consumed = False

    @property
    def consumed(self) -> bool:
        return self._consumed

    def consume(self) -> Any:
        """Return the engine-specific export target; allowed exactly once."""
        if self._consumed:
            raise ExportError(f"Export handle for {self.name} was already consumed")
        self._consumed = True
        return self._target


class RenderingEngine(ABC):
    """A rendering engine instance exclusively owned by one attempt.

    Load methods return immediately; the outcome is reported later through
    the registered :class:`RenderListener`. All methods must be called on the
    event loop the engine was created on.
    """

    def __init__(self):
        self.listener: RenderListener | None = None

    def set_listener(self, listener: RenderListener | None) -> None:
        self.listener = listener

    @abstractmethod
    async def open(self) -> None:
        """Acquire the underlying resources (page, view, ...)."""

    @abstractmethod
    def load_markup(self, markup: str, base_url: str | None = None,
                    mime_type: str = DEFAULT_MIME_TYPE, encoding: str = DEFAULT_ENCODING) -> None:
        """Start rendering ``markup``, resolving relative references against ``base_url``."""

    @abstractmethod
    def load_url(self, url: str) -> None:
        """Start navigating to ``url``."""

    @abstractmethod
    def create_export_handle(self, name: str) -> ExportHandle:
        """Return a fresh export handle for the currently rendered content."""

    # ========== CLEANUP STEPS ==========
    # Run in this order by cleanup.dispose_engine; steps without an
    # equivalent in a given engine are no-ops.

    async def stop_loading(self) -> None:
        pass

    async def clear_history(self) -> None:
        pass

    async def clear_cache(self) -> None:
        pass

    async def load_blank(self) -> None:
        pass

    async def pause(self) -> None:
        pass

    async def detach(self) -> None:
        self.listener = None

    @abstractmethod
    async def destroy(self) -> None:
        """Release every resource held by the engine."""


EngineFactory = Callable[[], RenderingEngine]


class DocumentExporter(ABC):
    """Turns a rendered page into a paginated document on disk."""

    @abstractmethod
    async def export(self, handle: ExportHandle, attributes: PrintAttributes,
                     directory: Path, file_name: str) -> Path:
        """Write ``directory / file_name`` and return its final path.

        The directory is created when absent.

        Raises:
            ExportError: If no document could be produced
        """


class PrintService(ABC):
    """System print service receiving freshly exported content."""

    @abstractmethod
    async def print(self, name: str, handle: ExportHandle, attributes: PrintAttributes) -> None:
        """Submit the content behind ``handle`` as job ``name``."""

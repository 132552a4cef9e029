"""Scripted collaborators for exercising generation attempts without a browser."""
import asyncio
import threading
from pathlib import Path

import pytest

from html_pdf_generator import ExportHandle, PdfGenerator
from html_pdf_generator.engine import DocumentExporter, PrintService, RenderingEngine
from html_pdf_generator.errors import ExportError


class FakeEngine(RenderingEngine):
    """Engine that reports render-ready or render-error after a scripted delay."""

    def __init__(self, ready_after: float | None = 0.01, error: str | None = None,
                 open_error: Exception | None = None, handle_error: Exception | None = None):
        super().__init__()
        self.ready_after = ready_after
        self.error = error
        self.open_error = open_error
        self.handle_error = handle_error
        self.thread_id = threading.get_ident()
        self.opened = False
        self.loads: list[tuple[str, str, str | None]] = []
        self.handles: list[ExportHandle] = []
        self.steps: list[str] = []
        self.destroy_count = 0

    async def open(self) -> None:
        if self.open_error is not None:
            raise self.open_error
        self.opened = True

    def load_markup(self, markup, base_url=None, mime_type="text/html", encoding="utf-8") -> None:
        self.loads.append(("markup", markup, base_url))
        self._schedule_signal()

    def load_url(self, url) -> None:
        self.loads.append(("url", url, None))
        self._schedule_signal()

    def _schedule_signal(self) -> None:
        loop = asyncio.get_running_loop()
        if self.error is not None:
            loop.call_later(0.01, self._emit_error)
        elif self.ready_after is not None:
            loop.call_later(self.ready_after, self._emit_ready)

    def _emit_ready(self) -> None:
        if self.listener is not None:
            self.listener.on_render_ready()

    def _emit_error(self) -> None:
        if self.listener is not None:
            self.listener.on_render_error(self.error)

    def create_export_handle(self, name: str) -> ExportHandle:
        if self.handle_error is not None:
            raise self.handle_error
        handle = ExportHandle(name, self)
        self.handles.append(handle)
        return handle

    async def stop_loading(self):
        self.steps.append("stop_loading")

    async def clear_history(self):
        self.steps.append("clear_history")

    async def clear_cache(self):
        self.steps.append("clear_cache")

    async def load_blank(self):
        self.steps.append("load_blank")

    async def pause(self):
        self.steps.append("pause")

    async def detach(self):
        self.steps.append("detach")
        await super().detach()

    async def destroy(self):
        self.steps.append("destroy")
        self.destroy_count += 1


class FakeEngineFactory:
    """Creates :class:`FakeEngine` instances and remembers them."""

    def __init__(self, fail_with: Exception | None = None, **engine_kwargs):
        self.fail_with = fail_with
        self.engine_kwargs = engine_kwargs
        self.engines: list[FakeEngine] = []

    def __call__(self) -> FakeEngine:
        if self.fail_with is not None:
            raise self.fail_with
        engine = FakeEngine(**self.engine_kwargs)
        self.engines.append(engine)
        return engine

    @property
    def engine(self) -> FakeEngine:
        assert len(self.engines) == 1, f"expected one engine, got {len(self.engines)}"
        return self.engines[0]


class FakeExporter(DocumentExporter):
    """Exporter that succeeds with ``directory / file_name`` after ``delay``."""

    def __init__(self, delay: float = 0.01, error: str | None = None):
        self.delay = delay
        self.error = error
        self.calls: list[tuple[ExportHandle, object, Path, str]] = []

    async def export(self, handle, attributes, directory, file_name) -> Path:
        handle.consume()
        self.calls.append((handle, attributes, Path(directory), file_name))
        await asyncio.sleep(self.delay)
        if self.error is not None:
            raise ExportError(self.error)
        return Path(directory) / file_name


class FakePrintService(PrintService):
    def __init__(self, error: Exception | None = None, engine_factory: FakeEngineFactory | None = None):
        self.error = error
        self.engine_factory = engine_factory
        self.jobs: list[tuple[str, ExportHandle]] = []
        self.destroyed_at_print: list[int] = []

    async def print(self, name, handle, attributes) -> None:
        handle.consume()
        self.jobs.append((name, handle))
        if self.engine_factory is not None:
            self.destroyed_at_print.append(self.engine_factory.engine.destroy_count)
        if self.error is not None:
            raise self.error


class RecordingListener:
    """Listener recording every callback; ``done`` is set on the first one."""

    def __init__(self, events: list[str] | None = None):
        self.successes: list[str] = []
        self.failures: list[str] = []
        self.events = events if events is not None else []
        self.done = asyncio.Event()

    def on_success(self, file_path: str) -> None:
        self.successes.append(file_path)
        self.events.append("listener")
        self.done.set()

    def on_failure(self, error_msg: str) -> None:
        self.failures.append(error_msg)
        self.events.append("listener")
        self.done.set()

    async def wait(self, timeout: float = 2.0) -> None:
        await asyncio.wait_for(self.done.wait(), timeout)


@pytest.fixture
def engine_factory():
    return FakeEngineFactory()


@pytest.fixture
def exporter():
    return FakeExporter()


@pytest.fixture
def make_generator(engine_factory, exporter):
    """Build a generator wired to the fake collaborators."""
    def _make(**kwargs) -> PdfGenerator:
        factory = kwargs.pop("engine_factory", engine_factory)
        return PdfGenerator(factory, kwargs.pop("exporter", exporter), **kwargs)
    return _make


@pytest.fixture
def owner_loop():
    """Event loop running forever on its own thread; yields ``(loop, thread)``."""
    loop = asyncio.new_event_loop()
    thread = threading.Thread(target=loop.run_forever, daemon=True)
    thread.start()
    yield loop, thread
    loop.call_soon_threadsafe(loop.stop)
    thread.join(timeout=2)
    loop.close()

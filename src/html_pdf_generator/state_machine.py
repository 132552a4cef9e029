"""Generation state machine: load, render-ready, export, optional print handoff."""

import asyncio
import logging
from enum import Enum
from pathlib import Path
from typing import Coroutine

from .cleanup import RenderingSession
from .completion import CompletionBridge, Failure, Success
from .content import AssetStore, ResolvedContent, resolve_content
from .deadline import Deadline
from .engine import DocumentExporter, EngineFactory, ExportHandle, PrintService, RenderingEngine
from .errors import AssetReadError, EngineError, ExportError, GenerationTimeout, PdfGenerationError
from .request import GenerationRequest

logger = logging.getLogger(__name__)

# Grace period after render-ready for late layout and scripts
RENDER_SETTLE_SECONDS = 0.1


class GenerationState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    EXPORTING = "exporting"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (GenerationState.COMPLETED, GenerationState.FAILED)


_TRANSITIONS: dict[GenerationState, set[GenerationState]] = {
    GenerationState.IDLE: {GenerationState.LOADING, GenerationState.FAILED},
    GenerationState.LOADING: {GenerationState.EXPORTING, GenerationState.FAILED},
    GenerationState.EXPORTING: {GenerationState.COMPLETED, GenerationState.FAILED},
    GenerationState.COMPLETED: set(),
    GenerationState.FAILED: set(),
}


class GenerationAttempt:
    """One generation attempt and the engine, deadline and result it owns.

    Every method runs on ``loop``. Terminal outcomes pass through a single
    check-and-set guard, so whichever of render error, export result,
    timeout or cancellation reaches it first decides the attempt; the rest
    are ignored.
    """

    def __init__(self, request: GenerationRequest, *,
                 engine_factory: EngineFactory,
                 exporter: DocumentExporter,
                 bridge: CompletionBridge,
                 loop: asyncio.AbstractEventLoop,
                 asset_store: AssetStore | None = None,
                 print_service: PrintService | None = None):
        self.request = request
        self.state = GenerationState.IDLE
        self.result_path: Path | None = None
        self._engine_factory = engine_factory
        self._exporter = exporter
        self._bridge = bridge
        self._loop = loop
        self._asset_store = asset_store
        self._print_service = print_service
        self._session = RenderingSession()
        self._deadline: Deadline | None = None
        self._settle_handle: asyncio.TimerHandle | None = None
        self._completed = False
        self._tasks: set[asyncio.Task] = set()
        self._print_task: asyncio.Task | None = None

    @property
    def completed(self) -> bool:
        return self._completed

    @property
    def deadline(self) -> Deadline | None:
        return self._deadline

    # ========== TRANSITIONS ==========

    def _transition(self, target: GenerationState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal transition {self.state.value} -> {target.value}")
        logger.debug(f"{self.request.name}: {self.state.value} -> {target.value}")
        self.state = target

    def _claim_terminal(self) -> bool:
        """Terminal guard: True only for the first caller."""
        if self._completed:
            return False
        self._completed = True
        if self._deadline is not None:
            self._deadline.cancel()
        if self._settle_handle is not None:
            self._settle_handle.cancel()
        return True

    def _succeed(self, path: Path) -> None:
        if not self._claim_terminal():
            logger.debug(f"{self.request.name}: ignoring late export success")
            return
        self._transition(GenerationState.COMPLETED)
        self.result_path = path
        logger.info(f"Generated {path}")
        self._bridge.deliver(Success(path))

        if self.request.print_after:
            self._print_task = self._spawn(self._print_then_release())
        else:
            self._release()

    def _fail(self, error: PdfGenerationError) -> None:
        if not self._claim_terminal():
            logger.debug(f"{self.request.name}: ignoring late failure: {error}")
            return
        self._transition(GenerationState.FAILED)
        logger.warning(f"PDF generation failed for {self.request.name}: {error}")
        self._bridge.deliver(Failure(error))
        self._release()

    def cancel(self) -> bool:
        """Abandon the attempt without producing a result and dispose the engine.

        Returns False if the attempt had already reached a terminal state.
        """
        if not self._claim_terminal():
            return False
        self._transition(GenerationState.FAILED)
        logger.info(f"PDF generation cancelled for {self.request.name}")
        self._release()
        return True

    # ========== LOADING ==========

    def start(self) -> None:
        """Resolve the content, then instantiate the engine and begin loading."""
        if self._completed:
            # Cancelled before a marshalled start got to run
            return
        self._transition(GenerationState.LOADING)
        logger.info(f"Generating {self.request.name}")

        try:
            payload = resolve_content(self.request.content, self._asset_store)
        except AssetReadError as e:
            self._fail(e)
            return

        try:
            engine = self._engine_factory()
        except Exception as e:
            self._fail(EngineError(f"Failed to initialize rendering engine: {e}"))
            return
        self._session.attach(engine)
        engine.set_listener(self)

        self._deadline = Deadline(self._loop, self.request.timeout_ms, self._on_deadline)
        self._deadline.start()
        self._spawn(self._open_and_load(engine, payload))

    async def _open_and_load(self, engine: RenderingEngine, payload: ResolvedContent) -> None:
        try:
            await engine.open()
        except Exception as e:
            self._fail(EngineError(f"Failed to initialize rendering engine: {e}"))
            return
        if self._completed:
            return
        try:
            payload.load_into(engine)
        except Exception as e:
            self._fail(EngineError(f"Failed to start loading content: {e}"))

    def _on_deadline(self, elapsed_ms: int) -> None:
        self._fail(GenerationTimeout(self.request.timeout_ms, elapsed_ms))

    # ========== RENDER LISTENER ==========

    def on_render_ready(self) -> None:
        if self._completed or self.state is not GenerationState.LOADING:
            return
        if self._settle_handle is not None:
            # Already settling after an earlier ready signal
            return
        self._settle_handle = self._loop.call_later(RENDER_SETTLE_SECONDS, self._begin_export)

    def on_render_error(self, description: str) -> None:
        self._fail(EngineError(f"Rendering error: {description}"))

    # ========== EXPORT ==========

    def _begin_export(self) -> None:
        if self._completed or self._session.engine is None:
            return
        try:
            handle = self._session.engine.create_export_handle(self.request.name)
        except Exception as e:
            self._fail(EngineError(f"Failed to create export handle: {e}"))
            return
        self._transition(GenerationState.EXPORTING)
        self._spawn(self._export(handle))

    async def _export(self, handle: ExportHandle) -> None:
        try:
            path = await self._exporter.export(
                handle,
                self.request.print_attributes(),
                self.request.output_dir,
                self.request.name,
            )
        except ExportError as e:
            self._fail(e)
        except Exception as e:
            self._fail(ExportError(f"PDF export failed: {e}"))
        else:
            self._succeed(path)

    # ========== PRINT HANDOFF ==========

    async def _print_then_release(self) -> None:
        try:
            await self._hand_off_to_print()
        finally:
            self._release()

    async def _hand_off_to_print(self) -> None:
        """Send a fresh export handle to the print service; failures are only logged."""
        if self._print_service is None:
            logger.warning(f"Printing requested for {self.request.name} but no print service is configured")
            return
        engine = self._session.engine
        if engine is None:
            return
        try:
            # The handle used for the file export cannot be reused
            handle = engine.create_export_handle(self.request.name)
            await self._print_service.print(self.request.name, handle, self.request.print_attributes())
        except Exception as e:
            logger.warning(f"Print handoff failed for {self.request.name} (PDF was saved): {e}")

    # ========== RESOURCES ==========

    def _spawn(self, coro: Coroutine) -> asyncio.Task:
        task = self._loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _release(self) -> None:
        self._session.release(self._loop)

    async def wait_released(self) -> None:
        """Wait until the print handoff (if any) and engine disposal have finished."""
        if self._print_task is not None:
            await asyncio.gather(self._print_task, return_exceptions=True)
        await self._session.wait_released()

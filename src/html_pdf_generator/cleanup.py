"""Idempotent teardown of the rendering engine owned by an attempt."""

import asyncio
import logging

from .engine import RenderingEngine

logger = logging.getLogger(__name__)

CLEANUP_STEPS = (
    "stop_loading",
    "clear_history",
    "clear_cache",
    "load_blank",
    "pause",
    "detach",
    "destroy",
)


async def dispose_engine(engine: RenderingEngine) -> None:
    """Run every cleanup step in order; a failing step does not stop the rest."""
    for step in CLEANUP_STEPS:
        try:
            await getattr(engine, step)()
        except Exception as e:
            logger.debug(f"Ignoring cleanup failure in {step}: {e}")


class RenderingSession:
    """Exclusive ownership of one engine instance for the duration of an attempt."""

    def __init__(self):
        self._engine: RenderingEngine | None = None
        self._released = False
        self._release_task: asyncio.Task | None = None

    @property
    def engine(self) -> RenderingEngine | None:
        return self._engine

    @property
    def released(self) -> bool:
        return self._released

    def attach(self, engine: RenderingEngine) -> None:
        if self._engine is not None:
            raise RuntimeError("Session already owns a rendering engine")
        self._engine = engine

    def release(self, loop: asyncio.AbstractEventLoop) -> asyncio.Task | None:
        """Schedule disposal of the owned engine on ``loop``.

        Safe to call any number of times, with or without an engine; only the
        first call schedules anything.
        """
        if self._released:
            return self._release_task
        self._released = True
        engine, self._engine = self._engine, None
        if engine is None:
            return None
        self._release_task = loop.create_task(dispose_engine(engine))
        return self._release_task

    async def wait_released(self) -> None:
        if self._release_task is not None:
            await self._release_task

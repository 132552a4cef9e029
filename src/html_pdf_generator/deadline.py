"""Single-fire deadline timer for a generation attempt."""

import asyncio
import logging
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)


class _TimerState(Enum):
    PENDING = "pending"
    ARMED = "armed"
    FIRED = "fired"
    CANCELLED = "cancelled"


class Deadline:
    """Schedules one expiry callback on the attempt's event loop.

    The timer moves ``PENDING -> ARMED -> FIRED | CANCELLED`` and never goes
    back; firing and cancellation exclude each other because both run on the
    owning loop and check the same state.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, timeout_ms: int,
                 on_expire: Callable[[int], None]):
        self.timeout_ms = timeout_ms
        self._loop = loop
        self._on_expire = on_expire
        self._state = _TimerState.PENDING
        self._handle: asyncio.TimerHandle | None = None
        self._started_at: float | None = None

    @property
    def active(self) -> bool:
        return self._state is _TimerState.ARMED

    @property
    def fired(self) -> bool:
        return self._state is _TimerState.FIRED

    @property
    def cancelled(self) -> bool:
        return self._state is _TimerState.CANCELLED

    def start(self) -> None:
        """Arm the timer. A deadline can be armed only once."""
        if self._state is not _TimerState.PENDING:
            raise RuntimeError(f"Deadline cannot be re-armed (state: {self._state.value})")
        self._state = _TimerState.ARMED
        self._started_at = self._loop.time()
        self._handle = self._loop.call_later(self.timeout_ms / 1000, self._fire)

    def cancel(self) -> bool:
        """Cancel the timer; returns True when a pending expiry was prevented."""
        if self._state is _TimerState.ARMED:
            self._handle.cancel()
            self._state = _TimerState.CANCELLED
            return True
        if self._state is _TimerState.PENDING:
            self._state = _TimerState.CANCELLED
        return False

    def _fire(self) -> None:
        if self._state is not _TimerState.ARMED:
            return
        self._state = _TimerState.FIRED
        elapsed_ms = int(round((self._loop.time() - self._started_at) * 1000))
        logger.debug(f"Deadline of {self.timeout_ms}ms expired after {elapsed_ms}ms")
        self._on_expire(elapsed_ms)

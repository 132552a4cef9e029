"""Result types and delivery of an attempt's terminal outcome."""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Protocol, Union

from .errors import PdfGenerationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Success:
    path: Path


@dataclass(frozen=True)
class Failure:
    error: PdfGenerationError

    @property
    def message(self) -> str:
        return str(self.error)


CompletionResult = Union[Success, Failure]


class PdfCallbackListener(Protocol):
    """Caller-supplied receiver of generation results."""

    def on_success(self, file_path: str) -> None: ...

    def on_failure(self, error_msg: str) -> None: ...


class CallbackListener:
    """Adapts two plain callables to :class:`PdfCallbackListener`."""

    def __init__(self, on_success: Callable[[str], None] | None = None,
                 on_failure: Callable[[str], None] | None = None):
        self._on_success = on_success
        self._on_failure = on_failure

    def on_success(self, file_path: str) -> None:
        if self._on_success is not None:
            self._on_success(file_path)

    def on_failure(self, error_msg: str) -> None:
        if self._on_failure is not None:
            self._on_failure(error_msg)


class CompletionBridge:
    """Feeds one terminal result to a listener and/or a future, at most once.

    The listener is notified first, then the future resolves with the same
    result. A future that was cancelled by its awaiter is left alone.
    """

    def __init__(self, listener: PdfCallbackListener | None = None,
                 future: asyncio.Future | None = None):
        self._listener = listener
        self._future = future
        self._delivered = False

    @property
    def delivered(self) -> bool:
        return self._delivered

    def deliver(self, result: CompletionResult) -> bool:
        """Deliver ``result``; returns False if a result was already delivered."""
        if self._delivered:
            return False
        self._delivered = True

        if self._listener is not None:
            try:
                if isinstance(result, Success):
                    self._listener.on_success(str(result.path))
                else:
                    self._listener.on_failure(result.message)
            except Exception:
                logger.exception("PDF callback listener raised")

        if self._future is not None and not self._future.done():
            self._future.set_result(result)
        return True

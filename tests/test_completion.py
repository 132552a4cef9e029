"""Tests for result delivery through listeners and futures."""
import asyncio
from pathlib import Path

from conftest import RecordingListener
from html_pdf_generator import CallbackListener, ExportError, Failure, Success
from html_pdf_generator.completion import CompletionBridge


def test_bridge_delivers_at_most_once():
    async def scenario():
        listener = RecordingListener()
        future = asyncio.get_running_loop().create_future()
        bridge = CompletionBridge(listener, future)
        first = bridge.deliver(Success(Path("/out/a.pdf")))
        second = bridge.deliver(Failure(ExportError("late")))
        return listener, future.result(), first, second

    listener, result, first, second = asyncio.run(scenario())

    assert (first, second) == (True, False)
    assert listener.successes == [str(Path("/out/a.pdf"))]
    assert listener.failures == []
    assert result == Success(Path("/out/a.pdf"))


def test_bridge_skips_cancelled_future_but_notifies_listener():
    async def scenario():
        listener = RecordingListener()
        future = asyncio.get_running_loop().create_future()
        future.cancel()
        CompletionBridge(listener, future).deliver(Failure(ExportError("boom")))
        return listener, future

    listener, future = asyncio.run(scenario())

    assert listener.failures == ["boom"]
    assert future.cancelled()


def test_listener_exception_does_not_block_future():
    def explode(path):
        raise ValueError("listener bug")

    async def scenario():
        future = asyncio.get_running_loop().create_future()
        CompletionBridge(CallbackListener(on_success=explode), future).deliver(Success(Path("x.pdf")))
        return future.result()

    assert asyncio.run(scenario()) == Success(Path("x.pdf"))


def test_callback_listener_adapts_callables():
    received = []
    listener = CallbackListener(on_success=received.append, on_failure=lambda msg: received.append(f"!{msg}"))

    listener.on_success("/tmp/a.pdf")
    listener.on_failure("boom")
    CallbackListener().on_failure("ignored")

    assert received == ["/tmp/a.pdf", "!boom"]


def test_failure_message_is_error_text():
    assert Failure(ExportError("No pages were written to PDF")).message == "No pages were written to PDF"

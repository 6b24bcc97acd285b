import asyncio
import threading

import pytest

from pii_agent.workflow.exceptions import ResponseTimeoutError, WorkflowCancelledError
from pii_agent.workflow.response_waiter import ResponseWaiter


def _make_waiter(observer, timeout: float = 1.0, interval: float = 0.02) -> ResponseWaiter:
    return ResponseWaiter(
        observer,
        timeout_seconds=timeout,
        stability_checks=3,
        stability_interval_seconds=interval,
    )


class TestResponseWaiter:
    @pytest.mark.asyncio
    async def test_returns_text_once_response_is_stable(self, observer) -> None:
        loop = asyncio.get_running_loop()
        loop.call_later(0.02, observer.push_response, "Hello there")

        text = await _make_waiter(observer).wait(baseline_count=0)

        assert text == "Hello there"

    @pytest.mark.asyncio
    async def test_waits_for_streaming_to_finish(self, observer) -> None:
        loop = asyncio.get_running_loop()
        loop.call_later(0.01, observer.push_response, "Hel")
        loop.call_later(0.04, observer.update_latest, "Hello")
        loop.call_later(0.07, observer.update_latest, "Hello, world")

        text = await _make_waiter(observer, interval=0.03).wait(baseline_count=0)

        assert text == "Hello, world"

    @pytest.mark.asyncio
    async def test_ignores_responses_present_before_baseline(self, observer) -> None:
        observer.push_response("old answer")

        with pytest.raises(ResponseTimeoutError):
            await _make_waiter(observer, timeout=0.1).wait(baseline_count=1)

    @pytest.mark.asyncio
    async def test_times_out_without_new_response(self, observer) -> None:
        with pytest.raises(ResponseTimeoutError, match="No new response"):
            await _make_waiter(observer, timeout=0.05).wait(baseline_count=0)

    @pytest.mark.asyncio
    async def test_returns_latest_text_when_never_stable(self, observer) -> None:
        observer.push_response("")

        text = await _make_waiter(observer, timeout=0.1).wait(baseline_count=0)

        assert text == ""

    @pytest.mark.asyncio
    async def test_cancel_aborts_the_wait(self, observer) -> None:
        cancel = asyncio.Event()
        asyncio.get_running_loop().call_later(0.02, cancel.set)

        with pytest.raises(WorkflowCancelledError):
            await _make_waiter(observer, timeout=5).wait(baseline_count=0, cancel_event=cancel)

    @pytest.mark.asyncio
    async def test_accepts_notifications_from_other_threads(self, observer) -> None:
        timer = threading.Timer(0.02, observer.push_response, args=("from a thread",))
        timer.start()
        try:
            text = await _make_waiter(observer).wait(baseline_count=0)
        finally:
            timer.cancel()

        assert text == "from a thread"

    @pytest.mark.asyncio
    async def test_unsubscribes_when_done(self, observer) -> None:
        with pytest.raises(ResponseTimeoutError):
            await _make_waiter(observer, timeout=0.02).wait(baseline_count=0)

        assert observer.subscribers == []

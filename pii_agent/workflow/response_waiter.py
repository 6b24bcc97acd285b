"""Event-driven wait for a new, stabilized response.

The observer pushes change notifications, possibly from another thread;
they are funnelled into an ``asyncio.Event`` on the running loop. Nothing
here polls the observer on a timer: the loop only wakes on a change event,
a cancel signal, the end of a stability window, or the overall deadline.
"""

import asyncio

from pii_agent.logging.logger import Log
from pii_agent.surface.base import ResponseObserver
from pii_agent.workflow.exceptions import ResponseTimeoutError, WorkflowCancelledError


class ResponseWaiter:
    def __init__(
        self,
        observer: ResponseObserver,
        *,
        timeout_seconds: float = 60.0,
        stability_checks: int = 3,
        stability_interval_seconds: float = 0.3,
    ) -> None:
        self._observer = observer
        self._timeout = timeout_seconds
        self._checks = stability_checks
        self._interval = stability_interval_seconds

    async def wait(
        self,
        baseline_count: int,
        cancel_event: asyncio.Event | None = None,
    ) -> str:
        """Block until a response beyond *baseline_count* stops changing.

        Returns the latest response text. If the count rose but the text
        never settled before the deadline, that unsettled text is returned.

        Raises:
            ResponseTimeoutError: no new response appeared in time.
            WorkflowCancelledError: *cancel_event* was set.
        """
        loop = asyncio.get_running_loop()
        changed = asyncio.Event()
        cancel = cancel_event or asyncio.Event()

        def on_change() -> None:
            loop.call_soon_threadsafe(changed.set)

        unsubscribe = self._observer.subscribe(on_change)
        try:
            deadline = loop.time() + self._timeout
            if not await self._await_new_response(loop, changed, cancel, baseline_count, deadline):
                raise ResponseTimeoutError(
                    f"No new response within {self._timeout:g}s"
                )
            return await self._await_stable(loop, changed, cancel, deadline)
        finally:
            unsubscribe()

    async def _await_new_response(
        self,
        loop: asyncio.AbstractEventLoop,
        changed: asyncio.Event,
        cancel: asyncio.Event,
        baseline_count: int,
        deadline: float,
    ) -> bool:
        while True:
            _raise_if_cancelled(cancel)
            changed.clear()
            if self._observer.count_responses() > baseline_count:
                return True
            remaining = deadline - loop.time()
            if remaining <= 0:
                return False
            await _wait_first(remaining, changed, cancel)

    async def _await_stable(
        self,
        loop: asyncio.AbstractEventLoop,
        changed: asyncio.Event,
        cancel: asyncio.Event,
        deadline: float,
    ) -> str:
        last_text = self._observer.get_latest_response_text()
        stable = 0
        while stable < self._checks:
            if loop.time() >= deadline:
                Log.warning("Response did not stabilize before timeout, using latest text")
                return last_text
            quiet = await self._quiet_window(loop, changed, cancel, deadline, last_text)
            current = self._observer.get_latest_response_text()
            if quiet and current == last_text and current.strip():
                stable += 1
            else:
                stable = 0
            last_text = current
        Log.debug(f"Response stabilized after {self._checks} checks ({len(last_text)} chars)")
        return last_text

    async def _quiet_window(
        self,
        loop: asyncio.AbstractEventLoop,
        changed: asyncio.Event,
        cancel: asyncio.Event,
        deadline: float,
        reference: str,
    ) -> bool:
        """Wait one stability interval; False as soon as the text changes."""
        window_end = min(loop.time() + self._interval, deadline)
        while True:
            remaining = window_end - loop.time()
            if remaining <= 0:
                return True
            changed.clear()
            await _wait_first(remaining, changed, cancel)
            _raise_if_cancelled(cancel)
            if changed.is_set() and self._observer.get_latest_response_text() != reference:
                return False


def _raise_if_cancelled(cancel: asyncio.Event) -> None:
    if cancel.is_set():
        raise WorkflowCancelledError("Run cancelled while awaiting response")


async def _wait_first(timeout: float, *events: asyncio.Event) -> None:
    tasks = [asyncio.ensure_future(event.wait()) for event in events]
    try:
        await asyncio.wait(tasks, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in tasks:
            task.cancel()

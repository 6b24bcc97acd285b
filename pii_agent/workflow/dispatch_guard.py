import time
from collections.abc import Callable


class DispatchGuard:
    """Suppresses duplicate submits for a short window after a dispatch.

    A manual send and the automated dispatch step can both fire within one
    run; only the first one inside the window reaches the surface.
    """

    def __init__(
        self,
        window_seconds: float = 3.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._window = window_seconds
        self._clock = clock
        self._dispatched_at: float | None = None

    def recently_dispatched(self) -> bool:
        if self._dispatched_at is None:
            return False
        return self._clock() - self._dispatched_at < self._window

    def mark(self) -> None:
        self._dispatched_at = self._clock()

    def reset(self) -> None:
        self._dispatched_at = None

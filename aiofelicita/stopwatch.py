"""Local stopwatch backing the scale timer."""

import time


class Stopwatch:
    """Accumulates elapsed time across start / stop cycles."""

    def __init__(self) -> None:
        self._accumulated = 0.0
        self._started_at: float | None = None

    @property
    def running(self) -> bool:
        return self._started_at is not None

    def start(self) -> None:
        if self._started_at is None:
            self._started_at = time.monotonic()

    def stop(self) -> None:
        if self._started_at is not None:
            self._accumulated += time.monotonic() - self._started_at
            self._started_at = None

    def reset(self) -> None:
        """Zero the accumulator, a running stopwatch keeps running."""
        self._accumulated = 0.0
        if self._started_at is not None:
            self._started_at = time.monotonic()

    def elapsed(self) -> float:
        """Return the elapsed time in seconds."""
        if self._started_at is None:
            return self._accumulated
        return self._accumulated + time.monotonic() - self._started_at

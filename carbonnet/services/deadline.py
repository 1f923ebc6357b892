"""
Deadline and cancellation token for report computations.
"""
import time

from carbonnet.services.exceptions import DeadlineExceeded


class Deadline:
    """
    Time budget shared by aggregation and export.

    Long-running loops call ``check(stage)``; it raises ``DeadlineExceeded``
    once the budget is spent or ``cancel()`` has been called.

    Example:
        >>> deadline = Deadline(seconds=30)
        >>> deadline.check("aggregation")
    """

    def __init__(self, seconds: float | None = None, clock=time.monotonic):
        self._clock = clock
        self._expires_at = None if seconds is None else clock() + seconds
        self._cancelled = False

    @classmethod
    def unlimited(cls) -> "Deadline":
        """A deadline that only stops on explicit cancellation."""
        return cls(seconds=None)

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def expired(self) -> bool:
        return self._expires_at is not None and self._clock() >= self._expires_at

    def remaining(self) -> float | None:
        """Seconds left, or None for an unlimited deadline."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._clock())

    def check(self, stage: str) -> None:
        if self._cancelled:
            raise DeadlineExceeded(stage, "cancelled")
        if self.expired:
            raise DeadlineExceeded(stage)

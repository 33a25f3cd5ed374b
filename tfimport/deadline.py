import time
from typing import Optional

from tfimport.errors import DeadlineExceededError

DEFAULT_TIMEOUT_SECONDS = 60
RECURSIVE_TIMEOUT_SECONDS = 300


class Deadline:
    """
    Wall-clock budget shared by every blocking call of one action.

    A deadline created with ``seconds=None`` never expires.
    """

    def __init__(self, seconds: Optional[float] = DEFAULT_TIMEOUT_SECONDS, clock=time.monotonic) -> None:
        self._clock = clock
        self.seconds = seconds
        self._expires_at = None if seconds is None else clock() + seconds

    @classmethod
    def unbounded(cls) -> "Deadline":
        return cls(None)

    @property
    def expired(self) -> bool:
        return self._expires_at is not None and self._clock() >= self._expires_at

    def remaining(self) -> Optional[float]:
        """Seconds left, or None when unbounded. Raises once expired."""
        if self._expires_at is None:
            return None
        left = self._expires_at - self._clock()
        if left <= 0:
            raise DeadlineExceededError(f"Deadline of {self.seconds}s exceeded")
        return left

    def check(self) -> None:
        self.remaining()

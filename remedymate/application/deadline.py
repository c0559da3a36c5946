import time
from typing import Optional

from remedymate.domain.errors import DeadlineExceededError, GatewayTimeoutError


class Deadline:
    """Caller-supplied time budget shared by every gateway call of one operation."""

    def __init__(self, timeout: Optional[float] = None, clock=time.monotonic):
        self._clock = clock
        self._expires_at = None if timeout is None else clock() + timeout

    def expired(self) -> bool:
        return self._expires_at is not None and self._clock() >= self._expires_at

    def remaining(self, stage: str = "unknown") -> Optional[float]:
        """Seconds left for the next call, None if unbounded. Raises once exhausted."""
        if self._expires_at is None:
            return None
        left = self._expires_at - self._clock()
        if left <= 0:
            raise DeadlineExceededError(details={"stage": stage})
        return left

    def is_caller_timeout(self, error: GatewayTimeoutError) -> bool:
        """True when a timeout means this budget is spent, not just that one call was slow."""
        return isinstance(error, DeadlineExceededError) or self.expired()


def as_deadline(timeout) -> Deadline:
    if isinstance(timeout, Deadline):
        return timeout
    return Deadline(timeout)

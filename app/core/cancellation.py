import threading
import time
from typing import Optional

from app.core.errors import OperationCancelled


class CancelToken:
    """Cancellation signal tied to one inbound request.

    The token fires either when ``cancel()`` is called or when the optional
    deadline (seconds from creation) passes.
    """

    def __init__(self, timeout: Optional[float] = None):
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise OperationCancelled()

    def remaining(self, default: float) -> float:
        """Seconds left before the deadline, capped by ``default``.

        Never returns zero or less: a passed deadline raises ``OperationCancelled``.
        """
        if self._deadline is None:
            return default
        left = self._deadline - time.monotonic()
        if left <= 0:
            raise OperationCancelled()
        return min(default, left)

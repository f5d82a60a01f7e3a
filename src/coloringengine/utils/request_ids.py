"""Request correlation id generation."""

import threading
import time
from typing import Callable


class RequestIdSource:
    """Thread-safe, monotonically increasing source of request ids.

    Ids look like ``img_<epoch_ms>_<n>``. The counter is the only state shared
    between concurrent orchestrations.
    """

    def __init__(self, prefix: str = "img", clock: Callable[[], float] = time.time):
        self._prefix = prefix
        self._clock = clock
        self._counter = 0
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            self._counter += 1
            sequence = self._counter
        return f"{self._prefix}_{int(self._clock() * 1000)}_{sequence}"

    @property
    def issued(self) -> int:
        """Number of ids handed out so far."""
        with self._lock:
            return self._counter

"""Limits how often messages are forwarded into one destination chat.

Consecutive forwards into the same chat are spaced FORWARD_INTERVAL seconds
apart. It is thread-safe.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Optional

FORWARD_INTERVAL = 3.0


class ForwardLimiter:
    """Enforces a minimum interval between forwards into the same chat."""

    def __init__(
        self,
        interval: float = FORWARD_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._interval = interval
        self._clock = clock
        self._lock = threading.Lock()
        self._last_forwarded: dict[int, float] = {}

    def wait_for_forward(self, chat_id: int, cancel: Optional[threading.Event] = None) -> bool:
        """Block until the chat's interval has passed and claim the slot.

        Returns False, without claiming, if ``cancel`` is set while waiting.
        """
        with self._lock:
            last = self._last_forwarded.get(chat_id)
            remaining = 0.0 if last is None else self._interval - (self._clock() - last)
            if remaining <= 0:
                self._last_forwarded[chat_id] = self._clock()
                return True

        waiter = cancel if cancel is not None else threading.Event()
        if waiter.wait(remaining):
            return False

        with self._lock:
            self._last_forwarded[chat_id] = self._clock()
        return True
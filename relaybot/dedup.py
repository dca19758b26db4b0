"""Tracks which destination chats already received a given message.

One tracker belongs to one source message. It is thread-safe.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable


class Tracker:
    """Remembers the destination chats a message has been sent to."""

    def __init__(self, destinations: Iterable[int] = ()) -> None:
        self._lock = threading.Lock()
        self._forwarded: dict[int, bool] = dict.fromkeys(destinations, False)

    def try_mark(self, chat_id: int) -> bool:
        """Mark the chat as served; True if it had not been marked before."""
        with self._lock:
            if self._forwarded.get(chat_id, False):
                return False
            self._forwarded[chat_id] = True
            return True
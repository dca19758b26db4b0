"""Collects the messages of a media album before it is forwarded.

Albums arrive one message at a time; the collector groups them by key.
Processing is expected to wait ALBUM_SETTLE_SECONDS after the last message.
It is thread-safe.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

ALBUM_SETTLE_SECONDS = 3.0


@dataclass
class _Entry:
    messages: list[Any] = field(default_factory=list)
    last_received: float = 0.0


class AlbumCollector:
    """Groups album messages by key."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._albums: dict[str, _Entry] = {}

    def add_message(self, key: str, message: Any) -> bool:
        """Add a message to the album; True if it is the album's first."""
        with self._lock:
            entry = self._albums.get(key)
            is_first = entry is None
            if entry is None:
                entry = self._albums[key] = _Entry()
            entry.messages.append(message)
            entry.last_received = self._clock()
            return is_first

    def last_received_age(self, key: str) -> float:
        """Seconds since the album's last message, or 0.0 for an unknown album."""
        with self._lock:
            entry = self._albums.get(key)
            if entry is None:
                return 0.0
            return self._clock() - entry.last_received

    def pop_messages(self, key: str) -> list[Any]:
        """Remove the album and return its messages in arrival order."""
        with self._lock:
            entry = self._albums.pop(key, None)
            return [] if entry is None else entry.messages


def make_key(rule_id: str, media_album_id: int) -> str:
    """Build an album key from a forward rule id and a media album id."""
    return f"{rule_id}:{media_album_id}"
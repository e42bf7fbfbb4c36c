"""Student directory lookups used as the administrative fallback."""

from __future__ import annotations

import logging
import math
import threading
import time
from datetime import date
from typing import Callable, Iterable, Optional, Protocol

from sessionsifter.storage.models import StudentDirectoryEntry

logger = logging.getLogger(__name__)

MIN_NAME_PART = 3


class StudentDirectory(Protocol):
    def lookup_by_email(self, email: str) -> Optional[StudentDirectoryEntry]: ...

    def all(self) -> Iterable[StudentDirectoryEntry]: ...


class InMemoryDirectory:
    """Directory snapshot keyed by lower-cased student email."""

    def __init__(self, entries: Iterable[StudentDirectoryEntry] = ()):
        self._entries = {e.email.strip().lower(): e for e in entries if e.email}

    def lookup_by_email(self, email: str) -> Optional[StudentDirectoryEntry]:
        if not email:
            return None
        return self._entries.get(email.strip().lower())

    def all(self) -> list[StudentDirectoryEntry]:
        return list(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)


class CachedDirectory:
    """Shareable directory that reloads from its loader on demand or after a TTL.

    Readers always see a complete snapshot; a reload swaps the snapshot under
    a lock.
    """

    def __init__(
        self,
        loader: Callable[[], Iterable[StudentDirectoryEntry]],
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._loader = loader
        self._ttl = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._snapshot: Optional[InMemoryDirectory] = None
        self._loaded_at = 0.0

    def refresh(self) -> InMemoryDirectory:
        snapshot = InMemoryDirectory(self._loader())
        with self._lock:
            self._snapshot = snapshot
            self._loaded_at = self._clock()
        logger.info("Loaded %d student directory entries", len(snapshot))
        return snapshot

    def snapshot(self) -> InMemoryDirectory:
        with self._lock:
            current = self._snapshot
            stale = self._ttl is not None and self._clock() - self._loaded_at >= self._ttl
        if current is None or stale:
            current = self.refresh()
        return current

    def lookup_by_email(self, email: str) -> Optional[StudentDirectoryEntry]:
        return self.snapshot().lookup_by_email(email)

    def all(self) -> list[StudentDirectoryEntry]:
        return self.snapshot().all()


def _normalize(text: str) -> str:
    return " ".join(text.lower().replace("_", " ").split())


def find_entry(
    directory: Optional[StudentDirectory],
    text: str,
    host_email: Optional[str] = None,
) -> Optional[StudentDirectoryEntry]:
    """Find the student a recording belongs to.

    The host email is tried first as an exact key; then every entry whose full
    name or email local part occurs in the topic text.
    """
    if directory is None:
        return None

    if host_email:
        entry = directory.lookup_by_email(host_email)
        if entry:
            return entry

    haystack = _normalize(text or "")
    compact = haystack.replace(" ", "")
    if not haystack:
        return None

    for entry in directory.all():
        name = _normalize(entry.display_name or "")
        if len(name) >= MIN_NAME_PART and name in haystack:
            return entry
        local = entry.email.split("@", 1)[0].lower()
        if len(local) >= MIN_NAME_PART and (local in haystack or local in compact):
            return entry
    return None


def calculate_week(start_date: Optional[date], recording_date: Optional[date], max_week: int = 52) -> Optional[int]:
    """Week of the program the recording falls in, clamped to [1, max_week]."""
    if start_date is None or recording_date is None:
        return None
    days = (recording_date - start_date).days
    return max(1, min(math.ceil(days / 7), max_week))

"""Drop entry registry."""

import threading
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional

from filedrop.lifecycle.exceptions import (
    DuplicateTokenError,
    EntryStateError,
    UnknownTokenError,
)
from filedrop.storage.local import LocalSlotStorage


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class EntryState(str, Enum):
    """Entry state enumeration."""

    PENDING = "pending"  # Token issued, awaiting file upload
    OCCUPIED = "occupied"  # File stored, available for retrieval


@dataclass
class Entry:
    """Drop entry metadata."""

    token: str
    state: EntryState
    created_at: datetime
    room: str = ""
    requester: str = ""
    file_name: str = ""
    size_bytes: int = 0
    uploaded_at: Optional[datetime] = None
    in_flight: bool = False  # An upload is being written outside the lock
    claimed_bytes: int = 0

    @property
    def usable(self) -> bool:
        """True if the entry can still accept an upload."""
        return self.state == EntryState.PENDING and not self.in_flight


class EntryRegistry:
    """In-memory token -> entry mapping guarded by one registry-wide lock.

    The registry is the only component that mutates the mapping, and it
    creates the slot directory together with each entry. Every method
    takes the lock; `locked()` lets callers hold it across several calls.
    """

    def __init__(self, storage: LocalSlotStorage, clock: Callable[[], datetime] = utc_now):
        self.storage = storage
        self._clock = clock
        self._entries: Dict[str, Entry] = {}
        self._lock = threading.RLock()

    @contextmanager
    def locked(self) -> Iterator["EntryRegistry"]:
        """Hold the registry lock for a check-then-act sequence."""
        with self._lock:
            yield self

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def contains(self, token: str) -> bool:
        with self._lock:
            return token in self._entries

    def create(self, token: str, room: str = "", requester: str = "") -> Entry:
        """Register a pending entry and create its slot directory.

        Raises:
            DuplicateTokenError: If the token is already registered
            StorageIOError: If the slot directory cannot be created
        """
        with self._lock:
            if token in self._entries:
                raise DuplicateTokenError(f"Token already registered: {token}")

            self.storage.create_slot(token)
            entry = Entry(
                token=token,
                state=EntryState.PENDING,
                created_at=self._clock(),
                room=room,
                requester=requester,
            )
            self._entries[token] = entry
            return replace(entry)

    def get(self, token: str) -> Optional[Entry]:
        """Retrieve a copy of an entry, or None if the token is unknown."""
        with self._lock:
            entry = self._entries.get(token)
            return replace(entry) if entry else None

    def entries(self) -> List[Entry]:
        """Snapshot of all entries."""
        with self._lock:
            return [replace(entry) for entry in self._entries.values()]

    def claim(self, token: str, size_bytes: int) -> None:
        """Mark an upload as in flight for a token.

        Raises:
            UnknownTokenError: If the token is unknown
        """
        with self._lock:
            entry = self._require(token)
            entry.in_flight = True
            entry.claimed_bytes = size_bytes

    def release(self, token: str) -> None:
        """Clear an in-flight claim. Unknown tokens are ignored."""
        with self._lock:
            entry = self._entries.get(token)
            if entry:
                entry.in_flight = False
                entry.claimed_bytes = 0

    def finalize(self, token: str, file_name: str, size_bytes: int) -> Entry:
        """Transition a pending entry to occupied.

        Raises:
            UnknownTokenError: If the token is unknown
            EntryStateError: If the entry is already occupied
        """
        with self._lock:
            entry = self._require(token)
            if entry.state != EntryState.PENDING:
                raise EntryStateError(f"Entry already occupied: {token}")

            entry.state = EntryState.OCCUPIED
            entry.file_name = file_name
            entry.size_bytes = size_bytes
            entry.uploaded_at = self._clock()
            entry.in_flight = False
            entry.claimed_bytes = 0
            return replace(entry)

    def remove(self, token: str) -> Optional[Entry]:
        """Delete the mapping for a token.

        The caller deletes the slot directory as part of the same operation.
        """
        with self._lock:
            return self._entries.pop(token, None)

    def _require(self, token: str) -> Entry:
        entry = self._entries.get(token)
        if entry is None:
            raise UnknownTokenError(f"Unknown token: {token}")
        return entry

"""Aggregate storage quota accounting."""

from typing import Iterable

from filedrop.lifecycle.registry import Entry


class StorageAccountant:
    """Checks proposed uploads against the global storage quota.

    The check is point-in-time. Callers hold the registry lock while
    checking and claiming so the view of entries does not change in between.
    """

    def __init__(self, max_storage_bytes: int):
        self.max_storage_bytes = max_storage_bytes

    @staticmethod
    def committed_bytes(entries: Iterable[Entry]) -> int:
        """Bytes of stored files."""
        return sum(entry.size_bytes for entry in entries)

    @staticmethod
    def reserved_bytes(entries: Iterable[Entry]) -> int:
        """Bytes claimed by uploads still in flight."""
        return sum(entry.claimed_bytes for entry in entries if entry.in_flight)

    def would_exceed_quota(self, entries: Iterable[Entry], additional_bytes: int) -> bool:
        """True if storing additional_bytes more would pass the quota."""
        entries = list(entries)
        total = self.committed_bytes(entries) + self.reserved_bytes(entries)
        return total + additional_bytes > self.max_storage_bytes

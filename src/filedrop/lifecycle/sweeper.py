"""Retention sweeping for expired drop entries."""

import logging
from datetime import datetime, timedelta
from typing import List

from filedrop.lifecycle.registry import EntryRegistry

logger = logging.getLogger(__name__)


class RetentionSweeper:
    """Evicts entries older than the retention window.

    Runs on demand before requests are served rather than on a timer.
    """

    def __init__(self, registry: EntryRegistry):
        self.registry = registry

    def sweep(self, now: datetime, retention: timedelta) -> List[str]:
        """Remove every entry with now - created_at >= retention.

        The slot directory is deleted before the mapping is removed.
        Entries with an upload in flight are skipped, since the writer still
        owns their directory; a later sweep reclaims them once the claim is
        finalized or released.
        Deletion failures are logged and the mapping is removed anyway, so
        the token stops being usable even if its directory lingers.

        Args:
            now: Reference time
            retention: Maximum entry age

        Returns:
            Tokens that were removed
        """
        removed: List[str] = []

        with self.registry.locked():
            expired = [
                entry.token
                for entry in self.registry.entries()
                if now - entry.created_at >= retention and not entry.in_flight
            ]

            for token in expired:
                try:
                    self.registry.storage.remove_slot(token)
                except OSError as e:
                    logger.error(
                        "Failed to remove slot directory",
                        extra={"token": token, "error": str(e)},
                    )

                self.registry.remove(token)
                removed.append(token)

        if removed:
            logger.info(
                "Expired entries reclaimed",
                extra={"count": len(removed), "retention_seconds": retention.total_seconds()},
            )

        return removed

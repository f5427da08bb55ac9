"""Lifecycle orchestration for drop slots.

This is the entry point for the HTTP and chat layers. It issues tokens,
answers whether a token can take an upload, admits uploads against the
storage quota, and looks up stored files for retrieval. Expired entries are
swept before each request-facing check.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional

from filedrop.lifecycle.accountant import StorageAccountant
from filedrop.lifecycle.exceptions import StorageIOError, UnknownTokenError
from filedrop.lifecycle.registry import EntryRegistry, EntryState, utc_now
from filedrop.lifecycle.sweeper import RetentionSweeper
from filedrop.lifecycle.tokens import generate_token
from filedrop.storage.local import LocalSlotStorage

logger = logging.getLogger(__name__)

ContentWriter = Callable[[Path], Any]


class AdmissionStatus(str, Enum):
    """Outcome of an upload admission."""

    ADMITTED = "admitted"
    NOT_FOUND = "not_found"  # Unknown, used, or busy token
    EMPTY_FILE = "empty_file"
    QUOTA_EXCEEDED = "quota_exceeded"
    STORAGE_FAILURE = "storage_failure"


@dataclass
class StorageUsage:
    """Point-in-time view of the registry for operators."""

    pending_entries: int
    occupied_entries: int
    committed_bytes: int
    reserved_bytes: int
    max_storage_bytes: int


class FileDropLifecycle:
    """Coordinates the registry, quota accounting and retention sweeps."""

    def __init__(
        self,
        registry: EntryRegistry,
        accountant: StorageAccountant,
        sweeper: RetentionSweeper,
        retention: timedelta,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.registry = registry
        self.accountant = accountant
        self.sweeper = sweeper
        self.retention = retention
        self._clock = clock

    @classmethod
    def build(
        cls,
        storage: LocalSlotStorage,
        max_storage_bytes: int,
        retention: timedelta,
        clock: Callable[[], datetime] = utc_now,
    ) -> "FileDropLifecycle":
        """Wire a lifecycle with a fresh registry over the given storage."""
        registry = EntryRegistry(storage, clock=clock)
        return cls(
            registry=registry,
            accountant=StorageAccountant(max_storage_bytes),
            sweeper=RetentionSweeper(registry),
            retention=retention,
            clock=clock,
        )

    @property
    def storage(self) -> LocalSlotStorage:
        return self.registry.storage

    def sweep(self) -> list[str]:
        """Reclaim expired entries as of the lifecycle clock."""
        return self.sweeper.sweep(self._clock(), self.retention)

    def create_upload_slot(self, room: str, requester: str) -> str:
        """Issue a new pending token.

        Raises:
            StorageIOError: If the slot directory cannot be created
        """
        with self.registry.locked():
            token = generate_token(self.registry.contains)
            self.registry.create(token, room=room, requester=requester)

        logger.info(
            "Upload slot created",
            extra={"token": token, "room": room, "requester": requester},
        )
        return token

    def is_usable(self, token: str) -> bool:
        """True if the token exists and can still take an upload."""
        self.sweep()
        entry = self.registry.get(token)
        return entry is not None and entry.usable

    def admit_upload(
        self,
        token: str,
        file_name: str,
        size_bytes: int,
        content_writer: ContentWriter,
    ) -> AdmissionStatus:
        """Admit, write and commit one upload.

        Usability and quota are checked and the entry is claimed under the
        registry lock. The writer then runs without the lock and receives
        the target file path. The entry becomes occupied only after the
        writer returns. A failed or aborted write leaves no file behind.

        Args:
            token: Drop token
            file_name: Name to store the file under
            size_bytes: Size of the upload
            content_writer: Writes the upload to the given path

        Returns:
            AdmissionStatus describing the outcome
        """
        self.sweep()

        with self.registry.locked():
            entry = self.registry.get(token)
            if entry is None or not entry.usable:
                logger.warning(
                    "Upload rejected: token not usable",
                    extra={
                        "token": token,
                        "reason": "unknown" if entry is None else
                        ("in_flight" if entry.in_flight else entry.state.value),
                    },
                )
                return AdmissionStatus.NOT_FOUND

            if size_bytes <= 0:
                logger.warning(
                    "Upload rejected: empty file",
                    extra={"token": token, "size_bytes": size_bytes},
                )
                return AdmissionStatus.EMPTY_FILE

            if self.accountant.would_exceed_quota(self.registry.entries(), size_bytes):
                logger.warning(
                    "Upload rejected: storage quota exceeded",
                    extra={
                        "token": token,
                        "size_bytes": size_bytes,
                        "max_storage_bytes": self.accountant.max_storage_bytes,
                    },
                )
                return AdmissionStatus.QUOTA_EXCEEDED

            self.registry.claim(token, size_bytes)

        target_path = self.storage.file_path(token, file_name)
        try:
            content_writer(target_path)
        except (OSError, StorageIOError) as e:
            self._discard_partial(target_path)
            self.registry.release(token)
            logger.error(
                "Upload write failed",
                extra={"token": token, "file_name": file_name, "error": str(e)},
            )
            return AdmissionStatus.STORAGE_FAILURE
        except BaseException:
            self._discard_partial(target_path)
            self.registry.release(token)
            raise

        try:
            self.registry.finalize(token, file_name, size_bytes)
        except UnknownTokenError:
            logger.warning(
                "Upload finished after its slot expired",
                extra={"token": token, "file_name": file_name},
            )
            return AdmissionStatus.NOT_FOUND

        logger.info(
            "Upload admitted",
            extra={"token": token, "file_name": file_name, "size_bytes": size_bytes},
        )
        return AdmissionStatus.ADMITTED

    def describe_for_retrieval(self, token: str) -> Optional[str]:
        """Stored file name for an occupied token, None otherwise."""
        self.sweep()
        entry = self.registry.get(token)
        if entry is None or entry.state != EntryState.OCCUPIED:
            return None
        return entry.file_name

    def resolve_file(self, token: str) -> Optional[Path]:
        """On-disk path of the stored file for an occupied token."""
        file_name = self.describe_for_retrieval(token)
        if file_name is None:
            return None
        return self.storage.file_path(token, file_name)

    def usage(self) -> StorageUsage:
        """Snapshot of registry occupancy and quota use."""
        entries = self.registry.entries()
        return StorageUsage(
            pending_entries=sum(1 for e in entries if e.state == EntryState.PENDING),
            occupied_entries=sum(1 for e in entries if e.state == EntryState.OCCUPIED),
            committed_bytes=self.accountant.committed_bytes(entries),
            reserved_bytes=self.accountant.reserved_bytes(entries),
            max_storage_bytes=self.accountant.max_storage_bytes,
        )

    @staticmethod
    def _discard_partial(target_path: Path) -> None:
        try:
            target_path.unlink(missing_ok=True)
        except OSError as e:
            logger.error(
                "Failed to remove partial upload",
                extra={"file_name": target_path.name, "error": str(e)},
            )

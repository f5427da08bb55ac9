"""Local filesystem storage for drop slots.

Every token owns one directory directly under the storage root. The
directory holds at most one file, named after the uploaded file.
"""

import logging
import re
import shutil
from pathlib import Path
from typing import BinaryIO

from filedrop.lifecycle.exceptions import StorageIOError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 65536  # 64KB chunks


class LocalSlotStorage:
    """Local filesystem storage backend, one directory per token."""

    def __init__(self, base_path: Path | str):
        self.base_path = Path(base_path)

    def reset(self) -> None:
        """Wipe and recreate the storage root.

        Slots do not survive a restart, so whatever is left on disk is an
        orphan.
        """
        if self.base_path.exists():
            shutil.rmtree(self.base_path, ignore_errors=True)
        self.base_path.mkdir(parents=True, exist_ok=True)
        logger.info("Storage root reset", extra={"storage_path": str(self.base_path)})

    def slot_dir(self, token: str) -> Path:
        """Directory owned by a token."""
        return self.base_path / token

    def file_path(self, token: str, file_name: str) -> Path:
        """Path of the stored file for a token."""
        return self.slot_dir(token) / file_name

    def create_slot(self, token: str) -> Path:
        """Create the directory for a new token.

        Raises:
            StorageIOError: If the directory cannot be created
        """
        path = self.slot_dir(token)
        try:
            path.mkdir(parents=True)
        except OSError as e:
            raise StorageIOError(f"Failed to create slot directory {path}: {e}") from e
        return path

    def remove_slot(self, token: str) -> None:
        """Delete a token's directory and everything in it.

        A directory that is already gone is not an error.

        Raises:
            OSError: If deletion fails
        """
        path = self.slot_dir(token)
        if path.exists():
            shutil.rmtree(path)

    @staticmethod
    def write_file(target_path: Path, file_data: BinaryIO) -> int:
        """Stream an uploaded file to its path inside a slot directory.

        The slot directory must already exist; a slot that was reclaimed
        while the upload was in flight is reported as a failure instead of
        being recreated.

        Returns:
            Number of bytes written

        Raises:
            StorageIOError: If the slot directory is missing or the write fails
        """
        if not target_path.parent.is_dir():
            raise StorageIOError(f"Slot directory missing: {target_path.parent}")

        written = 0
        try:
            with open(target_path, "wb") as f:
                while chunk := file_data.read(CHUNK_SIZE):
                    f.write(chunk)
                    written += len(chunk)
        except OSError as e:
            raise StorageIOError(f"Unable to save file {target_path}: {e}") from e

        return written

    @staticmethod
    def sanitize_filename(filename: str) -> str:
        """Remove path traversal and dangerous characters."""
        safe = filename.replace("../", "").replace("..\\", "")
        safe = safe.replace("/", "_").replace("\\", "_")
        safe = re.sub(r"[^a-zA-Z0-9._-]", "_", safe)
        if safe in ("", ".", ".."):
            safe = "unnamed"
        return safe[:255]

"""Pytest configuration and shared fixtures."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from filedrop.chat.notifier import ChatNotifier
from filedrop.core.config import Settings
from filedrop.lifecycle.orchestrator import FileDropLifecycle
from filedrop.main import create_app
from filedrop.storage.local import LocalSlotStorage

RETENTION = timedelta(minutes=10)
QUOTA_BYTES = 4096
MAX_FILE_BYTES = 2048


class FakeClock:
    """Manually advanced clock for retention tests."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    """Clock frozen at a fixed instant until advanced."""
    return FakeClock(datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def storage(tmp_path):
    """Slot storage rooted in a temporary directory."""
    return LocalSlotStorage(tmp_path / "storage")


@pytest.fixture
def lifecycle(storage, clock):
    """Fresh lifecycle for each test."""
    return FileDropLifecycle.build(
        storage=storage,
        max_storage_bytes=QUOTA_BYTES,
        retention=RETENTION,
        clock=clock,
    )


@pytest.fixture
def app_settings(storage):
    """Settings matching the lifecycle fixture."""
    return Settings(
        ENV="local",
        STORAGE_PATH=str(storage.base_path),
        MAX_STORAGE_SIZE_BYTES=QUOTA_BYTES,
        MAX_FILE_SIZE_BYTES=MAX_FILE_BYTES,
        FILE_KEEPING_MINUTES=10,
        WEB_HOST="http://drop.test",
        CHAT_API_URL="",
        COMMAND_TOKEN="",
    )


@pytest.fixture
def mock_notifier():
    """Chat notifier that records calls instead of sending them."""
    notifier = MagicMock(spec=ChatNotifier)
    notifier.send_upload_link = AsyncMock(return_value=True)
    notifier.announce_upload = AsyncMock(return_value=True)
    return notifier


@pytest.fixture
def client(app_settings, lifecycle, mock_notifier):
    """Test client over an app wired to the fixtures."""
    app = create_app(app_settings, lifecycle=lifecycle, notifier=mock_notifier)
    return TestClient(app)

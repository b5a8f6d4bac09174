"""
Shared test fixtures and configuration.
"""

import pytest
import os
import tempfile

# Set test environment variables before importing app modules
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-for-testing")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("LOCAL_STORAGE_PATH", os.path.join(tempfile.gettempdir(), "larun_test_data"))
os.environ.setdefault("LOG_FILE_ENABLED", "false")

from datetime import datetime, timedelta, timezone  # noqa: E402

from larun.config import Settings  # noqa: E402
from larun.core.gateway import CompletionGateway  # noqa: E402
from larun.storage import ActivityLog, ConversationStore, LocalStorage  # noqa: E402


class FakeClock:
    """Settable clock returning timezone-aware datetimes."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(str(tmp_path / "data"))


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def store(storage, clock):
    return ConversationStore(storage, "user-1", clock=clock)


@pytest.fixture
def activity(storage):
    return ActivityLog(storage)


@pytest.fixture
def offline_gateway():
    """Gateway without credentials; always answers from the fallback generator."""
    return CompletionGateway(provider=None)


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        local_storage_path=str(tmp_path / "data"),
        log_file_enabled=False,
        log_console_enabled=False,
        log_api_requests=True,
        llm_api_key=None,
        openai_api_key=None,
        gemini_api_key=None,
    )

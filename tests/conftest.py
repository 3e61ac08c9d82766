"""Pytest configuration and fixtures."""

import os
import tempfile
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

# Set test environment variables before importing settings
os.environ.setdefault("CONTAFLIX_ENV", "test")
os.environ.setdefault("CONTAFLIX_BACKEND_URL", "http://localhost:54321")
os.environ.setdefault("CONTAFLIX_BACKEND_ANON_KEY", "anon-key-test")
os.environ.setdefault("CONTAFLIX_STORAGE_DIR", tempfile.mkdtemp(prefix="contaflix-tests-"))

from contaflix.storage import MemoryStorage, SafeStorage  # noqa: E402


class FakeClock:
    """Controllable clock for TTL and expiry tests."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2025, 5, 12, 9, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    """A clock frozen at 2025-05-12 09:00 UTC."""
    return FakeClock()


@pytest.fixture
def local_storage():
    """Durable-scope accessor backed by memory."""
    return SafeStorage(MemoryStorage, scope="local")


@pytest.fixture
def session_storage():
    """Session-scope accessor backed by memory."""
    return SafeStorage(MemoryStorage, scope="session")


@pytest.fixture
def unavailable_storage():
    """Accessor whose backend is never present."""
    return SafeStorage(lambda: None, scope="local")


@pytest.fixture
def mock_httpx_client():
    """Create a mock httpx AsyncClient."""
    client = AsyncMock()
    client.request = AsyncMock()
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def mock_alert_rows():
    """Alert rows as returned by the backend."""
    return [
        {
            "id": "1",
            "title": "DCTF vence em 3 dias",
            "message": "A DCTF precisa ser enviada até 15/05/2025.",
            "type": "prazo",
            "priority": "alta",
            "created_at": "2025-05-12T08:00:00+00:00",
            "expiration_date": "2025-05-15T00:00:00+00:00",
            "is_acknowledged": False,
        },
        {
            "id": "3",
            "title": "Documentos pendentes de análise",
            "message": "Existem 5 documentos fiscais pendentes do cliente XYZ Comércio S.A.",
            "type": "documento",
            "priority": "media",
            "created_at": "2025-05-11T08:00:00Z",
            "is_acknowledged": True,
        },
    ]

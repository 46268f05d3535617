"""Shared fixtures: throwaway SQLite databases, fake gateway sessions, fixed clocks."""

import os
import tempfile
from datetime import datetime, timedelta, timezone

import pytest

# Point module-level configuration at a scratch area before anything imports it.
_SCRATCH = tempfile.mkdtemp(prefix="signal-scheduler-tests-")
os.environ.setdefault("DB_URL", f"sqlite:///{_SCRATCH}/default.db")
os.environ.setdefault("UPLOAD_DIR", os.path.join(_SCRATCH, "uploads"))
os.environ.setdefault("LOG_DIR", os.path.join(_SCRATCH, "logs"))
os.environ.setdefault("SIGNAL_NUMBER", "+15555550100")
os.environ.setdefault("SIGNAL_API_URL", "http://gateway.test")

from core.database import create_db_engine, init_db  # noqa: E402
from core.post_store import PostStore  # noqa: E402

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeResponse:
    def __init__(self, status_code=201, text="", json_data=None):
        self.status_code = status_code
        self.text = text
        self._json = json_data

    def json(self):
        if self._json is None:
            raise ValueError("no json body")
        return self._json

    def raise_for_status(self):
        import requests

        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    """Records outgoing requests and replays queued responses or errors."""

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls = []

    def _next(self):
        item = self.responses.pop(0) if self.responses else FakeResponse(201)
        if isinstance(item, Exception):
            raise item
        return item

    def post(self, url, json=None, timeout=None):
        self.calls.append(("POST", url, json, timeout))
        return self._next()

    def get(self, url, timeout=None):
        self.calls.append(("GET", url, None, timeout))
        return self._next()


class FakeClock:
    def __init__(self, now=NOW):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def engine(tmp_path):
    eng = create_db_engine(f"sqlite:///{tmp_path / 'scheduler.db'}")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def store(engine):
    return PostStore(engine)


@pytest.fixture
def clock():
    return FakeClock()

from datetime import datetime, timedelta, timezone

import pytest

from termpal import config, crypto
from termpal.chats.manager import ChatsManager
from termpal.chats.store import MemoryChatStore


class FakeClock:
    """Returns a strictly increasing UTC time, one second per call."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + timedelta(seconds=1)
        return current


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def reports():
    return []


@pytest.fixture
def store():
    return MemoryChatStore()


@pytest.fixture
def make_manager(store, reports, clock):
    def _make(target_store=None, **kwargs):
        kwargs.setdefault("reporter", reports.append)
        kwargs.setdefault("clock", clock)
        return ChatsManager(target_store if target_store is not None else store, **kwargs)

    return _make


@pytest.fixture
def manager(make_manager):
    return make_manager()


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    """Point the whole ~/.termpal layout (and the Fernet key) at a temp dir."""
    monkeypatch.setattr(config, "_config_dir", tmp_path)
    monkeypatch.setattr(config, "_current_config", None)
    monkeypatch.setattr(crypto, "_box", None)
    return tmp_path

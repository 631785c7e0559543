"""Pytest configuration and shared fixtures."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio

# Ensure the project root is on the import path (for local runs without installing)
ROOT_PATH = Path(__file__).resolve().parent.parent
if str(ROOT_PATH) not in sys.path:
    sys.path.insert(0, str(ROOT_PATH))

from RelayBot.gateway.base import Messenger, MessengerMetadata, MessengerStatus  # noqa: E402
from RelayBot.message.event import Message  # noqa: E402
from RelayBot.store.engine import StorageEngine  # noqa: E402
from RelayBot.store.kv import DataStore  # noqa: E402


class FakeMessenger(Messenger):
    """In-memory messenger that records everything sent through it."""

    def __init__(self, connect_result: bool = True) -> None:
        super().__init__({})
        self.connect_result = connect_result
        self.sent: list[tuple[str, str, bool]] = []
        self.history: list[Message] = []
        self._metadata = MessengerMetadata(adapter_type="fake", instance_name="fake")

    async def connect(self) -> bool:
        if self.connect_result:
            self._status = MessengerStatus.RUNNING
        return self.connect_result

    async def disconnect(self) -> None:
        self._status = MessengerStatus.STOPPED

    async def send_message(self, channel: str, text: str, action: bool = False) -> None:
        self.sent.append((channel, text, action))

    async def get_message_history(self, channel: str, user: str | None = None) -> list[Message]:
        return [
            m for m in self.history
            if m.channel == channel and (user is None or m.user == user)
        ]

    def message(self, text: str, user: str = "alice", channel: str = "#test", **kwargs: Any) -> Message:
        return Message(channel=channel, user=user, text=text, messenger=self, **kwargs)


@pytest.fixture
def messenger() -> FakeMessenger:
    return FakeMessenger()


@pytest_asyncio.fixture
async def engine(tmp_path: Path):
    """File-backed storage engine in a temporary directory."""
    storage = StorageEngine(str(tmp_path / "test.db"))
    yield storage
    await storage.dispose()


@pytest_asyncio.fixture
async def store(engine: StorageEngine) -> DataStore:
    data_store = DataStore(engine, "factoids")
    await data_store.initialize()
    return data_store

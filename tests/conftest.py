"""
tests/conftest.py — shared fakes for the session gateway tests

FakeEngine stands in for the WhatsApp automation engine and
RecordingNotifier captures backend callbacks instead of sending them.
"""

import asyncio
import errno
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pytest

from wa_gateway.services.cleanup import SessionCleanupWorker
from wa_gateway.services.gateway import Gateway
from wa_gateway.services.notifier import BackendNotifier


@dataclass
class FakeMessage:
    sender: str
    body: str
    timestamp: Optional[int] = None


@dataclass
class FakeChat:
    id: str
    name: Optional[str] = None
    is_group: bool = False
    messages: List[FakeMessage] = field(default_factory=list)
    error: Optional[Exception] = None
    fetch_limits: List[int] = field(default_factory=list)

    async def fetch_messages(self, limit: int):
        self.fetch_limits.append(limit)
        if self.error:
            raise self.error
        return self.messages[-limit:] if self.messages else []


class FakeEngineClient:
    def __init__(self, engine, user_id, session_dir, emit, options):
        self.engine = engine
        self.user_id = user_id
        self.session_dir = session_dir
        self.emit = emit
        self.options = options
        self.initialize_calls = 0
        self.destroy_calls = 0

    async def initialize(self):
        self.initialize_calls += 1
        if self.engine.initialize_error:
            raise self.engine.initialize_error
        for event in self.engine.auto_events:
            self.emit(event)

    async def destroy(self):
        self.destroy_calls += 1
        if self.engine.destroy_error:
            raise self.engine.destroy_error

    async def get_chats(self):
        if self.engine.chats_error:
            raise self.engine.chats_error
        return list(self.engine.chats)


class FakeEngine:
    """Engine factory; records every client it builds."""

    def __init__(self):
        self.created: List[FakeEngineClient] = []
        self.clients: Dict[str, FakeEngineClient] = {}
        self.auto_events: List[Any] = []
        self.chats: List[FakeChat] = []
        self.initialize_error: Optional[Exception] = None
        self.destroy_error: Optional[Exception] = None
        self.chats_error: Optional[Exception] = None

    def __call__(self, user_id, session_dir, emit, options):
        client = FakeEngineClient(self, user_id, session_dir, emit, options)
        self.created.append(client)
        self.clients[user_id] = client
        return client


class RecordingNotifier(BackendNotifier):
    def __init__(self, fail: bool = False):
        super().__init__(base_url="http://backend.test/api", timeout=1.0, token="")
        self.calls: List[tuple] = []
        self.fail = fail

    async def _post(self, endpoint, payload):
        self.calls.append((endpoint, payload))
        return not self.fail

    def endpoints(self) -> List[str]:
        return [endpoint for endpoint, _ in self.calls]

    def statuses(self, user_id) -> List[int]:
        return [
            payload["status"] for endpoint, payload in self.calls
            if endpoint == "update-status" and payload["user_id"] == user_id
        ]


async def no_sleep(_delay):
    await asyncio.sleep(0)


async def eventually(predicate, timeout: float = 2.0):
    """Polls predicate until true or fails the test."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.005)


def busy_error():
    return OSError(errno.EBUSY, "Device or resource busy")


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def cleanup(tmp_path):
    return SessionCleanupWorker(sessions_dir=tmp_path, max_retries=5, retry_delay=2.0, sleep=no_sleep)


@pytest.fixture
def gateway(engine, notifier, cleanup):
    return Gateway.build(engine, notifier=notifier, cleanup=cleanup)

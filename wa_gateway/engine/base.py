"""
wa_gateway/engine/base.py

Purpose: Boundary to the messaging-automation engine

- The engine drives the real WhatsApp Web connection; the gateway
  only sees the small surface declared here
- Engines report lifecycle changes by calling `emit` with one of
  the events in wa_gateway.flow.events
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Sequence

from wa_gateway.flow.events import EngineEvent

EmitEvent = Callable[[EngineEvent], None]


class EngineMessage(Protocol):
    sender: str
    body: str
    timestamp: Optional[int]


class EngineChat(Protocol):
    id: str  # serialized chat id, e.g. "15551234567@c.us"
    name: Optional[str]
    is_group: bool

    async def fetch_messages(self, limit: int) -> Sequence[EngineMessage]:
        """The `limit` most recent messages, oldest first."""
        ...


class EngineClient(Protocol):
    async def initialize(self) -> None:
        """Connects and starts emitting events. May run until paired."""
        ...

    async def destroy(self) -> None:
        """Releases the browser/connection. Session files stay on disk."""
        ...

    async def get_chats(self) -> Sequence[EngineChat]:
        ...


@dataclass
class EngineOptions:
    """Per-client options taken from settings."""
    headless: bool = True
    args: List[str] = field(default_factory=list)


class EngineFactory(Protocol):
    def __call__(
        self,
        user_id: str,
        session_dir: Path,
        emit: EmitEvent,
        options: EngineOptions,
    ) -> EngineClient:
        ...

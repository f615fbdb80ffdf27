"""
wa_gateway/flow/events.py

Purpose: Events emitted by the automation engine

- One dataclass per engine callback (qr, ready, message,
  disconnected, auth_failure)
- Queued per user and consumed in order by that user's connector
"""

from dataclasses import dataclass
from typing import Union

from wa_gateway.flow.states import ConnectorState


@dataclass(frozen=True)
class PairingCode:
    """New pairing token to be scanned by the user."""
    token: str


@dataclass(frozen=True)
class Ready:
    """Session authenticated and usable."""


@dataclass(frozen=True)
class IncomingMessage:
    sender: str
    body: str


@dataclass(frozen=True)
class Disconnected:
    """Engine lost the session (logout, conflict, navigation...)."""
    reason: str = "unknown"

    terminal_state = ConnectorState.DISCONNECTED


@dataclass(frozen=True)
class AuthFailure:
    """Saved session was rejected by the messaging network."""
    message: str = "unknown"

    terminal_state = ConnectorState.AUTH_FAILED


EngineEvent = Union[PairingCode, Ready, IncomingMessage, Disconnected, AuthFailure]
TerminalEvent = Union[Disconnected, AuthFailure]

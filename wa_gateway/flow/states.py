"""
wa_gateway/flow/states.py

Purpose: Defines all connector states

- Single source of truth for a session's lifecycle stages
- State transition validation
- Terminal states drive teardown
"""

from enum import Enum
from typing import Dict, List


class ConnectorState(str, Enum):
    """
    Lifecycle of one user's automation engine client.
    """

    INITIALIZING = "INITIALIZING"
    AWAITING_PAIRING = "AWAITING_PAIRING"
    READY = "READY"

    # Terminal
    DISCONNECTED = "DISCONNECTED"
    AUTH_FAILED = "AUTH_FAILED"


TERMINAL_STATES = frozenset({ConnectorState.DISCONNECTED, ConnectorState.AUTH_FAILED})


# Valid state transitions
STATE_TRANSITIONS: Dict[ConnectorState, List[ConnectorState]] = {
    ConnectorState.INITIALIZING: [
        ConnectorState.AWAITING_PAIRING,
        ConnectorState.READY,  # Restored from a saved session, no pairing needed
        ConnectorState.DISCONNECTED,
        ConnectorState.AUTH_FAILED,
    ],
    ConnectorState.AWAITING_PAIRING: [
        ConnectorState.AWAITING_PAIRING,  # Pairing code refreshed
        ConnectorState.READY,
        ConnectorState.DISCONNECTED,
        ConnectorState.AUTH_FAILED,
    ],
    ConnectorState.READY: [
        ConnectorState.READY,  # Inbound messages
        ConnectorState.DISCONNECTED,
        ConnectorState.AUTH_FAILED,
    ],
    ConnectorState.DISCONNECTED: [],
    ConnectorState.AUTH_FAILED: [],
}


def is_valid_transition(from_state: ConnectorState, to_state: ConnectorState) -> bool:
    """
    Checks if a state transition is valid.

    Args:
        from_state: Current state
        to_state: Target state

    Returns:
        True if transition is allowed, False otherwise
    """
    return to_state in STATE_TRANSITIONS.get(from_state, [])


def is_terminal(state: ConnectorState) -> bool:
    return state in TERMINAL_STATES

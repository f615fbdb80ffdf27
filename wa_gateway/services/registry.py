"""
wa_gateway/services/registry.py

Purpose: Which users have a running session

- One Connector per user id, created on start
- The lock only guards map insert/remove/lookup, never a user's
  state work, so one slow session can't stall the others
"""

import asyncio
from enum import Enum
from typing import Dict, Optional

from wa_gateway.core.exceptions import EngineNotConfiguredError
from wa_gateway.core.logging import get_logger
from wa_gateway.engine.base import EngineFactory, EngineOptions
from wa_gateway.services.cleanup import SessionCleanupWorker
from wa_gateway.services.connector import Connector
from wa_gateway.services.notifier import BackendNotifier

logger = get_logger(__name__)


class StartOutcome(str, Enum):
    INITIALIZED = "initialized"
    ALREADY_RUNNING = "already_running"


class SessionRegistry:
    """
    Process-wide map of user id -> Connector.
    """

    def __init__(
        self,
        engine_factory: Optional[EngineFactory],
        notifier: BackendNotifier,
        cleanup: SessionCleanupWorker,
        options: Optional[EngineOptions] = None,
    ):
        self._engine_factory = engine_factory
        self._notifier = notifier
        self._cleanup = cleanup
        self._options = options or EngineOptions()
        self._connectors: Dict[str, Connector] = {}
        self._lock = asyncio.Lock()

    async def start(self, user_id: str) -> StartOutcome:
        """
        Creates and starts a connector for the user unless one exists.

        Raises:
            EngineNotConfiguredError: If no engine factory is available
        """
        async with self._lock:
            if user_id in self._connectors:
                return StartOutcome.ALREADY_RUNNING

            if self._engine_factory is None:
                raise EngineNotConfiguredError()

            connector = Connector(
                user_id=user_id,
                engine_factory=self._engine_factory,
                notifier=self._notifier,
                cleanup=self._cleanup,
                on_terminal=self._on_connector_terminal,
                options=self._options,
            )
            self._connectors[user_id] = connector
            connector.start()

        logger.info(f"Client initialized for user {user_id}", extra={"user_id": user_id})
        return StartOutcome.INITIALIZED

    async def lookup(self, user_id: str) -> Optional[Connector]:
        async with self._lock:
            return self._connectors.get(user_id)

    async def remove(self, user_id: str, connector: Optional[Connector] = None) -> bool:
        """
        Deletes the user's record. No-op when absent.

        When `connector` is given, only that exact instance is removed,
        so a finished connector can't evict its successor.
        """
        async with self._lock:
            current = self._connectors.get(user_id)
            if current is None:
                return False
            if connector is not None and current is not connector:
                return False
            del self._connectors[user_id]

        logger.info(f"Session record removed for user {user_id}", extra={"user_id": user_id})
        return True

    async def _on_connector_terminal(self, connector: Connector) -> None:
        await self.remove(connector.user_id, connector)

    async def pairing_code(self, user_id: str) -> Optional[str]:
        """Data URL of the user's latest pairing code, if any."""
        connector = await self.lookup(user_id)
        if connector is None or connector.pairing is None:
            return None
        return connector.pairing.data_url

    def snapshot(self) -> Dict[str, str]:
        return {user_id: c.state.value for user_id, c in self._connectors.items()}

    def __len__(self) -> int:
        return len(self._connectors)

    async def shutdown(self):
        """Stops every connector without deleting their saved sessions."""
        async with self._lock:
            connectors = list(self._connectors.values())
            self._connectors.clear()

        if connectors:
            logger.info(f"Stopping {len(connectors)} client(s)")
            await asyncio.gather(*(c.stop() for c in connectors), return_exceptions=True)

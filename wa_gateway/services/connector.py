"""
wa_gateway/services/connector.py

Purpose: Lifecycle of one user's automation engine client

- Owns the engine client from creation to destruction
- Engine callbacks only enqueue; a dedicated task consumes the
  queue so a user's events are handled one at a time, in order
- Maps events onto ConnectorState transitions and backend callbacks
- Runs the teardown sequence exactly once on a terminal event
"""

import asyncio
import contextlib
from typing import Awaitable, Callable, Optional

from wa_gateway.core.logging import get_logger, SessionLogAdapter
from wa_gateway.engine.base import EngineClient, EngineFactory, EngineOptions
from wa_gateway.flow.events import (
    AuthFailure,
    Disconnected,
    EngineEvent,
    IncomingMessage,
    PairingCode,
    Ready,
    TerminalEvent,
)
from wa_gateway.flow.states import ConnectorState, is_terminal, is_valid_transition
from wa_gateway.services.cleanup import SessionCleanupWorker
from wa_gateway.services.notifier import BackendNotifier
from wa_gateway.services.pairing import PairingArtifact, render_pairing

logger = get_logger(__name__)

OnTerminal = Callable[["Connector"], Awaitable[None]]


class Connector:
    """
    State machine wrapping one engine client for one user.
    """

    def __init__(
        self,
        user_id: str,
        engine_factory: EngineFactory,
        notifier: BackendNotifier,
        cleanup: SessionCleanupWorker,
        on_terminal: OnTerminal,
        options: Optional[EngineOptions] = None,
        render: Callable[[str], PairingArtifact] = render_pairing,
    ):
        self.user_id = user_id
        self.state = ConnectorState.INITIALIZING
        self.pairing: Optional[PairingArtifact] = None
        self.client: Optional[EngineClient] = None

        self._engine_factory = engine_factory
        self._notifier = notifier
        self._cleanup = cleanup
        self._on_terminal = on_terminal
        self._options = options or EngineOptions()
        self._render = render

        self._events: asyncio.Queue = asyncio.Queue()
        self._task: Optional[asyncio.Task] = None
        self._init_task: Optional[asyncio.Task] = None
        self._finished = False
        self.closed = asyncio.Event()
        self.log = SessionLogAdapter(logger, {"user_id": user_id})

    @property
    def is_ready(self) -> bool:
        return self.state == ConnectorState.READY and self.client is not None

    def start(self) -> None:
        """Spawns the lifecycle task. Returns immediately."""
        if self._task is None:
            self._task = asyncio.create_task(self._run(), name=f"connector-{self.user_id}")

    def emit(self, event: EngineEvent) -> None:
        """
        Engine callback. Must be called from the event loop thread.
        Events after teardown are dropped.
        """
        if self._finished:
            self.log.debug(f"Dropping {type(event).__name__} after teardown")
            return
        self._events.put_nowait(event)

    async def _run(self):
        try:
            # A previous session's folder may still be mid-deletion
            if self._cleanup.is_pending(self.user_id):
                self.log.info("Waiting for previous session cleanup before starting")
                await self._cleanup.wait(self.user_id)

            try:
                self.client = self._engine_factory(
                    self.user_id,
                    self._cleanup.session_path(self.user_id),
                    self.emit,
                    self._options,
                )
            except Exception as e:
                self.log.error(f"Failed to create engine client: {e}", exc_info=True)
                await self._terminate(Disconnected(reason=f"engine_error: {e}"))
                return

            self._init_task = asyncio.create_task(
                self._initialize(), name=f"engine-init-{self.user_id}"
            )

            while not is_terminal(self.state):
                event = await self._events.get()
                try:
                    await self._handle(event)
                except Exception as e:
                    # Never let one bad event kill the session's consumer
                    self.log.error(f"Error handling {type(event).__name__}: {e}", exc_info=True)
        finally:
            self._finished = True
            self.closed.set()

    async def _initialize(self):
        try:
            await self.client.initialize()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.log.error(f"Engine initialize failed: {e}", exc_info=True)
            self.emit(Disconnected(reason=f"initialize_failed: {e}"))

    async def _handle(self, event: EngineEvent):
        if isinstance(event, (Disconnected, AuthFailure)):
            await self._terminate(event)
        elif isinstance(event, PairingCode):
            await self._on_pairing(event)
        elif isinstance(event, Ready):
            await self._on_ready()
        elif isinstance(event, IncomingMessage):
            await self._on_message(event)
        else:
            self.log.warning(f"Unknown engine event: {event!r}")

    def _transition(self, new_state: ConnectorState, event_name: str) -> bool:
        if not is_valid_transition(self.state, new_state):
            self.log.warning(
                f"Ignoring {event_name} in state {self.state.value}",
                extra={"state": self.state.value, "event": event_name}
            )
            return False
        if new_state != self.state:
            self.log.info(
                f"State {self.state.value} -> {new_state.value}",
                extra={"state": new_state.value, "event": event_name}
            )
        self.state = new_state
        return True

    async def _on_pairing(self, event: PairingCode):
        if not is_valid_transition(self.state, ConnectorState.AWAITING_PAIRING):
            self.log.warning(f"Ignoring pairing code in state {self.state.value}")
            return
        try:
            artifact = self._render(event.token)
        except Exception as e:
            self.log.error(f"Error generating QR: {e}", exc_info=True)
            return
        self._transition(ConnectorState.AWAITING_PAIRING, "qr")
        self.pairing = artifact
        await self._notify("pairing", self._notifier.notify_pairing(self.user_id, artifact.data_url))

    async def _on_ready(self):
        if self.state == ConnectorState.READY:
            self.log.debug("Duplicate ready event")
            return
        if not self._transition(ConnectorState.READY, "ready"):
            return
        self.pairing = None
        self.log.info(f"WhatsApp client is ready for user {self.user_id}")
        await self._notify("status", self._notifier.notify_status(self.user_id, active=True))

    async def _on_message(self, event: IncomingMessage):
        if self.state != ConnectorState.READY:
            self.log.warning(f"Dropping message received in state {self.state.value}")
            return
        await self._notify(
            "message",
            self._notifier.notify_message(self.user_id, event.sender, event.body)
        )

    async def _terminate(self, event: TerminalEvent):
        detail = event.reason if isinstance(event, Disconnected) else event.message
        self._transition(event.terminal_state, type(event).__name__)
        self.pairing = None
        self._finished = True
        self.log.info(f"Client {self.state.value.lower()} for user {self.user_id}: {detail}")

        # (a) release engine resources; failure must not block the rest
        if self.client is not None:
            try:
                await self.client.destroy()
            except Exception as e:
                self.log.warning(f"Failed to destroy client for user {self.user_id}: {e}")
        self._cancel_init()

        # (b) drop from the registry
        try:
            await self._on_terminal(self)
        except Exception as e:
            self.log.error(f"Failed to remove session record: {e}", exc_info=True)

        # (c) delete the persisted session in the background
        self._cleanup.schedule(self.user_id)

        # (d) tell the backend the session is gone
        await self._notify("status", self._notifier.notify_status(self.user_id, active=False))

    def _cancel_init(self):
        # initialize() may be the one reporting the failure; don't cancel ourselves
        task = self._init_task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _notify(self, kind: str, call: Awaitable[bool]):
        try:
            sent = await call
        except Exception as e:
            self.log.error(f"Error sending {kind} update to backend: {e}", exc_info=True)
            return
        if not sent:
            self.log.warning(f"Backend did not accept {kind} update")

    async def stop(self):
        """
        Process shutdown: release the engine without deleting the
        session folder or notifying the backend, so the session can
        be resumed on the next start.
        """
        self._finished = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._cancel_init()
        for task in (self._task, self._init_task):
            if task is not None:
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        if self.client is not None and not is_terminal(self.state):
            try:
                await self.client.destroy()
            except Exception as e:
                self.log.warning(f"Failed to destroy client on shutdown: {e}")
        self.closed.set()

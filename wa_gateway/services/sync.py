"""
wa_gateway/services/sync.py

Purpose: On-demand contact sync

- Reads every chat of a ready session plus its latest message
- Sends the list to the backend in the engine's chat order
- Read-only: never changes connector state
"""

from typing import Optional

from wa_gateway.core.exceptions import SessionNotRunningError, SyncError
from wa_gateway.core.logging import get_logger
from wa_gateway.engine.base import EngineChat
from wa_gateway.schemas.contacts import ContactSummary, LastMessage, SyncResult
from wa_gateway.services.notifier import BackendNotifier
from wa_gateway.services.registry import SessionRegistry

logger = get_logger(__name__)


def chat_display_name(chat: EngineChat) -> str:
    """Chat name, falling back to the user part of the chat id."""
    if chat.name:
        return chat.name
    return chat.id.split("@", 1)[0]


class SyncOrchestrator:
    """
    Drives one ready connector through a chats + last message pass.
    """

    def __init__(self, registry: SessionRegistry, notifier: BackendNotifier):
        self._registry = registry
        self._notifier = notifier

    async def sync(self, user_id: str) -> SyncResult:
        """
        Builds and delivers the user's contact list.

        Raises:
            SessionNotRunningError: No ready session for the user
            SyncError: Chat listing or delivery to the backend failed
        """
        connector = await self._registry.lookup(user_id)
        if connector is None or not connector.is_ready:
            raise SessionNotRunningError()

        try:
            chats = await connector.client.get_chats()
        except Exception as e:
            logger.error(f"Error syncing contacts: {e}", extra={"user_id": user_id}, exc_info=True)
            raise SyncError(details={"stage": "get_chats"})

        contacts = []
        for chat in chats:
            contacts.append(await self._summarize(user_id, chat))

        result = SyncResult(user_id=user_id, contacts=contacts)

        sent = await self._notifier.notify_sync_result(user_id, result.contacts_payload())
        if not sent:
            raise SyncError(details={"stage": "notify"})

        logger.info(f"Synced {len(contacts)} contacts for user {user_id}", extra={"user_id": user_id})
        return result

    async def _summarize(self, user_id: str, chat: EngineChat) -> ContactSummary:
        return ContactSummary(
            id=chat.id,
            name=chat_display_name(chat),
            is_group=bool(getattr(chat, "is_group", False)),
            last_message=await self._last_message(user_id, chat),
        )

    async def _last_message(self, user_id: str, chat: EngineChat) -> Optional[LastMessage]:
        # One chat failing doesn't abort the whole sync
        try:
            messages = await chat.fetch_messages(limit=1)
        except Exception as e:
            logger.warning(
                f"Could not fetch last message for chat {chat.id}: {e}",
                extra={"user_id": user_id}
            )
            return None

        if not messages:
            return None

        message = messages[-1]
        return LastMessage(
            sender=message.sender,
            body=message.body or "",
            timestamp=message.timestamp,
        )

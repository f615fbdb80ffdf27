"""
wa_gateway/services/notifier.py

Purpose: Callbacks to the backend control plane (Laravel)

- update-qr, update-status, receive-whatsapp-message,
  receive-whatsapp-contacts
- One POST per call, no retry
- Failures are logged and reported as False, never raised
"""

import httpx
from typing import Any, Dict, List, Optional

from wa_gateway.core.config import settings
from wa_gateway.core.logging import get_logger

logger = get_logger(__name__)

UPDATE_QR = "update-qr"
UPDATE_STATUS = "update-status"
RECEIVE_MESSAGE = "receive-whatsapp-message"
RECEIVE_CONTACTS = "receive-whatsapp-contacts"


class BackendNotifier:
    """
    Fire-and-forget client for the backend callback endpoints.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        token: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = (base_url or settings.BACKEND_BASE_URL).rstrip("/")
        self._timeout = timeout if timeout is not None else settings.BACKEND_TIMEOUT_SECONDS
        self._token = token if token is not None else settings.BACKEND_TOKEN
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"Content-Type": "application/json"}
            if self._token:
                headers["X-Gateway-Token"] = self._token
            self._client = httpx.AsyncClient(timeout=self._timeout, headers=headers)
        return self._client

    async def _post(self, endpoint: str, payload: Dict[str, Any]) -> bool:
        url = f"{self.base_url}/{endpoint}"
        user_id = payload.get("user_id")
        try:
            response = await self._get_client().post(url, json=payload)
        except httpx.TimeoutException:
            logger.error(f"Backend timeout on {endpoint}", extra={"user_id": user_id})
            return False
        except httpx.HTTPError as e:
            logger.error(f"Backend request {endpoint} failed: {e}", extra={"user_id": user_id})
            return False

        if response.is_success:
            logger.debug(f"Backend accepted {endpoint}", extra={"user_id": user_id})
            return True

        logger.error(
            f"Backend rejected {endpoint}: HTTP {response.status_code}",
            extra={"user_id": user_id}
        )
        return False

    async def notify_pairing(self, user_id: str, encoded_pairing: str) -> bool:
        """Sends the rendered pairing code (PNG data URL)."""
        sent = await self._post(UPDATE_QR, {"user_id": user_id, "qr_code": encoded_pairing})
        if sent:
            logger.info(f"QR code sent for user {user_id}", extra={"user_id": user_id})
        return sent

    async def notify_status(self, user_id: str, active: bool) -> bool:
        """Reports the session as active (1) or inactive (0)."""
        return await self._post(UPDATE_STATUS, {"user_id": user_id, "status": 1 if active else 0})

    async def notify_message(self, user_id: str, sender: str, body: str) -> bool:
        """Forwards one inbound WhatsApp message."""
        return await self._post(RECEIVE_MESSAGE, {"user_id": user_id, "from": sender, "body": body})

    async def notify_sync_result(self, user_id: str, contacts: List[Dict[str, Any]]) -> bool:
        """Delivers the contact list built by a sync run."""
        return await self._post(RECEIVE_CONTACTS, {"user_id": user_id, "contacts": contacts})

    async def close(self):
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

"""
wa_gateway/api/sessions.py

Purpose: Control API used by the backend

- POST /start-client      start (or confirm) a user's WhatsApp session
- GET  /qr/{user_id}      latest pairing code as a PNG data URL
- POST /run-client-task   push contacts + last messages to the backend
"""

from fastapi import APIRouter, Depends, Request
from typing import Optional, Union

from wa_gateway.core.logging import get_logger
from wa_gateway.schemas.requests import UserRequest
from wa_gateway.schemas.response import MessageResponse, QrResponse
from wa_gateway.services.gateway import Gateway
from wa_gateway.services.registry import StartOutcome
from wa_gateway.utils.validation_utils import normalize_user_id

logger = get_logger(__name__)
router = APIRouter()


def get_gateway(request: Request) -> Gateway:
    return request.app.state.gateway


@router.post("/start-client", response_model=MessageResponse)
async def start_client(
    payload: Optional[UserRequest] = None,
    gateway: Gateway = Depends(get_gateway),
):
    """
    Starts a WhatsApp client for the user.
    Idempotent: a running client is left untouched.
    """
    user_id = normalize_user_id(payload.user_id if payload else None)

    outcome = await gateway.registry.start(user_id)
    if outcome == StartOutcome.ALREADY_RUNNING:
        return MessageResponse(message="Client already running")
    return MessageResponse(message="Client initialized")


@router.get("/qr/{user_id}", response_model=Union[QrResponse, MessageResponse])
async def get_qr(user_id: str, gateway: Gateway = Depends(get_gateway)):
    """
    Returns the most recent pairing code for the user.
    """
    user_id = normalize_user_id(user_id)

    qr = await gateway.registry.pairing_code(user_id)
    if qr:
        return QrResponse(qr=qr)
    return MessageResponse(message="QR not generated yet")


@router.post("/run-client-task", response_model=MessageResponse)
async def run_client_task(
    payload: Optional[UserRequest] = None,
    gateway: Gateway = Depends(get_gateway),
):
    """
    Syncs the user's chats (with their latest message) to the backend.

    404 when the user has no ready client, 500 when the sync fails.
    """
    user_id = normalize_user_id(payload.user_id if payload else None)

    result = await gateway.sync.sync(user_id)
    logger.info(
        f"Contacts sent to Laravel: {len(result.contacts)}",
        extra={"user_id": user_id}
    )
    return MessageResponse(message="Contacts sent to Laravel")

"""
wa_gateway/schemas/contacts.py

Purpose: Contact sync payload schemas

- ContactSummary is one chat plus its most recent message
- Field aliases match the JSON the backend already consumes
  (id, name, isGroup, lastMessage{from, body, timestamp})
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


class LastMessage(BaseModel):
    """Most recent message in a chat."""
    sender: str = Field(..., alias="from")
    body: str = ""
    timestamp: Optional[int] = None

    class Config:
        populate_by_name = True


class ContactSummary(BaseModel):
    """One chat as reported to the backend."""
    id: str
    name: str
    is_group: bool = Field(default=False, alias="isGroup")
    last_message: Optional[LastMessage] = Field(default=None, alias="lastMessage")

    class Config:
        populate_by_name = True


class SyncResult(BaseModel):
    """
    Output of one sync run.
    Built per request and handed to the notifier; never cached.
    """
    user_id: str
    contacts: List[ContactSummary] = Field(default_factory=list)

    def contacts_payload(self) -> List[Dict[str, Any]]:
        return [contact.model_dump(by_alias=True) for contact in self.contacts]

"""
wa_gateway/schemas/requests.py

Purpose: Control API request bodies

- The backend sends user ids as JSON numbers or strings
- Presence and shape of the id are checked by the route, so a
  missing id maps to 400 rather than a schema error
"""

from pydantic import BaseModel, Field
from typing import Optional, Union


class UserRequest(BaseModel):
    """
    Body of POST /start-client and POST /run-client-task.
    """
    user_id: Optional[Union[int, str]] = Field(
        default=None,
        description="Backend user identifier"
    )

    class Config:
        json_schema_extra = {
            "example": {"user_id": 42}
        }

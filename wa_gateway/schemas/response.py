from pydantic import BaseModel
from typing import Optional, Any


class ErrorResponse(BaseModel):
    """
    Standard error response structure.
    """
    error: str
    code: str
    details: Optional[Any] = None


class MessageResponse(BaseModel):
    """
    Plain acknowledgement returned by the control endpoints.
    """
    message: str


class QrResponse(BaseModel):
    """
    Latest pairing code for a user, as a PNG data URL.
    """
    qr: str

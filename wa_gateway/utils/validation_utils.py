"""
wa_gateway/utils/validation_utils.py

Purpose: Input validation

- Normalizes user ids coming from the backend (int or str)
- Rejects ids that can't safely name a session directory
"""

import re
from typing import Any, Optional

from wa_gateway.core.exceptions import InvalidUserIdError, MissingUserIdError

USER_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{1,128}$")


def normalize_user_id(value: Optional[Any]) -> str:
    """
    Turns a raw user_id into the canonical string key.

    Args:
        value: user_id as received (int, str or None)

    Returns:
        Stripped string form of the id

    Raises:
        MissingUserIdError: If value is None or blank
        InvalidUserIdError: If value has characters unsafe for a path
    """
    if value is None or isinstance(value, bool):
        raise MissingUserIdError()

    user_id = str(value).strip()
    if not user_id:
        raise MissingUserIdError()

    if not USER_ID_PATTERN.match(user_id) or user_id in (".", ".."):
        raise InvalidUserIdError(details={"user_id": user_id})

    return user_id


def session_dir_name(user_id: str) -> str:
    """Directory name the engine stores a user's session under."""
    return f"user-{user_id}"

from typing import Optional, Any


class GatewayError(Exception):
    """
    Base exception for the session gateway.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class MissingUserIdError(GatewayError):
    """
    Raised when a control request carries no user_id.
    """
    def __init__(self, message: str = "Missing user_id", details: Optional[Any] = None):
        super().__init__(message, code="MISSING_USER_ID", status_code=400, details=details)


class InvalidUserIdError(GatewayError):
    """
    Raised when a user_id can't be used to name a session directory.
    """
    def __init__(self, message: str = "Invalid user_id", details: Optional[Any] = None):
        super().__init__(message, code="INVALID_USER_ID", status_code=400, details=details)


class SessionNotRunningError(GatewayError):
    """
    Raised when an operation needs a ready session the user doesn't have.
    """
    def __init__(self, message: str = "Client not running", details: Optional[Any] = None):
        super().__init__(message, code="CLIENT_NOT_RUNNING", status_code=404, details=details)


class SyncError(GatewayError):
    """
    Raised when a contact sync can't be completed or delivered.
    """
    def __init__(self, message: str = "Error syncing contacts", details: Optional[Any] = None):
        super().__init__(message, code="SYNC_FAILED", status_code=500, details=details)


class EngineNotConfiguredError(GatewayError):
    """
    Raised when no automation engine factory is available.
    """
    def __init__(self, message: str = "Automation engine is not configured", details: Optional[Any] = None):
        super().__init__(message, code="ENGINE_NOT_CONFIGURED", status_code=503, details=details)

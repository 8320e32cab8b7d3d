# src/hr_admin_bff/errors.py

from typing import Optional

from fastapi import status


class RelayError(Exception):
    """Base for errors rendered to the browser as {"error": message}."""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(RelayError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Email and password are required"


class UpstreamAuthError(RelayError):
    # status_code is always the one the identity service answered with
    default_message = "Login failed"

    def __init__(self, status_code: int, message: Optional[str] = None):
        super().__init__(message, status_code=status_code)


class MalformedUpstreamResponse(RelayError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Invalid response from authentication service"


class InternalRelayError(RelayError):
    # Never carries the underlying cause; that goes to the log only.
    def __init__(self):
        super().__init__()


class UpstreamHTTPError(Exception):
    """Non-2xx answer from the upstream API gateway on an authenticated call."""

    def __init__(self, status_code: int, message: str = ""):
        self.status_code = status_code
        self.message = message
        super().__init__(f"HTTP {status_code}: {message}" if message else f"HTTP {status_code}")

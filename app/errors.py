# file: errors.py

from typing import Any, Optional

from fastapi import status

from app.config import Settings

REDACTED_MESSAGE = "Internal server error"


class RelayError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RelayError):
    """A required field is missing or malformed. Always answered with 400."""

    status_code = status.HTTP_400_BAD_REQUEST


class ProviderError(RelayError):
    """
    An external SDK or API call rejected or threw.
    The route decides which HTTP status the caller sees; `status_code` only
    carries the provider's own status when it reported one.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, details: Any = None):
        super().__init__(message)
        self.provider_status = status_code
        self.details = details


class StartupError(RelayError):
    """Missing credentials or a provider client that could not be built."""


def redact(message: Any, settings: Settings) -> Any:
    """Hides provider detail from callers of a production deployment."""
    if settings.is_production:
        return REDACTED_MESSAGE
    return message

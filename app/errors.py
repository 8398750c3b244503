"""
Error taxonomy shared by the quota and analogy subsystems.

Every error carries the HTTP status it maps to, so routes can turn any of
them into a structured JSON response with one handler.
"""

from typing import Any, Dict, Optional


class AnalogyServiceError(Exception):
    """Base exception for all request-level failures."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class InvalidInput(AnalogyServiceError):
    """The request is malformed or missing a concept."""

    status_code = 400


class QuotaExceeded(AnalogyServiceError):
    """The shared daily limit has been reached."""

    status_code = 429

    def __init__(self, current: int, limit: int, reset_date: str, timezone_name: str = "UTC"):
        self.current = current
        self.limit = limit
        self.reset_date = reset_date
        super().__init__(
            f"Daily limit of {limit} requests reached. Resets at midnight {timezone_name}."
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "usage": {
                "current": self.current,
                "limit": self.limit,
                "resetDate": self.reset_date,
            },
        }


class UpstreamError(AnalogyServiceError):
    """The generation backend failed, timed out or returned nothing usable."""

    status_code = 502

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class ConfigurationError(AnalogyServiceError):
    """Missing credential or invalid setting."""

    status_code = 500


class StoreError(AnalogyServiceError):
    """The usage counter store could not be read or written."""

    status_code = 500

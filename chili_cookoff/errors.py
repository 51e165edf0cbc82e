"""
Error taxonomy for the cook-off service.

Domain operations raise these; the web layer turns them into JSON bodies
of the form {"error": ..., "details": ...} with the matching HTTP status.
"""

from typing import Any, Dict, Optional


class CookoffError(Exception):
    """Base class for errors reported to API clients."""

    status = 500

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        **extra: Any,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        self.extra = extra

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        body.update(self.extra)
        return body


class ValidationError(CookoffError):
    """Malformed, missing or out-of-range input."""

    status = 400


class NotFoundError(CookoffError):
    """A referenced chili or resource does not exist."""

    status = 404


class InternalError(CookoffError):
    """Storage failure or unexpected exception."""

    status = 500

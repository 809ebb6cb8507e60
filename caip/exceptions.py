"""
CAIP Codec - Exceptions.

Raised synchronously by the codec before any network call is made.
Each exception carries a stable ``kind`` so the adapter error funnel can
translate it without inspecting the message.
"""

from typing import Any, Optional


class CaipError(ValueError):
    """Base exception for identifier codec errors."""

    kind = "CaipError"

    def __init__(
        self,
        message: str,
        value: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.value = value
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "kind": self.kind,
            "message": self.message,
            "value": self.value,
            "context": self.context,
        }


class MalformedIdentifier(CaipError):
    """Identifier string violates the CAIP2/CAIP19 grammar."""

    kind = "MalformedIdentifier"


class UnsupportedNetwork(CaipError):
    """Chain family / network pair has no canonical mapping."""

    kind = "UnsupportedNetwork"


class InvalidReference(CaipError):
    """Asset reference does not match the namespace's expected shape."""

    kind = "InvalidReference"

"""Custom exception hierarchy for Tibia Character Lookup.

Provides structured exception classes for different error scenarios. Every
lookup failure carries a ``user_message`` suitable for display as-is.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from services.name_validator import NameViolation


class TibiaInfoError(Exception):
    """Base exception for all Tibia Character Lookup errors."""

    pass


class ConfigurationError(TibiaInfoError):
    """Exception raised for configuration-related errors."""

    pass


class CharacterLookupError(TibiaInfoError):
    """Base exception for a failed character lookup."""

    def __init__(self, user_message: str) -> None:
        super().__init__(user_message)
        self.user_message = user_message


class NameValidationError(CharacterLookupError):
    """The character name breaks the naming rules."""

    def __init__(self, violation: NameViolation) -> None:
        super().__init__(violation.message)
        self.violation = violation


class CharacterNotFoundError(CharacterLookupError):
    """TibiaData has no character with the requested name (404)."""

    def __init__(self, name: str) -> None:
        super().__init__("Character not found")
        self.name = name


class ServerError(CharacterLookupError):
    """TibiaData answered with an unexpected HTTP status."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"Server error (Status: {status_code})")
        self.status_code = status_code


class DecodingError(CharacterLookupError):
    """The response body does not match the character schema."""

    def __init__(self, field_path: str, detail: str = "") -> None:
        message = f"Invalid data format at '{field_path}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.field_path = field_path


class TibiaConnectionError(CharacterLookupError):
    """The request failed at the transport level or timed out."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to load character: {reason}")
        self.reason = reason


class NoConnectivityError(CharacterLookupError):
    """The device is offline and nothing usable is cached."""

    def __init__(self) -> None:
        super().__init__("No internet connection and no cached data available")

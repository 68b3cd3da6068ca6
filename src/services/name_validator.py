"""Tibia character name validation.

Names are checked before any cache or network access. Rules are applied in
order and the first broken rule is reported.
"""

from __future__ import annotations

import string
from enum import Enum

MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 29
ALLOWED_CHARACTERS = frozenset(string.ascii_letters + " -")


class NameViolation(Enum):
    """A broken naming rule, with its user-facing message."""

    TOO_SHORT = f"Name must be at least {MIN_NAME_LENGTH} characters long"
    TOO_LONG = f"Name cannot be longer than {MAX_NAME_LENGTH} characters"
    INVALID_CHARACTERS = "Name can only contain letters, spaces, and hyphens"
    EDGE_HYPHEN = "Name cannot start or end with a hyphen"
    REPEATED_SEPARATOR = "Name cannot contain double spaces or double hyphens"

    @property
    def message(self) -> str:
        return self.value


class TibiaNameValidator:
    """Validates character names against Tibia naming rules."""

    def validate(self, name: str) -> NameViolation | None:
        """Return the first violated rule, or None if the name is valid."""
        if len(name) < MIN_NAME_LENGTH:
            return NameViolation.TOO_SHORT
        if len(name) > MAX_NAME_LENGTH:
            return NameViolation.TOO_LONG
        if not set(name) <= ALLOWED_CHARACTERS:
            return NameViolation.INVALID_CHARACTERS
        if name.startswith("-") or name.endswith("-"):
            return NameViolation.EDGE_HYPHEN
        if "  " in name or "--" in name:
            return NameViolation.REPEATED_SEPARATOR
        return None

    def is_valid(self, name: str) -> bool:
        return self.validate(name) is None

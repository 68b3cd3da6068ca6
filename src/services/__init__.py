"""Service layer for Tibia Character Lookup.

Submodules:
    name_validator: character naming rules
    character_lookup_service: validate/cache/fetch/publish pipeline
"""

from .character_lookup_service import CharacterLookupService
from .name_validator import NameViolation, TibiaNameValidator

__all__ = [
    "CharacterLookupService",
    "NameViolation",
    "TibiaNameValidator",
]

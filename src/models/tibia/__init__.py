"""Tibia data models (TibiaData API schema)."""

from .account import TibiaAccountInformation
from .achievement import TibiaAchievement
from .character import TibiaCharacter, TibiaGuild, TibiaHouse
from .death import TibiaDeath, TibiaKiller
from .other_character import TibiaOtherCharacter
from .response import (
    ApiDetails,
    ApiInformation,
    ApiStatus,
    CharacterData,
    CharacterResponse,
)

__all__ = [
    "ApiDetails",
    "ApiInformation",
    "ApiStatus",
    "CharacterData",
    "CharacterResponse",
    "TibiaAccountInformation",
    "TibiaAchievement",
    "TibiaCharacter",
    "TibiaDeath",
    "TibiaGuild",
    "TibiaHouse",
    "TibiaKiller",
    "TibiaOtherCharacter",
]

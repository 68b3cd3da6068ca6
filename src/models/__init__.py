"""Tibia data models (domain layer)."""

from .tibia import (
    ApiDetails,
    ApiInformation,
    ApiStatus,
    CharacterData,
    CharacterResponse,
    TibiaAccountInformation,
    TibiaAchievement,
    TibiaCharacter,
    TibiaDeath,
    TibiaGuild,
    TibiaHouse,
    TibiaKiller,
    TibiaOtherCharacter,
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

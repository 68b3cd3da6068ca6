"""Published state of the character lookup pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from models.app.recent_search import RecentSearchEntry
from models.tibia import (
    TibiaAccountInformation,
    TibiaAchievement,
    TibiaCharacter,
    TibiaDeath,
    TibiaOtherCharacter,
)
from utils.exceptions import CharacterLookupError


class LookupPhase(Enum):
    """Phases of a character lookup."""

    IDLE = "idle"
    VALIDATING = "validating"
    CACHE_HIT = "cache_hit"
    REQUESTING = "requesting"
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class LookupState:
    """Immutable snapshot of everything a presentation layer renders.

    A new snapshot replaces the previous one on every transition, so
    observers never see a half-updated record.

    Attributes:
        phase: Current pipeline phase.
        character: The current character record, or None.
        deaths: Deaths of the current character, newest first.
        achievements: Displayed achievements of the current character.
        account_info: Public account information, or None.
        other_characters: Other characters on the account (current one excluded).
        is_online: Whether the current character is online.
        is_loading: Whether a lookup is in progress.
        error: The failure of the last lookup, or None.
        recent_searches: Recent searches, most recent first.
    """

    phase: LookupPhase = LookupPhase.IDLE
    character: TibiaCharacter | None = None
    deaths: tuple[TibiaDeath, ...] = ()
    achievements: tuple[TibiaAchievement, ...] = ()
    account_info: TibiaAccountInformation | None = None
    other_characters: tuple[TibiaOtherCharacter, ...] = ()
    is_online: bool = False
    is_loading: bool = False
    error: CharacterLookupError | None = None
    recent_searches: tuple[RecentSearchEntry, ...] = field(default_factory=tuple)

    @property
    def error_message(self) -> str | None:
        return self.error.user_message if self.error else None

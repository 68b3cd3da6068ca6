"""TibiaData character endpoint response envelope."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .account import TibiaAccountInformation
from .achievement import TibiaAchievement
from .character import TibiaCharacter
from .death import TibiaDeath
from .other_character import TibiaOtherCharacter


class ApiStatus(BaseModel):
    """Status block of the ``information`` section."""

    model_config = ConfigDict(frozen=True)

    http_code: int | None = None
    error: int | None = None
    message: str | None = None


class ApiDetails(BaseModel):
    """API build that produced the response."""

    model_config = ConfigDict(frozen=True)

    version: int | None = None
    release: str | None = None
    commit: str | None = None


class ApiInformation(BaseModel):
    """Metadata TibiaData attaches to every response."""

    model_config = ConfigDict(frozen=True)

    api: ApiDetails | None = None
    timestamp: datetime | None = None
    status: ApiStatus | None = None


class CharacterData(BaseModel):
    """Everything TibiaData returns about one character.

    Collections missing from the payload become empty lists.
    """

    model_config = ConfigDict(frozen=True)

    character: TibiaCharacter
    achievements: list[TibiaAchievement] = Field(default_factory=list)
    deaths: list[TibiaDeath] = Field(default_factory=list)
    deaths_truncated: bool = False
    account_information: TibiaAccountInformation | None = None
    other_characters: list[TibiaOtherCharacter] = Field(default_factory=list)

    @field_validator("achievements", "deaths", "other_characters", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return [] if value is None else value

    @field_validator("account_information", mode="before")
    @classmethod
    def _empty_account_to_none(cls, value):
        return None if value == {} else value

    @property
    def is_online(self) -> bool:
        """Online status, derived from the matching other-characters entry."""
        own_name = self.character.name.lower()
        return any(
            other.is_online
            for other in self.other_characters
            if other.name.lower() == own_name
        )

    @property
    def listed_other_characters(self) -> list[TibiaOtherCharacter]:
        """Other characters on the account, excluding this one."""
        own_name = self.character.name.lower()
        return [
            other for other in self.other_characters if other.name.lower() != own_name
        ]


class CharacterResponse(BaseModel):
    """Top-level body of ``GET /v4/character/{name}``."""

    model_config = ConfigDict(frozen=True)

    character: CharacterData
    information: ApiInformation | None = None

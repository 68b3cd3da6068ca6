"""Tibia character data model."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TibiaGuild(BaseModel):
    """Guild membership of a character."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Guild name")
    rank: str = Field(..., description="Rank inside the guild")


class TibiaHouse(BaseModel):
    """A house owned by a character."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="House name")
    town: str = Field(..., description="Town the house is in")
    paid: date = Field(..., description="Date the rent is paid until")
    houseid: int = Field(..., description="House ID")


class TibiaCharacter(BaseModel):
    """Public profile of a Tibia character.

    Optional fields are hidden or unset on some profiles and come back
    missing or empty from the API.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Character name")
    level: int = Field(..., description="Character level")
    vocation: str = Field(..., description="Vocation (e.g. Elite Knight)")
    sex: str = Field(..., description="Character sex")
    world: str = Field(..., description="Game world the character lives on")
    residence: str = Field(..., description="Home town")
    title: str | None = Field(None, description="Selected character title")
    unlocked_titles: int = Field(0, description="Number of unlocked titles")
    achievement_points: int = Field(..., description="Achievement points")
    account_status: str = Field(..., description="Free or Premium Account")
    last_login: datetime | None = Field(None, description="Last login timestamp")
    guild: TibiaGuild | None = Field(None, description="Guild membership")
    married_to: str | None = Field(None, description="Spouse name")
    houses: list[TibiaHouse] = Field(default_factory=list, description="Owned houses")
    former_names: list[str] = Field(default_factory=list)
    former_worlds: list[str] = Field(default_factory=list)
    traded: bool = Field(False, description="Character was bought in the Bazaar")
    deletion_date: datetime | None = Field(None, description="Scheduled deletion")
    comment: str | None = Field(None, description="Profile comment")

    @field_validator("houses", "former_names", "former_worlds", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return [] if value is None else value

    @field_validator(
        "title", "married_to", "last_login", "deletion_date", "comment", mode="before"
    )
    @classmethod
    def _blank_to_none(cls, value):
        return None if value == "" else value

    @field_validator("guild", mode="before")
    @classmethod
    def _empty_guild_to_none(cls, value):
        # Guildless characters come back with an empty guild object
        if isinstance(value, dict) and not value.get("name"):
            return None
        return value

"""Tibia character death data model."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TibiaKiller(BaseModel):
    """A participant in a character death."""

    model_config = ConfigDict(frozen=True)

    name: str
    player: bool = False
    traded: bool = False
    summon: str | None = None

    @field_validator("summon", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        return None if value == "" else value


class TibiaDeath(BaseModel):
    """A recent death of a character, in API order (newest first)."""

    model_config = ConfigDict(frozen=True)

    time: datetime = Field(..., description="When the character died")
    level: int = Field(..., description="Level at death")
    reason: str = Field(..., description="Free-text description of the death")
    killers: list[TibiaKiller] = Field(default_factory=list)
    assists: list[TibiaKiller] = Field(default_factory=list)

    @field_validator("killers", "assists", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return [] if value is None else value

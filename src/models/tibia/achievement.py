"""Tibia achievement data model."""

from pydantic import BaseModel, ConfigDict, Field


class TibiaAchievement(BaseModel):
    """An achievement displayed on a character profile."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Achievement name")
    grade: int = Field(..., description="Achievement grade (1-3)")
    secret: bool = Field(False, description="Whether the achievement is secret")

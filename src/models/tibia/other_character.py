"""Tibia other-character summary data model."""

from pydantic import BaseModel, ConfigDict, Field


class TibiaOtherCharacter(BaseModel):
    """Another visible character on the same account."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Character name")
    world: str = Field(..., description="Game world")
    status: str = Field(..., description="'online' or 'offline'")
    deleted: bool = Field(False, description="Character is scheduled for deletion")
    main: bool = Field(False, description="Marked as the main character")
    traded: bool = Field(False, description="Character was bought in the Bazaar")
    position: str | None = Field(None, description="Special position")

    @property
    def is_online(self) -> bool:
        return self.status.lower() == "online"

"""Recent search entry model."""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from models.tibia import TibiaCharacter


class RecentSearchEntry(BaseModel):
    """A previously looked-up character, as shown in the recent searches list.

    ``name`` is the character's current name as reported by TibiaData;
    ``query`` is the normalized name the lookup was made with, which is also
    the response cache key. They differ when a former name was searched.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    name: str
    level: int
    vocation: str
    world: str
    last_updated: datetime = Field(default_factory=lambda: datetime.now(UTC))
    query: str = ""

    @classmethod
    def from_character(
        cls, character: TibiaCharacter, query: str = ""
    ) -> "RecentSearchEntry":
        return cls(
            name=character.name,
            level=character.level,
            vocation=character.vocation,
            world=character.world,
            query=query,
        )

    @property
    def lookup_name(self) -> str:
        """Name to replay the lookup with (falls back to the name for old entries)."""
        return self.query or self.name

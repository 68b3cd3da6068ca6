"""Tibia account information data model."""

import logging
from datetime import datetime

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidatorFunctionWrapHandler,
    field_validator,
)

logger = logging.getLogger(__name__)


class TibiaAccountInformation(BaseModel):
    """Account details a character chose to make public.

    ``created`` and ``loyalty_title`` vary between API responses; a missing
    or malformed value is read as absent instead of failing the parse.
    """

    model_config = ConfigDict(frozen=True)

    created: datetime | None = Field(None, description="Account creation date")
    loyalty_title: str | None = Field(None, description="Loyalty title")
    position: str | None = Field(None, description="Special position (e.g. Tutor)")

    @field_validator("created", "loyalty_title", mode="wrap")
    @classmethod
    def _tolerate_unusable(cls, value, handler: ValidatorFunctionWrapHandler):
        if value is None or value == "":
            return None
        try:
            return handler(value)
        except ValidationError as e:
            logger.debug("Ignoring unusable account field value %r: %s", value, e)
            return None

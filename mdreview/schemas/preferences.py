"""Pydantic schemas for UI preferences."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Theme = Literal["light", "dark", "system"]


class Preferences(BaseModel):
    """Stored UI preferences; ``system`` means no explicit theme choice."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    theme: Theme = "system"
    sidebar_width: int | None = None
    comments_width: int | None = None


class PreferencesUpdate(BaseModel):
    """Partial update; omitted fields are left untouched."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    theme: Theme | None = None
    sidebar_width: int | None = Field(None, ge=100, le=2000)
    comments_width: int | None = Field(None, ge=100, le=2000)

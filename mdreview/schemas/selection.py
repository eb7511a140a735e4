"""Pydantic schemas for selections and their line anchors."""

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class SelectionAnchor(BaseModel):
    """Inclusive 1-based source line range covered by a selection."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    start_line: int = Field(..., ge=1)
    end_line: int = Field(..., ge=1)

    @model_validator(mode="after")
    def _ordered(self) -> "SelectionAnchor":
        if self.start_line > self.end_line:
            raise ValueError("start_line must not exceed end_line")
        return self


class SelectionPointPayload(BaseModel):
    """One selection endpoint addressed by child indices from the preview root."""

    path: list[int] = Field(default_factory=list)
    offset: int = Field(..., ge=0)


class SelectionPayload(BaseModel):
    """Request schema for resolving a preview selection."""

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "anchor": {"path": [2, 0], "offset": 0},
                "focus": {"path": [2, 0], "offset": 15},
            }
        },
    )

    anchor: SelectionPointPayload
    focus: SelectionPointPayload


class SelectionResolveResponse(BaseModel):
    """Resolution result; ``anchor`` is null when no line range applies."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    anchor: SelectionAnchor | None = None
    selected_text: str = ""

"""Pydantic schemas for line-anchored review comments."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class Comment(BaseModel):
    """A comment attached to a source line range of one file.

    Persisted as JSON with camelCase keys. Only ``text`` changes after
    creation, via ``model_copy``.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(..., min_length=1)
    text: str
    selected_text: str = ""
    start_line: int = Field(..., ge=1)
    end_line: int = Field(..., ge=1)
    created_at: datetime

    @model_validator(mode="after")
    def _ordered_lines(self) -> "Comment":
        if self.start_line > self.end_line:
            raise ValueError("startLine must not exceed endLine")
        return self

    def to_storage(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class _CommentText(BaseModel):
    @field_validator("text", check_fields=False)
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("comment cannot be empty")
        return v


class CreateCommentRequest(_CommentText):
    """Request schema for adding a comment to a file."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    text: str = Field(..., min_length=1, max_length=10000)
    selected_text: str = ""
    start_line: int = Field(..., ge=1)
    end_line: int = Field(..., ge=1)

    @model_validator(mode="after")
    def _ordered_lines(self) -> "CreateCommentRequest":
        if self.start_line > self.end_line:
            raise ValueError("startLine must not exceed endLine")
        return self


class UpdateCommentRequest(_CommentText):
    """Request schema for replacing a comment's text."""

    model_config = ConfigDict(extra="forbid")

    text: str = Field(..., min_length=1, max_length=10000)


class CommentListResponse(BaseModel):
    """Comments of one file, sorted by start line."""

    items: list[Comment]
    total: int


class CommentExportResponse(BaseModel):
    """Clipboard-ready text for all comments of a file."""

    text: str

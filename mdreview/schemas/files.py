"""Pydantic schemas for file listing and content endpoints."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class FileInfo(BaseModel):
    """A markdown file below the served directory."""

    name: str = Field(description="File name")
    path: str = Field(description="Path relative to the base directory")
    dir: str = Field(description="Containing directory relative to the base directory ('.' at root)")


class FileListResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    files: list[FileInfo]
    base_dir: str


class MarkdownResponse(BaseModel):
    """Raw markdown of one file."""

    content: str
    filename: str
    path: str | None = None


class RenderedMarkdownResponse(BaseModel):
    """Line-annotated HTML of one file."""

    html: str
    filename: str
    path: str | None = None

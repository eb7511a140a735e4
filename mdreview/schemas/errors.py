"""Error response schema shared by every endpoint."""

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """Standard error response schema.

    Used for domain errors (4xx, 5xx) across the API.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "error": "file_not_found",
                    "message": "Markdown file not found",
                    "details": {"filename": "missing.md"},
                },
                {
                    "error": "invalid_path",
                    "message": "Invalid file path",
                },
            ]
        }
    )

    error: str = Field(
        ...,
        description="Error type identifier",
        examples=["file_not_found", "invalid_path", "file_unavailable"],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=["Markdown file not found", "Invalid file path"],
    )
    details: dict | None = Field(
        None,
        description="Additional error context",
        examples=[{"path": "../secret.md"}],
    )

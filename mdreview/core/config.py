"""Configuration settings using Pydantic Settings."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Literal

from pydantic import SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Served content (directory mode vs. single-file mode)
    base_dir: Path = Path.cwd()
    markdown_file_path: Path | None = None

    # Server
    host: str = "127.0.0.1"
    api_port: int = 3030
    environment: Literal["development", "production"] = "development"
    api_docs_enabled: bool | None = None

    # CORS
    cors_allow_origins: Annotated[list[str], NoDecode] = ["http://localhost:6060"]
    cors_allow_methods: Annotated[list[str], NoDecode] = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
    cors_allow_headers: Annotated[list[str], NoDecode] = ["Accept", "Content-Type", "X-Request-ID"]
    cors_allow_credentials: bool = False

    # Local per-profile storage for comments and preferences
    storage_path: Path = Path.home() / ".config" / "md-review" / "storage.json"

    # File watching
    watch_enabled: bool = True
    ignored_dirs: Annotated[list[str], NoDecode] = ["node_modules", "dist", "dist-ssr"]

    # Metrics scraping (required in production)
    metrics_token: SecretStr | None = None

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @field_validator(
        "cors_allow_origins",
        "cors_allow_methods",
        "cors_allow_headers",
        "ignored_dirs",
        mode="before",
    )
    @classmethod
    def _parse_csv_lists(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("api_port")
    @classmethod
    def _validate_port(cls, v: int) -> int:
        if v < 1 or v > 65535:
            raise ValueError(f"Invalid port: {v}")
        return v

    @field_validator("base_dir", "storage_path", mode="after")
    @classmethod
    def _expand_path(cls, v: Path) -> Path:
        return v.expanduser()

    @model_validator(mode="after")
    def _validate_served_content(self) -> Settings:
        if self.markdown_file_path is not None:
            self.markdown_file_path = self.markdown_file_path.expanduser().resolve()
        self.base_dir = self.base_dir.resolve()

        if self.environment == "production":
            if any(x == "*" for x in self.cors_allow_origins):
                raise ValueError("CORS_ALLOW_ORIGINS cannot contain '*' in production")

        return self

    @property
    def single_file_mode(self) -> bool:
        """True when a single markdown file is served instead of a directory."""
        return self.markdown_file_path is not None

    @property
    def watch_root(self) -> Path:
        if self.markdown_file_path is not None:
            return self.markdown_file_path.parent
        return self.base_dir


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

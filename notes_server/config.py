"""Server configuration loaded from environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings

from .models import (
    DEFAULT_MAX_CONTENT_LENGTH,
    DEFAULT_MAX_TAG_LENGTH,
    DEFAULT_MAX_TITLE_LENGTH,
    NoteLimits,
)


class Settings(BaseSettings):
    """Application settings loaded from ``NOTES_*`` variables or a .env file."""

    model_config = {
        "env_prefix": "NOTES_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    server_name: str = "notes-server"
    storage_path: Path = Path("data") / "notes.json"
    log_level: str = "INFO"

    # Note field limits
    max_title_length: int = Field(default=DEFAULT_MAX_TITLE_LENGTH, gt=0)
    max_content_length: int = Field(default=DEFAULT_MAX_CONTENT_LENGTH, gt=0)
    max_tag_length: int = Field(default=DEFAULT_MAX_TAG_LENGTH, gt=0)

    @property
    def limits(self) -> NoteLimits:
        """Length policy handed to the note store."""
        return NoteLimits(
            max_title_length=self.max_title_length,
            max_content_length=self.max_content_length,
            max_tag_length=self.max_tag_length,
        )

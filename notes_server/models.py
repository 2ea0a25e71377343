"""Pydantic models for the notes server."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Iterable
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from .errors import NoteValidationError

DEFAULT_MAX_TITLE_LENGTH = 200
DEFAULT_MAX_CONTENT_LENGTH = 50_000
DEFAULT_MAX_TAG_LENGTH = 50


def utc_now() -> datetime:
    return datetime.now(UTC)


def new_note_id() -> str:
    return uuid4().hex


def normalize_tags(tags: Iterable[str]) -> list[str]:
    """Trim each tag and collapse duplicates, keeping first-seen order."""
    normalized: list[str] = []
    for tag in tags:
        cleaned = tag.strip()
        if not cleaned:
            raise ValueError("tags must not be empty")
        if cleaned not in normalized:
            normalized.append(cleaned)
    return normalized


class Note(BaseModel):
    """Immutable note record; the store hands out deep copies, never the stored instance."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_note_id, min_length=1)
    title: str = Field(..., min_length=1, description="Note title")
    content: str = Field(default="", description="Note content")
    tags: list[str] = Field(default_factory=list, description="List of tags")
    created_at: datetime = Field(
        default_factory=utc_now, description="Creation timestamp (UTC)"
    )
    updated_at: datetime = Field(
        default_factory=utc_now, description="Last update timestamp (UTC)"
    )

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be blank")
        return value

    @field_validator("tags")
    @classmethod
    def _normalize_tags(cls, value: list[str]) -> list[str]:
        return normalize_tags(value)

    @field_validator("created_at", "updated_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # Snapshots written by hand may carry naive timestamps.
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @model_validator(mode="after")
    def _check_timestamps(self) -> Note:
        if self.updated_at < self.created_at:
            raise ValueError("updated_at must not precede created_at")
        return self

    def has_tag(self, tag: str) -> bool:
        """Case-insensitive tag membership."""
        wanted = tag.strip().lower()
        return any(t.lower() == wanted for t in self.tags)

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match on title and content."""
        q = query.lower()
        return q in self.title.lower() or q in self.content.lower()


class NoteSnapshot(BaseModel):
    """Container for all notes, used for JSON serialization."""

    notes: list[Note] = Field(default_factory=list)


class RawSnapshot(BaseModel):
    """Top-level shape of a snapshot file before per-note validation."""

    notes: list[Any]


@dataclass(frozen=True)
class NoteLimits:
    """Length bounds applied to incoming note fields."""

    max_title_length: int = DEFAULT_MAX_TITLE_LENGTH
    max_content_length: int = DEFAULT_MAX_CONTENT_LENGTH
    max_tag_length: int = DEFAULT_MAX_TAG_LENGTH

    def check(
        self,
        *,
        title: str | None = None,
        content: str | None = None,
        tags: list[str] | None = None,
    ) -> None:
        """Raise NoteValidationError if any given field is out of bounds."""
        if title is not None and len(title.strip()) > self.max_title_length:
            raise NoteValidationError(
                f"title exceeds {self.max_title_length} characters"
            )
        if content is not None and len(content) > self.max_content_length:
            raise NoteValidationError(
                f"content exceeds {self.max_content_length} characters"
            )
        for tag in tags or []:
            if len(tag.strip()) > self.max_tag_length:
                raise NoteValidationError(
                    f"tag '{tag[:20]}...' exceeds {self.max_tag_length} characters"
                )


def _describe(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "note"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


def build_note(data: dict[str, Any]) -> Note:
    """Validate ``data`` into a Note, raising NoteValidationError on failure."""
    try:
        return Note.model_validate(data)
    except ValidationError as exc:
        raise NoteValidationError(_describe(exc)) from exc

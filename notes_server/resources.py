"""Read-only renderings of stored notes, served as MCP resources."""

from __future__ import annotations

import json
from collections import Counter

from .errors import NoteNotFoundError
from .models import Note
from .storage import NoteStorage

PREVIEW_LENGTH = 120


def render_note(note: Note) -> str:
    """Render a note as markdown."""
    tags = ", ".join(note.tags) if note.tags else "none"
    return (
        f"# {note.title}\n\n"
        f"- id: {note.id}\n"
        f"- tags: {tags}\n"
        f"- created: {note.created_at.isoformat()}\n"
        f"- updated: {note.updated_at.isoformat()}\n\n"
        f"{note.content}\n"
    )


def note_index(storage: NoteStorage) -> str:
    """Markdown list of every note with a one-line preview."""
    notes = storage.list()
    if not notes:
        return "No notes stored yet."
    lines = [f"# Notes ({len(notes)})", ""]
    for note in notes:
        preview = note.content[:PREVIEW_LENGTH].replace("\n", " ")
        tags = f" [{', '.join(note.tags)}]" if note.tags else ""
        lines.append(f"- **{note.title}** (`{note.id}`){tags}: {preview}")
    return "\n".join(lines)


def tag_counts(storage: NoteStorage) -> str:
    """JSON object mapping each tag to the number of notes carrying it."""
    counts = Counter(tag for note in storage.list() for tag in note.tags)
    return json.dumps(dict(sorted(counts.items())), indent=2)


def note_document(storage: NoteStorage, note_id: str) -> str:
    note = storage.get(note_id)
    if note is None:
        raise NoteNotFoundError(note_id)
    return render_note(note)

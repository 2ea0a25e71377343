"""Prompt templates built from stored notes."""

from __future__ import annotations

from .errors import NoteNotFoundError, NoteValidationError
from .resources import render_note
from .storage import NoteStorage

SUMMARY_STYLES = {
    "brief": "Provide a brief summary of the following note in a few sentences.",
    "detailed": (
        "Provide a detailed analysis of the following note. "
        "Include key points, action items, and open questions."
    ),
    "bullets": "Summarize the following note as a short bulleted list.",
}


def summarize_note(storage: NoteStorage, note_id: str, style: str = "brief") -> str:
    """Ask the assistant to summarize a single note."""
    if style not in SUMMARY_STYLES:
        raise NoteValidationError(
            f"Unknown style '{style}'. Choose one of: {', '.join(SUMMARY_STYLES)}"
        )
    note = storage.get(note_id)
    if note is None:
        raise NoteNotFoundError(note_id)
    return f"{SUMMARY_STYLES[style]}\n\n{render_note(note)}"


def review_notes(storage: NoteStorage, tag: str | None = None) -> str:
    """Ask the assistant to organise the stored notes, optionally for one tag."""
    notes = storage.list(tag=tag)
    scope = f"tagged '{tag}'" if tag else "in my collection"
    if not notes:
        return f"There are no notes {scope} to review."

    body = "\n---\n\n".join(render_note(note) for note in notes)
    return (
        f"Review the {len(notes)} note(s) {scope}. Group related notes, point out "
        "duplicates or contradictions, and suggest better titles or tags where "
        f"they would help.\n\n{body}"
    )

"""JSON file-based storage layer for the notes server.

The full note mapping lives in memory and is rewritten to one JSON snapshot
on every mutation. A snapshot is written to a temp file next to the backing
file and moved into place with ``os.replace``, so the backing file always holds
either the previous or the new snapshot, never a partial one.

Writers are serialized by a lock. The live mapping is never edited in place:
each mutation builds a new dict and publishes it with a single assignment, so
readers (which do not take the lock) always see a complete state.
"""

from __future__ import annotations

import contextlib
import enum
import logging
import os
import tempfile
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from pydantic import ValidationError

from .errors import LifecycleError, NoteNotFoundError, NoteValidationError, StorageError
from .models import Note, NoteLimits, NoteSnapshot, RawSnapshot, build_note, new_note_id, utc_now

logger = logging.getLogger("notes_server.storage")


class StoreState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    CLOSED = "closed"


@dataclass
class LoadReport:
    """Outcome of loading the backing file in ``NoteStorage.initialize``."""

    path: Path
    loaded: int = 0
    created: bool = False
    recovered_from_corruption: bool = False
    skipped: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class NoteStorage:
    """Note store backed by one JSON snapshot file.

    Mutations build a new mapping, publish it, and persist it atomically;
    a failed persist puts the previous mapping back.
    """

    def __init__(self, storage_path: Path | str, limits: NoteLimits | None = None) -> None:
        self._path = Path(storage_path)
        self._limits = limits or NoteLimits()
        self._notes: dict[str, Note] = {}
        # Mapping that matches the file on disk; shutdown flushes only if they differ.
        self._persisted: dict[str, Note] | None = None
        # Every id this instance has handed out or loaded; deleted ids stay here.
        self._issued_ids: set[str] = set()
        self._lock = threading.RLock()
        self._state = StoreState.UNINITIALIZED
        self._report: LoadReport | None = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def limits(self) -> NoteLimits:
        return self._limits

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def count(self) -> int:
        """Number of stored notes."""
        self._ensure_ready()
        return len(self._notes)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> LoadReport:
        """Load the backing file, creating it (and its directory) if missing.

        A corrupt file yields an empty store plus a warning in the returned
        report. Unreadable files and directories raise StorageError.
        """
        with self._lock:
            if self._state is StoreState.CLOSED:
                raise LifecycleError("Store is closed")
            if self._state is StoreState.READY and self._report is not None:
                return self._report

            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise StorageError(
                    f"Cannot create storage directory {self._path.parent}: {exc}"
                ) from exc

            notes, report = self._load()
            if report.created:
                self._persist(notes)

            self._notes = notes
            self._persisted = notes
            self._issued_ids.update(notes)
            self._state = StoreState.READY
            self._report = report
            return report

    def shutdown(self) -> None:
        """Flush unpersisted changes, if any, and refuse further operations."""
        with self._lock:
            if self._state is StoreState.CLOSED:
                return
            if self._state is StoreState.READY and self._notes is not self._persisted:
                self._persist(self._notes)
            self._state = StoreState.CLOSED
            logger.info("Note store at %s closed", self._path)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, note_id: str) -> Note | None:
        """Return a copy of the note, or None if the id is unknown."""
        self._ensure_ready()
        note = self._notes.get(note_id)
        return note.model_copy(deep=True) if note is not None else None

    def list(self, tag: str | None = None, limit: int | None = None) -> list[Note]:
        """Return notes in insertion order, optionally filtered by tag (case-insensitive)."""
        self._ensure_ready()
        notes: Iterable[Note] = self._notes.values()
        if tag is not None:
            notes = [n for n in notes if n.has_tag(tag)]
        return self._limited(notes, limit)

    def search(self, query: str, limit: int | None = None) -> list[Note]:
        """Return notes whose title or content contains the query (case-insensitive)."""
        self._ensure_ready()
        if not query.strip():
            raise NoteValidationError("query must not be blank")
        return self._limited((n for n in self._notes.values() if n.matches(query)), limit)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create(self, title: str, content: str, tags: list[str] | None = None) -> Note:
        """Create and persist a new note."""
        self._ensure_ready()
        with self._lock:
            self._ensure_ready()
            now = utc_now()
            note = build_note(
                {
                    "id": self._next_id(),
                    "title": title,
                    "content": content,
                    "tags": list(tags or []),
                    "created_at": now,
                    "updated_at": now,
                }
            )
            self._limits.check(title=note.title, content=note.content, tags=note.tags)

            updated = dict(self._notes)
            updated[note.id] = note
            self._commit(updated)
            self._issued_ids.add(note.id)

        logger.info("Saved note %s: '%s'", note.id, note.title)
        return note.model_copy(deep=True)

    def update(
        self,
        note_id: str,
        *,
        title: str | None = None,
        content: str | None = None,
        tags: list[str] | None = None,
    ) -> Note:
        """Replace the given fields of an existing note and refresh ``updated_at``."""
        self._ensure_ready()
        changes = {
            name: value
            for name, value in (("title", title), ("content", content), ("tags", tags))
            if value is not None
        }
        if not changes:
            raise NoteValidationError("Nothing to update")

        with self._lock:
            self._ensure_ready()
            current = self._notes.get(note_id)
            if current is None:
                raise NoteNotFoundError(note_id)

            data = current.model_dump()
            data.update(changes)
            # Clock may step backwards; updated_at must never go back.
            data["updated_at"] = max(utc_now(), current.updated_at)
            note = build_note(data)
            self._limits.check(title=note.title, content=note.content, tags=note.tags)

            updated = dict(self._notes)
            updated[note_id] = note
            self._commit(updated)

        logger.info("Updated note %s (%s)", note_id, ", ".join(sorted(changes)))
        return note.model_copy(deep=True)

    def delete(self, note_id: str) -> bool:
        """Remove a note. Returns False, without touching the file, if it is absent."""
        self._ensure_ready()
        with self._lock:
            self._ensure_ready()
            if note_id not in self._notes:
                return False
            updated = dict(self._notes)
            del updated[note_id]
            self._commit(updated)

        logger.info("Deleted note %s", note_id)
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _ensure_ready(self) -> None:
        if self._state is not StoreState.READY:
            raise LifecycleError(f"Store is {self._state.value}")

    def _next_id(self) -> str:
        note_id = new_note_id()
        while note_id in self._issued_ids:
            note_id = new_note_id()
        return note_id

    @staticmethod
    def _limited(notes: Iterable[Note], limit: int | None) -> list[Note]:
        if limit is not None and limit < 0:
            raise NoteValidationError("limit must not be negative")
        result = [n.model_copy(deep=True) for n in notes]
        return result if limit is None else result[:limit]

    def _commit(self, updated: dict[str, Note]) -> None:
        """Publish ``updated`` and persist it, restoring the old mapping on failure."""
        previous = self._notes
        self._notes = updated
        try:
            self._persist(updated)
        except BaseException:
            self._notes = previous
            raise

    def _load(self) -> tuple[dict[str, Note], LoadReport]:
        report = LoadReport(path=self._path)
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            logger.info("No storage file found at %s, starting fresh", self._path)
            report.created = True
            return {}, report
        except OSError as exc:
            raise StorageError(f"Cannot read storage file {self._path}: {exc}") from exc

        try:
            snapshot = RawSnapshot.model_validate_json(raw)
        except ValidationError as exc:
            message = (
                f"Storage file {self._path} is unreadable "
                f"({exc.error_count()} error(s)), starting with an empty store"
            )
            logger.warning(message)
            report.recovered_from_corruption = True
            report.warnings.append(message)
            return {}, report

        notes: dict[str, Note] = {}
        for index, entry in enumerate(snapshot.notes):
            label = entry.get("id") if isinstance(entry, dict) else None
            label = str(label) if label else f"#{index}"
            try:
                note = Note.model_validate(entry)
            except ValidationError as exc:
                logger.warning("Skipping invalid note %s: %s", label, exc.errors()[0]["msg"])
                report.skipped.append(label)
                continue
            if note.id in notes:
                logger.warning("Skipping duplicate note id %s", note.id)
                report.skipped.append(label)
                continue
            notes[note.id] = note

        report.loaded = len(notes)
        if report.skipped:
            report.warnings.append(
                f"Skipped {len(report.skipped)} invalid note(s) in {self._path}"
            )
        logger.info("Loaded %d notes from %s", report.loaded, self._path)
        return notes, report

    def _persist(self, notes: dict[str, Note]) -> None:
        """Write a snapshot to a sibling temp file, then rename it over the backing file."""
        try:
            payload = NoteSnapshot(notes=list(notes.values())).model_dump_json(indent=2)
        except ValueError as exc:
            raise StorageError(f"Failed to serialize notes: {exc}") from exc

        tmp_path: Path | None = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_path = Path(handle.name)
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, self._path)
        except BaseException as exc:
            if tmp_path is not None:
                with contextlib.suppress(OSError):
                    tmp_path.unlink()
            if isinstance(exc, OSError):
                raise StorageError(f"Failed to write {self._path}: {exc}") from exc
            raise

        self._persisted = notes

        logger.debug("Persisted %d notes to %s", len(notes), self._path)

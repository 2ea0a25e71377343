"""Typed failures raised by the note store."""


class NoteError(Exception):
    """Base class for every note store failure."""


class NoteValidationError(NoteError, ValueError):
    """Input violates a note constraint (empty title, over-length field, bad tag)."""


class NoteNotFoundError(NoteError):
    """An operation that requires an existing note was given an unknown id."""

    def __init__(self, note_id: str) -> None:
        super().__init__(f"Note '{note_id}' not found")
        self.note_id = note_id


class StorageError(NoteError):
    """Reading or writing the backing file failed."""


class LifecycleError(NoteError, RuntimeError):
    """Operation attempted before initialize() or after shutdown()."""

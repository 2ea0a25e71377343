"""Tool handlers that sit between the MCP server and the note store.

Each handler calls one store operation and returns a JSON-serialisable dict.
Store failures are re-raised as ``ToolError`` so the host sees an error
result with a readable message instead of a traceback.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, TypeVar

from mcp.server.fastmcp.exceptions import ToolError

from .errors import NoteError, NoteNotFoundError, NoteValidationError, StorageError
from .models import Note
from .storage import NoteStorage

logger = logging.getLogger("notes_server.tools")

T = TypeVar("T")

HELLO_MESSAGE = (
    "Congratulations! Your MCP server is working correctly!\n\n"
    "This is your first MCP tool response. Use the note tools to create, "
    "read, update, delete and search notes, the notes:// resources to browse "
    "them, and the prompts to summarize or review them."
)


def _tool_errors(fn: Callable[..., T]) -> Callable[..., T]:
    """Translate note store failures into ToolError."""

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return fn(*args, **kwargs)
        except NoteValidationError as exc:
            raise ToolError(f"Invalid input: {exc}") from exc
        except NoteNotFoundError as exc:
            raise ToolError(str(exc)) from exc
        except StorageError as exc:
            logger.error("Storage failure in %s: %s", fn.__name__, exc)
            raise ToolError(f"Storage error: {exc}") from exc
        except NoteError as exc:
            raise ToolError(str(exc)) from exc

    return wrapper


def note_to_dict(note: Note) -> dict[str, Any]:
    return note.model_dump(mode="json")


class NoteTools:
    """Tool implementations bound to one NoteStorage."""

    def __init__(self, storage: NoteStorage) -> None:
        self._storage = storage

    def hello_mcp(self) -> str:
        logger.info("Tool hello_mcp invoked")
        return HELLO_MESSAGE

    @_tool_errors
    def create_note(
        self, title: str, content: str, tags: list[str] | None = None
    ) -> dict[str, Any]:
        note = self._storage.create(title=title, content=content, tags=tags)
        logger.info("Tool create_note invoked: id=%s", note.id)
        return {
            "note_id": note.id,
            "note": note_to_dict(note),
            "message": f"Note '{note.title}' saved successfully.",
        }

    @_tool_errors
    def get_note(self, note_id: str) -> dict[str, Any]:
        note = self._storage.get(note_id)
        logger.info("Tool get_note invoked: id=%s, found=%s", note_id, note is not None)
        return {
            "found": note is not None,
            "note": note_to_dict(note) if note is not None else None,
        }

    @_tool_errors
    def list_notes(
        self, tag: str | None = None, limit: int | None = None
    ) -> dict[str, Any]:
        notes = self._storage.list(tag=tag, limit=limit)
        logger.info("Tool list_notes invoked: tag=%r, found=%d", tag, len(notes))
        return {"count": len(notes), "notes": [note_to_dict(n) for n in notes]}

    @_tool_errors
    def search_notes(self, query: str, limit: int | None = None) -> dict[str, Any]:
        notes = self._storage.search(query, limit=limit)
        logger.info("Tool search_notes invoked: query=%r, found=%d", query, len(notes))
        return {"count": len(notes), "notes": [note_to_dict(n) for n in notes]}

    @_tool_errors
    def update_note(
        self,
        note_id: str,
        title: str | None = None,
        content: str | None = None,
        tags: list[str] | None = None,
    ) -> dict[str, Any]:
        note = self._storage.update(note_id, title=title, content=content, tags=tags)
        logger.info("Tool update_note invoked: id=%s", note_id)
        return {
            "note": note_to_dict(note),
            "message": f"Note '{note.title}' updated successfully.",
        }

    @_tool_errors
    def delete_note(self, note_id: str) -> dict[str, Any]:
        deleted = self._storage.delete(note_id)
        logger.info("Tool delete_note invoked: id=%s, deleted=%s", note_id, deleted)
        message = (
            f"Note '{note_id}' deleted." if deleted else f"Note '{note_id}' does not exist."
        )
        return {"deleted": deleted, "note_id": note_id, "message": message}

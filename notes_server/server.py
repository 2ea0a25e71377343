"""
Notes MCP Server

Exposes tools, resources and prompts for a personal note collection via
the Model Context Protocol. Runs over stdio, so all logging goes to stderr.
"""

import logging

from mcp.server.fastmcp import FastMCP

from .config import Settings
from .prompts import review_notes as build_review_prompt
from .prompts import summarize_note as build_summary_prompt
from .resources import note_document, note_index, tag_counts
from .storage import NoteStorage
from .tools import NoteTools

logger = logging.getLogger("notes_server.server")

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


def configure_logging(level: str = "INFO") -> None:
    # stdout carries the JSON-RPC stream; basicConfig writes to stderr.
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def create_server(storage: NoteStorage, settings: Settings | None = None) -> FastMCP:
    """Build a FastMCP server whose tools operate on ``storage``."""
    settings = settings or Settings()
    mcp = FastMCP(settings.server_name)
    tools = NoteTools(storage)

    # -----------------------------------------------------------------------
    # Tools
    # -----------------------------------------------------------------------

    @mcp.tool()
    def hello_mcp() -> str:
        """A simple greeting tool to test your MCP server setup."""
        return tools.hello_mcp()

    @mcp.tool()
    def create_note(title: str, content: str, tags: list[str] | None = None) -> dict:
        """Save a new note with a title, content, and optional tags.

        Use this tool when the user wants to create, store, or remember a piece
        of information for later retrieval.

        Args:
            title: Short descriptive title for the note.
            content: The full body / text of the note.
            tags: Optional list of tags for categorisation.

        Returns:
            Dictionary with the generated note_id, the stored note and a message.
        """
        return tools.create_note(title=title, content=content, tags=tags)

    @mcp.tool()
    def get_note(note_id: str) -> dict:
        """Fetch a single note by its id.

        Args:
            note_id: The id returned when the note was created.

        Returns:
            Dictionary with ``found`` and the note (or null).
        """
        return tools.get_note(note_id=note_id)

    @mcp.tool()
    def list_notes(tag: str | None = None, limit: int | None = None) -> dict:
        """Retrieve stored notes, optionally filtered by tag.

        Args:
            tag: Optional tag to filter notes by (case-insensitive).
            limit: Optional maximum number of notes to return.

        Returns:
            Dictionary with a list of matching notes and their count.
        """
        return tools.list_notes(tag=tag, limit=limit)

    @mcp.tool()
    def search_notes(query: str, limit: int | None = None) -> dict:
        """Search notes by keyword (substring match on title and content).

        Args:
            query: The search string to match against note titles and content.
            limit: Optional maximum number of notes to return.

        Returns:
            Dictionary with matching notes and their count.
        """
        return tools.search_notes(query=query, limit=limit)

    @mcp.tool()
    def update_note(
        note_id: str,
        title: str | None = None,
        content: str | None = None,
        tags: list[str] | None = None,
    ) -> dict:
        """Change the title, content, or tags of an existing note.

        Only the fields you pass are replaced; ``tags`` replaces the whole list.

        Args:
            note_id: The id of the note to change.
            title: New title.
            content: New content.
            tags: New list of tags.

        Returns:
            Dictionary with the updated note and a confirmation message.
        """
        return tools.update_note(note_id=note_id, title=title, content=content, tags=tags)

    @mcp.tool()
    def delete_note(note_id: str) -> dict:
        """Permanently delete a note.

        Args:
            note_id: The id of the note to delete.

        Returns:
            Dictionary with ``deleted`` telling whether a note was removed.
        """
        return tools.delete_note(note_id=note_id)

    # -----------------------------------------------------------------------
    # Resources
    # -----------------------------------------------------------------------

    @mcp.resource("notes://list", mime_type="text/markdown")
    def notes_list() -> str:
        """Index of all stored notes."""
        return note_index(storage)

    @mcp.resource("notes://tags", mime_type="application/json")
    def notes_tags() -> str:
        """Every tag in use with the number of notes carrying it."""
        return tag_counts(storage)

    @mcp.resource("notes://note/{note_id}", mime_type="text/markdown")
    def note_resource(note_id: str) -> str:
        """Full content of one note."""
        return note_document(storage, note_id)

    # -----------------------------------------------------------------------
    # Prompts
    # -----------------------------------------------------------------------

    @mcp.prompt()
    def summarize_note(note_id: str, style: str = "brief") -> str:
        """Ask the assistant to summarize one note.

        Args:
            note_id: The note to summarize.
            style: "brief", "detailed" or "bullets".
        """
        return build_summary_prompt(storage, note_id, style)

    @mcp.prompt()
    def review_notes(tag: str | None = None) -> str:
        """Ask the assistant to organise and review stored notes.

        Args:
            tag: Only review notes carrying this tag.
        """
        return build_review_prompt(storage, tag)

    return mcp


def main() -> None:
    settings = Settings()
    configure_logging(settings.log_level)

    storage = NoteStorage(settings.storage_path, limits=settings.limits)
    report = storage.initialize()

    mcp = create_server(storage, settings)
    logger.info(
        "Starting %s over stdio with %d notes from %s",
        settings.server_name,
        report.loaded,
        storage.path,
    )
    try:
        mcp.run(transport="stdio")
    finally:
        storage.shutdown()
        logger.info("Notes MCP server stopped")


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    main()

"""Protocols for the editor and preview view a session drives.

The NiceGUI page implements both; tests use in-memory doubles.
"""

from __future__ import annotations

from typing import Any, Protocol


class SourceEditor(Protocol):
    """The editor holding the Markdown source."""

    def get_text(self) -> str:
        """Return the current document text."""
        ...

    def reveal_line(self, line: int) -> None:
        """Scroll the editor so the 0-based *line* is visible."""
        ...


class PreviewView(Protocol):
    """The rendered preview.

    ``post_message`` is fire-and-forget; the view answers, if at all, by
    calling back into the session's ``handle_view_message``.
    """

    @property
    def visible(self) -> bool:
        """Whether the view is currently shown."""
        ...

    def reveal(self) -> None:
        """Bring the view to the front without rendering."""
        ...

    def set_html(self, html: str) -> None:
        """Replace the whole rendered document."""
        ...

    def post_message(self, payload: dict[str, Any]) -> None:
        """Send a protocol message to the view."""
        ...

    def show_error(self, message: str) -> None:
        """Tell the user a render failed."""
        ...

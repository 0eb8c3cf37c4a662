"""Routes editor and view events to preview sessions.

The controller is the one long-lived object of the host: it owns the
settings, the session registry and the runtime template overrides.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from mdtexpreview.preview.registry import SessionRegistry
from mdtexpreview.preview.session import PreviewSession
from mdtexpreview.preview.templates import (
    TemplateOverrides,
    conversion_options,
    template_label,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from mdtexpreview.config import Settings
    from mdtexpreview.preview.protocol import PreviewView, SourceEditor
    from mdtexpreview.preview.templates import TemplateAction, TemplateKind
    from mdtexpreview.render import ConversionOptions

logger = logging.getLogger(__name__)


class PreviewController:
    """Creates sessions and forwards events to them."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.registry = SessionRegistry()
        self.overrides = TemplateOverrides()

    def conversion_options(self) -> ConversionOptions:
        """Pandoc options reflecting configuration and current overrides."""
        return conversion_options(self.settings.preview, self.overrides)

    async def open_preview(
        self,
        handle: str,
        document_id: str,
        editor: SourceEditor,
        view: PreviewView,
    ) -> PreviewSession:
        """Register a session for a new view and render it in full."""
        preview = self.settings.preview
        session = PreviewSession(
            handle,
            document_id,
            editor,
            view,
            self.conversion_options,
            debounce_seconds=preview.debounce_seconds,
            incremental=preview.incremental_compile,
        )
        self.registry.add(session)
        logger.info("Opened preview %s for %s", handle, document_id)
        await session.open()
        return session

    def dispose_preview(self, handle: str) -> None:
        if self.registry.remove(handle) is not None:
            logger.info("Closed preview %s", handle)

    def on_text_changed(self, document_id: str, text: str) -> None:
        for session in self.registry.by_document(document_id):
            session.on_text_changed(text)

    def on_editor_scrolled(
        self, document_id: str, start_line: int, end_line: int
    ) -> None:
        for session in self.registry.by_document(document_id):
            session.sync_scroll(start_line, end_line)

    async def on_view_visible(self, handle: str) -> None:
        """A hidden view was shown again: catch up on missed edits."""
        session = self.registry.get(handle)
        if session is not None:
            await session.refresh()

    async def render_now(self, handle: str) -> None:
        """Render *handle*'s pending edit without waiting for the debounce."""
        session = self.registry.get(handle)
        if session is not None:
            await session.flush()

    def on_view_message(self, handle: str, payload: object) -> None:
        session = self.registry.get(handle)
        if session is None:
            logger.debug("Message for unknown preview %s dropped", handle)
            return
        session.handle_view_message(payload)

    async def update_templates(
        self,
        kind: TemplateKind,
        action: TemplateAction,
        paths: Sequence[str] = (),
    ) -> None:
        """Apply a template action and re-render every open preview.

        Raises:
            ValueError: If ``SELECT`` is given no valid paths.
        """
        self.overrides.apply(kind, action, paths)
        await asyncio.gather(
            *(session.refresh(full=True) for session in self.registry)
        )

    def template_label(self, kind: TemplateKind) -> str:
        templates = self.overrides.effective(kind, self.settings.preview)
        return template_label(templates, kind)

    def close_all(self) -> None:
        self.registry.close_all()


# Global controller instance
_controller: PreviewController | None = None


def get_controller() -> PreviewController:
    """Get the global preview controller, built from ``get_settings()``."""
    global _controller
    if _controller is None:
        from mdtexpreview.config import get_settings

        _controller = PreviewController(get_settings())
    return _controller

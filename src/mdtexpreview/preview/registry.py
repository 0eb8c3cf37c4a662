"""Registry of live preview sessions, keyed by view handle."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

    from mdtexpreview.preview.session import PreviewSession

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Tracks open sessions.  Several views may preview one document."""

    def __init__(self) -> None:
        self._sessions: dict[str, PreviewSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[PreviewSession]:
        return iter(list(self._sessions.values()))

    def __contains__(self, handle: object) -> bool:
        return handle in self._sessions

    def add(self, session: PreviewSession) -> None:
        """Register *session*; a handle may only be registered once."""
        if session.handle in self._sessions:
            msg = f"preview handle already registered: {session.handle}"
            raise ValueError(msg)
        self._sessions[session.handle] = session
        logger.debug(
            "Registered preview %s for %s", session.handle, session.document_id
        )

    def get(self, handle: str) -> PreviewSession | None:
        return self._sessions.get(handle)

    def by_document(self, document_id: str) -> list[PreviewSession]:
        """All sessions previewing *document_id*."""
        return [s for s in self._sessions.values() if s.document_id == document_id]

    def remove(self, handle: str) -> PreviewSession | None:
        """Dispose and forget the session for *handle*, if any."""
        session = self._sessions.pop(handle, None)
        if session is not None:
            session.dispose()
        return session

    def close_all(self) -> None:
        """Dispose every session (application shutdown)."""
        for handle in list(self._sessions):
            self.remove(handle)

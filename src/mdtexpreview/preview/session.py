"""Per-document preview session.

A session owns everything that used to be global in a single-preview
design: the latest editor text, the debounce task, the last-rendered
partitioned snapshot, the remembered editor viewport and a disposed flag.

Render results are applied only if the session is still alive and no
newer render has started since; otherwise they are dropped.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from mdtexpreview.blocks import (
    block_header_index,
    diff_blocks,
    locate_block,
    partition_blocks,
    source_line_for,
    split_blocks,
)
from mdtexpreview.preview.messages import (
    BlockHtml,
    ScrollToPosition,
    UpdateBlocks,
    UpdateComplete,
    parse_view_message,
)
from mdtexpreview.render import (
    ConversionFailure,
    render_blocks,
    render_document,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from mdtexpreview.preview.protocol import PreviewView, SourceEditor
    from mdtexpreview.render import ConversionOptions

logger = logging.getLogger(__name__)


def _block_indices(partitioned: str) -> set[int]:
    indices = set()
    for block in split_blocks(partitioned):
        index = block_header_index(block)
        if index is not None:
            indices.add(index)
    return indices


def _merge_blocks(shown: str, current: str, indices: Sequence[int]) -> str:
    """What the view shows after splicing *indices* of *current* into *shown*.

    Both documents have the same block structure (a partial render is only
    attempted when they do).
    """
    replaced = set(indices)
    merged = []
    for shown_block, current_block in zip(
        split_blocks(shown), split_blocks(current), strict=True
    ):
        index = block_header_index(current_block)
        merged.append(current_block if index in replaced else shown_block)
    return "".join(merged)


class PreviewSession:
    """Keeps one preview view in step with one editor.

    Attributes:
        handle: Identifier of the preview view (registry key).
        document_id: Identifier of the source document.
        debounce_seconds: Quiet period after the last edit before rendering.
        incremental: Whether partial re-renders are allowed at all.
    """

    def __init__(
        self,
        handle: str,
        document_id: str,
        editor: SourceEditor,
        view: PreviewView,
        options_provider: Callable[[], ConversionOptions],
        *,
        debounce_seconds: float = 0.5,
        incremental: bool = True,
    ) -> None:
        self.handle = handle
        self.document_id = document_id
        self.debounce_seconds = debounce_seconds
        self.incremental = incremental
        self._editor = editor
        self._view = view
        self._options_provider = options_provider

        self._text = ""
        self._last_rendered: str | None = None
        self._viewport: tuple[int, int] | None = None
        self._pending: asyncio.Task[None] | None = None
        self._generation = 0
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def last_rendered(self) -> str | None:
        """Partitioned text the view currently shows, if any."""
        return self._last_rendered

    async def open(self) -> None:
        """Render the editor's current text in full."""
        self._text = self._editor.get_text()
        await self.refresh(full=True)

    def on_text_changed(self, text: str) -> None:
        """Record an edit and (re)start the debounce timer."""
        if self._disposed:
            return
        self._text = text
        self._cancel_pending()

        async def debounced_refresh() -> None:
            await asyncio.sleep(self.debounce_seconds)
            await self.refresh()

        self._pending = asyncio.create_task(debounced_refresh())

    def _cancel_pending(self) -> None:
        task = self._pending
        self._pending = None
        if task is not None and not task.done():
            task.cancel()

    async def flush(self) -> None:
        """Run a pending debounced refresh now instead of waiting."""
        if self._pending is None or self._pending.done():
            return
        self._cancel_pending()
        await self.refresh()

    async def refresh(self, *, full: bool = False) -> None:
        """Bring the view up to date with the latest text.

        Args:
            full: Skip the diff and re-render the whole document.
        """
        if self._disposed:
            return
        if not self._view.visible:
            self._view.reveal()
            return

        partitioned = partition_blocks(self._text)
        if full or self._last_rendered is None:
            await self._render_full(partitioned)
            return

        # The differ reports only the trailing dirty blocks; each pass
        # renders those and diffs again until the view matches the text.
        shown = self._last_rendered
        while shown is not None and shown != partitioned:
            diff = diff_blocks(shown, partitioned, incremental=self.incremental)
            if diff.needs_full_rebuild:
                await self._render_full(partitioned)
                return
            if not diff.dirty_indices:
                logger.debug("Preview %s: no dirty blocks", self.handle)
                return

            missing = set(diff.dirty_indices) - _block_indices(shown)
            if missing:
                logger.debug(
                    "Preview %s: blocks %s not in view, rendering in full",
                    self.handle,
                    sorted(missing),
                )
                await self._render_full(partitioned)
                return
            if not await self._render_partial(
                shown, partitioned, diff.dirty_indices
            ):
                return
            shown = self._last_rendered

    def _start_render(self) -> int:
        self._generation += 1
        return self._generation

    def _is_stale(self, generation: int) -> bool:
        if self._disposed:
            logger.debug("Preview %s disposed, dropping render", self.handle)
            return True
        if generation != self._generation:
            logger.debug("Preview %s: superseded render dropped", self.handle)
            return True
        return False

    async def _render_full(self, partitioned: str) -> None:
        generation = self._start_render()
        result = await render_document(partitioned, self._options_provider())
        if self._is_stale(generation):
            return
        if isinstance(result, ConversionFailure):
            self._view.show_error(result.message)
            return

        self._view.set_html(result.html)
        self._last_rendered = partitioned
        logger.debug("Preview %s: full render", self.handle)
        if self._viewport is not None:
            self.sync_scroll(*self._viewport)

    async def _render_partial(
        self, shown: str, partitioned: str, indices: Sequence[int]
    ) -> bool:
        """Splice re-rendered blocks of *partitioned* into the view showing *shown*.

        Returns:
            True if the blocks were applied and the snapshot advanced.
        """
        generation = self._start_render()
        result = await render_blocks(partitioned, indices, self._options_provider())
        if self._is_stale(generation):
            return False
        if isinstance(result, ConversionFailure):
            self._view.show_error(result.message)
            return False
        if len(result.fragments) != len(indices):
            await self._render_full(partitioned)
            return False

        message = UpdateBlocks(
            blocks=[
                BlockHtml(index=fragment.index, html=fragment.html)
                for fragment in result.fragments
            ]
        )
        self._view.post_message(message.to_wire())
        self._last_rendered = _merge_blocks(shown, partitioned, indices)
        logger.debug("Preview %s: re-rendered blocks %s", self.handle, indices)
        return True

    def sync_scroll(self, start_line: int, end_line: int) -> None:
        """Scroll the view to the middle of the editor's visible range."""
        if self._disposed:
            return
        self._viewport = (start_line, end_line)
        middle = (start_line + end_line) // 2
        position = locate_block(partition_blocks(self._text), middle)
        message = ScrollToPosition(
            block_index=position.block_index,
            line_in_block=position.line_in_block,
        )
        self._view.post_message(message.to_wire())

    def handle_view_message(self, payload: Any) -> None:
        """React to a message posted by the view."""
        if self._disposed:
            return
        try:
            message = parse_view_message(payload)
        except ValidationError:
            logger.warning("Ignoring malformed view message: %r", payload)
            return

        if isinstance(message, UpdateComplete):
            if self._viewport is not None:
                self.sync_scroll(*self._viewport)
            return

        line = source_line_for(
            partition_blocks(self._text),
            message.block_index,
            message.line_in_block,
        )
        if line is None:
            logger.debug(
                "Preview %s: no block %d to scroll to",
                self.handle,
                message.block_index,
            )
            return
        self._editor.reveal_line(line)

    def dispose(self) -> None:
        """Stop the session; in-flight renders are dropped on completion."""
        self._disposed = True
        self._cancel_pending()
        logger.debug("Preview %s disposed", self.handle)

"""Rendered-HTML marker handling.

After both Pandoc stages a block marker line comes out as an escaped
paragraph (``<p>&amp;%&amp;BLOCK_INDEX_3&amp;%&amp;</p>``).  The view needs
an element it can find, so markers become empty anchor divs, and partial
renders are cut at those anchors into one fragment per block.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from mdtexpreview.blocks.marker_constants import (
    BLOCK_ANCHOR_PATTERN,
    BLOCK_ANCHOR_SPLIT_PATTERN,
    BLOCK_ANCHOR_TEMPLATE,
    RENDERED_MARKER_PATTERN,
)

if TYPE_CHECKING:
    from collections.abc import Iterable


@dataclass(frozen=True)
class RenderedFragment:
    """HTML for one re-rendered block, starting with its anchor div."""

    index: int
    html: str


def anchor_block_markers(html: str) -> str:
    """Replace rendered marker paragraphs with ``data-block-index`` anchors."""
    return RENDERED_MARKER_PATTERN.sub(
        lambda m: BLOCK_ANCHOR_TEMPLATE.format(m.group(1)), html
    )


def split_fragments(html: str, indices: Iterable[int]) -> list[RenderedFragment]:
    """Cut anchored HTML into per-block fragments.

    Args:
        html: Anchored HTML of a partial render.
        indices: Block indices that were requested.

    Returns:
        One fragment per requested index, in request order.  Indices with
        no anchor in *html* are left out.
    """
    by_index: dict[int, str] = {}
    for piece in BLOCK_ANCHOR_SPLIT_PATTERN.split(html):
        match = BLOCK_ANCHOR_PATTERN.match(piece)
        if match is not None:
            by_index.setdefault(int(match.group(1)), piece)

    return [
        RenderedFragment(index=index, html=by_index[index])
        for index in indices
        if index in by_index
    ]

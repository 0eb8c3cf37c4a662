"""Full-document and selected-block rendering.

Both paths run the same pipeline:

1. Pandoc Markdown -> LaTeX (``--listings``, LaTeX templates)
2. number_enumerations() on the LaTeX
3. Pandoc LaTeX -> HTML (math engine, highlight style, HTML templates)
4. anchor_block_markers() on the HTML

The partial path feeds only the requested blocks (joined with newlines) to
stage 1 and cuts the result into fragments keyed by block index.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from mdtexpreview.blocks.scanner import block_header_index, split_blocks
from mdtexpreview.render.fragments import (
    RenderedFragment,
    anchor_block_markers,
    split_fragments,
)
from mdtexpreview.render.pandoc import (
    ConversionFailure,
    ConversionOptions,
    latex_to_html,
    markdown_to_latex,
    number_enumerations,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentRender:
    """Anchored HTML for a whole document."""

    html: str


@dataclass(frozen=True)
class BlocksRender:
    """Fragments for the requested blocks that could be located."""

    fragments: tuple[RenderedFragment, ...]


async def _convert(
    markdown: str, options: ConversionOptions
) -> str | ConversionFailure:
    latex = await markdown_to_latex(markdown, options)
    if isinstance(latex, ConversionFailure):
        return latex
    html = await latex_to_html(number_enumerations(latex.output), options)
    if isinstance(html, ConversionFailure):
        return html
    return anchor_block_markers(html.output)


async def render_document(
    partitioned: str,
    options: ConversionOptions,
) -> DocumentRender | ConversionFailure:
    """Render a complete partitioned document."""
    html = await _convert(partitioned, options)
    if isinstance(html, ConversionFailure):
        return html
    return DocumentRender(html=html)


def select_blocks(partitioned: str, indices: Sequence[int]) -> str:
    """Join the blocks with the given indices, in the order given.

    Every block is newline-terminated first so that a following marker
    starts its own paragraph.
    """
    by_index: dict[int, str] = {}
    for block in split_blocks(partitioned):
        index = block_header_index(block)
        if index is not None:
            by_index[index] = block if block.endswith("\n") else block + "\n"
    return "\n".join(by_index[index] for index in indices if index in by_index)


async def render_blocks(
    partitioned: str,
    indices: Sequence[int],
    options: ConversionOptions,
) -> BlocksRender | ConversionFailure:
    """Render only the blocks in *indices* and split the result per block."""
    html = await _convert(select_blocks(partitioned, indices), options)
    if isinstance(html, ConversionFailure):
        return html

    fragments = split_fragments(html, indices)
    if len(fragments) != len(indices):
        found = {fragment.index for fragment in fragments}
        logger.debug(
            "No rendered fragment for blocks %s",
            [index for index in indices if index not in found],
        )
    return BlocksRender(fragments=tuple(fragments))

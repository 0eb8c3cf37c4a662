"""Pandoc-backed rendering of partitioned Markdown to HTML."""

from mdtexpreview.render.fragments import (
    RenderedFragment,
    anchor_block_markers,
    split_fragments,
)
from mdtexpreview.render.orchestrator import (
    BlocksRender,
    DocumentRender,
    render_blocks,
    render_document,
)
from mdtexpreview.render.pandoc import (
    ConversionFailure,
    ConversionOptions,
    ConversionSuccess,
    latex_to_html,
    markdown_to_latex,
    number_enumerations,
)

__all__ = [
    "BlocksRender",
    "ConversionFailure",
    "ConversionOptions",
    "ConversionSuccess",
    "DocumentRender",
    "RenderedFragment",
    "anchor_block_markers",
    "latex_to_html",
    "markdown_to_latex",
    "number_enumerations",
    "render_blocks",
    "render_document",
    "split_fragments",
]

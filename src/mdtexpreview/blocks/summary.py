"""Human-readable summary of a document's partition."""

from __future__ import annotations

from typing import NamedTuple

from mdtexpreview.blocks.marker_constants import LINES_PER_MARKER
from mdtexpreview.blocks.scanner import (
    block_header_index,
    partition_blocks,
    split_blocks,
)


class BlockSummary(NamedTuple):
    """One block: its index (-1 for the preamble), 0-based start line and
    the first non-blank line of its content."""

    index: int
    source_line: int
    first_line: str


def summarise_blocks(text: str) -> list[BlockSummary]:
    """Describe every block of *text*; an empty preamble is left out."""
    summaries: list[BlockSummary] = []
    partitioned_line = 0
    markers_seen = 0
    for block in split_blocks(partition_blocks(text)):
        index = block_header_index(block)
        if index is None:
            if block.strip():
                summaries.append(BlockSummary(-1, 0, _first_line(block)))
        else:
            markers_seen += 1
            # First content line sits right below the marker
            source_line = partitioned_line + 1 - LINES_PER_MARKER * markers_seen
            body = block.split("\n", 1)[1] if "\n" in block else ""
            summaries.append(BlockSummary(index, source_line, _first_line(body)))
        partitioned_line += block.count("\n")
    return summaries


def _first_line(text: str) -> str:
    return next((line for line in text.split("\n") if line.strip()), "")

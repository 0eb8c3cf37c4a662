"""Map between source lines and block coordinates for scroll sync.

The editor reports lines of the unmarked document; the preview addresses
content as (block index, line within block) of the partitioned document.
Every marker the scanner inserted pushed later content down by two lines
(a blank line plus the marker line), so mapping is a matter of counting
markers before a line without rebuilding the unmarked text.

``line_in_block`` is 1-based: the first line after a block's marker is
line 1.  Lines before the first marker belong to the preamble and map to
``BlockPosition(-1, -1)``.
"""

from __future__ import annotations

from typing import NamedTuple

from mdtexpreview.blocks.marker_constants import (
    BLOCK_MARKER_PATTERN,
    LINES_PER_MARKER,
)


class BlockPosition(NamedTuple):
    """Block coordinate of a source line."""

    block_index: int
    line_in_block: int


PREAMBLE = BlockPosition(-1, -1)


def _marker_index(line: str) -> int | None:
    match = BLOCK_MARKER_PATTERN.match(line)
    return int(match.group(1)) if match else None


def locate_block(partitioned: str, source_line: int) -> BlockPosition:
    """Find the block holding *source_line* of the unmarked document.

    Scans back from *source_line* to the nearest marker, estimates where the
    line moved to after marker insertion, then walks forward over any
    further markers between the estimate and the true position.

    Args:
        partitioned: Output of ``partition_blocks`` for the current text.
        source_line: 0-based line number in the unmarked document.

    Returns:
        The block index and 1-based line within the block, or
        ``PREAMBLE`` when the line precedes the first marker.
    """
    if source_line < 0:
        return PREAMBLE

    lines = partitioned.split("\n")
    block_index = -1
    marker_line = -1
    for i in range(min(source_line, len(lines) - 1), -1, -1):
        index = _marker_index(lines[i])
        if index is not None:
            block_index = index
            marker_line = i
            break

    # Markers 0..block_index all sit above the line, so it moved down by
    # at least that many insertions.
    position = source_line + LINES_PER_MARKER * (block_index + 1)

    # A marker at position + 1 means ``position`` is its injected blank line
    # and the content lies below it.
    i = marker_line + 1
    while i < len(lines) and i <= position + 1:
        index = _marker_index(lines[i])
        if index is not None:
            block_index = index
            marker_line = i
            position += LINES_PER_MARKER
        i += 1

    if block_index < 0:
        return PREAMBLE

    position = min(position, len(lines) - 1)
    return BlockPosition(block_index, max(position - marker_line, 1))


def source_line_for(
    partitioned: str,
    block_index: int,
    line_in_block: int,
) -> int | None:
    """Map a block coordinate back to a 0-based source line.

    *line_in_block* is clamped to the block's content, which excludes the
    blank line the scanner injected before the next marker.

    Returns:
        The source line, or ``None`` when *block_index* has no marker.
    """
    if block_index < 0:
        return None

    lines = partitioned.split("\n")
    marker_line = next(
        (i for i, line in enumerate(lines) if _marker_index(line) == block_index),
        None,
    )
    if marker_line is None:
        return None

    next_marker = next(
        (
            i
            for i in range(marker_line + 1, len(lines))
            if _marker_index(lines[i]) is not None
        ),
        None,
    )
    # Content ends before the injected blank line of the next marker
    last_content = len(lines) - 1 if next_marker is None else next_marker - 2
    last_content = max(last_content, marker_line + 1)

    position = marker_line + max(line_in_block, 1)
    position = min(position, last_content)
    return position - LINES_PER_MARKER * (block_index + 1)

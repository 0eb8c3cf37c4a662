"""Block differ: decide between a full and a partial re-render.

Compares the previous and current partitioned documents block by block
(by position) and reports which block indices are dirty.  Anything that
cannot be proven safe for a partial re-render falls back to a full
rebuild:

- the incremental kill switch is off;
- the preamble (text before the first marker) changed;
- the two sides disagree on marker structure or indices are not
  sequential;
- a changed block changed its ``\\command{arg}`` list, since a changed
  macro definition or counter can alter everything after it;
- the document lost blocks;
- the front matter changed.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from mdtexpreview.blocks.scanner import (
    block_header_index,
    extract_front_matter,
    split_blocks,
)

logger = logging.getLogger(__name__)

_LATEX_COMMAND = re.compile(r"\\[a-zA-Z]+\{[^}]*\}")


@dataclass(frozen=True)
class DiffResult:
    """Outcome of comparing two partitioned documents.

    When ``needs_full_rebuild`` is true, ``dirty_indices`` is meaningless
    and callers re-render the whole document.
    """

    dirty_indices: tuple[int, ...] = field(default_factory=tuple)
    needs_full_rebuild: bool = False


FULL_REBUILD = DiffResult(needs_full_rebuild=True)


def latex_commands(text: str) -> list[str]:
    """Return every ``\\name{arg}`` occurrence in *text*, in order."""
    return _LATEX_COMMAND.findall(text)


def latex_commands_changed(old_block: str, new_block: str) -> bool:
    """Check whether two block bodies differ in their LaTeX command lists.

    Order and duplicates matter: a reordered list counts as a change.
    """
    return latex_commands(old_block) != latex_commands(new_block)


def _diff_blocks(previous_blocks: list[str], current_blocks: list[str]) -> DiffResult:
    """Walk both block lists in lockstep and collect dirty indices."""
    dirty: list[int] = []
    common = min(len(previous_blocks), len(current_blocks))

    for position in range(common):
        previous_block = previous_blocks[position]
        current_block = current_blocks[position]
        previous_index = block_header_index(previous_block)
        current_index = block_header_index(current_block)

        if previous_index is None and current_index is None:
            if position != 0:
                logger.debug("Headerless block at position %d", position)
                return FULL_REBUILD
            if previous_block != current_block:
                logger.debug("Preamble changed, full rebuild")
                return FULL_REBUILD
            continue

        # The preamble sits at position 0, so block n sits at position n + 1
        expected = position - 1
        if previous_index != expected or current_index != expected:
            logger.debug(
                "Marker desync at position %d: previous=%s current=%s",
                position,
                previous_index,
                current_index,
            )
            return FULL_REBUILD

        if previous_block == current_block:
            continue

        if latex_commands_changed(previous_block, current_block):
            logger.debug("LaTeX commands changed in block %d", current_index)
            return FULL_REBUILD

        dirty.append(current_index)

    if len(previous_blocks) > len(current_blocks):
        logger.debug(
            "Document shrank from %d to %d blocks",
            len(previous_blocks),
            len(current_blocks),
        )
        return FULL_REBUILD

    for position in range(common, len(current_blocks)):
        current_index = block_header_index(current_blocks[position])
        if current_index is None or current_index != position - 1:
            logger.debug("Malformed appended block at position %d", position)
            return FULL_REBUILD
        dirty.append(current_index)

    if dirty:
        ceiling = max(dirty)
        dirty = [index for index in dirty if index >= ceiling]

    return DiffResult(dirty_indices=tuple(sorted(set(dirty))))


def diff_blocks(
    previous: str,
    current: str,
    *,
    incremental: bool = True,
) -> DiffResult:
    """Compare two partitioned documents.

    Args:
        previous: Last rendered partitioned document.
        current: New partitioned document.
        incremental: Global switch; when ``False`` every call asks for a
            full rebuild.

    Returns:
        The dirty block indices, or a result with ``needs_full_rebuild``.
    """
    if not incremental:
        return FULL_REBUILD

    result = _diff_blocks(split_blocks(previous), split_blocks(current))
    if result.needs_full_rebuild:
        return result

    previous_front_matter = extract_front_matter(previous)
    current_front_matter = extract_front_matter(current)
    if (
        previous_front_matter is not None
        and current_front_matter is not None
        and previous_front_matter != current_front_matter
    ):
        logger.debug("Front matter changed, full rebuild")
        return FULL_REBUILD

    return result

"""Block segmentation, change detection and position mapping.

Public API:
- partition_blocks / strip_block_markers: insert and remove block markers
- diff_blocks: decide between a full and a partial re-render
- locate_block / source_line_for: scroll-sync coordinate mapping
"""

from mdtexpreview.blocks.differ import (
    DiffResult,
    diff_blocks,
    latex_commands_changed,
)
from mdtexpreview.blocks.position import (
    PREAMBLE,
    BlockPosition,
    locate_block,
    source_line_for,
)
from mdtexpreview.blocks.scanner import (
    BlockScanner,
    block_header_index,
    extract_front_matter,
    partition_blocks,
    split_blocks,
    strip_block_markers,
)
from mdtexpreview.blocks.summary import BlockSummary, summarise_blocks

__all__ = [
    "PREAMBLE",
    "BlockPosition",
    "BlockScanner",
    "BlockSummary",
    "DiffResult",
    "block_header_index",
    "diff_blocks",
    "extract_front_matter",
    "latex_commands_changed",
    "locate_block",
    "partition_blocks",
    "source_line_for",
    "split_blocks",
    "strip_block_markers",
    "summarise_blocks",
]

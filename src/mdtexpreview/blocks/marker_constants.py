"""Block marker format constants.

Marker lines are inserted into Markdown by the block scanner. They survive
Pandoc's Markdown -> LaTeX -> HTML conversion as escaped paragraph text,
which ``render.fragments`` turns back into anchor divs.

Shared between:
- blocks/scanner.py (insertion, stripping, splitting)
- blocks/differ.py, blocks/position.py and blocks/summary.py (header
  lookup, line offsets)
- render/fragments.py (HTML anchors)
"""

from __future__ import annotations

import re

# Format: &%&BLOCK_INDEX_{index}&%& on a line of its own
BLOCK_MARKER_TEMPLATE = "&%&BLOCK_INDEX_{}&%&"
BLOCK_MARKER_PATTERN = re.compile(r"^&%&BLOCK_INDEX_(\d+)&%&$")

# Zero-width split point before every marker line of a partitioned document
BLOCK_SPLIT_PATTERN = re.compile(r"(?=^&%&BLOCK_INDEX_\d+&%&$)", re.MULTILINE)

# Lines inserted per marker: one blank line plus the marker line itself
LINES_PER_MARKER = 2

# Rendered marker text after Pandoc has escaped the ampersands. Pandoc wraps
# the marker in its own paragraph; older templates leave the closing "&%&"
# unescaped, so both spellings are accepted.
RENDERED_MARKER_PATTERN = re.compile(
    r"(?:<p>)?&amp;%&amp;BLOCK_INDEX_(\d+)&(?:amp;)?%&(?:amp;)?(?:</p>)?"
)

# Anchor element the view uses to locate blocks
BLOCK_ANCHOR_TEMPLATE = '<div data-block-index="{}"></div>'
BLOCK_ANCHOR_PATTERN = re.compile(r'<div data-block-index="(\d+)"></div>')
BLOCK_ANCHOR_SPLIT_PATTERN = re.compile(r'(?=<div data-block-index="\d+"></div>)')

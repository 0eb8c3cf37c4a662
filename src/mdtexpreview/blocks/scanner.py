"""Block scanner: split Markdown into independently recompilable blocks.

Walks the document one line at a time and inserts a blank line plus a
``&%&BLOCK_INDEX_n&%&`` marker line before each structurally safe boundary
(blank line, heading, list start, display-math or environment opener).

The scanner is a small state machine.  Exactly one region is active at a
time (none, front matter, fenced code, display math), plus a stack of open
LaTeX environment names.  Markers are never inserted while a region or an
environment is open, so Pandoc sees every fenced block, math block and
``\\begin{...}`` / ``\\end{...}`` pair intact.

Boundaries coalesce: after a marker fires, further trigger lines do not
open new blocks until a line of ordinary text has been seen.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

from mdtexpreview.blocks.marker_constants import (
    BLOCK_MARKER_PATTERN,
    BLOCK_MARKER_TEMPLATE,
    BLOCK_SPLIT_PATTERN,
)

_FRONT_MATTER_DELIMITER = "---"
_FENCE_TOKENS = ("```", "~~~")
_DOLLAR_MATH = "$$"
_BRACKET_MATH_OPEN = "\\["
_BRACKET_MATH_CLOSE = "\\]"

# Trimmed-line prefixes that start a new block (in addition to blank lines)
_TRIGGER_PREFIXES = ("#", "- ", "* ", "+ ", "1. ", "\\[", "$$", "\\begin{")

_ENVIRONMENT_TOKEN = re.compile(r"\\(begin|end)\{([^}]+)\}")


class Region(Enum):
    """Region the scanner is currently inside."""

    NONE = "none"
    FRONT_MATTER = "front_matter"
    CODE = "code"
    DISPLAY_MATH = "display_math"


@dataclass
class ScanState:
    """Mutable region state threaded through one scan."""

    region: Region = Region.NONE
    fence: str = ""
    math_closer: str = ""
    environments: list[str] = field(default_factory=list)
    front_matter_started: bool = False
    front_matter_ended: bool = False
    last_line_was_empty: bool = True
    next_index: int = 0

    @property
    def is_free(self) -> bool:
        """True when no region and no environment is open."""
        return self.region is Region.NONE and not self.environments


class BlockScanner:
    """Line-at-a-time block partitioner.

    ``feed()`` takes one input line and returns the output lines that
    replace it: the line itself, or a blank line, a marker line and the
    line when a boundary fires.

    Front-matter lines are collected in ``front_matter`` as a side effect;
    ``state.front_matter_started`` tells whether there was any.
    """

    def __init__(self) -> None:
        self.state = ScanState()
        self.front_matter: list[str] = []

    def feed(self, line: str) -> list[str]:
        state = self.state
        stripped = line.strip()

        if stripped == _FRONT_MATTER_DELIMITER:
            if not state.front_matter_started and state.is_free:
                state.front_matter_started = True
                state.region = Region.FRONT_MATTER
                return [line]
            if state.region is Region.FRONT_MATTER:
                state.region = Region.NONE
                state.front_matter_ended = True
                return [line]

        if state.region is Region.FRONT_MATTER:
            self.front_matter.append(line)
            return [line]

        was_free = state.is_free
        self._update_regions(line, stripped)

        if was_free and _is_trigger(stripped):
            if not state.last_line_was_empty:
                state.last_line_was_empty = True
                marker = BLOCK_MARKER_TEMPLATE.format(state.next_index)
                state.next_index += 1
                return ["", marker, line]
        elif stripped:
            state.last_line_was_empty = False

        return [line]

    def _update_regions(self, line: str, stripped: str) -> None:
        """Apply this line's fence, math and environment toggles."""
        state = self.state

        if state.region is Region.CODE:
            if stripped.startswith(state.fence):
                state.region = Region.NONE
                state.fence = ""
            return

        if state.region is Region.DISPLAY_MATH:
            closer = state.math_closer
            closed = (
                stripped.startswith(closer)
                if closer == _DOLLAR_MATH
                else closer in stripped
            )
            if closed:
                state.region = Region.NONE
                state.math_closer = ""
            return

        fence = next((f for f in _FENCE_TOKENS if stripped.startswith(f)), None)
        if fence is not None:
            state.region = Region.CODE
            state.fence = fence
            return

        if stripped.startswith(_DOLLAR_MATH):
            # $$ ... $$ on a single line is self-contained
            if not (len(stripped) > 4 and stripped.endswith(_DOLLAR_MATH)):
                state.region = Region.DISPLAY_MATH
                state.math_closer = _DOLLAR_MATH
            return

        if stripped.startswith(_BRACKET_MATH_OPEN):
            if _BRACKET_MATH_CLOSE not in stripped:
                state.region = Region.DISPLAY_MATH
                state.math_closer = _BRACKET_MATH_CLOSE
            return

        for kind, name in _ENVIRONMENT_TOKEN.findall(line):
            if kind == "begin":
                state.environments.append(name)
            elif state.environments and state.environments[-1] == name:
                state.environments.pop()


def _is_trigger(stripped: str) -> bool:
    return not stripped or stripped.startswith(_TRIGGER_PREFIXES)


def partition_blocks(text: str) -> str:
    """Insert block markers at safe boundaries of a Markdown document.

    A final newline leaves an empty last line, which is a blank line like
    any other: after ordinary text it fires and closes the document with an
    empty block.

    Args:
        text: Raw document text.

    Returns:
        The document with a blank line and a marker line spliced in before
        every boundary.  Line count grows by two per marker.
    """
    scanner = BlockScanner()
    out: list[str] = []
    for line in text.split("\n"):
        out.extend(scanner.feed(line))
    return "\n".join(out)


def strip_block_markers(text: str) -> str:
    """Remove marker lines and the blank line inserted before each of them.

    Inverse of ``partition_blocks`` for documents that contain no
    marker-looking lines of their own.
    """
    out: list[str] = []
    for line in text.split("\n"):
        if BLOCK_MARKER_PATTERN.match(line):
            if out and out[-1] == "":
                out.pop()
            continue
        out.append(line)
    return "\n".join(out)


def split_blocks(partitioned: str) -> list[str]:
    """Split a partitioned document before every marker line.

    The first element is the preamble (the text before the first marker),
    which may be empty.  Every later element starts with its marker line.
    """
    return BLOCK_SPLIT_PATTERN.split(partitioned)


def block_header_index(block: str) -> int | None:
    """Return the marker index heading *block*, or ``None``."""
    first_line = block.split("\n", 1)[0]
    match = BLOCK_MARKER_PATTERN.match(first_line)
    if match is None:
        return None
    return int(match.group(1))


def extract_front_matter(text: str) -> str | None:
    """Return the front-matter payload of *text* as the scanner sees it.

    Marker lines are never inside front matter, so this works on raw and
    partitioned text alike.  Returns ``None`` when there is no front matter.
    """
    scanner = BlockScanner()
    for line in text.split("\n"):
        scanner.feed(line)
        if scanner.state.front_matter_ended:
            break
    if not scanner.state.front_matter_started:
        return None
    return "\n".join(scanner.front_matter)

"""Pandoc Markdown -> LaTeX -> HTML conversion.

Runs the two Pandoc stages as asyncio subprocesses (stdin in, stdout out,
stderr captured) and post-processes the intermediate LaTeX so numbered
lists survive being split across blocks.

A non-zero exit is an expected outcome, not an exception: each stage
returns ``ConversionSuccess`` or ``ConversionFailure`` and the caller
decides how to surface the failure.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import TypeAlias

logger = logging.getLogger(__name__)

MARKDOWN_TO_LATEX = "markdown to latex"
LATEX_TO_HTML = "latex to html"

# Exit status reported when the Pandoc executable cannot be started
EXIT_NOT_FOUND = 127


@dataclass(frozen=True)
class ConversionOptions:
    """Pandoc invocation options resolved for one render."""

    pandoc_path: str = "pandoc"
    latex_templates: tuple[str, ...] = ()
    html_templates: tuple[str, ...] = ()
    highlight_style: str = "tango"
    math_engine: str = "mathml"


@dataclass(frozen=True)
class ConversionSuccess:
    """A Pandoc stage exited with status 0."""

    output: str


@dataclass(frozen=True)
class ConversionFailure:
    """A Pandoc stage exited non-zero (or could not be started)."""

    stage: str
    returncode: int
    stderr: str

    @property
    def message(self) -> str:
        return (
            f"Pandoc ({self.stage}) exited with code {self.returncode}: "
            f"{self.stderr}"
        )

    def __str__(self) -> str:
        return self.message


ConversionResult: TypeAlias = ConversionSuccess | ConversionFailure


def markdown_to_latex_args(options: ConversionOptions) -> list[str]:
    """Build the stage-1 command line."""
    cmd = [options.pandoc_path, "-f", "markdown", "-t", "latex", "--listings"]
    for template in options.latex_templates:
        cmd.append(f"--template={template}")
    return cmd


def latex_to_html_args(options: ConversionOptions) -> list[str]:
    """Build the stage-2 command line."""
    cmd = [
        options.pandoc_path,
        "-f",
        "latex",
        "-t",
        "html",
        f"--{options.math_engine}",
        f"--highlight-style={options.highlight_style}",
    ]
    for template in options.html_templates:
        cmd.append(f"--template={template}")
    return cmd


async def _run_pandoc(cmd: list[str], source: str, stage: str) -> ConversionResult:
    """Feed *source* to Pandoc on stdin and collect stdout/stderr."""
    logger.debug("Running pandoc (%s): %s", stage, cmd)
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as exc:
        logger.warning("Pandoc executable not found: %s", cmd[0])
        return ConversionFailure(stage, EXIT_NOT_FOUND, str(exc))

    stdout_bytes, stderr_bytes = await proc.communicate(input=source.encode("utf-8"))
    # returncode is guaranteed to be set after communicate() returns
    assert proc.returncode is not None
    if proc.returncode != 0:
        failure = ConversionFailure(
            stage, proc.returncode, stderr_bytes.decode("utf-8", errors="replace")
        )
        logger.warning("%s", failure.message)
        return failure
    return ConversionSuccess(stdout_bytes.decode("utf-8", errors="replace"))


async def markdown_to_latex(
    markdown: str,
    options: ConversionOptions,
) -> ConversionResult:
    """Stage 1: convert (block-partitioned) Markdown to LaTeX."""
    return await _run_pandoc(
        markdown_to_latex_args(options), markdown, MARKDOWN_TO_LATEX
    )


async def latex_to_html(latex: str, options: ConversionOptions) -> ConversionResult:
    """Stage 2: convert LaTeX to HTML."""
    return await _run_pandoc(latex_to_html_args(options), latex, LATEX_TO_HTML)


# ---------------------------------------------------------------------------
# LaTeX post-processing between the stages
# ---------------------------------------------------------------------------
# Pandoc emits arabic enumerations as
#   \begin{enumerate}
#   \def\labelenumi{\arabic{enumi}.}
#   \setcounter{enumi}{N}          (only when the list starts at N + 1)
#   \tightlist
#   \item ...
#   \end{enumerate}
# Converting LaTeX back to HTML loses the start counter, so a list split
# over two blocks would restart at 1.  Write the numbers out instead.
_ARABIC_ENUMERATE = re.compile(
    r"\\begin\{enumerate\}\s*"
    r"\\def\\labelenumi\{\\arabic\{enumi\}\.\}"
    r"(?:\s*\\setcounter\{enumi\}\{(\d+)\})?\s*"
    r"(?:\\tightlist\s*)?"
    r"(\\item\s*[\s\S]*?)"
    r"\\end\{enumerate\}"
)
_ITEM_LINE = re.compile(r"^ *\\item\s+(.*)$", re.MULTILINE)


def _numbered_items(match: re.Match[str]) -> str:
    start, items = match.group(1), match.group(2)
    number = int(start) + 1 if start else 1

    paragraphs = []
    for item in _ITEM_LINE.finditer(items):
        paragraphs.append(
            "\\begingroup\n"
            "\\setlength{\\parindent}{2em}\n"
            f"\\indent{{}} {number}. {item.group(1).strip()}\n"
            "\\endgroup\n"
        )
        number += 1
    return "\n".join(paragraphs)


def number_enumerations(latex: str) -> str:
    r"""Replace arabic ``enumerate`` environments with numbered paragraphs.

    Honours ``\setcounter{enumi}{N}`` so the first item is numbered N + 1.
    Only the first line of each ``\item`` is kept, which covers the tight
    single-paragraph lists this preview targets.

    Args:
        latex: Stage-1 LaTeX output.

    Returns:
        LaTeX with explicit item numbers.
    """
    if "\\begin{enumerate}" not in latex:
        return latex
    return _ARABIC_ENUMERATE.sub(_numbered_items, latex)

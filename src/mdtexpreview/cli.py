"""Command-line utilities: one-shot rendering and block inspection.

``mdtexpreview-render FILE [-o OUT]`` runs the full Pandoc pipeline once.
``mdtexpreview-blocks FILE [--line N]`` shows how FILE is partitioned.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from mdtexpreview.blocks import locate_block, partition_blocks, summarise_blocks
from mdtexpreview.config import get_settings
from mdtexpreview.preview.templates import TemplateOverrides, conversion_options
from mdtexpreview.render import ConversionFailure, render_document

console = Console()


def _read_source(path: Path) -> str:
    """Read *path* or exit with an error panel."""
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        console.print(f"[red]Error:[/] cannot read {path}: {exc.strerror or exc}")
        sys.exit(1)


def _build_render_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mdtexpreview-render",
        description="Render a Markdown + LaTeX file to HTML through Pandoc.",
    )
    parser.add_argument("file", type=Path, help="Markdown source file")
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Write HTML here instead of standard output",
    )
    return parser


def render_command(argv: list[str] | None = None) -> None:
    """Render FILE once with the configured Pandoc options.

    Exits 1 with a red panel showing Pandoc's stderr when a stage fails.
    """
    args = _build_render_parser().parse_args(sys.argv[1:] if argv is None else argv)
    source = _read_source(args.file)

    options = conversion_options(get_settings().preview, TemplateOverrides())
    result = asyncio.run(render_document(partition_blocks(source), options))

    if isinstance(result, ConversionFailure):
        body = Text()
        body.append(f"{result.stage}: exit code {result.returncode}\n", style="bold")
        body.append(result.stderr.strip() or "(no output on stderr)")
        console.print(Panel(body, title="Pandoc failed", border_style="red"))
        sys.exit(1)

    if args.output is None:
        sys.stdout.write(result.html)
        return
    args.output.write_text(result.html, encoding="utf-8")
    console.print(f"[green]Wrote[/] {args.output}")


def _build_blocks_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mdtexpreview-blocks",
        description="Show the blocks a Markdown + LaTeX file is split into.",
    )
    parser.add_argument("file", type=Path, help="Markdown source file")
    parser.add_argument(
        "--line",
        type=int,
        help="Also report the block holding this 1-based source line",
    )
    return parser


def blocks_command(argv: list[str] | None = None) -> None:
    """Print the block table of FILE."""
    args = _build_blocks_parser().parse_args(sys.argv[1:] if argv is None else argv)
    source = _read_source(args.file)

    table = Table(title=f"Blocks of {args.file}")
    table.add_column("Block", justify="right", style="cyan")
    table.add_column("Source line", justify="right")
    table.add_column("First line")
    summaries = summarise_blocks(source)
    for summary in summaries:
        table.add_row(
            "preamble" if summary.index < 0 else str(summary.index),
            str(summary.source_line + 1),
            Text(summary.first_line),
        )
    console.print(table)
    console.print(f"{sum(1 for s in summaries if s.index >= 0)} blocks")

    if args.line is not None:
        position = locate_block(partition_blocks(source), args.line - 1)
        if position.block_index < 0:
            console.print(f"Line {args.line}: preamble")
        else:
            console.print(
                f"Line {args.line}: block {position.block_index}, "
                f"line {position.line_in_block}"
            )

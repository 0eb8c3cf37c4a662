"""Block inspector: shows how a document is partitioned.

Paste a document and see each block's index, the source line it starts at
and its first content line.  Useful for checking why an edit triggered a
full re-render.

Route: /blocks
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from nicegui import ui

from mdtexpreview.blocks import locate_block, partition_blocks, summarise_blocks
from mdtexpreview.pages.layout import page_layout
from mdtexpreview.pages.registry import page_route

if TYPE_CHECKING:
    from nicegui.events import ValueChangeEventArguments

_COLUMNS = [
    {"name": "index", "label": "Block", "field": "index", "align": "right"},
    {"name": "line", "label": "Source line", "field": "line", "align": "right"},
    {"name": "preview", "label": "First line", "field": "preview", "align": "left"},
]


def block_rows(text: str) -> list[dict[str, object]]:
    """Table rows for the blocks of *text*, with 1-based source lines."""
    return [
        {
            "index": "preamble" if summary.index < 0 else summary.index,
            "line": summary.source_line + 1,
            "preview": summary.first_line,
        }
        for summary in summarise_blocks(text)
    ]


@page_route("/blocks", title="Block inspector", icon="view_agenda", order=20)
async def blocks_page() -> None:
    """Live table of the blocks of the pasted text."""
    with page_layout("Block inspector"):
        with ui.row().classes("w-full no-wrap gap-4"):
            source = (
                ui.textarea(placeholder="Paste Markdown here")
                .props('outlined input-style="height: 70vh; font-family: monospace"')
                .classes("w-1/2")
            )
            with ui.column().classes("w-1/2"):
                table = ui.table(columns=_COLUMNS, rows=[], row_key="index")
                table.classes("w-full")
                locator = ui.number("Source line (1-based)", value=1, min=1)
                located = ui.label()

    def update_located() -> None:
        line = int(locator.value or 1) - 1
        position = locate_block(partition_blocks(source.value or ""), line)
        if position.block_index < 0:
            located.text = "Preamble (never rendered on its own)"
        else:
            located.text = (
                f"Block {position.block_index}, line {position.line_in_block}"
            )

    def on_source(_e: ValueChangeEventArguments) -> None:
        table.rows = block_rows(source.value or "")
        table.update()
        update_located()

    source.on_value_change(on_source)
    locator.on_value_change(lambda _e: update_located())
    update_located()

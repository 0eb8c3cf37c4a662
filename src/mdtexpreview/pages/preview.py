"""Live preview page: Markdown editor on the left, rendered HTML on the right.

The browser side is a small script per page:

- the preview pane applies ``updateBlocks`` by replacing everything from a
  block's anchor div up to the next anchor, then answers ``updateComplete``;
- ``scrollToPosition`` scrolls to
  ``top + height * line / (line + 1) - viewport / 2`` of the block;
- clicking the preview reports the clicked block coordinate back so the
  editor can reveal the source line;
- scrolling the editor reports its visible line range.

Route: / (optional ``?path=`` to load a file)
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from nicegui import ui

from mdtexpreview.pages.layout import page_layout
from mdtexpreview.pages.registry import page_route
from mdtexpreview.preview import (
    TemplateAction,
    TemplateKind,
    get_controller,
)

if TYPE_CHECKING:
    from nicegui import Client
    from nicegui.events import GenericEventArguments, ValueChangeEventArguments

logger = logging.getLogger(__name__)

VIEW_EVENT = "mdtexpreview_view"
SCROLL_EVENT = "mdtexpreview_scroll"

_SAMPLE_DOCUMENT = r"""Edit the text on the left; the preview follows.

# Markdown with LaTeX

Inline math $e^{i\pi} + 1 = 0$ and display math:

$$
\int_0^1 x^2 \, dx = \frac{1}{3}
$$

1. First item
2. Second item

```python
print("code blocks stay in one piece")
```
"""


class NiceGUIPreviewView:
    """``PreviewView`` backed by a div driven from the page script."""

    def __init__(self, container: ui.element) -> None:
        self._container = container

    @property
    def visible(self) -> bool:
        return self._container.visible

    def reveal(self) -> None:
        self._container.set_visibility(True)

    def _run(self, code: str) -> None:
        # Fire-and-forget: the view replies through emitEvent if at all
        self._container.client.run_javascript(code)

    def set_html(self, html: str) -> None:
        self._run(f"window.mdtexpreview.setHtml({json.dumps(html)})")

    def post_message(self, payload: dict[str, Any]) -> None:
        self._run(f"window.mdtexpreview.receive({json.dumps(payload)})")

    def show_error(self, message: str) -> None:
        with self._container:
            ui.notify(message, type="negative", multi_line=True)


class NiceGUISourceEditor:
    """``SourceEditor`` backed by a NiceGUI textarea."""

    def __init__(self, textarea: ui.textarea) -> None:
        self._textarea = textarea

    def get_text(self) -> str:
        return self._textarea.value or ""

    def reveal_line(self, line: int) -> None:
        self._textarea.client.run_javascript(
            f"window.mdtexpreviewEditor.revealLine({int(line)})"
        )


def _view_script(view_id: int) -> str:
    return f"""
    window.mdtexpreview = (function() {{
        const view = () => getHtmlElement({view_id});
        const anchors = () =>
            Array.from(view().querySelectorAll('div[data-block-index]'));
        const topOf = (el) =>
            el.getBoundingClientRect().top
            - view().getBoundingClientRect().top + view().scrollTop;

        function blockExtent(anchor) {{
            const all = anchors();
            const i = all.indexOf(anchor);
            const top = topOf(anchor);
            const bottom = i + 1 < all.length
                ? topOf(all[i + 1])
                : view().scrollHeight;
            return [top, Math.max(bottom - top, anchor.offsetHeight)];
        }}

        function splice(index, html) {{
            const start = view().querySelector(
                `div[data-block-index="${{index}}"]`
            );
            if (!start) return;
            let node = start.nextSibling;
            while (node && !(node.nodeType === 1
                    && node.matches('div[data-block-index]'))) {{
                const next = node.nextSibling;
                node.remove();
                node = next;
            }}
            const template = document.createElement('template');
            template.innerHTML = html;
            start.replaceWith(template.content);
        }}

        function scrollToPosition(blockIndex, lineInBlock) {{
            if (blockIndex < 0) {{
                view().scrollTo({{top: 0}});
                return;
            }}
            const anchor = view().querySelector(
                `div[data-block-index="${{blockIndex}}"]`
            );
            if (!anchor) return;
            const [top, height] = blockExtent(anchor);
            const line = Math.max(lineInBlock, 0);
            view().scrollTo({{
                top: top + height * (line / (line + 1))
                    - view().clientHeight / 2,
            }});
        }}

        view().addEventListener('click', function(e) {{
            const y = e.clientY - view().getBoundingClientRect().top
                + view().scrollTop;
            let current = null;
            for (const anchor of anchors()) {{
                if (topOf(anchor) > y) break;
                current = anchor;
            }}
            if (!current) return;
            const [top, height] = blockExtent(current);
            const f = Math.min(Math.max((y - top) / (height || 1), 0), 0.99);
            emitEvent('{VIEW_EVENT}', {{
                command: 'scrollToPosition',
                blockIndex: Number(current.dataset.blockIndex),
                lineInBlock: Math.max(1, Math.round(f / (1 - f))),
            }});
        }});

        return {{
            setHtml(html) {{
                view().innerHTML = html;
            }},
            receive(message) {{
                if (message.command === 'updateBlocks') {{
                    for (const block of message.blocks) {{
                        splice(block.index, block.html);
                    }}
                    emitEvent('{VIEW_EVENT}', {{command: 'updateComplete'}});
                }} else if (message.command === 'scrollToPosition') {{
                    scrollToPosition(message.blockIndex, message.lineInBlock);
                }}
            }},
        }};
    }})();
    """


def _editor_script(editor_id: int) -> str:
    return f"""
    (function() {{
        const textarea = getHtmlElement({editor_id}).querySelector('textarea');
        if (!textarea) {{
            console.error('Preview: editor textarea not found');
            return;
        }}
        textarea.setAttribute('wrap', 'off');
        const lineHeight = () => {{
            const lh = parseFloat(getComputedStyle(textarea).lineHeight);
            return isNaN(lh) ? 20 : lh;
        }};

        const reportViewport = () => {{
            const lh = lineHeight();
            emitEvent('{SCROLL_EVENT}', {{
                start: Math.floor(textarea.scrollTop / lh),
                end: Math.floor((textarea.scrollTop + textarea.clientHeight) / lh),
            }});
        }};

        // Throttle to avoid excessive updates
        let scrollTimeout = null;
        textarea.addEventListener('scroll', function() {{
            if (scrollTimeout) return;
            scrollTimeout = setTimeout(function() {{
                scrollTimeout = null;
                reportViewport();
            }}, 50);
        }});

        window.mdtexpreviewEditor = {{
            reportViewport,
            revealLine(line) {{
                textarea.scrollTop =
                    line * lineHeight() - textarea.clientHeight / 2;
            }},
        }};
    }})();
    """


def _initial_text(path: str | None) -> str:
    if not path:
        return _SAMPLE_DOCUMENT
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        logger.warning("Could not read %s: %s", path, exc)
        ui.notify(f"Could not read {path}: {exc}", type="warning")
        return _SAMPLE_DOCUMENT


def _document_id(path: str | None, handle: str) -> str:
    """Document identity of one page's textarea.

    Each tab edits its own copy, so two tabs on the same file are two
    documents.
    """
    return f"{path or 'untitled'}#{handle}"


def _ask_for_paths(kind: TemplateKind) -> ui.dialog:
    """Dialog returning comma-separated template paths (or None)."""
    with ui.dialog() as dialog, ui.card().classes("w-96"):
        ui.label(f"Select {kind.title} templates").classes("text-h6")
        paths = ui.input(
            "Template paths", placeholder="templates/a.tex, templates/b.tex"
        ).classes("w-full")
        with ui.row().classes("w-full justify-end"):
            ui.button("Cancel", on_click=lambda: dialog.submit(None)).props("flat")
            ui.button("Use", on_click=lambda: dialog.submit(paths.value))
    return dialog


@page_route("/", title="Preview", icon="preview", order=10)
async def preview_page(path: str | None = None) -> None:
    """Editor and live preview for one document."""
    controller = get_controller()
    client: Client = ui.context.client
    handle = str(uuid4())
    document_id = _document_id(path, handle)

    with page_layout("Preview") as header:
        with header:
            latex_label = ui.label().classes("text-white text-body2")
            html_label = ui.label().classes("text-white text-body2")

            def refresh_labels() -> None:
                latex_label.text = controller.template_label(TemplateKind.LATEX)
                html_label.text = controller.template_label(TemplateKind.HTML)

            async def apply(
                kind: TemplateKind,
                action: TemplateAction,
                paths: list[str] | None = None,
            ) -> None:
                try:
                    await controller.update_templates(kind, action, paths or [])
                except ValueError as exc:
                    ui.notify(str(exc), type="warning")
                    return
                refresh_labels()

            async def select(kind: TemplateKind) -> None:
                with client.content:
                    dialog = _ask_for_paths(kind)
                raw = await dialog
                dialog.delete()
                if raw:
                    await apply(kind, TemplateAction.SELECT, raw.split(","))

            async def clear() -> None:
                for kind in TemplateKind:
                    await apply(kind, TemplateAction.CLEAR)

            with ui.button(icon="description").props("flat color=white"):
                with ui.menu():
                    for kind in TemplateKind:
                        ui.menu_item(
                            f"Select {kind.title} templates...",
                            on_click=lambda k=kind: select(k),
                        )
                        ui.menu_item(
                            f"Use default {kind.title} template",
                            on_click=lambda k=kind: apply(
                                k, TemplateAction.USE_DEFAULT
                            ),
                        )
                    ui.separator()
                    ui.menu_item("Clear template settings", on_click=clear)
            render_now = ui.button(icon="bolt").props("flat color=white")
            render_now.tooltip("Render pending edits now")
            toggle = ui.button(icon="visibility").props("flat color=white")
            refresh_labels()

        with ui.row().classes("w-full no-wrap gap-4"):
            textarea = (
                ui.textarea(value=_initial_text(path))
                .props('outlined input-style="height: 80vh; font-family: monospace"')
                .classes("w-1/2")
            )
            view_box = (
                ui.element("div")
                .classes("w-1/2 q-pa-md border rounded")
                .style("height: 80vh; overflow-y: auto; position: relative")
            )

    editor = NiceGUISourceEditor(textarea)
    view = NiceGUIPreviewView(view_box)

    async def toggle_view() -> None:
        if view_box.visible:
            view_box.set_visibility(False)
            return
        view_box.set_visibility(True)
        await controller.on_view_visible(handle)

    toggle.on("click", toggle_view)
    render_now.on("click", lambda: controller.render_now(handle))

    def on_text(e: ValueChangeEventArguments) -> None:
        controller.on_text_changed(document_id, e.value or "")

    def on_scroll(e: GenericEventArguments) -> None:
        controller.on_editor_scrolled(
            document_id, int(e.args["start"]), int(e.args["end"])
        )

    def on_view_message(e: GenericEventArguments) -> None:
        controller.on_view_message(handle, e.args)

    def on_disconnect(_client: Client | None = None) -> None:
        controller.dispose_preview(handle)

    textarea.on_value_change(on_text)
    ui.on(SCROLL_EVENT, on_scroll)
    ui.on(VIEW_EVENT, on_view_message)
    client.on_disconnect(on_disconnect)

    # Wait for WebSocket before installing scripts and rendering
    await client.connected()
    await ui.run_javascript(_view_script(view_box.id))
    await ui.run_javascript(_editor_script(textarea.id))
    await controller.open_preview(handle, document_id, editor, view)
    ui.run_javascript("window.mdtexpreviewEditor.reportViewport()")

"""Live preview sessions: debounce, diff, render and scroll sync."""

from mdtexpreview.preview.controller import PreviewController, get_controller
from mdtexpreview.preview.messages import (
    BlockHtml,
    ScrollToPosition,
    UpdateBlocks,
    UpdateComplete,
    parse_view_message,
)
from mdtexpreview.preview.protocol import PreviewView, SourceEditor
from mdtexpreview.preview.registry import SessionRegistry
from mdtexpreview.preview.session import PreviewSession
from mdtexpreview.preview.templates import (
    TemplateAction,
    TemplateKind,
    TemplateOverrides,
    template_label,
)

__all__ = [
    "BlockHtml",
    "PreviewController",
    "PreviewSession",
    "PreviewView",
    "ScrollToPosition",
    "SessionRegistry",
    "SourceEditor",
    "TemplateAction",
    "TemplateKind",
    "TemplateOverrides",
    "UpdateBlocks",
    "UpdateComplete",
    "get_controller",
    "parse_view_message",
    "template_label",
]

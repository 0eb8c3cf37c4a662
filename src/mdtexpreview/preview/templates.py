"""Runtime template overrides and the status-bar label.

A template override replaces the configured template list for one kind
until it is cleared:

- ``SELECT`` uses the given paths (validated like configured ones);
- ``USE_DEFAULT`` explicitly uses Pandoc's default template;
- ``CLEAR`` drops the override and falls back to configuration.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePath
from typing import TYPE_CHECKING

from mdtexpreview.config import normalise_templates
from mdtexpreview.render.pandoc import ConversionOptions

if TYPE_CHECKING:
    from collections.abc import Sequence

    from mdtexpreview.config import PreviewConfig

logger = logging.getLogger(__name__)


class TemplateKind(Enum):
    LATEX = "latex"
    HTML = "html"

    @property
    def title(self) -> str:
        return "LaTeX" if self is TemplateKind.LATEX else "HTML"


class TemplateAction(Enum):
    SELECT = "select"
    USE_DEFAULT = "use_default"
    CLEAR = "clear"


@dataclass
class TemplateOverrides:
    """Per-kind template overrides.

    A kind missing from ``templates`` has no override; an empty tuple means
    "Pandoc default" even when configuration names templates.
    """

    templates: dict[TemplateKind, tuple[str, ...]] = field(default_factory=dict)

    def apply(
        self,
        kind: TemplateKind,
        action: TemplateAction,
        paths: Sequence[str] = (),
    ) -> None:
        """Record a template action for *kind*."""
        if action is TemplateAction.SELECT:
            selected = normalise_templates(list(paths))
            if selected is None:
                msg = f"no valid {kind.value} template paths in {list(paths)!r}"
                raise ValueError(msg)
            self.templates[kind] = tuple(selected)
        elif action is TemplateAction.USE_DEFAULT:
            self.templates[kind] = ()
        else:
            self.templates.pop(kind, None)
        logger.info("Template override for %s: %s", kind.value, action.value)

    def effective(
        self, kind: TemplateKind, config: PreviewConfig
    ) -> tuple[str, ...]:
        """Templates to use for *kind*: the override, else configuration."""
        if kind in self.templates:
            return self.templates[kind]
        configured = (
            config.latex_templates
            if kind is TemplateKind.LATEX
            else config.html_templates
        )
        return tuple(configured or ())


def conversion_options(
    config: PreviewConfig, overrides: TemplateOverrides
) -> ConversionOptions:
    """Resolve the Pandoc options for the next render."""
    return ConversionOptions(
        pandoc_path=config.pandoc_path,
        latex_templates=overrides.effective(TemplateKind.LATEX, config),
        html_templates=overrides.effective(TemplateKind.HTML, config),
        highlight_style=config.highlight_style,
        math_engine=config.math_engine,
    )


def _short_path(path: str) -> str:
    parts = PurePath(path).parts
    if len(parts) <= 2:
        return path
    return f".../{parts[-2]}/{parts[-1]}"


def template_label(templates: Sequence[str], kind: TemplateKind) -> str:
    """Status-bar text describing the templates in use.

    >>> template_label([], TemplateKind.HTML)
    'HTML Template: Default'
    >>> template_label(["/a/b/c.tex", "d.tex"], TemplateKind.LATEX)
    'LaTeX Template: ".../b/c.tex"...[+1]'
    """
    prefix = f"{kind.title} Template: "
    if not templates:
        return prefix + "Default"
    label = f'{prefix}"{_short_path(templates[0])}"'
    if len(templates) > 1:
        label += f"...[+{len(templates) - 1}]"
    return label

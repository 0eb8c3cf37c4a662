"""Tests for template overrides, option resolution and the status label."""

from __future__ import annotations

import pytest

from mdtexpreview.config import PreviewConfig
from mdtexpreview.preview.templates import (
    TemplateAction,
    TemplateKind,
    TemplateOverrides,
    conversion_options,
    template_label,
)


class TestTemplateLabel:
    """Status-bar text."""

    def test_default(self) -> None:
        assert template_label([], TemplateKind.LATEX) == "LaTeX Template: Default"
        assert template_label((), TemplateKind.HTML) == "HTML Template: Default"

    def test_long_path_is_shortened(self) -> None:
        label = template_label(["/home/me/templates/paper.tex"], TemplateKind.LATEX)
        assert label == 'LaTeX Template: ".../templates/paper.tex"'

    def test_short_path_shown_in_full(self) -> None:
        label = template_label(["tpl/page.html"], TemplateKind.HTML)
        assert label == 'HTML Template: "tpl/page.html"'

    def test_extra_templates_counted(self) -> None:
        label = template_label(["a.tex", "b.tex", "c.tex"], TemplateKind.LATEX)
        assert label == 'LaTeX Template: "a.tex"...[+2]'


class TestTemplateOverrides:
    """SELECT / USE_DEFAULT / CLEAR."""

    def test_no_override_uses_configuration(self) -> None:
        config = PreviewConfig(latex_template="conf.tex")
        overrides = TemplateOverrides()
        assert overrides.effective(TemplateKind.LATEX, config) == ("conf.tex",)
        assert overrides.effective(TemplateKind.HTML, config) == ()

    def test_select(self) -> None:
        overrides = TemplateOverrides()
        overrides.apply(TemplateKind.HTML, TemplateAction.SELECT, [" a.html ", ""])
        assert overrides.effective(TemplateKind.HTML, PreviewConfig()) == ("a.html",)

    def test_select_drops_invalid_paths(self) -> None:
        overrides = TemplateOverrides()
        overrides.apply(
            TemplateKind.LATEX, TemplateAction.SELECT, ["ok.tex", "bad;rm.tex"]
        )
        assert overrides.templates[TemplateKind.LATEX] == ("ok.tex",)

    def test_select_without_valid_paths_raises(self) -> None:
        overrides = TemplateOverrides()
        with pytest.raises(ValueError, match="no valid latex template"):
            overrides.apply(TemplateKind.LATEX, TemplateAction.SELECT, ["$bad"])
        assert TemplateKind.LATEX not in overrides.templates

    def test_use_default_overrides_configuration(self) -> None:
        config = PreviewConfig(latex_template="conf.tex")
        overrides = TemplateOverrides()
        overrides.apply(TemplateKind.LATEX, TemplateAction.USE_DEFAULT)
        assert overrides.effective(TemplateKind.LATEX, config) == ()

    def test_clear_falls_back_to_configuration(self) -> None:
        config = PreviewConfig(latex_template="conf.tex")
        overrides = TemplateOverrides()
        overrides.apply(TemplateKind.LATEX, TemplateAction.USE_DEFAULT)
        overrides.apply(TemplateKind.LATEX, TemplateAction.CLEAR)
        assert overrides.effective(TemplateKind.LATEX, config) == ("conf.tex",)


class TestConversionOptions:
    """Resolved Pandoc options."""

    def test_from_config_and_overrides(self) -> None:
        config = PreviewConfig(
            pandoc_path="/usr/local/bin/pandoc",
            html_template="page.html",
            highlight_style="kate",
            math_engine="katex",
        )
        overrides = TemplateOverrides()
        overrides.apply(TemplateKind.LATEX, TemplateAction.SELECT, ["x.tex"])

        options = conversion_options(config, overrides)

        assert options.pandoc_path == "/usr/local/bin/pandoc"
        assert options.latex_templates == ("x.tex",)
        assert options.html_templates == ("page.html",)
        assert options.highlight_style == "kate"
        assert options.math_engine == "katex"

"""Tests for PreviewController event routing and template updates."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from mdtexpreview.blocks import partition_blocks
from mdtexpreview.config import PreviewConfig, Settings
from mdtexpreview.pages.preview import _document_id
from mdtexpreview.preview import controller as controller_module
from mdtexpreview.preview.controller import PreviewController, get_controller
from mdtexpreview.preview.templates import TemplateAction, TemplateKind
from mdtexpreview.render import BlocksRender, DocumentRender, RenderedFragment

RENDER_DOCUMENT = "mdtexpreview.preview.session.render_document"
RENDER_BLOCKS = "mdtexpreview.preview.session.render_blocks"


def _view(*, visible: bool = True) -> MagicMock:
    view = MagicMock()
    view.visible = visible
    return view


def _editor(text: str) -> MagicMock:
    editor = MagicMock()
    editor.get_text.return_value = text
    return editor


@pytest.fixture
def controller() -> PreviewController:
    settings = Settings(  # type: ignore[call-arg]
        _env_file=None,
        preview=PreviewConfig(debounce_seconds=0.01, latex_template="conf.tex"),
    )
    return PreviewController(settings)


@pytest.fixture
def render_document() -> AsyncMock:
    return AsyncMock(return_value=DocumentRender("<p>doc</p>"))


class TestOpenAndDispose:
    """Session lifecycle."""

    @pytest.mark.asyncio
    async def test_open_preview_renders(
        self,
        controller: PreviewController,
        render_document: AsyncMock,
        multi_block_document: str,
    ) -> None:
        view = _view()
        with patch(RENDER_DOCUMENT, render_document):
            session = await controller.open_preview(
                "v1", "a.md", _editor(multi_block_document), view
            )

        assert controller.registry.get("v1") is session
        assert session.debounce_seconds == 0.01
        partitioned, options = render_document.await_args.args
        assert partitioned == partition_blocks(multi_block_document)
        assert options.latex_templates == ("conf.tex",)
        view.set_html.assert_called_once_with("<p>doc</p>")

    @pytest.mark.asyncio
    async def test_dispose_preview(
        self, controller: PreviewController, render_document: AsyncMock
    ) -> None:
        with patch(RENDER_DOCUMENT, render_document):
            session = await controller.open_preview("v1", "a.md", _editor("x"), _view())

        controller.dispose_preview("v1")
        controller.dispose_preview("v1")

        assert session.disposed
        assert "v1" not in controller.registry

    @pytest.mark.asyncio
    async def test_hidden_view_renders_when_shown(
        self, controller: PreviewController, render_document: AsyncMock
    ) -> None:
        view = _view(visible=False)
        with patch(RENDER_DOCUMENT, render_document):
            await controller.open_preview("v1", "a.md", _editor("x"), view)
            render_document.assert_not_awaited()
            view.reveal.assert_called_once_with()

            view.visible = True
            await controller.on_view_visible("v1")

        render_document.assert_awaited_once()


class TestRouting:
    """Editor and view events reach the right sessions."""

    @pytest.mark.asyncio
    async def test_text_change_routed_by_document(
        self,
        controller: PreviewController,
        render_document: AsyncMock,
        multi_block_document: str,
    ) -> None:
        render_blocks = AsyncMock(
            return_value=BlocksRender((RenderedFragment(2, "<b2>"),))
        )
        a_view, b_view = _view(), _view()
        with (
            patch(RENDER_DOCUMENT, render_document),
            patch(RENDER_BLOCKS, render_blocks),
        ):
            a = await controller.open_preview(
                "v1", "a.md", _editor(multi_block_document), a_view
            )
            b = await controller.open_preview(
                "v2", "b.md", _editor(multi_block_document), b_view
            )
            controller.on_text_changed(
                "a.md", multi_block_document.replace("Para three", "Para 3")
            )
            await a.flush()
            await b.flush()

        render_blocks.assert_awaited_once()
        a_view.post_message.assert_called_once_with(
            {"command": "updateBlocks", "blocks": [{"index": 2, "html": "<b2>"}]}
        )
        b_view.post_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_two_tabs_on_one_file_stay_separate(
        self,
        controller: PreviewController,
        render_document: AsyncMock,
        multi_block_document: str,
    ) -> None:
        """An edit in one tab never reaches the other tab's preview."""
        a_view, b_view = _view(), _view()
        render_blocks = AsyncMock(
            return_value=BlocksRender((RenderedFragment(2, "<b2>"),))
        )
        with (
            patch(RENDER_DOCUMENT, render_document),
            patch(RENDER_BLOCKS, render_blocks),
        ):
            a = await controller.open_preview(
                "v1",
                _document_id("doc.md", "v1"),
                _editor(multi_block_document),
                a_view,
            )
            b = await controller.open_preview(
                "v2",
                _document_id("doc.md", "v2"),
                _editor(multi_block_document),
                b_view,
            )
            edited = multi_block_document.replace("Para three", "Para 3")
            controller.on_text_changed(a.document_id, edited)
            await a.flush()
            await b.flush()

        assert a.last_rendered == partition_blocks(edited)
        assert b.last_rendered == partition_blocks(multi_block_document)
        b_view.post_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_render_now_skips_debounce(
        self,
        controller: PreviewController,
        render_document: AsyncMock,
        multi_block_document: str,
    ) -> None:
        controller.settings.preview.debounce_seconds = 60
        render_blocks = AsyncMock(
            return_value=BlocksRender((RenderedFragment(2, "<b2>"),))
        )
        with (
            patch(RENDER_DOCUMENT, render_document),
            patch(RENDER_BLOCKS, render_blocks),
        ):
            session = await controller.open_preview(
                "v1", "a.md", _editor(multi_block_document), _view()
            )
            controller.on_text_changed(
                "a.md", multi_block_document.replace("Para three", "Para 3")
            )
            await controller.render_now("v1")
            await controller.render_now("gone")

        render_blocks.assert_awaited_once()
        assert session.debounce_seconds == 60

    @pytest.mark.asyncio
    async def test_editor_scroll_routed_by_document(
        self,
        controller: PreviewController,
        render_document: AsyncMock,
        multi_block_document: str,
    ) -> None:
        a_view, b_view = _view(), _view()
        with patch(RENDER_DOCUMENT, render_document):
            await controller.open_preview(
                "v1", "a.md", _editor(multi_block_document), a_view
            )
            await controller.open_preview(
                "v2", "b.md", _editor(multi_block_document), b_view
            )

        controller.on_editor_scrolled("a.md", 4, 8)

        a_view.post_message.assert_called_once_with(
            {"command": "scrollToPosition", "blockIndex": 2, "lineInBlock": 2}
        )
        b_view.post_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_view_message_reveals_source(
        self,
        controller: PreviewController,
        render_document: AsyncMock,
        multi_block_document: str,
    ) -> None:
        editor = _editor(multi_block_document)
        with patch(RENDER_DOCUMENT, render_document):
            await controller.open_preview("v1", "a.md", editor, _view())

        controller.on_view_message(
            "v1", {"command": "scrollToPosition", "blockIndex": 1, "lineInBlock": 1}
        )
        controller.on_view_message("gone", {"command": "updateComplete"})

        editor.reveal_line.assert_called_once_with(3)


class TestTemplates:
    """Runtime template overrides."""

    @pytest.mark.asyncio
    async def test_select_rerenders_all_previews(
        self, controller: PreviewController, render_document: AsyncMock
    ) -> None:
        with patch(RENDER_DOCUMENT, render_document):
            await controller.open_preview("v1", "a.md", _editor("x"), _view())
            await controller.open_preview("v2", "b.md", _editor("y"), _view())
            render_document.reset_mock()

            await controller.update_templates(
                TemplateKind.HTML, TemplateAction.SELECT, ["page.html"]
            )

        assert render_document.await_count == 2
        for call in render_document.await_args_list:
            assert call.args[1].html_templates == ("page.html",)
        assert controller.template_label(TemplateKind.HTML) == (
            'HTML Template: "page.html"'
        )

    @pytest.mark.asyncio
    async def test_use_default_overrides_configured_template(
        self, controller: PreviewController
    ) -> None:
        assert controller.template_label(TemplateKind.LATEX) == (
            'LaTeX Template: "conf.tex"'
        )
        await controller.update_templates(
            TemplateKind.LATEX, TemplateAction.USE_DEFAULT
        )
        assert controller.conversion_options().latex_templates == ()
        assert controller.template_label(TemplateKind.LATEX) == (
            "LaTeX Template: Default"
        )

    @pytest.mark.asyncio
    async def test_invalid_selection_does_not_rerender(
        self, controller: PreviewController, render_document: AsyncMock
    ) -> None:
        with patch(RENDER_DOCUMENT, render_document):
            await controller.open_preview("v1", "a.md", _editor("x"), _view())
            render_document.reset_mock()

            with pytest.raises(ValueError):
                await controller.update_templates(
                    TemplateKind.LATEX, TemplateAction.SELECT, ["$(rm)"]
                )

        render_document.assert_not_awaited()
        assert controller.conversion_options().latex_templates == ("conf.tex",)


class TestGetController:
    """Global controller access."""

    def test_singleton(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(controller_module, "_controller", None)
        first = get_controller()
        assert get_controller() is first
        assert first.settings.preview.pandoc_path == "pandoc"

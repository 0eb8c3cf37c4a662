"""Integration tests running the two-stage pipeline through real Pandoc.

Skipped when the pandoc executable is not on PATH.
"""

from __future__ import annotations

import re
import shutil

import pytest

from mdtexpreview.blocks import partition_blocks
from mdtexpreview.render import (
    BlocksRender,
    ConversionFailure,
    ConversionOptions,
    DocumentRender,
    render_blocks,
    render_document,
)
from mdtexpreview.render.pandoc import MARKDOWN_TO_LATEX

requires_pandoc = pytest.mark.skipif(
    not shutil.which("pandoc"), reason="Pandoc not installed"
)

pytestmark = [pytest.mark.pandoc, requires_pandoc]


class TestFullDocument:
    """render_document end to end."""

    @pytest.mark.asyncio
    async def test_blocks_are_anchored(self) -> None:
        partitioned = partition_blocks("Intro\n\nTitle text\n\nSome $x^2$ maths.\n")
        result = await render_document(partitioned, ConversionOptions())

        assert isinstance(result, DocumentRender)
        assert '<div data-block-index="0"></div>' in result.html
        assert "Title text" in result.html
        assert "BLOCK_INDEX" not in result.html

    @pytest.mark.asyncio
    async def test_enumeration_keeps_start_number(self) -> None:
        partitioned = partition_blocks("Intro\n\n3. three\n4. four\n")
        result = await render_document(partitioned, ConversionOptions())

        assert isinstance(result, DocumentRender)
        assert re.search(r"3\.\s*three", result.html)
        assert re.search(r"4\.\s*four", result.html)

    @pytest.mark.asyncio
    async def test_missing_template_fails_stage_one(self) -> None:
        options = ConversionOptions(latex_templates=("/nonexistent/template.tex",))
        result = await render_document(partition_blocks("Intro\n"), options)

        assert isinstance(result, ConversionFailure)
        assert result.stage == MARKDOWN_TO_LATEX
        assert result.returncode != 0
        assert result.stderr


class TestSelectedBlocks:
    """render_blocks end to end."""

    @pytest.mark.asyncio
    async def test_single_block(self, multi_block_document: str) -> None:
        partitioned = partition_blocks(multi_block_document)
        result = await render_blocks(partitioned, [1], ConversionOptions())

        assert isinstance(result, BlocksRender)
        assert [f.index for f in result.fragments] == [1]
        assert "Para two" in result.fragments[0].html
        assert "Para one" not in result.fragments[0].html

    @pytest.mark.asyncio
    async def test_several_blocks(self, multi_block_document: str) -> None:
        partitioned = partition_blocks(multi_block_document)
        result = await render_blocks(partitioned, [0, 2], ConversionOptions())

        assert isinstance(result, BlocksRender)
        fragments = {f.index: f.html for f in result.fragments}
        assert "Para one" in fragments[0]
        assert "Para three" in fragments[2]

"""Tests for the block differ and the LaTeX command-change detector."""

from __future__ import annotations

import pytest

from mdtexpreview.blocks import (
    DiffResult,
    diff_blocks,
    latex_commands_changed,
    partition_blocks,
)
from mdtexpreview.blocks.differ import FULL_REBUILD, latex_commands


def diff_texts(old: str, new: str, *, incremental: bool = True) -> DiffResult:
    return diff_blocks(
        partition_blocks(old), partition_blocks(new), incremental=incremental
    )


class TestDiffBlocks:
    """Partial vs full decisions."""

    def test_identical_documents(self, multi_block_document: str) -> None:
        result = diff_texts(multi_block_document, multi_block_document)
        assert result == DiffResult(dirty_indices=(), needs_full_rebuild=False)

    def test_single_changed_block(self, multi_block_document: str) -> None:
        new = multi_block_document.replace("Para three", "Para 3")
        assert diff_texts(multi_block_document, new).dirty_indices == (2,)

    def test_first_block_changed(self, multi_block_document: str) -> None:
        new = multi_block_document.replace("Para one", "Para 1")
        assert diff_texts(multi_block_document, new) == DiffResult((0,), False)

    def test_dirty_set_collapses_to_highest_index(
        self, multi_block_document: str
    ) -> None:
        """Only indices at or above the highest dirty index are returned."""
        new = multi_block_document.replace("Para one", "Para 1").replace(
            "Para three", "Para 3"
        )
        assert diff_texts(multi_block_document, new).dirty_indices == (2,)

    def test_preamble_change_forces_full(self, multi_block_document: str) -> None:
        new = multi_block_document.replace("Intro", "Introduction")
        assert diff_texts(multi_block_document, new).needs_full_rebuild

    def test_kill_switch(self, multi_block_document: str) -> None:
        result = diff_texts(
            multi_block_document, multi_block_document, incremental=False
        )
        assert result is FULL_REBUILD

    def test_appended_block_is_dirty(self, multi_block_document: str) -> None:
        new = multi_block_document + "\n\nPara four"
        assert diff_texts(multi_block_document, new) == DiffResult((3,), False)

    def test_trailing_empty_block_stays_clean(self) -> None:
        """The block opened by a final newline is unchanged by other edits."""
        old = "Intro\n\nA\n\nB\n"
        new = "Intro\n\nA\n\nB changed\n"
        assert diff_texts(old, new) == DiffResult((1,), False)

    def test_removed_block_forces_full(self, multi_block_document: str) -> None:
        new = multi_block_document.replace("\n\nPara three", "")
        assert diff_texts(multi_block_document, new).needs_full_rebuild

    def test_inserted_block_shifts_indices(self, multi_block_document: str) -> None:
        """Inserting a block in the middle changes every later block."""
        new = multi_block_document.replace("Para two", "Para two\n\nInserted")
        result = diff_texts(multi_block_document, new)
        assert result == DiffResult((3,), False)

    def test_marker_desync_forces_full(self) -> None:
        previous = "Intro\n\n&%&BLOCK_INDEX_0&%&\n\nA\n"
        current = "Intro\n\n&%&BLOCK_INDEX_1&%&\n\nA\n"
        assert diff_blocks(previous, current).needs_full_rebuild

    def test_non_sequential_growth_forces_full(self) -> None:
        previous = "Intro\n\n&%&BLOCK_INDEX_0&%&\n\nA\n"
        current = previous + "\n&%&BLOCK_INDEX_5&%&\n\nB\n"
        assert diff_blocks(previous, current).needs_full_rebuild

    def test_empty_documents(self) -> None:
        assert diff_blocks("", "") == DiffResult()


class TestCommandChanges:
    """Blocks whose \\name{arg} list changes force a full rebuild."""

    def test_new_command_forces_full(self, multi_block_document: str) -> None:
        new = multi_block_document.replace("Para two", "Para \\textbf{two}")
        assert diff_texts(multi_block_document, new).needs_full_rebuild

    def test_changed_argument_forces_full(self) -> None:
        old = "Intro\n\nSee \\ref{a}\n"
        new = "Intro\n\nSee \\ref{b}\n"
        assert diff_texts(old, new).needs_full_rebuild

    def test_text_around_commands_is_partial(self) -> None:
        old = "Intro\n\nSee \\ref{a} here\n"
        new = "Intro\n\nSee \\ref{a} there\n"
        assert diff_texts(old, new) == DiffResult((0,), False)


class TestFrontMatter:
    """Front-matter changes always force a full rebuild."""

    def test_front_matter_inside_block(self) -> None:
        old = "Intro\n\n---\na: 1\n---\nBody\n"
        new = "Intro\n\n---\na: 2\n---\nBody\n"
        assert diff_texts(old, new).needs_full_rebuild

    def test_front_matter_in_preamble(self) -> None:
        old = "---\ntitle: a\n---\nIntro\n\nBody\n"
        new = "---\ntitle: b\n---\nIntro\n\nBody\n"
        assert diff_texts(old, new).needs_full_rebuild


class TestLatexCommandsChanged:
    """The command-change detector on its own."""

    def test_extracts_in_order_with_duplicates(self) -> None:
        text = "\\emph{a} and \\cite{k} and \\emph{a}"
        assert latex_commands(text) == ["\\emph{a}", "\\cite{k}", "\\emph{a}"]

    @pytest.mark.parametrize(
        ("old", "new", "changed"),
        [
            ("\\emph{a} x", "\\emph{a} y", False),
            ("no commands", "still none", False),
            ("\\emph{a}", "\\emph{b}", True),
            ("\\emph{a} \\cite{k}", "\\cite{k} \\emph{a}", True),
            ("\\emph{a}", "\\emph{a} \\emph{a}", True),
            ("\\emph{a}", "", True),
        ],
    )
    def test_sequence_comparison(self, old: str, new: str, changed: bool) -> None:
        assert latex_commands_changed(old, new) is changed

"""Shared pytest fixtures for mdtexpreview tests."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from mdtexpreview.config import get_settings

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep PREVIEW__* / APP__* from the developer's shell out of tests."""
    for key in list(os.environ):
        if key.startswith(("PREVIEW__", "APP__")):
            monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def multi_block_document() -> str:
    """Preamble plus three blocks (indices 0, 1, 2).

    No final newline: with one, the empty last line would open block 3.
    """
    return "Intro\n\nPara one\n\nPara two\n\nPara three"

from __future__ import annotations

from typing import Callable

import pytest

import llm_cocop


@pytest.fixture
def contained_walk(tmp_path, monkeypatch) -> None:
    """Stop the upward manifest search at tmp_path so host files never leak in."""
    boundary = tmp_path.resolve()
    search_level = llm_cocop.ManifestDetector._search_level

    def _bounded(directory):
        if directory != boundary and boundary not in directory.parents:
            return None
        return search_level(directory)

    monkeypatch.setattr(llm_cocop.ManifestDetector, "_search_level", staticmethod(_bounded))


@pytest.fixture
def make_config() -> Callable[..., llm_cocop.CopyConfig]:
    """Build a CopyConfig the way the CLI does."""

    def _make(*argv: str) -> llm_cocop.CopyConfig:
        args = llm_cocop.create_parser().parse_args([str(a) for a in argv])
        return llm_cocop.ConfigBuilder.from_args(args)

    return _make

"""Tests for render_tree."""

from __future__ import annotations

import random
from typing import List, Set

from llm_cocop import GLYPH_CHILD, GLYPH_LAST, TREE_INDENT, render_tree


def _leaves(rendered: str) -> Set[str]:
    """Rebuild the relative path set from the rendered indentation."""
    leaves: Set[str] = set()
    open_dirs: List[str] = []
    for line in rendered.splitlines():
        stripped = line.lstrip(" ")
        depth = (len(line) - len(stripped)) // TREE_INDENT
        del open_dirs[depth:]
        if stripped.startswith(GLYPH_LAST):
            open_dirs.append(stripped[len(GLYPH_LAST) + 1:].rstrip("/"))
        else:
            assert stripped.startswith(GLYPH_CHILD)
            leaves.add("/".join(open_dirs + [stripped[len(GLYPH_CHILD) + 1:]]))
    return leaves


def test_render_tree_layout() -> None:
    rendered = render_tree(["src/main.rs", "Cargo.toml", "src/lib/mod.rs"])

    assert rendered == (
        "├── Cargo.toml\n"
        "└── src/\n"
        "  └── lib/\n"
        "    ├── mod.rs\n"
        "  ├── main.rs\n"
    )


def test_render_tree_ignores_input_order() -> None:
    paths = ["b/x.py", "a/y.py", "a/b/z.py", "top.py", "b/c/d/e.py"]
    shuffled = list(paths)
    random.Random(7).shuffle(shuffled)

    assert render_tree(paths) == render_tree(shuffled)


def test_render_tree_round_trips_paths() -> None:
    paths = {
        "README.md",
        "src/app.py",
        "src/api/routes.py",
        "src/api/v1/users.py",
        "src/api-old/legacy.py",
        "src/core/models.py",
        "src/core.py",
        "tests/test_app.py",
        "tests/api/test_routes.py",
        "z/very/deep/nested/leaf.txt",
    }

    assert _leaves(render_tree(paths)) == paths


def test_render_tree_reopens_sibling_directories() -> None:
    rendered = render_tree(["a/b/one.txt", "a/c/two.txt"])

    assert rendered.splitlines() == [
        "└── a/",
        "  └── b/",
        "    ├── one.txt",
        "  └── c/",
        "    ├── two.txt",
    ]


def test_render_tree_is_case_sensitive() -> None:
    rendered = render_tree(["Docs/a.md", "docs/b.md"])

    assert rendered.splitlines() == [
        "└── Docs/",
        "  ├── a.md",
        "└── docs/",
        "  ├── b.md",
    ]


def test_render_tree_empty() -> None:
    assert render_tree([]) == ""

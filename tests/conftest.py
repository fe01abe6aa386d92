"""Shared fixtures for the span-sweep test suite."""

import sys
from pathlib import Path

import pytest

# Ensure project root is importable
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


def make_tree(root: Path, files: dict[str, str | bytes]) -> Path:
    """Create *files* (relative path -> content) under *root*."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_bytes(content.encode("utf-8"))
    return root


@pytest.fixture()
def tree(tmp_path):
    """A small project with matches at several depths and in ignored dirs."""
    return make_tree(
        tmp_path,
        {
            "a.txt": "foo\nbar foo\n",
            "notes.md": "nothing here\n",
            "sub/b.txt": "foo foo foo",
            "sub/c.py": "x = 1\n",
            "sub/deeper/d.txt": "the foo",
            ".git/config": "foo",
            "node_modules/pkg/index.js": "foo()",
        },
    )


@pytest.fixture()
def counts_tree(tmp_path):
    """Files with 0, 2, 2 and 5 matches of 'hit'."""
    return make_tree(
        tmp_path,
        {
            "zero.txt": "miss miss",
            "two_a.txt": "hit and hit",
            "two_b.txt": "hit\nhit\n",
            "five.txt": "hit " * 5,
        },
    )

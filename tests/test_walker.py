"""Tests for the file walker."""

import os
import sys

import pytest

from span_sweep.config import DEFAULT_IGNORE_PATTERNS
from span_sweep.errors import InvalidPattern
from span_sweep.path_filter import PathFilter
from span_sweep.walker import normalize_root, walk

from conftest import make_tree


def _rel(root, paths):
    base = normalize_root(str(root))
    return [p[len(base):].replace(os.sep, "/") for p in paths]


def test_normalize_root_adds_one_trailing_separator(tmp_path):
    assert normalize_root(str(tmp_path)).endswith(os.sep)
    assert normalize_root(str(tmp_path) + os.sep) == normalize_root(str(tmp_path))


def test_walk_order_files_then_subdirectories(tree):
    files = _rel(tree, walk(str(tree)))
    assert files == [
        "a.txt",
        "notes.md",
        ".git/config",
        "node_modules/pkg/index.js",
        "sub/b.txt",
        "sub/c.py",
        "sub/deeper/d.txt",
    ]


def test_walk_is_depth_first_preorder(tmp_path):
    make_tree(tmp_path, {"z.txt": "", "a/1.txt": "", "a/b/2.txt": "", "c/3.txt": ""})
    assert _rel(tmp_path, walk(str(tmp_path))) == ["z.txt", "a/1.txt", "a/b/2.txt", "c/3.txt"]


def test_walk_is_deterministic(tree):
    assert list(walk(str(tree))) == list(walk(str(tree)))


def test_ignored_directory_contributes_no_files(tree):
    pf = PathFilter(DEFAULT_IGNORE_PATTERNS)
    files = _rel(tree, walk(str(tree), "", pf))
    assert files == ["a.txt", "notes.md", "sub/b.txt", "sub/c.py", "sub/deeper/d.txt"]


def test_ignore_prunes_subtree_even_when_files_match_path_pattern(tree):
    pf = PathFilter([r"[\\/]sub$"])
    files = _rel(tree, walk(str(tree), r"\.txt$", pf))
    assert files == ["a.txt"]


def test_ignore_is_tested_on_directories_not_files(tmp_path):
    make_tree(tmp_path, {"keep/secret.txt": "x", "other.txt": "y"})
    pf = PathFilter([r"secret"])
    assert _rel(tmp_path, walk(str(tmp_path), "", pf)) == ["other.txt", "keep/secret.txt"]


def test_path_pattern_filters_files(tree):
    pf = PathFilter(DEFAULT_IGNORE_PATTERNS)
    assert _rel(tree, walk(str(tree), r"\.py$", pf)) == ["sub/c.py"]


def test_path_pattern_case_fold(tmp_path):
    make_tree(tmp_path, {"README.MD": "", "x.txt": ""})
    assert _rel(tmp_path, walk(str(tmp_path), r"\.md$")) == []
    assert _rel(tmp_path, walk(str(tmp_path), r"\.md$", case_fold=True)) == ["README.MD"]


def test_invalid_path_pattern(tmp_path):
    with pytest.raises(InvalidPattern):
        list(walk(str(tmp_path), "[bad"))


def test_missing_root(tmp_path):
    with pytest.raises(FileNotFoundError):
        list(walk(str(tmp_path / "nope")))


def test_walk_is_lazy(tmp_path):
    make_tree(tmp_path, {"a.txt": "", "b.txt": ""})
    gen = walk(str(tmp_path))
    assert next(gen).endswith("a.txt")


@pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges on Windows")
def test_symlink_cycle_is_descended_once(tmp_path):
    make_tree(tmp_path, {"d/file.txt": "x"})
    os.symlink(tmp_path / "d", tmp_path / "d" / "loop")
    files = _rel(tmp_path, walk(str(tmp_path)))
    assert files == ["d/file.txt"]


@pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges on Windows")
def test_symlinks_followed_by_default_and_skippable(tmp_path):
    make_tree(tmp_path, {"real/file.txt": "x", "outside.txt": "y"})
    target = tmp_path / "elsewhere"
    make_tree(target, {"linked.txt": "z"})
    os.symlink(target, tmp_path / "real" / "link")
    os.symlink(tmp_path / "outside.txt", tmp_path / "real" / "alias.txt")

    real = normalize_root(str(tmp_path / "real"))
    followed = [p[len(real):] for p in walk(real)]
    assert sorted(followed) == sorted(["alias.txt", "file.txt", os.path.join("link", "linked.txt")])

    not_followed = [p[len(real):] for p in walk(real, follow_symlinks=False)]
    assert not_followed == ["file.txt"]


def test_same_file_under_two_names_is_yielded_once(tmp_path):
    make_tree(tmp_path, {"a.txt": "x", "sub/keep.txt": "y"})
    os.link(tmp_path / "a.txt", tmp_path / "sub" / "b.txt")
    assert _rel(tmp_path, walk(str(tmp_path))) == ["a.txt", "sub/keep.txt"]


def test_root_ancestors_never_match_ignore_patterns(tmp_path):
    root = tmp_path / "node_modules" / "pkg"
    make_tree(root, {"index.js": "", "lib/util.js": "", "node_modules/dep/x.js": ""})
    pf = PathFilter(DEFAULT_IGNORE_PATTERNS)
    assert _rel(root, walk(str(root), "", pf)) == ["index.js", "lib/util.js"]


def test_ignore_patterns_see_root_relative_paths(tree):
    pf = PathFilter([r"^[\\/]sub[\\/]deeper$"])
    assert _rel(tree, walk(str(tree), r"\.txt$", pf)) == ["a.txt", "sub/b.txt"]

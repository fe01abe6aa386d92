"""Tests for the command-line entry point."""

import json

import pytest

from span_sweep.cli import main

from conftest import make_tree


def test_search_prints_report(tree, capsys):
    code = main(["search", "foo", str(tree)])
    out, err = capsys.readouterr()
    assert code == 0
    assert out.startswith("# SPAN SWEEP: search")
    assert "⟦foo⟧" in out
    assert "3 matched" in err


def test_quiet_suppresses_summary(tree, capsys):
    main(["search", "foo", str(tree), "-q"])
    assert capsys.readouterr().err == ""


def test_invalid_regex_exit_code(tree, capsys):
    assert main(["search", "-r", "(bad", str(tree)]) == 2
    assert "invalid pattern" in capsys.readouterr().err


def test_missing_root_exit_code(tmp_path, capsys):
    assert main(["search", "foo", str(tmp_path / "nope")]) == 2


def test_json_output(tree, capsys):
    main(["search", "foo", str(tree), "--json", "-p", r"\.txt$"])
    data = json.loads(capsys.readouterr().out)
    assert data["operation"] == "search"
    assert data["total_matches"] == 6


def test_index_output_carries_text_and_index(tree, capsys):
    main(["search", "foo", str(tree), "--index", "--context", "match"])
    doc = json.loads(capsys.readouterr().out)
    assert len(doc["index"]) == 3 + 6
    data = doc["text"].encode("utf-8")
    for entry in doc["index"]:
        assert data[entry["start"]:entry["end"]].decode("utf-8").startswith(("▶ ", "────"))


def test_replace_preview_then_write(tmp_path, capsys):
    make_tree(tmp_path, {"a.txt": "Foo foo"})
    assert main(["replace", "foo", "bar", str(tmp_path), "-i", "--match-case"]) == 0
    assert (tmp_path / "a.txt").read_text() == "Foo foo"
    assert "⟪Bar⟫" in capsys.readouterr().out

    assert main(["replace", "foo", "bar", str(tmp_path), "-i", "--match-case", "-w", "--no-backup"]) == 0
    assert (tmp_path / "a.txt").read_text() == "Bar bar"
    assert [p.name for p in tmp_path.iterdir()] == ["a.txt"]


def test_regex_replace(tmp_path):
    make_tree(tmp_path, {"a.txt": "k1=v1 k2=v2"})
    main(["replace", "-r", r"(\w+)=(\w+)", r"\2=\1", str(tmp_path), "-w", "--no-backup", "-q"])
    assert (tmp_path / "a.txt").read_text() == "v1=k1 v2=k2"


def test_count_with_separate_threshold(counts_tree, capsys):
    assert main(["count", "hit", "=", "2", str(counts_tree), "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert sorted(f["file_path"].rsplit("/", 1)[-1].rsplit("\\", 1)[-1] for f in data["files"]) == [
        "two_a.txt",
        "two_b.txt",
    ]


def test_count_with_combined_expression_and_root(counts_tree, capsys):
    assert main(["count", "hit", ">=5", str(counts_tree), "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert len(data["files"]) == 1
    assert data["count_filter"] == ">= 5"


def test_count_bad_expression(counts_tree, capsys):
    assert main(["count", "hit", "~~", str(counts_tree)]) == 2


def test_file_errors_exit_one(tmp_path, capsys):
    make_tree(tmp_path, {"bad.txt": b"\xff\xfe", "ok.txt": "foo"})
    assert main(["search", "foo", str(tmp_path)]) == 1
    out = capsys.readouterr().out
    assert "✖ " in out


def test_context_lengths_and_ignore_flags(tmp_path, capsys):
    make_tree(tmp_path, {"keep/a.txt": "123foo456", "skip/b.txt": "foo"})
    main(["search", "foo", str(tmp_path), "-B", "1", "-A", "2", "--ignore", "skip$", "--json"])
    data = json.loads(capsys.readouterr().out)
    assert len(data["files"]) == 1
    occ = data["files"][0]["occurrences"][0]
    assert (occ["context_before"], occ["context_after"]) == ("3", "45")


def test_negative_context_length_is_a_usage_error(tree, capsys):
    with pytest.raises(SystemExit) as exc:
        main(["search", "foo", str(tree), "-B", "-3"])
    assert exc.value.code == 2
    assert "must be >= 0" in capsys.readouterr().err


def test_count_combined_expression_sweeps_given_root(counts_tree, tmp_path_factory, monkeypatch, capsys):
    elsewhere = tmp_path_factory.mktemp("elsewhere")
    make_tree(elsewhere, {"decoy.txt": "hit " * 5})
    monkeypatch.chdir(elsewhere)
    assert main(["count", "hit", ">=5", str(counts_tree), "--json"]) == 0
    files = json.loads(capsys.readouterr().out)["files"]
    assert [f["file_path"] for f in files] == [str(counts_tree / "five.txt")]

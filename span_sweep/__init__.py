"""
span-sweep - Find/replace over a directory tree, one span at a time.

Matched text is a span of characters, not a line: multi-line, Unicode-heavy
and backslash-heavy content matches and replaces without any line-buffering
or shell-escaping in between.

Usage:
    from span_sweep import Sweep

    sweep = Sweep("src/")
    report = sweep.search("db_query", r"\\.py$")
    report = sweep.search_regex(r"def (\\w+)", case_fold=True)
    report = sweep.replace("colour", "color", write=True)
    report = sweep.count("TODO", ">=", 3)
    print(report.to_text())

CLI:
    span-sweep search 'db_query' src/
    span-sweep replace -r '(\\w+)_id' '\\1_key' . --write
    span-sweep count TODO '>=' 3 src/
"""

from .compare import CountFilter, parse_count_expression
from .config import DEFAULT_IGNORE_PATTERNS, SweepConfig
from .errors import (
    FileReadError,
    FileWriteError,
    InvalidCountExpression,
    InvalidPattern,
    SweepError,
)
from .formatters import NavEntry, RenderedReport, render, to_json
from .match_engine import extract_context, find_all, scan_file
from .models import (
    ContextLevel,
    FileError,
    FileResult,
    MatchSpan,
    Occurrence,
    Operation,
    Query,
    QueryKind,
    Report,
)
from .path_filter import PathFilter
from .replace_engine import backup_path_for, match_case, replace_all
from .sweep import Sweep
from .walker import walk

__version__ = "0.1.0"

__all__ = [
    "Sweep",
    "SweepConfig",
    "DEFAULT_IGNORE_PATTERNS",
    "Query",
    "QueryKind",
    "Operation",
    "ContextLevel",
    "MatchSpan",
    "Occurrence",
    "FileResult",
    "FileError",
    "Report",
    "CountFilter",
    "parse_count_expression",
    "PathFilter",
    "walk",
    "find_all",
    "extract_context",
    "scan_file",
    "replace_all",
    "match_case",
    "backup_path_for",
    "render",
    "to_json",
    "NavEntry",
    "RenderedReport",
    "SweepError",
    "InvalidPattern",
    "InvalidCountExpression",
    "FileReadError",
    "FileWriteError",
]

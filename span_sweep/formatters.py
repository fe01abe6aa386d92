"""
formatters.py - Annotated text, navigation index and JSON for sweep reports.

The text stream uses fixed glyphs so a viewer can parse it without guessing:

    ▶ path            file block
    ──── L:C          one occurrence block (never merged)
    ⟦matched⟧         matched text
    ⟪replacement⟫     replacement text
    ✖ path            file that errored
    ════              end of a file block

Alongside the text, render() returns one NavEntry per file line and per
occurrence block: the byte range it covers in the UTF-8 encoded text and
where to jump in the file. The glyphs are multibyte, so byte and character
offsets into the stream differ.
"""

from dataclasses import dataclass
from typing import Any

from .models import ContextLevel, FileResult, Occurrence, Operation, Report

FILE_MARKER = "▶ "
ERROR_MARKER = "✖ "
OCCURRENCE_BAR = "─" * 4
FILE_BAR = "═" * 68
MATCH_OPEN, MATCH_CLOSE = "⟦", "⟧"
REPLACEMENT_OPEN, REPLACEMENT_CLOSE = "⟪", "⟫"


@dataclass(frozen=True)
class NavEntry:
    """Byte range [start, end) in the UTF-8 stream and its jump target."""

    start: int
    end: int
    file_path: str
    position: int  # 0-based character offset in the file
    line: int
    column: int


@dataclass(frozen=True)
class RenderedReport:
    text: str
    index: tuple[NavEntry, ...]

    def entry_at(self, offset: int) -> NavEntry | None:
        """The entry covering byte *offset* of the encoded text, innermost first."""
        hit = None
        for entry in self.index:
            if entry.start <= offset < entry.end:
                hit = entry
        return hit


class _Writer:
    """Line buffer that knows its own length in UTF-8 bytes."""

    def __init__(self):
        self.parts: list[str] = []
        self.pos = 0

    def line(self, text: str = "") -> None:
        self.parts.append(text)
        self.parts.append("\n")
        self.pos += len(text.encode("utf-8", "surrogateescape")) + 1

    def text(self) -> str:
        return "".join(self.parts)


def _plural(n: int, word: str, plural: str | None = None) -> str:
    return f"{n} {word}" if n == 1 else f"{n} {plural or word + 's'}"


def _header(w: _Writer, report: Report) -> None:
    w.line(f"# SPAN SWEEP: {report.operation.value}")
    w.line(f"Timestamp:    {report.timestamp}")
    w.line(f"Root:         {report.root}")
    w.line(f"Path pattern: {report.path_pattern or '(all files)'}")
    w.line(f"Query:        {report.query.describe()}")
    if report.replacement is not None:
        w.line(f"Replacement:  {report.replacement!r}")
        w.line(f"Mode:         {'write' if report.write else 'preview (files not written)'}")
    if report.count_filter is not None:
        w.line(f"Filter:       count {report.count_filter}")
    w.line(
        f"Scanned: {_plural(report.files_scanned, 'file')} | "
        f"Matched: {_plural(report.files_matched, 'file')} | "
        f"Occurrences: {report.total_matches} | "
        f"Errors: {len(report.errors)} | "
        f"Skipped: {report.files_skipped}"
    )
    w.line(FILE_BAR)


def _jump(report: Report, occ: Occurrence) -> tuple[int, int, int]:
    # Once written, the file holds the new content
    if report.write and occ.replacement_start is not None:
        return occ.replacement_start, occ.replacement_line, occ.replacement_column
    return occ.start, occ.line, occ.column


def _occurrence(w: _Writer, report: Report, occ: Occurrence, index: list[NavEntry]) -> None:
    start = w.pos
    position, line, column = _jump(report, occ)
    w.line(f"{OCCURRENCE_BAR} {line}:{column}")
    w.line(f"{occ.context_before}{MATCH_OPEN}{occ.matched_text}{MATCH_CLOSE}{occ.context_after}")
    if occ.is_replacement:
        w.line(
            f"{occ.context_before}{REPLACEMENT_OPEN}{occ.replacement_text}"
            f"{REPLACEMENT_CLOSE}{occ.context_after}"
        )
    index.append(NavEntry(start, w.pos, occ.file_path, position, line, column))


def _file_block(w: _Writer, report: Report, result: FileResult, index: list[NavEntry]) -> None:
    start = w.pos
    w.line(f"{FILE_MARKER}{result.file_path}")
    index.append(NavEntry(start, w.pos, result.file_path, 0, 1, 1))

    show_blocks = (
        report.context_level is not ContextLevel.NONE
        and report.operation is not Operation.COUNT
    )
    if show_blocks:
        for occ in result.occurrences:
            _occurrence(w, report, occ, index)

    summary = f"{_plural(result.match_count, 'match', 'matches')} in {result.file_path}"
    if result.written:
        summary += " (written)"
    if result.backup_path:
        summary += f" (backup: {result.backup_path})"
    w.line(summary)
    w.line(FILE_BAR)


def render(report: Report) -> RenderedReport:
    """Serialize *report* into annotated text plus its navigation index."""
    w = _Writer()
    index: list[NavEntry] = []

    _header(w, report)
    for result in report.files:
        _file_block(w, report, result, index)

    for err in report.errors:
        start = w.pos
        w.line(f"{ERROR_MARKER}{err.file_path}")
        index.append(NavEntry(start, w.pos, err.file_path, 0, 1, 1))
        w.line(f"{err.kind} error: {err.message}")
        w.line(FILE_BAR)

    return RenderedReport(text=w.text(), index=tuple(index))


def to_json(report: Report) -> dict[str, Any]:
    """JSON-serializable dict."""
    return {
        "operation": report.operation.value,
        "timestamp": report.timestamp,
        "root": report.root,
        "path_pattern": report.path_pattern,
        "query": {
            "pattern": report.query.pattern,
            "kind": report.query.kind.value,
            "case_fold": report.query.case_fold,
        },
        "replacement": report.replacement,
        "write": report.write,
        "count_filter": str(report.count_filter) if report.count_filter else None,
        "context_level": report.context_level.value,
        "files_scanned": report.files_scanned,
        "files_skipped": report.files_skipped,
        "files_matched": report.files_matched,
        "total_matches": report.total_matches,
        "elapsed_ms": report.elapsed_ms,
        "files": [
            {
                "file_path": f.file_path,
                "match_count": f.match_count,
                "written": f.written,
                "backup_path": f.backup_path,
                "occurrences": [
                    {
                        "start": o.start,
                        "end": o.end,
                        "line": o.line,
                        "column": o.column,
                        "context_before": o.context_before,
                        "matched_text": o.matched_text,
                        "context_after": o.context_after,
                        "replacement_text": o.replacement_text,
                        "replacement_start": o.replacement_start,
                        "replacement_end": o.replacement_end,
                    }
                    for o in f.occurrences
                ],
            }
            for f in report.files
        ],
        "errors": [
            {"file_path": e.file_path, "kind": e.kind, "message": e.message}
            for e in report.errors
        ],
    }


def index_to_json(rendered: RenderedReport) -> list[dict[str, Any]]:
    """Navigation index as plain dicts, for viewers outside Python."""
    return [
        {
            "start": e.start,
            "end": e.end,
            "file_path": e.file_path,
            "position": e.position,
            "line": e.line,
            "column": e.column,
        }
        for e in rendered.index
    ]

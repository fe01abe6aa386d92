"""
match_engine.py - Span matching and context strikes.

Text is one flat span of characters, not a list of lines: a match may cross
any number of newlines. Literal queries become escaped regexes, so both kinds
share leftmost-first, non-overlapping scanning. The next search always starts
at or after the end of the previous match, which is why "aa" finds one
match in "aaa", not two.
"""

import re
from bisect import bisect_right

from .models import ContextLevel, FileResult, MatchSpan, Occurrence, Query


def compile_query(query: Query) -> re.Pattern:
    """Compile *query*, raising InvalidPattern for a bad regex."""
    return query.compile()


def pattern_for(query_or_pattern: Query | re.Pattern) -> re.Pattern | None:
    """Compiled pattern, or None for an empty literal (which matches nothing)."""
    if isinstance(query_or_pattern, re.Pattern):
        return query_or_pattern
    if not query_or_pattern.is_regex and not query_or_pattern.pattern:
        return None
    return query_or_pattern.compile()


def find_all(content: str, query_or_pattern: Query | re.Pattern) -> list[MatchSpan]:
    """All non-overlapping matches, left to right. An empty literal finds nothing."""
    pattern = pattern_for(query_or_pattern)
    if pattern is None:
        return []
    return [MatchSpan(m.start(), m.end()) for m in pattern.finditer(content)]


def extract_context(
    content: str,
    span: MatchSpan,
    before_len: int,
    after_len: int,
) -> tuple[str, str]:
    """Up to *before_len* chars before the span and *after_len* after, clamped at both ends."""
    before = content[max(0, span.start - before_len):span.start]
    after = content[span.end:span.end + after_len]
    return before, after


class LineIndex:
    """Offset -> (line, column) lookup, both 1-based."""

    def __init__(self, text: str):
        self._starts = [0]
        pos = text.find("\n")
        while pos != -1:
            self._starts.append(pos + 1)
            pos = text.find("\n", pos + 1)

    def locate(self, offset: int) -> tuple[int, int]:
        line = bisect_right(self._starts, offset)
        return line, offset - self._starts[line - 1] + 1


def scan_file(
    file_path: str,
    content: str,
    pattern: re.Pattern | None,
    before_len: int,
    after_len: int,
    level: ContextLevel = ContextLevel.FULL,
) -> FileResult:
    """Build one Occurrence per match. Counting never depends on *level*."""
    if pattern is None:
        return FileResult(file_path=file_path)

    with_context = level is ContextLevel.FULL
    lines = None
    occurrences = []

    for m in pattern.finditer(content):
        if lines is None:
            lines = LineIndex(content)
        span = MatchSpan(m.start(), m.end())
        if with_context:
            before, after = extract_context(content, span, before_len, after_len)
        else:
            before = after = ""
        line, column = lines.locate(span.start)
        occurrences.append(
            Occurrence(
                file_path=file_path,
                context_before=before,
                matched_text=m.group(),
                context_after=after,
                start=span.start,
                end=span.end,
                line=line,
                column=column,
            )
        )

    return FileResult(file_path=file_path, occurrences=tuple(occurrences))

"""
path_filter.py - Decides which directories the walk never enters.

Patterns are regexes searched anywhere in the directory path. One case
toggle covers the whole set.
"""

import re
from collections.abc import Iterable

from .errors import InvalidPattern


class PathFilter:
    """Ordered set of ignore regexes tested against directory paths."""

    def __init__(self, patterns: Iterable[str] = (), case_fold: bool = False):
        flags = re.IGNORECASE if case_fold else 0
        self.case_fold = case_fold
        self.patterns: tuple[str, ...] = tuple(dict.fromkeys(patterns))
        compiled = []
        for pat in self.patterns:
            try:
                compiled.append(re.compile(pat, flags))
            except re.error as e:
                raise InvalidPattern(pat, str(e)) from e
        self._compiled: tuple[re.Pattern, ...] = tuple(compiled)

    def should_ignore(self, path: str) -> bool:
        """True if any pattern is found in *path*."""
        return any(rx.search(path) for rx in self._compiled)

    def __bool__(self) -> bool:
        return bool(self._compiled)

    def __repr__(self) -> str:
        return f"PathFilter({list(self.patterns)!r}, case_fold={self.case_fold})"

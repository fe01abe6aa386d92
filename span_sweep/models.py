"""Sweep data models. Every struct that flows from the walk to the renderer."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from .errors import InvalidPattern

if TYPE_CHECKING:
    from .compare import CountFilter
    from .formatters import RenderedReport


class QueryKind(str, Enum):
    LITERAL = "literal"
    REGEX = "regex"


class Operation(str, Enum):
    SEARCH = "search"
    SEARCH_REGEX = "search-regex"
    REPLACE = "replace"
    REPLACE_REGEX = "replace-regex"
    COUNT = "count"

    @property
    def is_replace(self) -> bool:
        return self in (Operation.REPLACE, Operation.REPLACE_REGEX)


class ContextLevel(str, Enum):
    """How much of each occurrence the report carries."""

    FULL = "full"        # match plus surrounding context
    MATCH_ONLY = "match"  # matched text, empty context
    NONE = "none"        # counted, not rendered


@dataclass(frozen=True)
class Query:
    """What to look for. Built once per invocation."""

    pattern: str
    kind: QueryKind = QueryKind.LITERAL
    case_fold: bool = False

    @property
    def is_regex(self) -> bool:
        return self.kind is QueryKind.REGEX

    def compile(self) -> re.Pattern:
        """Compile to a regex. Literal text is escaped, so only regex queries can fail."""
        flags = re.IGNORECASE if self.case_fold else 0
        source = self.pattern if self.is_regex else re.escape(self.pattern)
        try:
            return re.compile(source, flags)
        except re.error as e:
            raise InvalidPattern(self.pattern, str(e)) from e

    def describe(self) -> str:
        case = "ignore-case" if self.case_fold else "case-sensitive"
        return f"{self.pattern!r} ({self.kind.value}, {case})"


@dataclass(frozen=True)
class MatchSpan:
    """Character offsets into one file's content snapshot."""

    start: int
    end: int

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError(f"span end {self.end} before start {self.start}")

    @property
    def length(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class Occurrence:
    """One reported match, plus its replacement for replace operations."""

    file_path: str
    context_before: str
    matched_text: str
    context_after: str
    start: int
    end: int
    line: int
    column: int
    replacement_text: str | None = None
    replacement_start: int | None = None
    replacement_end: int | None = None
    replacement_line: int | None = None
    replacement_column: int | None = None

    @property
    def span(self) -> MatchSpan:
        return MatchSpan(self.start, self.end)

    @property
    def is_replacement(self) -> bool:
        return self.replacement_text is not None


@dataclass(frozen=True)
class FileResult:
    """All occurrences within a single file. Sealed once the file's pass ends."""

    file_path: str
    occurrences: tuple[Occurrence, ...] = ()
    backup_path: str | None = None
    written: bool = False

    @property
    def match_count(self) -> int:
        return len(self.occurrences)


@dataclass(frozen=True)
class FileError:
    """A file that could not be processed."""

    file_path: str
    kind: str  # 'read', 'write', 'backup'
    message: str


@dataclass
class Report:
    """Complete sweep result. Files are kept in walk order."""

    operation: Operation
    timestamp: str
    root: str
    path_pattern: str
    query: Query
    replacement: str | None = None
    context_level: ContextLevel = ContextLevel.FULL
    write: bool = False
    count_filter: CountFilter | None = None
    files: list[FileResult] = field(default_factory=list)
    errors: list[FileError] = field(default_factory=list)
    files_scanned: int = 0
    files_skipped: int = 0
    elapsed_ms: float = 0.0

    def add(self, result: FileResult, keep_empty: bool = False) -> None:
        """Append a sealed file result. Zero-match files are dropped unless keep_empty."""
        if result.match_count > 0 or keep_empty:
            self.files.append(result)

    def add_error(self, error: FileError) -> None:
        self.errors.append(error)

    @property
    def files_matched(self) -> int:
        return sum(1 for f in self.files if f.match_count > 0)

    @property
    def total_matches(self) -> int:
        return sum(f.match_count for f in self.files)

    def render(self) -> RenderedReport:
        """Annotated text plus navigation index."""
        from .formatters import render
        return render(self)

    def to_text(self) -> str:
        from .formatters import render
        return render(self).text

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable dict."""
        from .formatters import to_json
        return to_json(self)

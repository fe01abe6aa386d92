"""
sweep.py - The core. Walk, match, replace, report.

Sweep class with search(), search_regex(), replace(), replace_regex(), count().
Every operation validates its inputs before the first file is opened, then
processes files strictly one at a time in walk order.
"""

import logging
import re
import time
from collections.abc import Iterator
from datetime import datetime, timezone
from pathlib import Path

from .compare import parse_count_expression
from .config import BINARY_SNIFF_BYTES, SweepConfig
from .errors import FileReadError, FileWriteError, SweepError
from .match_engine import pattern_for, scan_file
from .models import (
    ContextLevel,
    FileError,
    FileResult,
    Operation,
    Query,
    QueryKind,
    Report,
)
from .path_filter import PathFilter
from .replace_engine import backup_path_for, replace_all, validate_template, write_back
from .walker import compile_path_pattern, normalize_root, walk

logger = logging.getLogger(__name__)


class Sweep:
    """
    Find/replace over every matching file under a root.

        sweep = Sweep("src/")
        report = sweep.search("db_query", r"\\.py$")
        report = sweep.replace("colour", "color", write=True)
        print(report.to_text())
    """

    def __init__(self, root: str, config: SweepConfig | None = None):
        self.root = normalize_root(root)
        self.config = config or SweepConfig()

    # ── Operations ────────────────────────────────────────────────────

    def search(
        self,
        query: str,
        path_pattern: str = "",
        *,
        case_fold: bool = False,
        context: ContextLevel | str = ContextLevel.FULL,
    ) -> Report:
        """Literal search. Read-only."""
        q = Query(query, QueryKind.LITERAL, case_fold)
        return self._run_search(Operation.SEARCH, q, path_pattern, ContextLevel(context))

    def search_regex(
        self,
        pattern: str,
        path_pattern: str = "",
        *,
        case_fold: bool = False,
        context: ContextLevel | str = ContextLevel.FULL,
    ) -> Report:
        """Regex search. Read-only."""
        q = Query(pattern, QueryKind.REGEX, case_fold)
        return self._run_search(Operation.SEARCH_REGEX, q, path_pattern, ContextLevel(context))

    def replace(
        self,
        query: str,
        replacement: str,
        path_pattern: str = "",
        *,
        write: bool = False,
        case_fold: bool = False,
        match_case: bool = False,
        backup: bool | None = None,
    ) -> Report:
        """
        Literal replace. Files change on disk only with write=True.

        Args:
            query: Text to find.
            replacement: Inserted verbatim, or case-matched with match_case.
            path_pattern: Regex over file paths.
            write: Rewrite files that had matches.
            case_fold: Case-insensitive search.
            match_case: Mirror each match's case onto the replacement.
            backup: Copy each file before rewriting (default: config.backup).
        """
        q = Query(query, QueryKind.LITERAL, case_fold)
        return self._run_replace(
            Operation.REPLACE, q, replacement, path_pattern, write, match_case, backup
        )

    def replace_regex(
        self,
        pattern: str,
        replacement: str,
        path_pattern: str = "",
        *,
        write: bool = False,
        case_fold: bool = False,
        match_case: bool = False,
        backup: bool | None = None,
    ) -> Report:
        """Regex replace. *replacement* is a template: \\1, \\g<name>, \\g<0>."""
        q = Query(pattern, QueryKind.REGEX, case_fold)
        if match_case:
            logger.info("Case-matching replacement applies to literal replace only; ignored")
        return self._run_replace(
            Operation.REPLACE_REGEX, q, replacement, path_pattern, write, False, backup
        )

    def count(
        self,
        query: str,
        op: str,
        threshold: int | str | None = None,
        path_pattern: str = "",
        *,
        regex: bool = False,
        case_fold: bool = False,
    ) -> Report:
        """
        List files whose match count satisfies the comparison.

            sweep.count("TODO", ">=", 3)
            sweep.count("TODO", "= 0")   # files without a TODO
        """
        count_filter = parse_count_expression(op, threshold)
        q = Query(query, QueryKind.REGEX if regex else QueryKind.LITERAL, case_fold)
        pattern, path_rx, path_filter = self._preflight(q, path_pattern)

        start = time.perf_counter()
        report = self._new_report(Operation.COUNT, q, path_pattern, ContextLevel.NONE)
        report.count_filter = count_filter

        for file_path, content in self._contents(report, path_rx, path_filter):
            result = scan_file(file_path, content, pattern, 0, 0, ContextLevel.NONE)
            if count_filter(result.match_count):
                report.add(result, keep_empty=True)

        return self._finish(report, start)

    # ── Internals ─────────────────────────────────────────────────────

    def _preflight(
        self, query: Query, path_pattern: str
    ) -> tuple[re.Pattern | None, re.Pattern, PathFilter]:
        """Everything that can fail before a file is touched."""
        pattern = pattern_for(query)
        path_rx = compile_path_pattern(path_pattern, self.config.path_case_fold)
        path_filter = PathFilter(self.config.ignore_patterns, self.config.path_case_fold)
        if not Path(self.root).is_dir():
            raise FileNotFoundError(f"root directory does not exist: {self.root}")
        return pattern, path_rx, path_filter

    def _new_report(
        self,
        operation: Operation,
        query: Query,
        path_pattern: str,
        level: ContextLevel,
        replacement: str | None = None,
        write: bool = False,
    ) -> Report:
        return Report(
            operation=operation,
            timestamp=datetime.now(tz=timezone.utc).isoformat(timespec="seconds"),
            root=self.root,
            path_pattern=path_pattern,
            query=query,
            replacement=replacement,
            context_level=level,
            write=write,
        )

    def _read(self, file_path: str) -> str | None:
        """File content, or None for a binary file when skip_binary is set."""
        try:
            data = Path(file_path).read_bytes()
        except OSError as e:
            raise FileReadError(file_path, e.strerror or str(e)) from e
        if self.config.skip_binary and b"\x00" in data[:BINARY_SNIFF_BYTES]:
            return None
        try:
            # Decoding bytes directly keeps \r\n and lone \r intact
            return data.decode(self.config.encoding)
        except UnicodeDecodeError as e:
            raise FileReadError(file_path, f"not valid {self.config.encoding}: {e.reason}") from e

    def _record_error(self, report: Report, kind: str, exc: SweepError, path: str) -> None:
        logger.warning(str(exc))
        if self.config.fail_fast:
            raise exc
        report.add_error(FileError(path, kind, getattr(exc, "reason", str(exc))))

    def _contents(
        self, report: Report, path_rx: re.Pattern, path_filter: PathFilter
    ) -> Iterator[tuple[str, str]]:
        """Yield (path, content) for each readable text file, recording failures."""
        for file_path in walk(
            self.root,
            path_rx,
            path_filter,
            follow_symlinks=self.config.follow_symlinks,
        ):
            report.files_scanned += 1
            try:
                content = self._read(file_path)
            except FileReadError as e:
                self._record_error(report, "read", e, file_path)
                continue
            if content is None:
                report.files_skipped += 1
                logger.debug(f"Skipping binary file {file_path}")
                continue
            yield file_path, content

    def _finish(self, report: Report, start: float) -> Report:
        report.elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"{report.operation.value}: {report.files_scanned} scanned, "
            f"{report.files_matched} matched, {report.total_matches} occurrences, "
            f"{len(report.errors)} errors in {report.elapsed_ms:.0f}ms"
        )
        return report

    def _run_search(
        self,
        operation: Operation,
        query: Query,
        path_pattern: str,
        level: ContextLevel,
    ) -> Report:
        pattern, path_rx, path_filter = self._preflight(query, path_pattern)

        start = time.perf_counter()
        report = self._new_report(operation, query, path_pattern, level)
        cfg = self.config

        for file_path, content in self._contents(report, path_rx, path_filter):
            report.add(scan_file(file_path, content, pattern, cfg.before_len, cfg.after_len, level))

        return self._finish(report, start)

    def _run_replace(
        self,
        operation: Operation,
        query: Query,
        replacement: str,
        path_pattern: str,
        write: bool,
        smart_case: bool,
        backup: bool | None,
    ) -> Report:
        pattern, path_rx, path_filter = self._preflight(query, path_pattern)
        regex = operation is Operation.REPLACE_REGEX
        if regex and pattern is not None:
            validate_template(pattern, replacement)
        cfg = self.config
        do_backup = cfg.backup if backup is None else backup
        # One timestamp for every backup made by this run
        started_at = datetime.now()

        start = time.perf_counter()
        report = self._new_report(
            operation, query, path_pattern, ContextLevel.FULL, replacement, write
        )

        for file_path, content in self._contents(report, path_rx, path_filter):
            new_content, occurrences = replace_all(
                file_path,
                content,
                pattern,
                replacement,
                regex=regex,
                smart_case=smart_case,
                before_len=cfg.before_len,
                after_len=cfg.after_len,
            )
            if not occurrences:
                continue

            backup_file = None
            written = False
            if write:
                backup_file = (
                    backup_path_for(file_path, operation, cfg.backup_tag, started_at)
                    if do_backup else None
                )
                try:
                    write_back(file_path, new_content, encoding=cfg.encoding, backup_path=backup_file)
                    written = True
                except FileWriteError as e:
                    self._record_error(report, e.kind, e, file_path)
                    if e.kind == "backup":
                        backup_file = None

            report.add(
                FileResult(
                    file_path=file_path,
                    occurrences=tuple(occurrences),
                    backup_path=backup_file,
                    written=written,
                )
            )

        return self._finish(report, start)

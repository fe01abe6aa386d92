"""
replace_engine.py - Single forward pass substitution plus safe write-back.

Matches are found against the immutable original snapshot. A running delta
(inserted length minus removed length) maps each original offset into the
new content, so a replacement that is longer or shorter than its match
never causes a later match to be skipped or found twice.

Context before an occurrence comes from the buffer as it stands after every
earlier substitution; context after is the not yet replaced remainder.
"""

import logging
import re
import shutil
from datetime import datetime

from .errors import FileWriteError, InvalidPattern
from .match_engine import LineIndex
from .models import Occurrence, Operation

logger = logging.getLogger(__name__)

BACKUP_TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"

# Letter runs, the unit smart case works on
_WORD = re.compile(r"[^\W\d_]+")


# ---------------------------------------------------------------------------
# Replacement text
# ---------------------------------------------------------------------------


def _capitalize_words(text: str) -> str:
    return _WORD.sub(lambda m: m.group()[0].upper() + m.group()[1:], text)


def match_case(matched: str, replacement: str) -> str:
    """
    Mirror the case pattern of *matched* onto *replacement*.

    - "FOO" -> "BAR"  (all upper, two or more letters)
    - "Foo Bar" -> "Baz Qux"  (every word capitalized)
    - anything else: replacement unchanged
    """
    words = _WORD.findall(matched)
    if not words:
        return replacement
    letters = "".join(words)
    if len(letters) > 1 and letters.isupper():
        return replacement.upper()
    if all(w[0].isupper() and (len(w) == 1 or w[1:].islower()) for w in words):
        return _capitalize_words(replacement)
    return replacement


def validate_template(pattern: re.Pattern, replacement: str) -> None:
    """Raise InvalidPattern if *replacement* is not a valid template for *pattern*."""
    # re parses the template before searching, so an empty subject is enough
    try:
        pattern.sub(replacement, "")
    except (re.error, IndexError) as e:
        raise InvalidPattern(replacement, str(e)) from e


# ---------------------------------------------------------------------------
# In-memory pass
# ---------------------------------------------------------------------------


def replace_all(
    file_path: str,
    content: str,
    pattern: re.Pattern | None,
    replacement: str,
    *,
    regex: bool = False,
    smart_case: bool = False,
    before_len: int = 40,
    after_len: int = 40,
) -> tuple[str, list[Occurrence]]:
    """
    Substitute every match of *pattern* in *content*.

    Args:
        file_path: Recorded on each Occurrence.
        content: Original snapshot; never modified.
        pattern: Compiled query, or None for an empty literal.
        replacement: Template (regex) or verbatim text (literal).
        regex: Expand group references in *replacement*.
        smart_case: Literal only. Mirror each match's case onto the replacement.
        before_len / after_len: Context window sizes.

    Returns:
        (new_content, occurrences). new_content is content itself when
        nothing matched.
    """
    if pattern is None:
        return content, []

    pieces: list[str] = []
    occurrences: list[Occurrence] = []
    old_lines = None
    tail = ""       # last before_len chars of the rebuilt buffer
    last = 0        # end of previous match, original offsets
    delta = 0       # new offset - original offset
    new_newlines = 0
    new_line_start = 0

    def advance(segment: str, at: int) -> None:
        nonlocal tail, new_newlines, new_line_start
        pieces.append(segment)
        if before_len:
            tail = (tail + segment[-before_len:])[-before_len:]
        nl = segment.count("\n")
        if nl:
            new_newlines += nl
            new_line_start = at + segment.rfind("\n") + 1

    for m in pattern.finditer(content):
        if old_lines is None:
            old_lines = LineIndex(content)
        start, end = m.span()
        advance(content[last:start], last + delta)

        matched = m.group()
        if regex:
            text = m.expand(replacement)
        elif smart_case:
            text = match_case(matched, replacement)
        else:
            text = replacement

        new_start = start + delta
        line, column = old_lines.locate(start)
        occurrences.append(
            Occurrence(
                file_path=file_path,
                context_before=tail,
                matched_text=matched,
                context_after=content[end:end + after_len],
                start=start,
                end=end,
                line=line,
                column=column,
                replacement_text=text,
                replacement_start=new_start,
                replacement_end=new_start + len(text),
                replacement_line=new_newlines + 1,
                replacement_column=new_start - new_line_start + 1,
            )
        )

        advance(text, new_start)
        delta += len(text) - (end - start)
        last = end

    if not occurrences:
        return content, []

    pieces.append(content[last:])
    return "".join(pieces), occurrences


# ---------------------------------------------------------------------------
# On-disk mutation
# ---------------------------------------------------------------------------


def backup_path_for(
    file_path: str,
    operation: Operation,
    tag: str = "sweep",
    when: datetime | None = None,
) -> str:
    """
    <original>~<tag>-<kind>-<YYYYmmdd-HHMMSS>~

    Two backups of the same file within one second collide; the later one
    overwrites the earlier.
    """
    kind = "regex" if operation is Operation.REPLACE_REGEX else "replace"
    stamp = (when or datetime.now()).strftime(BACKUP_TIMESTAMP_FORMAT)
    return f"{file_path}~{tag}-{kind}-{stamp}~"


def write_back(
    file_path: str,
    new_content: str,
    *,
    encoding: str = "utf-8",
    backup_path: str | None = None,
) -> None:
    """
    Copy the original to *backup_path* (if given), then rewrite the file in full.

    A failed backup aborts before the file is touched. A failed write leaves
    the backup in place and the file however the filesystem left it.
    """
    if backup_path:
        try:
            shutil.copy2(file_path, backup_path)
        except OSError as e:
            raise FileWriteError(file_path, str(e), kind="backup") from e
        logger.debug(f"Backed up {file_path} -> {backup_path}")

    try:
        with open(file_path, "w", encoding=encoding, newline="") as fh:
            fh.write(new_content)
    except (OSError, UnicodeEncodeError) as e:
        raise FileWriteError(file_path, str(e)) from e

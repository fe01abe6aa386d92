"""
errors.py - Everything that can go wrong in a sweep.

Pre-flight errors (InvalidPattern, InvalidCountExpression) are fatal and
raised before any file is opened. Per-file errors (FileReadError,
FileWriteError) are recorded on the report unless fail_fast is set.
"""


class SweepError(Exception):
    """Base exception for span-sweep errors."""
    pass


class InvalidPattern(SweepError, ValueError):
    """A regex (query, path pattern, ignore pattern or template) failed to compile."""

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"invalid pattern {pattern!r}: {reason}")


class InvalidCountExpression(SweepError, ValueError):
    """Count operator or threshold could not be parsed."""
    pass


class FileReadError(SweepError, OSError):
    """A file could not be read or decoded."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"cannot read {path}: {reason}")


class FileWriteError(SweepError, OSError):
    """A backup or the rewritten file could not be written."""

    def __init__(self, path: str, reason: str, kind: str = "write"):
        self.path = path
        self.reason = reason
        self.kind = kind
        super().__init__(f"cannot {kind} {path}: {reason}")

"""
config.py - Sweep configuration. Passed into every operation, never global.

No external dependencies. Pure stdlib.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

# Characters of context kept on each side of a match
DEFAULT_BEFORE_LEN: int = 40
DEFAULT_AFTER_LEN: int = 40

# Directory names pruned from every walk unless the caller opts out
DEFAULT_IGNORE_DIRS: tuple[str, ...] = (
    ".git", ".hg", ".svn",
    "__pycache__", ".pytest_cache", ".mypy_cache", ".ruff_cache", ".tox",
    "node_modules", ".venv", "venv",
    ".idea", ".vscode",
)

# One regex per name, matching it as a whole path component
DEFAULT_IGNORE_PATTERNS: tuple[str, ...] = tuple(
    rf"(?:^|[\\/]){re.escape(name)}(?:[\\/]|$)" for name in DEFAULT_IGNORE_DIRS
)

DEFAULT_BACKUP_TAG: str = "sweep"

# Bytes sniffed for a NUL when deciding a file is binary
BINARY_SNIFF_BYTES: int = 8192


# ---------------------------------------------------------------------------
# Dataclass
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SweepConfig:
    """Per-invocation settings shared by every file in one sweep."""

    before_len: int = DEFAULT_BEFORE_LEN
    after_len: int = DEFAULT_AFTER_LEN
    ignore_patterns: tuple[str, ...] = DEFAULT_IGNORE_PATTERNS
    path_case_fold: bool = False   # applies to path pattern and ignore patterns alike
    follow_symlinks: bool = True
    encoding: str = "utf-8"
    skip_binary: bool = True
    fail_fast: bool = False
    backup: bool = True
    backup_tag: str = DEFAULT_BACKUP_TAG

    def __post_init__(self):
        if self.before_len < 0 or self.after_len < 0:
            raise ValueError("context lengths must be >= 0")
        # Lists are accepted for convenience, stored as tuples
        object.__setattr__(self, "ignore_patterns", tuple(self.ignore_patterns))

    def with_overrides(self, **changes) -> SweepConfig:
        """Copy with some fields replaced."""
        return replace(self, **changes)

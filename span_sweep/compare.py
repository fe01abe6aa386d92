"""
compare.py - Count filters: "files with >= 2 matches" and friends.
"""

import operator
import re
from dataclasses import dataclass
from typing import Callable

from .errors import InvalidCountExpression

OPERATORS: dict[str, Callable[[int, int], bool]] = {
    "<": operator.lt,
    "<=": operator.le,
    "≤": operator.le,
    "=": operator.eq,
    "==": operator.eq,
    "!=": operator.ne,
    "≠": operator.ne,
    ">=": operator.ge,
    "≥": operator.ge,
    ">": operator.gt,
}

# Spelling used when printing a filter back
CANONICAL = {"≤": "<=", "==": "=", "≠": "!=", "≥": ">="}

_EXPRESSION = re.compile(r"^\s*(<=|>=|!=|==|[<>=≤≥≠])\s*([+-]?\d+)\s*$")


@dataclass(frozen=True)
class CountFilter:
    """A comparison applied to each file's match count."""

    op: str
    threshold: int

    def __post_init__(self):
        if self.op not in OPERATORS:
            raise InvalidCountExpression(f"unknown comparison operator {self.op!r}")
        if isinstance(self.threshold, bool) or not isinstance(self.threshold, int):
            raise InvalidCountExpression(f"threshold must be an integer, got {self.threshold!r}")
        object.__setattr__(self, "op", CANONICAL.get(self.op, self.op))

    def __call__(self, count: int) -> bool:
        return OPERATORS[self.op](count, self.threshold)

    def __str__(self) -> str:
        return f"{self.op} {self.threshold}"


def parse_count_expression(op: str, threshold: int | str | None = None) -> CountFilter:
    """
    Build a CountFilter from an operator and threshold, or one combined expression.

        parse_count_expression(">=", 2)
        parse_count_expression(">=", "2")
        parse_count_expression(">= 2")
    """
    if threshold is None:
        m = _EXPRESSION.match(op or "")
        if not m:
            raise InvalidCountExpression(f"cannot parse count expression {op!r}")
        return CountFilter(m.group(1), int(m.group(2)))

    if isinstance(threshold, str):
        try:
            threshold = int(threshold.strip())
        except ValueError:
            raise InvalidCountExpression(f"threshold must be an integer, got {threshold!r}") from None
    return CountFilter(op.strip(), threshold)

"""
cli.py - Command-line entry point for span-sweep.

Usage:
    span-sweep search 'db_query' src/ -p '\\.py$'
    span-sweep search -r 'def (\\w+)' . --context match
    span-sweep replace 'colour' 'color' docs/ --write
    span-sweep replace -r '(\\w+)_id' '\\1_key' . -p '\\.sql$'
    span-sweep count TODO '>=' 3 src/
    python -m span_sweep count TODO '=0'

The report goes to stdout; progress, warnings and errors go to stderr.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from .config import SweepConfig
from .errors import InvalidCountExpression, InvalidPattern
from .models import ContextLevel, Report


# ---------------------------------------------------------------------------
# Progress helpers (all write to stderr)
# ---------------------------------------------------------------------------


def _err(msg: str, end: str = "\n") -> None:
    """Print *msg* to stderr."""
    print(msg, end=end, file=sys.stderr)


def _summary(report: Report) -> str:
    return (
        f"{report.files_scanned:,} files scanned, "
        f"{report.files_matched:,} matched, "
        f"{report.total_matches:,} occurrences, "
        f"{len(report.errors):,} errors "
        f"({report.elapsed_ms:.0f}ms)"
    )


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def _non_negative(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}") from None
    if n < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {n}")
    return n


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "root",
        nargs="?",
        default=".",
        metavar="ROOT",
        help="Directory to sweep (default: current directory).",
    )
    p.add_argument("-p", "--path-pattern", default="", metavar="REGEX",
                   help="Only files whose path matches this regex.")
    p.add_argument("-i", "--ignore-case", action="store_true", help="Case-insensitive match.")
    p.add_argument("-r", "--regex", action="store_true", help="Treat PATTERN as a regex.")
    p.add_argument("-B", "--before", type=_non_negative, default=None, metavar="N",
                   help="Characters of context before each match.")
    p.add_argument("-A", "--after", type=_non_negative, default=None, metavar="N",
                   help="Characters of context after each match.")
    p.add_argument("--ignore", action="append", default=[], metavar="REGEX",
                   help="Prune directories matching REGEX (repeatable).")
    p.add_argument("--no-default-ignores", action="store_true",
                   help="Do not prune .git, node_modules, __pycache__, ...")
    p.add_argument("--ignore-path-case", action="store_true",
                   help="Path pattern and ignore patterns ignore case.")
    p.add_argument("--no-follow-symlinks", action="store_true", help="Skip symlinks.")
    p.add_argument("--fail-fast", action="store_true",
                   help="Stop at the first unreadable or unwritable file.")
    p.add_argument("--json", action="store_true", dest="output_json", help="JSON output.")
    p.add_argument("--index", action="store_true",
                   help="Print the report text and its navigation index as one JSON document.")
    p.add_argument("-q", "--quiet", action="store_true", help="No summary on stderr.")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="span-sweep",
        description=(
            "span-sweep: find/replace over a directory tree.\n"
            "Matches are spans of characters, not lines."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_search = sub.add_parser("search", help="Report every occurrence.")
    p_search.add_argument("pattern", metavar="PATTERN")
    _add_common(p_search)
    p_search.add_argument(
        "--context",
        choices=[level.value for level in ContextLevel],
        default=ContextLevel.FULL.value,
        help="full: match + context, match: match only, none: counts only.",
    )

    p_replace = sub.add_parser("replace", help="Replace every occurrence.")
    p_replace.add_argument("pattern", metavar="PATTERN")
    p_replace.add_argument("replacement", metavar="REPLACEMENT")
    _add_common(p_replace)
    p_replace.add_argument("-w", "--write", action="store_true",
                           help="Rewrite files (default: preview only).")
    p_replace.add_argument("--no-backup", action="store_true",
                           help="Do not copy files before rewriting.")
    p_replace.add_argument("--match-case", action="store_true",
                           help="Literal only: FOO->BAR, Foo->Bar.")

    p_count = sub.add_parser("count", help="List files by match count.")
    p_count.add_argument("pattern", metavar="PATTERN")
    p_count.add_argument("expr", metavar="OP", help="<, <=, =, !=, >=, > (or '>=2').")
    p_count.add_argument("threshold", nargs="?", default=None, metavar="N")
    _add_common(p_count)

    return parser


def _config_from(args: argparse.Namespace) -> SweepConfig:
    cfg = SweepConfig()
    patterns = () if args.no_default_ignores else cfg.ignore_patterns
    overrides = {
        "ignore_patterns": tuple(patterns) + tuple(args.ignore),
        "path_case_fold": args.ignore_path_case,
        "follow_symlinks": not args.no_follow_symlinks,
        "fail_fast": args.fail_fast,
    }
    if args.before is not None:
        overrides["before_len"] = args.before
    if args.after is not None:
        overrides["after_len"] = args.after
    if getattr(args, "no_backup", False):
        overrides["backup"] = False
    return cfg.with_overrides(**overrides)


def _count_root(args: argparse.Namespace) -> None:
    # `count PAT '>=2' ROOT` lands ROOT in threshold
    threshold = args.threshold
    if threshold is not None and args.root == "." and not threshold.strip().lstrip("+-").isdigit():
        args.root, args.threshold = args.threshold, None


# ---------------------------------------------------------------------------
# Core run logic (importable, not CLI-only)
# ---------------------------------------------------------------------------


def run(args: argparse.Namespace) -> Report:
    from .sweep import Sweep

    if args.command == "count":
        _count_root(args)
    sweep = Sweep(args.root, config=_config_from(args))

    if args.command == "search":
        fn = sweep.search_regex if args.regex else sweep.search
        return fn(args.pattern, args.path_pattern, case_fold=args.ignore_case, context=args.context)

    if args.command == "replace":
        fn = sweep.replace_regex if args.regex else sweep.replace
        return fn(
            args.pattern,
            args.replacement,
            args.path_pattern,
            write=args.write,
            case_fold=args.ignore_case,
            match_case=args.match_case,
        )

    return sweep.count(
        args.pattern,
        args.expr,
        args.threshold,
        args.path_pattern,
        regex=args.regex,
        case_fold=args.ignore_case,
    )


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """
    Parse CLI arguments and run one sweep.

    Returns:
        0 on success, 1 if any file errored, 2 for invalid input.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )

    try:
        report = run(args)
    except (InvalidPattern, InvalidCountExpression, FileNotFoundError) as exc:
        _err(f"span-sweep: error: {exc}")
        return 2
    except KeyboardInterrupt:
        _err("\nspan-sweep: interrupted by user")
        return 130
    except OSError as exc:
        # Only reachable with --fail-fast
        _err(f"span-sweep: error: {exc}")
        return 1

    if sys.platform == "win32":
        sys.stdout.reconfigure(encoding="utf-8")

    if args.index:
        from .formatters import index_to_json
        rendered = report.render()
        print(json.dumps({"text": rendered.text, "index": index_to_json(rendered)}, indent=2))
    elif args.output_json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print(report.to_text(), end="")

    if not args.quiet:
        _err(_summary(report))
    return 1 if report.errors else 0


if __name__ == "__main__":
    sys.exit(main())

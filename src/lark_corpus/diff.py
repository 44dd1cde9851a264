"""Structural diff between an actual and an expected S-expression."""
from __future__ import annotations

import difflib
import sys
from typing import IO, List, Optional

from .tree import format_sexp

GREEN = "\x1b[32m"
RED = "\x1b[31m"
RESET = "\x1b[0m"


def _paint(text: str, color: str, stream: IO[str]) -> str:
    isatty = getattr(stream, "isatty", None)
    if isatty is not None and isatty():
        return f"{color}{text}{RESET}"
    return text


def print_diff_key(out: Optional[IO[str]] = None) -> None:
    out = out or sys.stdout
    print(file=out)
    print(f"{_paint('expected', GREEN, out)} / {_paint('unexpected', RED, out)}", file=out)


def diff_lines(actual: str, expected: str) -> List[str]:
    """``+`` marks lines only in ``expected``, ``-`` lines only in ``actual``."""
    actual_lines = format_sexp(actual)
    expected_lines = format_sexp(expected)
    lines: List[str] = []

    matcher = difflib.SequenceMatcher(a=actual_lines, b=expected_lines, autojunk=False)
    for tag, a_lo, a_hi, b_lo, b_hi in matcher.get_opcodes():
        if tag == "equal":
            lines.extend("  " + line for line in actual_lines[a_lo:a_hi])
            continue
        lines.extend("+ " + line for line in expected_lines[b_lo:b_hi])
        lines.extend("- " + line for line in actual_lines[a_lo:a_hi])

    return lines


def print_diff(actual: str, expected: str, out: Optional[IO[str]] = None) -> None:
    out = out or sys.stdout
    print(file=out)
    for line in diff_lines(actual, expected):
        if line.startswith("+"):
            line = _paint(line, GREEN, out)
        elif line.startswith("-"):
            line = _paint(line, RED, out)
        print(line, file=out)

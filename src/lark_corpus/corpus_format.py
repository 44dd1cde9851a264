"""
Corpus fixture decoder.

A corpus file holds one or more examples:

    ==================
    example name
    ==================

    source text

    ---

    (expected (tree))

A directory of corpus files (nested arbitrarily) becomes a group per
directory and a group per file.
"""
from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional, Union

from .entry import Example, Group
from .errors import FixtureError

HEADER_RE = re.compile(rb"^={3,}[ \t]*\r?\n(?P<name>[^\r\n]*)\r?\n={3,}[ \t]*(?:\r?\n|\Z)", re.M)
DIVIDER_RE = re.compile(rb"^-{3,}[ \t]*$", re.M)

_LEADING_BLANK_LINES_RE = re.compile(rb"\A(?:[ \t]*\r?\n)+")
_TRAILING_BLANK_LINES_RE = re.compile(rb"(?:\r?\n[ \t]*)+\Z")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_sexp(text: str) -> str:
    """Collapse whitespace so structurally equal S-expressions compare equal."""
    text = _WHITESPACE_RE.sub(" ", text).strip()
    return text.replace("( ", "(").replace(" )", ")")


def _trim_input(raw: bytes) -> bytes:
    raw = _LEADING_BLANK_LINES_RE.sub(b"", raw)
    return _TRAILING_BLANK_LINES_RE.sub(b"", raw)


def parse_test_content(name: str, content: bytes, path: Optional[Path] = None) -> Group:
    headers = list(HEADER_RE.finditer(content))
    if not headers:
        if content.strip():
            raise FixtureError("No example headers found", path or name)
        return Group(name, ())

    if content[:headers[0].start()].strip():
        raise FixtureError("Unexpected text before the first example header", path or name)

    examples: List[Example] = []
    for idx, header in enumerate(headers):
        example_name = header.group("name").decode("utf-8").strip()
        body_end = headers[idx + 1].start() if idx + 1 < len(headers) else len(content)
        body = content[header.end():body_end]

        divider = DIVIDER_RE.search(body)
        if divider is None:
            raise FixtureError(f"Example '{example_name}' has no '---' divider", path or name)

        expected = body[divider.end():].decode("utf-8")
        examples.append(
            Example(
                name=example_name,
                input=_trim_input(body[:divider.start()]),
                output=normalize_sexp(expected),
            )
        )

    return Group(name, tuple(examples))


def parse_tests(path: Union[str, Path]) -> Group:
    """Load a corpus file or directory into a test entry tree."""
    path = Path(path)

    if path.is_dir():
        children = tuple(
            parse_tests(child)
            for child in sorted(path.iterdir())
            if not child.name.startswith(".")
        )
        return Group(path.name, children)

    if not path.is_file():
        raise FixtureError("Corpus fixture not found", path)

    try:
        content = path.read_bytes()
    except OSError as exc:
        raise FixtureError(f"Cannot read corpus fixture ({exc.strerror})", path) from exc

    return parse_test_content(path.stem, content, path)

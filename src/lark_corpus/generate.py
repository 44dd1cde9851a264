"""Grammar compiler: lark grammar text to standalone parser source."""
from __future__ import annotations

import io
import re
from dataclasses import dataclass

from lark import Lark, LarkError
from lark.tools.standalone import gen_standalone
from typing_extensions import TypeAlias

DEFAULT_START = "start"

# the first rule in a grammar file is its root, as in tree-sitter grammars
RULE_DEF_RE = re.compile(r"^[?!]?(?P<name>[a-z][a-z_0-9]*)(?:\.-?\d+)?[ \t]*:", re.M)

GENERATOR_OPTIONS = dict(
    parser="lalr",
    lexer="basic",
    maybe_placeholders=False,
    propagate_positions=True,
)


@dataclass(frozen=True)
class Success:
    generated_source: str


@dataclass(frozen=True)
class Failure:
    message: str


GenerationResult: TypeAlias = Success | Failure


def start_rule(grammar_text: str) -> str:
    m = RULE_DEF_RE.search(grammar_text)
    return m.group("name") if m else DEFAULT_START


def build_lark(grammar_text: str, start: str) -> Lark:
    return Lark(grammar_text, start=start, **GENERATOR_OPTIONS)


def generate_parser_for_grammar(grammar_text: str) -> GenerationResult:
    """Compile ``grammar_text``; a grammar error becomes ``Failure`` with lark's message."""
    start = start_rule(grammar_text)
    try:
        lark_inst = build_lark(grammar_text, start)
    except LarkError as exc:
        return Failure(str(exc))

    out = io.StringIO()
    gen_standalone(lark_inst, out=out)
    return Success(out.getvalue())

from __future__ import annotations

import io
import sys
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

BASE_DIR = Path(__file__).resolve().parent.parent.parent
SRC_DIR = (BASE_DIR / "src").resolve()

if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))
if str(SRC_DIR) not in sys.path:
    sys.path.append(str(SRC_DIR))

from lark_corpus.config import ConfigSnapshot
from lark_corpus.corpora import LanguageStore
from lark_corpus.entry import Example, Group
from lark_corpus.generate import Success, generate_parser_for_grammar
from lark_corpus.language import Language
from lark_corpus.runner import MutationTestRunner

FIXTURES_DIR = BASE_DIR / "fixtures"

QUIET = ConfigSnapshot()
REPO_CONFIG = ConfigSnapshot(fixtures_dir=FIXTURES_DIR)

ARITHMETIC_SUM_SEXP = "(source_file (statement (sum (NUMBER) (NUMBER))))"


@lru_cache(maxsize=None)
def build_language(grammar_text: str, name: str = "test") -> Language:
    """Compile ``grammar_text`` once per test session."""
    result = generate_parser_for_grammar(grammar_text)
    assert isinstance(result, Success), f"grammar failed to compile: {result}"
    return Language.from_generated_source(name, result.generated_source)


def fixture_grammar(name: str) -> str:
    return (FIXTURES_DIR / "grammars" / name / "grammar.lark").read_text(encoding="utf-8")


def fixture_language(name: str) -> Language:
    return build_language(fixture_grammar(name), name)


def example(name: str, source: str, output: str) -> Example:
    return Example(name=name, input=source.encode("utf-8"), output=output)


def group(name: str, *children) -> Group:
    return Group(name, tuple(children))


def chunked_reader(data: bytes, size: int, calls: Optional[List[tuple]] = None):
    """Byte-window callback that never hands out more than ``size`` bytes."""

    def read(offset: int, point: tuple) -> bytes:
        if calls is not None:
            calls.append((offset, point))
        return data[offset:offset + size]

    return read


@dataclass
class Streams:
    """Captured output and diagnostic streams for one runner."""

    out: io.StringIO = field(default_factory=io.StringIO)
    err: io.StringIO = field(default_factory=io.StringIO)

    def runner(self, config: ConfigSnapshot = QUIET, **kwargs) -> MutationTestRunner:
        return MutationTestRunner(config, out=self.out, err=self.err, **kwargs)


class SpyStore(LanguageStore):
    """Language store that remembers which names were asked for."""

    def __init__(self, root: Path):
        super().__init__(root)
        self.requested: List[str] = []
        self.test_requested: List[str] = []

    def get_language(self, name: str) -> Language:
        self.requested.append(name)
        return super().get_language(name)

    def get_test_language(self, name: str, source: str, path: Path) -> Language:
        self.test_requested.append(name)
        return super().get_test_language(name, source, path)

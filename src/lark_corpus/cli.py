"""
Command line entry point.

    python -m lark_corpus run [real|errors|features]...
    python -m lark_corpus parse GRAMMAR FILE

``run`` with no suite names runs all three drivers.
"""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from .config import load_config
from .corpora import CorpusDrivers
from .errors import CorpusFailure, CorpusSetupError
from .generate import Failure, Success, generate_parser_for_grammar
from .language import Language
from .runner import get_parser
from .tree import format_sexp

USAGE = "usage: lark_corpus run [real|errors|features]... | lark_corpus parse GRAMMAR FILE"

SUITES: Dict[str, Callable[[CorpusDrivers], bool]] = {
    "real": CorpusDrivers.run_real_language_corpus_files,
    "errors": CorpusDrivers.run_error_corpus_files,
    "features": CorpusDrivers.run_feature_corpus_files,
}


def run_suites(names: Sequence[str]) -> int:
    unknown = [name for name in names if name not in SUITES]
    if unknown:
        raise SystemExit(f"Unknown suite: {unknown[0]}\n{USAGE}")

    drivers = CorpusDrivers()
    failed = False
    for name in names or list(SUITES):
        try:
            failed |= SUITES[name](drivers)
        except CorpusFailure as exc:
            print(f"[FAIL] {name}: {exc}", file=sys.stderr)
            failed = True
    drivers.recorder.close()

    print(f"Failures: {'yes' if failed else 'none'}")
    return 1 if failed else 0


def parse_file(grammar_path: str, source_path: str, pretty: bool = False) -> int:
    grammar = Path(grammar_path)
    match generate_parser_for_grammar(grammar.read_text(encoding="utf-8")):
        case Success(generated_source=source):
            language = Language.from_generated_source(grammar.stem, source, grammar.parent)
        case Failure(message=message):
            print(message, file=sys.stderr)
            return 1
        case other:
            raise TypeError(f"not a generation result: {type(other).__name__}")

    parser, session = get_parser(load_config())
    try:
        parser.set_language(language)
        tree = parser.parse_utf8(Path(source_path).read_bytes())
    finally:
        if session is not None:
            session.close()

    sexp = tree.to_sexp()
    if pretty:
        print("\n".join(format_sexp(sexp)))
    else:
        print(sexp)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args: List[str] = list(sys.argv[1:] if argv is None else argv)
    if not args:
        raise SystemExit(USAGE)

    command, rest = args[0], args[1:]

    try:
        if command == "run":
            return run_suites(rest)

        if command == "parse":
            pretty = "--pretty" in rest
            rest = [arg for arg in rest if arg != "--pretty"]
            if len(rest) != 2:
                raise SystemExit(USAGE)
            return parse_file(rest[0], rest[1], pretty=pretty)
    except CorpusSetupError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    raise SystemExit(f"Unknown command: {command}\n{USAGE}")

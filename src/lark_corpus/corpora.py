"""
Corpus drivers over the fixtures tree.

    fixtures/
      grammars/<name>/grammar.lark      prebuilt languages
      grammars/<name>/corpus/*.txt      their corpus
      error_corpus/<name>_errors.txt    recovery cases for prebuilt languages
      test_grammars/<name>/grammar.lark compiled on the fly
      test_grammars/<name>/corpus.txt or expected_error.txt
"""
from __future__ import annotations

import sys
from pathlib import Path
from typing import IO, Dict, List, Optional

from .allocations import AllocationRecorder
from .config import ConfigSnapshot, load_config
from .corpus_format import parse_tests
from .errors import CorpusFailure, CorpusSetupError, GenerationMismatch, LanguageNotFoundError
from .generate import Failure, Success, generate_parser_for_grammar
from .language import Language
from .runner import MutationTestRunner

LANGUAGES = (
    "arithmetic",
    "json",
)

GRAMMAR_FILE = "grammar.lark"
ERRORS_SUFFIX = "_errors.txt"
REPO_FIXTURES_DIR = Path(__file__).resolve().parents[2] / "fixtures"


def fixtures_dir(config: Optional[ConfigSnapshot] = None) -> Path:
    config = config or load_config()
    return config.fixtures_dir or REPO_FIXTURES_DIR


def _read_grammar(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CorpusSetupError(f"Cannot read grammar ({exc.strerror})", path) from exc


class LanguageStore:
    """Compiles grammars on first request and keeps them for the process."""

    def __init__(self, root: Path):
        self.root = Path(root)
        self._languages: Dict[str, Language] = {}
        self._test_languages: Dict[str, Language] = {}

    def get_language(self, name: str) -> Language:
        cached = self._languages.get(name)
        if cached is not None:
            return cached

        grammar_dir = self.root / "grammars" / name
        grammar_path = grammar_dir / GRAMMAR_FILE
        if not grammar_path.is_file():
            raise LanguageNotFoundError(name, grammar_path)

        match generate_parser_for_grammar(_read_grammar(grammar_path)):
            case Success(generated_source=source):
                language = Language.from_generated_source(name, source, grammar_dir)
            case Failure(message=message):
                raise CorpusSetupError(f"Grammar for '{name}' does not compile ({message})", grammar_path)
            case other:
                raise TypeError(f"not a generation result: {type(other).__name__}")

        self._languages[name] = language
        return language

    def get_test_language(self, name: str, source: str, path: Path) -> Language:
        cached = self._test_languages.get(name)
        if cached is None:
            cached = Language.from_generated_source(name, source, path)
            self._test_languages[name] = cached
        return cached


_stores: Dict[Path, LanguageStore] = {}


def default_store(config: Optional[ConfigSnapshot] = None) -> LanguageStore:
    root = fixtures_dir(config)
    store = _stores.get(root)
    if store is None:
        store = _stores[root] = LanguageStore(root)
    return store


class CorpusDrivers:
    """One runner per driver call, so the diff legend prints once per driver."""

    def __init__(
        self,
        config: Optional[ConfigSnapshot] = None,
        store: Optional[LanguageStore] = None,
        recorder: Optional[AllocationRecorder] = None,
        out: Optional[IO[str]] = None,
        err: Optional[IO[str]] = None,
    ):
        self.config = config or load_config()
        self.store = store or default_store(self.config)
        self.root = self.store.root
        self.out = out or sys.stdout
        self.err = err or sys.stderr
        self.recorder = recorder or AllocationRecorder(self.config.record_allocations, self.err)

    def _runner(self) -> MutationTestRunner:
        return MutationTestRunner(self.config, recorder=self.recorder, out=self.out, err=self.err)

    def run_real_language_corpus_files(self) -> bool:
        runner = self._runner()
        failed = False

        for name in LANGUAGES:
            if not self.config.language_selected(name):
                continue
            print(f"language: {name!r}", file=self.err)
            language = self.store.get_language(name)
            corpus = parse_tests(self.root / "grammars" / name / "corpus")
            failed |= runner.run(language, corpus)

        return failed

    def run_error_corpus_files(self) -> bool:
        runner = self._runner()
        failed = False

        for path in self._listing(self.root / "error_corpus"):
            if not path.is_file():
                continue
            name = path.name.removesuffix(ERRORS_SUFFIX)
            if not self.config.language_selected(name):
                continue
            print(f"language: {name!r}", file=self.err)
            language = self.store.get_language(name)
            failed |= runner.run(language, parse_tests(path))

        return failed

    def run_feature_corpus_files(self) -> bool:
        runner = self._runner()
        failed = False

        for grammar_dir in self._listing(self.root / "test_grammars"):
            if not grammar_dir.is_dir():
                continue
            name = grammar_dir.name
            if not self.config.language_selected(name):
                continue

            print(f"test language: {name!r}", file=self.err)
            result = generate_parser_for_grammar(_read_grammar(grammar_dir / GRAMMAR_FILE))

            error_path = grammar_dir / "expected_error.txt"
            if error_path.is_file():
                _check_expected_error(name, error_path.read_text(encoding="utf-8"), result)
                continue

            match result:
                case Success(generated_source=source):
                    language = self.store.get_test_language(name, source, grammar_dir)
                case Failure(message=message):
                    raise GenerationMismatch(
                        f"Unexpected error message for test grammar '{name}'.\n\n{message}\n"
                    )
                case _:
                    raise TypeError(f"not a generation result: {type(result).__name__}")

            failed |= runner.run(language, parse_tests(grammar_dir / "corpus.txt"))

        return failed

    @staticmethod
    def _listing(directory: Path) -> List[Path]:
        if not directory.is_dir():
            raise CorpusSetupError("Fixture directory not found", directory)
        return sorted(p for p in directory.iterdir() if not p.name.startswith("."))


def _check_expected_error(name: str, expected: str, result: object) -> None:
    match result:
        case Failure(message=actual):
            if actual != expected:
                raise GenerationMismatch(
                    f"Unexpected error message.\n\nExpected:\n\n{expected}\nActual:\n\n{actual}\n"
                )
        case Success():
            raise GenerationMismatch(f"Expected error message but got none for test grammar '{name}'")
        case _:
            raise TypeError(f"not a generation result: {type(result).__name__}")


def run_real_language_corpus_files(**kwargs) -> bool:
    return CorpusDrivers(**kwargs).run_real_language_corpus_files()

def run_error_corpus_files(**kwargs) -> bool:
    return CorpusDrivers(**kwargs).run_error_corpus_files()

def run_feature_corpus_files(**kwargs) -> bool:
    return CorpusDrivers(**kwargs).run_feature_corpus_files()


def _check(failed: bool) -> None:
    if failed:
        raise CorpusFailure("Corpus tests failed")

def check_real_language_corpus_files(**kwargs) -> None:
    _check(run_real_language_corpus_files(**kwargs))

def check_error_corpus_files(**kwargs) -> None:
    _check(run_error_corpus_files(**kwargs))

def check_feature_corpus_files(**kwargs) -> None:
    _check(run_feature_corpus_files(**kwargs))

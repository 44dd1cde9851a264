"""
Mutation test runner: parse each corpus example and compare S-expressions.

Failures are never raised from here; ``run`` folds them into one boolean
per subtree so a single bad example does not hide the rest of the corpus.
"""
from __future__ import annotations

import sys
from typing import IO, Optional, Tuple

from .allocations import AllocationRecorder
from .config import ConfigSnapshot, load_config
from .diff import print_diff, print_diff_key
from .entry import Example, Group, TestEntry
from .language import Language
from .log_graphs import LogSession, log_graphs
from .parser import LogType, Parser

DEFAULT_LOG_FILENAME = "log.html"


def get_parser(
    config: ConfigSnapshot,
    log_filename: str = DEFAULT_LOG_FILENAME,
    err: Optional[IO[str]] = None,
) -> Tuple[Parser, Optional[LogSession]]:
    """Fresh parser wired to whichever diagnostic sink ``config`` asks for.

    The returned session, when there is one, belongs to the caller and must
    be closed once the parse is done.
    """
    parser = Parser()

    if config.trace_log_enabled:
        stream = err or sys.stderr

        def trace(log_type: LogType, message: str) -> None:
            if log_type is LogType.LEX:
                print(f"  {message}", file=stream)
            else:
                print(message, file=stream)

        parser.set_logger(trace)
        return parser, None

    if config.graph_log_enabled:
        return parser, log_graphs(parser, log_filename)

    return parser, None


class MutationTestRunner:
    def __init__(
        self,
        config: Optional[ConfigSnapshot] = None,
        recorder: Optional[AllocationRecorder] = None,
        out: Optional[IO[str]] = None,
        err: Optional[IO[str]] = None,
        log_filename: str = DEFAULT_LOG_FILENAME,
    ):
        self.config = config or load_config()
        self.out = out or sys.stdout
        self.err = err or sys.stderr
        self.recorder = recorder or AllocationRecorder(self.config.record_allocations, self.err)
        self.log_filename = log_filename
        self._printed_diff_key = False

    def run(self, language: Language, entry: TestEntry) -> bool:
        """True when at least one example under ``entry`` failed."""
        match entry:
            case Example():
                return self._run_example(language, entry)
            case Group(children=children):
                failed = False
                for child in children:
                    failed |= self.run(language, child)
                return failed
            case _:
                raise TypeError(f"not a test entry: {type(entry).__name__}")

    def _run_example(self, language: Language, example: Example) -> bool:
        if not self.config.example_selected(example.name):
            return False

        print(f"  example: {example.name!r}", file=self.err)

        recording = self.recorder.start()
        actual = self._parse(language, example.input)

        if actual == example.output:
            recording.stop()
            return False

        # the recording stays open; the recorder finalizes it on its next start()
        if not self._printed_diff_key:
            print_diff_key(self.out)
            self._printed_diff_key = True
        print_diff(actual, example.output, self.out)
        print(file=self.out)
        return True

    def _parse(self, language: Language, data: bytes) -> str:
        parser, session = get_parser(self.config, self.log_filename, self.err)
        try:
            parser.set_language(language)
            tree = parser.parse_utf8(data)
            return tree.to_sexp()
        finally:
            if session is not None:
                session.close()


def run_mutation_tests(
    language: Language,
    entry: TestEntry,
    config: Optional[ConfigSnapshot] = None,
    recorder: Optional[AllocationRecorder] = None,
    out: Optional[IO[str]] = None,
    err: Optional[IO[str]] = None,
) -> bool:
    runner = MutationTestRunner(config, recorder=recorder, out=out, err=err)
    return runner.run(language, entry)

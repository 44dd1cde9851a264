from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class CorpusSetupError(Exception):
    """Fixture or grammar problem that stops the current driver."""

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None):
        self.message = message
        self.path = path
        super().__init__(f"{message}: {path}" if path is not None else message)


class FixtureError(CorpusSetupError):
    pass


class LanguageNotFoundError(CorpusSetupError):
    def __init__(self, name: str, path: Optional[Union[str, Path]] = None):
        super().__init__(f"No grammar found for language '{name}'", path)
        self.name = name


class MalformedLanguageError(CorpusSetupError):
    pass


class CorpusFailure(Exception):
    """Raised once a run has aggregated at least one failing case."""

    def __init__(self, message: str = "Corpus tests failed"):
        super().__init__(message)


class GenerationMismatch(CorpusFailure):
    """The grammar compiler disagreed with a recorded expectation."""
    pass


class IncompatibleLanguageError(Exception):
    pass


class ParserError(Exception):
    pass

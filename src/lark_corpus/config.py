"""Process-wide settings, read once from the environment."""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Mapping, Optional

LANGUAGE_FILTER_VAR = "LARK_CORPUS_LANGUAGE_FILTER"
EXAMPLE_FILTER_VAR = "LARK_CORPUS_EXAMPLE_FILTER"
ENABLE_LOG_VAR = "LARK_CORPUS_ENABLE_LOG"
ENABLE_LOG_GRAPHS_VAR = "LARK_CORPUS_ENABLE_LOG_GRAPHS"
RECORD_ALLOCATIONS_VAR = "LARK_CORPUS_RECORD_ALLOCATIONS"
FIXTURES_DIR_VAR = "LARK_CORPUS_FIXTURES_DIR"


@dataclass(frozen=True)
class ConfigSnapshot:
    language_filter: Optional[str] = None
    example_filter: Optional[str] = None
    trace_log_enabled: bool = False
    graph_log_enabled: bool = False
    record_allocations: bool = False
    fixtures_dir: Optional[Path] = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> ConfigSnapshot:
        fixtures = environ.get(FIXTURES_DIR_VAR)
        return cls(
            language_filter=environ.get(LANGUAGE_FILTER_VAR),
            example_filter=environ.get(EXAMPLE_FILTER_VAR),
            trace_log_enabled=ENABLE_LOG_VAR in environ,
            graph_log_enabled=ENABLE_LOG_GRAPHS_VAR in environ,
            record_allocations=RECORD_ALLOCATIONS_VAR in environ,
            fixtures_dir=Path(fixtures) if fixtures else None,
        )

    def language_selected(self, name: str) -> bool:
        return self.language_filter is None or name == self.language_filter

    def example_selected(self, name: str) -> bool:
        return self.example_filter is None or self.example_filter in name


@lru_cache(maxsize=None)
def load_config() -> ConfigSnapshot:
    """Resolve the snapshot from ``os.environ`` on first use; later calls reuse it."""
    return ConfigSnapshot.from_env(os.environ)

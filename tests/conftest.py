from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict, List

import pytest

BASE_DIR = Path(__file__).resolve().parent.parent
SRC_DIR = (BASE_DIR / "src").resolve()

if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))
if str(SRC_DIR) not in sys.path:
    sys.path.append(str(SRC_DIR))

from lark_corpus import config as corpus_config

CORPUS_ENV_VARS = (
    corpus_config.LANGUAGE_FILTER_VAR,
    corpus_config.EXAMPLE_FILTER_VAR,
    corpus_config.ENABLE_LOG_VAR,
    corpus_config.ENABLE_LOG_GRAPHS_VAR,
    corpus_config.RECORD_ALLOCATIONS_VAR,
    corpus_config.FIXTURES_DIR_VAR,
)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch):
    """Each test sees an empty corpus environment and a fresh snapshot."""
    for name in CORPUS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    corpus_config.load_config.cache_clear()
    yield
    corpus_config.load_config.cache_clear()


def pytest_collection_modifyitems(
    session: pytest.Session,
    config: pytest.Config,
    items: List[pytest.Item],
) -> None:
    """Fail fast if pytest ever generates duplicate node IDs."""
    del session
    del config

    seen: Dict[str, int] = {}
    duplicates: List[str] = []
    for item in items:
        nodeid = item.nodeid
        if nodeid in seen:
            duplicates.append(nodeid)
            continue
        seen[nodeid] = 1

    if not duplicates:
        return

    lines = "\n".join(f"- {nodeid}" for nodeid in sorted(set(duplicates)))
    raise pytest.UsageError(
        "Duplicate pytest nodeids detected during collection:\n" f"{lines}"
    )

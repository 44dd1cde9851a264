"""
run_corpus.py: run the corpus suites from a source checkout.

Suites:
1. real: prebuilt grammars under fixtures/grammars against their corpus.
2. errors: error-recovery cases from fixtures/error_corpus.
3. features: grammars under fixtures/test_grammars, compiled on the fly.

Filters come from the environment (LARK_CORPUS_LANGUAGE_FILTER,
LARK_CORPUS_EXAMPLE_FILTER). Exits non-zero on failure.
"""

from __future__ import annotations

import sys
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent
SRC_DIR = (BASE_DIR / "src").resolve()
if str(SRC_DIR) not in sys.path:
    sys.path.append(str(SRC_DIR))

from lark_corpus.cli import run_suites

if __name__ == "__main__":
    raise SystemExit(run_suites(sys.argv[1:]))

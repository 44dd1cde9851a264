"""Corpus-driven conformance tests for lark grammars."""
from __future__ import annotations

__version__ = "0.1.0"

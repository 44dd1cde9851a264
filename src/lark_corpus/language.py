"""Parsing capability loaded from generated parser source."""
from __future__ import annotations

import importlib.util
import itertools
import re
import sys
import types
from pathlib import Path
from typing import Any, FrozenSet, Optional

import lark

from .errors import MalformedLanguageError

LANGUAGE_VERSION = int(lark.__version__.split(".")[0])

_load_counter = itertools.count()
_UNSAFE_NAME_RE = re.compile(r"\W")


def _safe_name(name: str) -> str:
    return _UNSAFE_NAME_RE.sub("_", name)


def _major_version(module: types.ModuleType) -> Optional[int]:
    raw = getattr(module, "__version__", None)
    if not isinstance(raw, str):
        return None
    head = raw.split(".")[0]
    return int(head) if head.isdigit() else None


class Language:
    """A compiled grammar plus the node and error classes its parser uses."""

    def __init__(self, name: str, lark_inst: Any, namespace: Any, version: Optional[int]):
        self.name = name
        self.version = version
        self.module_name = namespace.__name__
        self._lark = lark_inst
        self.tree_class = namespace.Tree
        self.token_class = namespace.Token
        self.unexpected_token = namespace.UnexpectedToken
        self.unexpected_characters = namespace.UnexpectedCharacters
        self.named_terminals: FrozenSet[str] = frozenset(
            t.name
            for t in lark_inst.terminals
            if t.pattern.type == "re" and not t.name.startswith("__")
        )

    @classmethod
    def from_generated_source(cls, name: str, source: str, path: Optional[Path] = None) -> Language:
        filename = str(path / "parser.py") if path is not None else f"<generated parser {name}>"

        try:
            code = compile(source, filename, "exec")
        except SyntaxError as exc:
            raise MalformedLanguageError(
                f"Generated parser for '{name}' is not valid Python ({exc.msg})", path
            ) from exc

        # each load gets its own module name; the same grammar name may be loaded more than once
        module_name = f"lark_corpus_generated_{_safe_name(name)}_{next(_load_counter)}"
        spec = importlib.util.spec_from_loader(module_name, loader=None, origin=filename)
        module = importlib.util.module_from_spec(spec)
        module.__file__ = filename

        # dataclasses in the generated code look their module up in sys.modules
        sys.modules[module_name] = module
        try:
            exec(code, module.__dict__)
            factory = getattr(module, "Lark_StandAlone", None)
            if factory is None:
                raise MalformedLanguageError(f"Generated parser for '{name}' has no Lark_StandAlone", path)
            lark_inst = factory(propagate_positions=True)
        except Exception:
            sys.modules.pop(module_name, None)
            raise

        return cls(name, lark_inst, module, _major_version(module))

    def parse_interactive(self, text: str) -> Any:
        return self._lark.parse_interactive(text)

    def __repr__(self) -> str:
        return f"Language({self.name!r})"

"""Shared helpers for working with parse-tree nodes.

Trees come either from lark itself or from a generated standalone parser
module, which carries its own copies of lark's ``Tree`` and ``Token`` classes.
The helpers here therefore duck-type on lark's interface instead of using
``isinstance`` against lark's classes.
"""
from __future__ import annotations

import re
from typing import Any, List, Optional, Tuple

from typing_extensions import TypeAlias

Node: TypeAlias = Any
Span: TypeAlias = Tuple[int, int]

_SEXP_TOKEN_RE = re.compile(r"\(|\)|[^\s()]+")


def is_tree(node: Node) -> bool:
    return hasattr(node, "data") and hasattr(node, "children")

def is_token(node: Node) -> bool:
    return isinstance(node, str) and hasattr(node, "type")

def is_named_token(node: Node) -> bool:
    """Anonymous terminals (``__ANON_n``, ``$END``) never show up in S-expressions."""
    return is_token(node) and not node.type.startswith(("__", "$"))

def tree_label(node: Node) -> Optional[str]:
    return str(node.data) if is_tree(node) else None

def tree_children(node: Node) -> List[Node]:
    if not is_tree(node):
        return []

    children = getattr(node, "children", None)
    if children is None:
        return []

    return list(children)

def node_span(node: Node) -> Optional[Span]:
    """Character span covered by ``node``, or None when it has no position."""
    if is_token(node):
        start = getattr(node, "start_pos", None)
        end = getattr(node, "end_pos", None)
        if start is None or end is None:
            return None
        return start, end

    if is_tree(node):
        meta = node.meta
        if getattr(meta, "empty", True):
            return None
        return meta.start_pos, meta.end_pos

    return None


def _sexp_items(node: Node) -> List[str]:
    if is_tree(node):
        label = tree_label(node) or ""
        inner = [item for child in tree_children(node) for item in _sexp_items(child)]
        # _rules are inlined by lark; treat any that survive as transparent
        if label.startswith("_"):
            return inner
        return ["(" + " ".join([label, *inner]) + ")"]

    if is_named_token(node):
        return [f"({node.type})"]

    return []

def to_sexp(node: Node) -> str:
    """Canonical single-line S-expression for ``node``."""
    return " ".join(_sexp_items(node))

def format_sexp(sexp: str, indent: str = "  ") -> List[str]:
    """Lay an S-expression out one node per line, for diffing."""
    lines: List[str] = []
    depth = 0

    for tok in _SEXP_TOKEN_RE.findall(sexp):
        if tok == "(":
            lines.append(indent * depth + "(")
            depth += 1
        elif tok == ")":
            depth = max(depth - 1, 0)
            if lines:
                lines[-1] += ")"
            else:
                lines.append(")")
        elif lines and not lines[-1].endswith(")"):
            sep = "" if lines[-1].endswith("(") else " "
            lines[-1] += sep + tok
        else:
            lines.append(indent * depth + tok)

    return lines

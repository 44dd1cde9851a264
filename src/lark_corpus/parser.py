"""
Parser sessions over a compiled Language.

Input is pulled through a byte-window callback and decoded incrementally,
then driven through lark's interactive LALR parser one token at a time so
that lexing and parsing can be traced and errors recovered from:

- an unexpected character is skipped
- an unexpected token is skipped
- consecutive skipped input forms one error region, which becomes an
  ERROR node inside the deepest tree enclosing it
- if end of input itself is rejected, everything parsed so far is wrapped
  in an ERROR root
"""
from __future__ import annotations

import codecs
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, List, Optional, Tuple, Union

from typing_extensions import TypeAlias

from .errors import IncompatibleLanguageError, ParserError
from .language import LANGUAGE_VERSION, Language
from .tree import Node, is_token, is_tree, node_span, to_sexp, tree_label

ERROR_LABEL = "ERROR"

Point: TypeAlias = Tuple[int, int]
ReadCallback: TypeAlias = Callable[[int, Point], Union[bytes, bytearray, memoryview]]


class LogType(Enum):
    PARSE = auto()
    LEX = auto()


Logger: TypeAlias = Callable[[LogType, str], None]
GraphSink: TypeAlias = Callable[[str], None]


@dataclass
class ErrorRegion:
    start: int
    end: int
    children: List[Node] = field(default_factory=list)


@dataclass
class ParseTree:
    root: Node
    text: str
    language: Language

    def to_sexp(self) -> str:
        return to_sexp(self.root)

    @property
    def has_error(self) -> bool:
        return "(" + ERROR_LABEL in self.to_sexp()


def read_input(read: ReadCallback) -> str:
    """Pull every chunk from ``read`` and decode it as UTF-8."""
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    pieces: List[str] = []
    offset = 0
    row = 0
    column = 0

    while True:
        chunk = read(offset, (row, column))
        if not chunk:
            break

        chunk = bytes(chunk)
        pieces.append(decoder.decode(chunk))
        offset += len(chunk)

        newlines = chunk.count(b"\n")
        if newlines:
            row += newlines
            column = len(chunk) - chunk.rindex(b"\n") - 1
        else:
            column += len(chunk)

    pieces.append(decoder.decode(b"", final=True))
    return "".join(pieces)


def stack_graph(parser_state: Any, action: str) -> str:
    """DOT digraph of the LALR stack after ``action``."""
    states = list(parser_state.state_stack)
    values = list(parser_state.value_stack)
    lines = [
        "digraph stack {",
        '  rankdir="RL";',
        f'  label="{_dot_escape(action)}";',
        "  node [shape=box];",
    ]

    for idx, state in enumerate(states):
        lines.append(f'  s{idx} [label="{_dot_escape(str(state))}"];')

    for idx, value in enumerate(values):
        label = tree_label(value) if is_tree(value) else getattr(value, "type", repr(value))
        lines.append(f'  s{idx + 1} -> s{idx} [label="{_dot_escape(str(label))}"];')

    lines.append("}")
    return "\n".join(lines)


def _dot_escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


class Parser:
    def __init__(self) -> None:
        self._language: Optional[Language] = None
        self._logger: Optional[Logger] = None
        self._graph_sink: Optional[GraphSink] = None

    def set_language(self, language: Language) -> None:
        if not isinstance(language, Language):
            raise IncompatibleLanguageError(
                f"Expected a Language, got {type(language).__name__}"
            )
        if language.version != LANGUAGE_VERSION:
            raise IncompatibleLanguageError(
                f"Language '{language.name}' was generated for version {language.version}, "
                f"expected version {LANGUAGE_VERSION}"
            )
        self._language = language

    def set_logger(self, logger: Optional[Logger]) -> None:
        self._logger = logger

    def set_dot_graph_sink(self, sink: Optional[GraphSink]) -> None:
        self._graph_sink = sink

    def parse(self, read: ReadCallback) -> ParseTree:
        if self._language is None:
            raise ParserError("Cannot parse before a language is set")

        text = read_input(read)
        root = _ParseRun(self._language, text, self._logger, self._graph_sink).run()
        return ParseTree(root, text, self._language)

    def parse_utf8(self, data: bytes) -> ParseTree:
        window = memoryview(data)
        return self.parse(lambda offset, _point: window[offset:])


class _ParseRun:
    """State for one parse; discarded when the tree is returned."""

    def __init__(self, language: Language, text: str, logger: Optional[Logger], graph_sink: Optional[GraphSink]):
        self.language = language
        self.text = text
        self.logger = logger
        self.graph_sink = graph_sink
        self.regions: List[ErrorRegion] = []
        self._open_region: Optional[ErrorRegion] = None

    def run(self) -> Node:
        interactive = self.language.parse_interactive(self.text)
        parser_state = interactive.parser_state
        lexer_thread = interactive.lexer_thread
        last_token = None

        while True:
            try:
                for token in lexer_thread.lex(parser_state):
                    if self.logger is not None:
                        self.logger(LogType.LEX, f"lexed {token.type} {str(token)!r} at {token.line}:{token.column}")
                    try:
                        parser_state.feed_token(token)
                    except self.language.unexpected_token:
                        self._skip_token(token)
                        self._graph(parser_state, f"skip {token.type}")
                        continue

                    self._open_region = None
                    last_token = token
                    if self.logger is not None:
                        self.logger(
                            LogType.PARSE,
                            f"shift {token.type} state:{parser_state.position} depth:{len(parser_state.state_stack)}",
                        )
                    self._graph(parser_state, f"shift {token.type}")
                break
            except self.language.unexpected_characters as exc:
                self._skip_character(lexer_thread.state.line_ctr, exc.pos_in_stream)
            except self.language.unexpected_token as exc:
                # the lexer consumed a token the current parse state cannot take
                self._skip_token(exc.token)

        try:
            root = interactive.feed_eof(last_token)
        except self.language.unexpected_token:
            if self.logger is not None:
                self.logger(LogType.PARSE, "recover_to_root")
            root = self._recover_to_root(parser_state)
        else:
            if self.logger is not None:
                self.logger(LogType.PARSE, "accept")
            for region in self.regions:
                _insert_error(root, self._error_tree(region), region.start, region.end)

        self._graph(parser_state, "done")
        return root

    def _graph(self, parser_state: Any, action: str) -> None:
        if self.graph_sink is not None:
            self.graph_sink(stack_graph(parser_state, action))

    def _region(self, start: int, end: int) -> ErrorRegion:
        region = self._open_region
        if region is None:
            region = ErrorRegion(start, end)
            self.regions.append(region)
            self._open_region = region
        else:
            region.end = max(region.end, end)
        return region

    def _skip_token(self, token: Any) -> None:
        region = self._region(token.start_pos, token.end_pos)
        if token.type in self.language.named_terminals:
            region.children.append(token)
        if self.logger is not None:
            self.logger(LogType.PARSE, f"skip_token {token.type} at {token.line}:{token.column}")

    def _skip_character(self, line_ctr: Any, pos: int) -> None:
        self._region(pos, pos + 1)
        if self.logger is not None:
            self.logger(LogType.LEX, f"skip_character {self.text[pos:pos + 1]!r} at {pos}")
        if line_ctr.char_pos == pos:
            line_ctr.feed(self.text[pos:pos + 1])

    def _error_tree(self, region: ErrorRegion) -> Node:
        error = self.language.tree_class(ERROR_LABEL, list(region.children))
        error.meta.start_pos = region.start
        error.meta.end_pos = region.end
        error.meta.empty = False
        return error

    def _recover_to_root(self, parser_state: Any) -> Node:
        named = self.language.named_terminals
        # the stack still holds punctuation the tree builder would have filtered
        items = [node for node in parser_state.value_stack if not is_token(node) or node.type in named]
        for region in self.regions:
            items.extend(region.children)

        end = len(self.text)
        items.sort(key=lambda node: (node_span(node) or (end, end))[0])
        return self.language.tree_class(ERROR_LABEL, items)


def _insert_error(node: Node, error: Node, start: int, end: int) -> None:
    children = node.children

    for child in children:
        if not is_tree(child) or tree_label(child) == ERROR_LABEL:
            continue
        span = node_span(child)
        if span is not None and span[0] <= start and end <= span[1]:
            _insert_error(child, error, start, end)
            return

    index = len(children)
    for idx, child in enumerate(children):
        span = node_span(child)
        if span is not None and span[0] >= end:
            index = idx
            break

    children.insert(index, error)

"""Graph-log sessions: every parse step's stack, as DOT, collected into one HTML file."""
from __future__ import annotations

import html
from pathlib import Path
from typing import IO, Optional, Union

from .parser import Parser

HTML_HEADER = "<!DOCTYPE html>\n<html>\n<head><meta charset=\"utf-8\"><title>parse log</title></head>\n<body>\n"
HTML_FOOTER = "</body>\n</html>\n"


class LogSession:
    """Owns the log file and the parser's graph sink until closed.

    Opening the file happens up front so that a bad path fails loudly at
    session construction.
    """

    def __init__(self, parser: Parser, path: Union[str, Path]):
        self.path = Path(path)
        self.graph_count = 0
        self._parser: Optional[Parser] = parser
        self._stream: Optional[IO[str]] = self.path.open("w", encoding="utf-8")
        self._stream.write(HTML_HEADER)
        parser.set_dot_graph_sink(self.write_graph)

    @property
    def closed(self) -> bool:
        return self._stream is None

    def write_graph(self, dot: str) -> None:
        if self._stream is None:
            return
        self.graph_count += 1
        self._stream.write(f"<pre class=\"graph\" data-step=\"{self.graph_count}\">\n")
        self._stream.write(html.escape(dot))
        self._stream.write("\n</pre>\n")

    def close(self) -> None:
        if self._stream is None:
            return
        if self._parser is not None:
            self._parser.set_dot_graph_sink(None)
            self._parser = None
        self._stream.write(HTML_FOOTER)
        self._stream.close()
        self._stream = None

    def __enter__(self) -> LogSession:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def log_graphs(parser: Parser, path: Union[str, Path]) -> LogSession:
    return LogSession(parser, path)

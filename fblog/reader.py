"""Input stream opening and line iteration."""

import io
import sys
from contextlib import contextmanager
from typing import Generator, Iterator, TextIO

STDIN = "-"


@contextmanager
def open_input(path: str = STDIN) -> Iterator[TextIO]:
    """Yield a text stream for path; "-" means standard input."""
    if path == STDIN:
        buffer = getattr(sys.stdin, "buffer", None)
        if buffer is None:
            yield sys.stdin
        else:
            yield io.TextIOWrapper(buffer, encoding="utf-8", errors="replace", newline="\n")
        return
    with open(path, "r", encoding="utf-8", errors="replace", newline="\n") as f:
        yield f


def read_lines(stream: TextIO) -> Generator[str, None, None]:
    """Yield each line of stream without its line terminator."""
    for line in stream:
        yield line.rstrip("\r\n")

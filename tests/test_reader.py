"""Tests for fblog/reader.py"""

import io
import sys
from types import SimpleNamespace

from fblog.reader import STDIN, open_input, read_lines


def _read(path):
    with open_input(path) as f:
        return list(read_lines(f))


class TestReadLines:
    def test_strips_terminators(self):
        assert list(read_lines(io.StringIO("a\nb\r\nc"))) == ["a", "b", "c"]


class TestOpenInput:
    def test_file_splits_on_newline_only(self, tmp_path):
        log = tmp_path / "app.log"
        log.write_bytes(b'plain\rtext\n{"message": "m"}\r\n')
        assert _read(str(log)) == ["plain\rtext", '{"message": "m"}']

    def test_file_invalid_utf8_replaced(self, tmp_path):
        log = tmp_path / "app.log"
        log.write_bytes(b"caf\xe9\n")
        assert _read(str(log)) == ["caf�"]

    def test_stdin_splits_on_newline_only(self, monkeypatch):
        stdin = SimpleNamespace(buffer=io.BytesIO(b"plain\rtext\nnext\r\n"))
        monkeypatch.setattr(sys, "stdin", stdin)
        assert _read(STDIN) == ["plain\rtext", "next"]

    def test_stdin_without_buffer(self, monkeypatch):
        monkeypatch.setattr(sys, "stdin", io.StringIO("one\ntwo\n"))
        assert _read(STDIN) == ["one", "two"]

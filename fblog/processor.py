"""Per-line pipeline: parse -> filter -> substitute -> render -> write."""

import json
import logging
from dataclasses import replace
from typing import Iterable

from fblog.config import Settings
from fblog.fields import resolve
from fblog.filters import FilterError, evaluate
from fblog.flatten import flatten
from fblog.substitution import Substitution
from fblog.writer import OutputWriter

logger = logging.getLogger(__name__)


def _reject_constant(name: str):
    raise ValueError(f"{name} is not valid JSON")


def _is_encodable(value) -> bool:
    """False when a decoded string holds a lone surrogate escape such as \\ud800."""
    try:
        json.dumps(value, ensure_ascii=False).encode("utf-8")
    except (UnicodeEncodeError, RecursionError):
        return False
    return True


def parse_record(text: str) -> dict | None:
    """Return the JSON object on text, or None for anything else."""
    try:
        value = json.loads(text, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        return None
    if not isinstance(value, dict) or not _is_encodable(value):
        return None
    return value


def split_prefix(line: str) -> tuple[str | None, str]:
    """Split line at its first '{' into (prefix, body); prefix is None without a brace."""
    pos = line.find("{")
    if pos < 0:
        return None, line
    return line[:pos], line[pos:]


class LineProcessor:
    def __init__(
        self,
        settings: Settings,
        writer: OutputWriter,
        filter_expression: str | None = None,
        substitution: Substitution | None = None,
    ):
        self.settings = settings
        self.writer = writer
        self.filter_expression = filter_expression
        self.substitution = substitution

    def process_input(self, lines: Iterable[str]) -> bool:
        """Process every line; returns False if a filter error stopped the run."""
        for line in lines:
            if not self.process_line(line):
                return False
        return True

    def process_line(self, line: str) -> bool:
        """Render one input line. Returns whether processing should continue."""
        prefix = None
        text = line
        while True:
            record = parse_record(text)
            if record is not None:
                return self.process_record(record, prefix)
            if not self.settings.with_prefix or prefix is not None:
                break
            prefix, text = split_prefix(text)
            if prefix is None:
                break
        self.writer.unknown_line(line)
        return True

    def process_record(self, record: dict, prefix: str | None = None) -> bool:
        if self.filter_expression is not None:
            try:
                if not self._passes_filter(record):
                    return True
            except FilterError as exc:
                logger.error("Failed to apply filter expression: %s", exc)
                return not self.settings.abort_on_filter_error

        flat = flatten(record)
        resolved = resolve(flat, self.settings, prefix)
        if self.substitution is not None:
            substituted = self.substitution.apply(resolved.message, record)
            if substituted is not None:
                resolved = replace(resolved, message=substituted)
        self.writer.emit(resolved, flat, record)
        return True

    def _passes_filter(self, record: dict) -> bool:
        hook = self.writer.write_line if self.settings.print_lua else None
        return evaluate(record, self.filter_expression, self.settings.implicit_return, hook)

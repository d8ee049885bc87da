"""Placeholder substitution inside log messages.

A placeholder format such as ``{key}`` or ``${key}`` is split around the
literal word ``key``; every ``prefix<identifier>suffix`` in a message is
replaced by the matching value from the record's context field.
"""

import re

from fblog.flatten import scalar_to_string
from fblog.style import BOLD, DIMMED, Style, paint

KEY_DELIMITER = "key"
DEFAULT_CONTEXT_KEY = "context"
DEFAULT_PLACEHOLDER_FORMAT = "{key}"

STRING_STYLE = Style.named("yellow", bold=True)
NUMBER_STYLE = Style.named("cyan", bold=True)
TRUE_STYLE = Style.named("green", bold=True)
FALSE_STYLE = Style.named("red", bold=True)
NULL_STYLE = Style.named("default", bold=True)
OBJECT_KEY_STYLE = Style.named("magenta")
UNRESOLVED_STYLE = Style.named("red", bold=True)

_MISSING = object()


class FormatError(Exception):
    """Raised when a placeholder format cannot be turned into a pattern."""

    MISSING_IDENTIFIER = "The identifier `key` must appear exactly once"

    def __init__(self, placeholder_format: str):
        self.placeholder_format = placeholder_format
        super().__init__(f"{self.MISSING_IDENTIFIER}: {placeholder_format!r}")


def parse_placeholder_format(placeholder_format: str) -> tuple[str, str]:
    """Split a format around its single ``key`` token into (prefix, suffix)."""
    if placeholder_format.count(KEY_DELIMITER) != 1:
        raise FormatError(placeholder_format)
    prefix, suffix = placeholder_format.split(KEY_DELIMITER, 1)
    return prefix, suffix


class Substitution:
    def __init__(
        self,
        context_key: str = DEFAULT_CONTEXT_KEY,
        placeholder_format: str = DEFAULT_PLACEHOLDER_FORMAT,
        no_color: bool = False,
    ):
        self.context_key = context_key
        self.placeholder_prefix, self.placeholder_suffix = parse_placeholder_format(placeholder_format)
        self.pattern = re.compile(
            re.escape(self.placeholder_prefix) + r"([A-Za-z0-9_-]+)" + re.escape(self.placeholder_suffix)
        )
        self.no_color = no_color

    def apply(self, message: str, record: dict) -> str | None:
        """Substitute placeholders in message, or None when the record has no context."""
        if self.context_key not in record:
            return None
        context = record[self.context_key]
        return self.pattern.sub(lambda match: self._replace(match.group(1), context), message)

    def _replace(self, identifier: str, context) -> str:
        value = self._lookup(identifier, context)
        if value is _MISSING:
            return (
                self._paint(self.placeholder_prefix, DIMMED)
                + self._paint(identifier, UNRESOLVED_STYLE)
                + self._paint(self.placeholder_suffix, DIMMED)
            )
        return self.color_format(value)

    @staticmethod
    def _lookup(identifier: str, context):
        if isinstance(context, dict):
            return context.get(identifier, _MISSING)
        if isinstance(context, list) and identifier.isascii() and identifier.isdigit():
            index = int(identifier)
            if index < len(context):
                return context[index]
        return _MISSING

    def _paint(self, text: str, style: Style) -> str:
        return paint(text, style, self.no_color)

    def color_format(self, value) -> str:
        """Render a JSON value with a color per type."""
        if value is None:
            return self._paint("null", NULL_STYLE)
        if value is True:
            return self._paint("true", TRUE_STYLE)
        if value is False:
            return self._paint("false", FALSE_STYLE)
        if isinstance(value, str):
            return self._paint(value, STRING_STYLE)
        if isinstance(value, (int, float)):
            return self._paint(scalar_to_string(value), NUMBER_STYLE)
        if isinstance(value, list):
            separator = self._paint(", ", DIMMED)
            inner = separator.join(self.color_format(v) for v in value)
            return self._paint("[", DIMMED) + inner + self._paint("]", DIMMED)
        if isinstance(value, dict):
            separator = self._paint(", ", DIMMED)
            inner = separator.join(
                self._paint(str(k), OBJECT_KEY_STYLE) + self._paint(": ", DIMMED) + self.color_format(v)
                for k, v in value.items()
            )
            return self._paint("{", DIMMED) + inner + self._paint("}", DIMMED)
        return self._paint(str(value), BOLD)

"""Output writer — main line, additional values, markers for unknown lines."""

import os
import sys
from typing import TextIO

from fblog.config import Settings
from fblog.fields import ResolvedFields
from fblog.flatten import NESTED_SEPARATOR, scalar_to_string
from fblog.style import Style, paint
from fblog.template import ADDITIONAL_VALUE, MAIN_LINE, RenderError, TemplateRegistry

# Exit status when the output stream goes away (e.g. `fblog app.log | head`)
EXIT_OUTPUT_CLOSED = 14

UNKNOWN_LINE_MARKER = "??? >"
RENDER_ERROR_MARKER = "!!! >"
UNKNOWN_LINE_STYLE = Style.rgb(255, 135, 22, bold=True)
RENDER_ERROR_STYLE = Style.named("red", bold=True)


def _is_under(key: str, name: str) -> bool:
    return key == name or key.startswith(name + NESTED_SEPARATOR)


def select_additional_values(flat: dict[str, str], settings: Settings) -> list[str]:
    """Return the flat keys to print below the main line, in output order."""
    if settings.dump_all:
        return [
            key for key in flat
            if not any(_is_under(key, excluded) for excluded in settings.excluded_values)
        ]

    selected = []
    for name in settings.additional_values:
        for key in flat:
            if _is_under(key, name) and key not in selected:
                selected.append(key)
    return selected


def main_line_values(resolved: ResolvedFields, record: dict) -> dict:
    values = {
        key: scalar_to_string(value)
        for key, value in record.items()
        if value is not None and not isinstance(value, (dict, list))
    }
    values.update(
        fblog_timestamp=resolved.timestamp,
        fblog_level=resolved.level,
        fblog_message=resolved.message,
        fblog_prefix=resolved.prefix,
    )
    return values


class OutputWriter:
    def __init__(self, templates: TemplateRegistry, settings: Settings, stream: TextIO | None = None):
        self.templates = templates
        self.settings = settings
        self.stream = stream if stream is not None else sys.stdout

    def write_line(self, text: str) -> None:
        try:
            self.stream.write(text + "\n")
            self.stream.flush()
        except OSError:
            self._terminate()

    def _terminate(self) -> None:
        if self.stream is sys.stdout:
            # Python flushes stdout again at exit; point it at devnull so that
            # flush cannot raise a second BrokenPipeError.
            devnull = os.open(os.devnull, os.O_WRONLY)
            os.dup2(devnull, sys.stdout.fileno())
        sys.exit(EXIT_OUTPUT_CLOSED)

    def emit(self, resolved: ResolvedFields, flat: dict[str, str], record: dict) -> None:
        try:
            self.write_line(self.templates.render(MAIN_LINE, main_line_values(resolved, record)))
        except RenderError as exc:
            self.render_error(exc)
            return

        for key in select_additional_values(flat, self.settings):
            try:
                line = self.templates.render(ADDITIONAL_VALUE, {"key": key, "value": flat[key]})
            except RenderError as exc:
                self.render_error(exc)
                continue
            self.write_line(line)

    def unknown_line(self, line: str) -> None:
        marker = paint(UNKNOWN_LINE_MARKER, UNKNOWN_LINE_STYLE, self.settings.no_color)
        self.write_line(f"{marker} {line}")

    def render_error(self, exc: Exception) -> None:
        marker = paint(RENDER_ERROR_MARKER, RENDER_ERROR_STYLE, self.settings.no_color)
        self.write_line(f"{marker} Failed to render line: {exc}")

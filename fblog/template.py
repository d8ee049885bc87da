"""Output templates — Jinja2 environment with the fixed fblog helper set.

Each helper is registered twice: as a filter (``{{ key | fixed_size(25) }}``)
and as a global function taking the text last (``{{ fixed_size(25, key) }}``).
"""

from functools import partial

import jinja2

from fblog.style import BOLD, Style, paint

MAIN_LINE = "main_line"
ADDITIONAL_VALUE = "additional_value"

DEFAULT_MAIN_LINE_FORMAT = (
    "{{ fblog_timestamp | fixed_size(19) | bold }} "
    "{{ fblog_level | fixed_size(5) | uppercase | level_style }}:"
    "{% if fblog_prefix %} {{ fblog_prefix | color_rgb(138, 43, 226) | bold }}{% endif %}"
    " {{ fblog_message }}"
)
DEFAULT_ADDITIONAL_VALUE_FORMAT = "{{ key | fixed_size(25) | color_rgb(150, 150, 150) | bold }}: {{ value }}"

NAMED_COLORS = ("yellow", "red", "blue", "green", "purple", "magenta", "cyan")

LEVEL_COLORS = {
    "info": "green",
    "warn": "yellow",
    "warning": "yellow",
    "error": "red",
    "err": "red",
    "debug": "blue",
}


class InvalidTemplateError(Exception):
    """Raised at startup when a template does not compile."""


class RenderError(Exception):
    """Raised when a compiled template fails for one input."""


def level_to_style(level: str) -> Style:
    return Style.named(LEVEL_COLORS.get(level.strip().lower(), "magenta"), bold=True)


def fixed_size(size, text) -> str:
    """Truncate or left-pad text with spaces to exactly size characters."""
    size = int(size)
    return str(text)[:size].rjust(size)


def min_size(size, text) -> str:
    """Left-pad text with spaces to at least size characters."""
    return str(text).rjust(int(size))


def uppercase(text) -> str:
    return str(text).upper()


class TemplateHelpers:
    """Color-producing helpers bound to one no_color setting."""

    def __init__(self, no_color: bool = False):
        self.no_color = no_color

    def bold(self, text) -> str:
        return paint(str(text), BOLD, self.no_color)

    def color(self, name: str, text) -> str:
        return paint(str(text), Style.named(name), self.no_color)

    def color_rgb(self, r, g, b, text) -> str:
        return paint(str(text), Style.rgb(r, g, b), self.no_color)

    def level_style(self, text) -> str:
        text = str(text)
        return paint(text, level_to_style(text), self.no_color)

    def as_globals(self) -> dict:
        functions = {
            "bold": self.bold,
            "color_rgb": self.color_rgb,
            "level_style": self.level_style,
            "uppercase": uppercase,
            "fixed_size": fixed_size,
            "min_size": min_size,
        }
        for name in NAMED_COLORS:
            functions[name] = partial(self.color, name)
        return functions

    def as_filters(self) -> dict:
        filters = {
            "bold": self.bold,
            "color_rgb": lambda text, r, g, b: self.color_rgb(r, g, b, text),
            "level_style": self.level_style,
            "uppercase": uppercase,
            "fixed_size": lambda text, size: fixed_size(size, text),
            "min_size": lambda text, size: min_size(size, text),
        }
        for name in NAMED_COLORS:
            filters[name] = partial(self.color, name)
        return filters


class TemplateRegistry:
    """The two compiled output templates."""

    def __init__(
        self,
        main_line_format: str = DEFAULT_MAIN_LINE_FORMAT,
        additional_value_format: str = DEFAULT_ADDITIONAL_VALUE_FORMAT,
        no_color: bool = False,
    ):
        helpers = TemplateHelpers(no_color)
        self.env = jinja2.Environment(autoescape=False)
        self.env.filters.update(helpers.as_filters())
        self.env.globals.update(helpers.as_globals())
        self._templates = {
            MAIN_LINE: self._compile(MAIN_LINE, main_line_format),
            ADDITIONAL_VALUE: self._compile(ADDITIONAL_VALUE, additional_value_format),
        }

    def _compile(self, name: str, source: str) -> jinja2.Template:
        try:
            return self.env.from_string(source)
        except jinja2.TemplateSyntaxError as exc:
            raise InvalidTemplateError(f"Invalid {name} template: {exc}") from exc

    def render(self, name: str, values: dict) -> str:
        try:
            template = self._templates[name]
        except KeyError:
            raise RenderError(f"Unknown template: {name}") from None
        try:
            return template.render(values)
        except Exception as exc:
            raise RenderError(str(exc)) from exc

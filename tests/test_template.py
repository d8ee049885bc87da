"""Tests for fblog/template.py"""

import pytest

from fblog.style import strip_ansi
from fblog.template import (
    ADDITIONAL_VALUE,
    MAIN_LINE,
    InvalidTemplateError,
    RenderError,
    TemplateHelpers,
    TemplateRegistry,
    fixed_size,
    min_size,
    uppercase,
)


def _main_values(**overrides):
    values = {
        "fblog_timestamp": "2017-07-06T15:21:16",
        "fblog_level": "info",
        "fblog_message": "something happened",
        "fblog_prefix": "",
    }
    values.update(overrides)
    return values


class TestPlainHelpers:
    @pytest.mark.parametrize("size,text,expected", [
        (5, "info", " info"),
        (5, "error", "error"),
        (3, "abcdef", "abc"),
        (0, "abc", ""),
        ("4", "ab", "  ab"),
    ])
    def test_fixed_size(self, size, text, expected):
        assert fixed_size(size, text) == expected

    def test_min_size_pads_only(self):
        assert min_size(6, "ab") == "    ab"
        assert min_size(3, "abcdef") == "abcdef"

    def test_uppercase(self):
        assert uppercase("warn") == "WARN"


class TestColorHelpers:
    def test_bold(self):
        assert TemplateHelpers().bold("x") == "\033[1mx\033[0m"

    def test_named_color(self):
        assert TemplateHelpers().color("cyan", "x") == "\033[36mx\033[0m"

    def test_purple_and_magenta_match(self):
        helpers = TemplateHelpers()
        assert helpers.color("purple", "x") == helpers.color("magenta", "x")

    def test_color_rgb(self):
        assert TemplateHelpers().color_rgb(1, 2, 3, "x") == "\033[38;2;1;2;3mx\033[0m"

    @pytest.mark.parametrize("level,code", [
        ("info", "1;32"),
        (" INFO", "1;32"),
        ("WARN", "1;33"),
        ("warning", "1;33"),
        ("err", "1;31"),
        ("ERROR", "1;31"),
        ("debug", "1;34"),
        ("trace", "1;35"),
        ("unknown", "1;35"),
    ])
    def test_level_style(self, level, code):
        assert TemplateHelpers().level_style(level) == f"\033[{code}m{level}\033[0m"

    def test_no_color_is_plain(self):
        helpers = TemplateHelpers(no_color=True)
        assert helpers.bold("x") == "x"
        assert helpers.color("red", "x") == "x"
        assert helpers.color_rgb(1, 2, 3, "x") == "x"
        assert helpers.level_style("info") == "info"


class TestTemplateRegistry:
    def test_default_main_line(self):
        registry = TemplateRegistry(no_color=True)
        assert registry.render(MAIN_LINE, _main_values()) == "2017-07-06T15:21:16  INFO: something happened"

    def test_default_main_line_colored(self):
        registry = TemplateRegistry()
        result = registry.render(MAIN_LINE, _main_values())
        assert "\033[" in result
        assert strip_ansi(result) == "2017-07-06T15:21:16  INFO: something happened"

    def test_default_main_line_with_prefix(self):
        registry = TemplateRegistry(no_color=True)
        result = registry.render(MAIN_LINE, _main_values(fblog_prefix="abc"))
        assert result == "2017-07-06T15:21:16  INFO: abc something happened"

    def test_default_additional_value(self):
        registry = TemplateRegistry(no_color=True)
        result = registry.render(ADDITIONAL_VALUE, {"key": "level", "value": "info"})
        assert result == "                    level: info"

    def test_helpers_as_functions(self):
        registry = TemplateRegistry(main_line_format="{{ fixed_size(3, uppercase(fblog_level)) }}", no_color=True)
        assert registry.render(MAIN_LINE, _main_values()) == "INF"

    def test_color_functions_with_record_fields(self):
        registry = TemplateRegistry(main_line_format="{{ yellow(process) }} {{ min_size(4, pid) }}")
        result = registry.render(MAIN_LINE, {"process": "rust", "pid": "7"})
        assert result == "\033[33mrust\033[0m    7"

    def test_missing_field_renders_empty(self):
        registry = TemplateRegistry(main_line_format="[{{ nothing | bold }}]", no_color=True)
        assert registry.render(MAIN_LINE, {}) == "[]"

    def test_syntax_error_is_fatal(self):
        with pytest.raises(InvalidTemplateError):
            TemplateRegistry(main_line_format="{{ fblog_message ")

    def test_unknown_filter_is_fatal(self):
        with pytest.raises(InvalidTemplateError):
            TemplateRegistry(additional_value_format="{{ key | shout }}")

    def test_unknown_function_fails_at_render(self):
        registry = TemplateRegistry(main_line_format="{{ shout(fblog_message) }}")
        with pytest.raises(RenderError):
            registry.render(MAIN_LINE, _main_values())

    def test_bad_helper_argument_fails_at_render(self):
        registry = TemplateRegistry(main_line_format="{{ fblog_message | fixed_size(fblog_level) }}")
        with pytest.raises(RenderError):
            registry.render(MAIN_LINE, _main_values())

    def test_python_error_fails_at_render(self):
        registry = TemplateRegistry(main_line_format="{{ fblog_message }} {{ 1 // 0 }}")
        with pytest.raises(RenderError):
            registry.render(MAIN_LINE, _main_values())

    def test_unknown_template_name(self):
        with pytest.raises(RenderError):
            TemplateRegistry().render("footer", {})

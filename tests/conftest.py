import io

import pytest

from fblog.config import Settings
from fblog.processor import LineProcessor
from fblog.substitution import Substitution
from fblog.template import TemplateRegistry
from fblog.writer import OutputWriter


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep the user's config file and NO_COLOR out of every test."""
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("FBLOG_CONFIG", raising=False)
    monkeypatch.delenv("NO_COLOR", raising=False)


@pytest.fixture
def log_entry():
    return {
        "message": "something happend",
        "time": "2017-07-06T15:21:16",
        "process": "rust",
        "fu": "bower",
        "level": "info",
    }


@pytest.fixture
def nested_log_entry(log_entry):
    entry = dict(log_entry)
    entry["nested"] = {"log.level": "debug"}
    entry["nested_with_array"] = {"array": ["a", "b", "c"]}
    return entry


@pytest.fixture
def settings():
    return Settings(no_color=True)


@pytest.fixture
def make_processor():
    """Build a LineProcessor writing into a StringIO; returns (processor, out)."""

    def _make(settings=None, filter_expression=None, substitute=False):
        settings = settings or Settings(no_color=True)
        out = io.StringIO()
        templates = TemplateRegistry(
            settings.main_line_format, settings.additional_value_format, settings.no_color
        )
        writer = OutputWriter(templates, settings, out)
        substitution = None
        if substitute:
            substitution = Substitution(settings.context_key, settings.placeholder_format, settings.no_color)
        return LineProcessor(settings, writer, filter_expression, substitution), out

    return _make

"""fblog — json log viewer."""

import logging
import sys
from argparse import ArgumentParser
from dataclasses import replace

from fblog import __version__
from fblog.config import ConfigError, Settings, load_settings, no_color_requested
from fblog.filters import FilterError, check_syntax
from fblog.processor import LineProcessor
from fblog.reader import STDIN, open_input, read_lines
from fblog.substitution import FormatError, Substitution
from fblog.template import InvalidTemplateError, TemplateRegistry
from fblog.writer import OutputWriter

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1


def build_parser() -> ArgumentParser:
    """Build the CLI argument parser."""
    parser = ArgumentParser(prog="fblog", description="json log viewer")
    parser.add_argument(
        "input",
        nargs="?",
        default=STDIN,
        metavar="INPUT",
        help="Sets the input file to use, otherwise assumes stdin",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    values = parser.add_mutually_exclusive_group()
    values.add_argument(
        "-a", "--additional-value",
        action="append",
        default=[],
        help="Adds additional values",
    )
    values.add_argument(
        "-x", "--excluded-value",
        action="append",
        default=[],
        help="Excludes values (--dump-all is enabled implicitly)",
    )

    parser.add_argument(
        "-m", "--message-key",
        action="append",
        default=[],
        help="Adds an additional key to detect the message in the log entry. "
             "The first matching key will be assigned to `fblog_message`.",
    )
    parser.add_argument(
        "-t", "--time-key",
        action="append",
        default=[],
        help="Adds an additional key to detect the time in the log entry. "
             "The first matching key will be assigned to `fblog_timestamp`.",
    )
    parser.add_argument(
        "-l", "--level-key",
        action="append",
        default=[],
        help="Adds an additional key to detect the level in the log entry. "
             "The first matching key will be assigned to `fblog_level`.",
    )
    parser.add_argument(
        "--level-map",
        action="append",
        default=[],
        metavar="RAW=DISPLAY",
        help="Maps a raw level value to a display value (e.g. 30=info)",
    )
    parser.add_argument("-d", "--dump-all", action="store_true", help="Dumps all values")
    parser.add_argument(
        "-p", "--with-prefix",
        action="store_true",
        help="Consider all text before opening curly brace as prefix",
    )
    parser.add_argument(
        "-f", "--filter",
        help='Lua expression to filter log entries. '
             '`message ~= nil and string.find(message, "text.*") ~= nil`',
    )
    parser.add_argument(
        "--no-implicit-filter-return-statement",
        action="store_true",
        help="If you pass a filter expression 'return' is automatically prepended. "
             "Pass this switch to disable the implicit return.",
    )
    parser.add_argument(
        "--abort-on-filter-error",
        action="store_true",
        help="Stop at the first line the filter expression fails on instead of skipping it",
    )
    parser.add_argument(
        "--print-lua",
        action="store_true",
        help="Prints lua init expressions. Used for fblog debugging.",
    )
    parser.add_argument(
        "--main-line-format",
        help="Formats the main fblog output. All log values can be used. "
             "fblog provides sanitized variables starting with `fblog_`.",
    )
    parser.add_argument("--additional-value-format", help="Formats the additional value fblog output.")
    parser.add_argument(
        "-s", "--substitute",
        action="store_true",
        help="Enable substitution of placeholders in the log messages with their "
             "corresponding values from the context.",
    )
    parser.add_argument(
        "-c", "--context-key",
        help="Use this key as the source of substitutions for the message. "
             "Value can either be an array ({1}) or an object ({key}).",
    )
    parser.add_argument(
        "-F", "--placeholder-format",
        help="The format that should be used for substituting values in the message, "
             "where the key is the literal word `key`. Example: [[key]] or ${key}.",
    )
    parser.add_argument("--config-file", help="Configuration file to load")
    parser.add_argument("--profile", help="Profile from the configuration file to use")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug diagnostics to stderr")
    return parser


def parse_level_map(entries: list[str]) -> dict[str, str]:
    level_map = {}
    for entry in entries:
        raw, sep, display = entry.partition("=")
        if not sep or not raw:
            raise ConfigError(f"Invalid level mapping '{entry}', expected RAW=DISPLAY")
        level_map[raw] = display
    return level_map


def apply_args(settings: Settings, args) -> Settings:
    """Overlay command-line arguments on settings loaded from config."""
    changes = {
        "message_keys": tuple(args.message_key) + settings.message_keys,
        "time_keys": tuple(args.time_key) + settings.time_keys,
        "level_keys": tuple(args.level_key) + settings.level_keys,
        "additional_values": settings.additional_values + tuple(args.additional_value),
        "excluded_values": settings.excluded_values + tuple(args.excluded_value),
        "level_map": {**settings.level_map, **parse_level_map(args.level_map)},
        "no_color": settings.no_color or no_color_requested(),
    }
    if args.dump_all or args.excluded_value:
        changes["dump_all"] = True
    if args.with_prefix:
        changes["with_prefix"] = True
    if args.print_lua:
        changes["print_lua"] = True
    if args.no_implicit_filter_return_statement:
        changes["implicit_return"] = False
    if args.abort_on_filter_error:
        changes["abort_on_filter_error"] = True
    if args.substitute or args.context_key or args.placeholder_format:
        changes["substitution_enabled"] = True
    if args.context_key:
        changes["context_key"] = args.context_key
    if args.placeholder_format:
        changes["placeholder_format"] = args.placeholder_format
    if args.main_line_format is not None:
        changes["main_line_format"] = args.main_line_format
    if args.additional_value_format is not None:
        changes["additional_value_format"] = args.additional_value_format
    return replace(settings, **changes)


def build_processor(settings: Settings, filter_expression: str | None, stream=None) -> LineProcessor:
    """Compile everything that is fixed for the run; raises on invalid configuration."""
    templates = TemplateRegistry(settings.main_line_format, settings.additional_value_format, settings.no_color)
    substitution = None
    if settings.substitution_enabled:
        substitution = Substitution(settings.context_key, settings.placeholder_format, settings.no_color)
    if filter_expression is not None:
        check_syntax(filter_expression, settings.implicit_return)

    writer = OutputWriter(templates, settings, stream)
    return LineProcessor(settings, writer, filter_expression, substitution)


def run(args, stream=None) -> int:
    """Run fblog for parsed args and return the exit status."""
    try:
        settings = apply_args(load_settings(args.config_file, args.profile), args)
        processor = build_processor(settings, args.filter, stream)
    except (ConfigError, FormatError, InvalidTemplateError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_ERROR
    except FilterError as exc:
        print(f"Error: invalid filter expression: {exc}", file=sys.stderr)
        return EXIT_ERROR

    logger.debug("Processing %s", "stdin" if args.input == STDIN else args.input)
    try:
        with open_input(args.input) as f:
            completed = processor.process_input(read_lines(f))
    except OSError as exc:
        print(f"Error: failed to read {args.input}: {exc}", file=sys.stderr)
        return EXIT_ERROR

    return EXIT_OK if completed else EXIT_ERROR


def main():
    parser = build_parser()
    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    try:
        sys.exit(run(args))
    except KeyboardInterrupt:
        sys.exit(EXIT_OK)

"""Settings — frozen dataclass merged from defaults, a YAML config file and a profile."""

import copy
import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path

import yaml

from fblog.template import DEFAULT_ADDITIONAL_VALUE_FORMAT, DEFAULT_MAIN_LINE_FORMAT

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "FBLOG_CONFIG"
NO_COLOR_ENV_VAR = "NO_COLOR"
DEFAULT_CONFIG_PATH = Path("~/.config/fblog/config.yaml")

DEFAULT_CONTEXT_KEY = "context"
DEFAULT_PLACEHOLDER_FORMAT = "{key}"

# bunyan / pino numeric severities
DEFAULT_LEVEL_MAP = {
    "10": "trace",
    "20": "debug",
    "30": "info",
    "40": "warn",
    "50": "error",
    "60": "fatal",
}

_LIST_KEYS = ("message_keys", "time_keys", "level_keys", "additional_values", "excluded_values")
_BOOL_KEYS = (
    "dump_all",
    "with_prefix",
    "print_lua",
    "substitution_enabled",
    "implicit_return",
    "abort_on_filter_error",
    "no_color",
)
_STRING_KEYS = ("context_key", "placeholder_format", "main_line_format", "additional_value_format")


class ConfigError(Exception):
    """Raised when settings cannot be loaded or are malformed."""


@dataclass(frozen=True)
class Settings:
    message_keys: tuple = ("short_message", "msg", "message")
    time_keys: tuple = ("timestamp", "time", "@timestamp")
    level_keys: tuple = ("level", "severity", "log.level", "loglevel", "log > level")
    level_map: dict = field(default_factory=lambda: dict(DEFAULT_LEVEL_MAP))
    additional_values: tuple = ()
    excluded_values: tuple = ()
    dump_all: bool = False
    with_prefix: bool = False
    print_lua: bool = False
    substitution_enabled: bool = False
    context_key: str = DEFAULT_CONTEXT_KEY
    placeholder_format: str = DEFAULT_PLACEHOLDER_FORMAT
    main_line_format: str = DEFAULT_MAIN_LINE_FORMAT
    additional_value_format: str = DEFAULT_ADDITIONAL_VALUE_FORMAT
    implicit_return: bool = True
    abort_on_filter_error: bool = False
    no_color: bool = False

    @classmethod
    def from_dict(cls, d: dict, base: "Settings | None" = None) -> "Settings":
        """Overlay the keys of d on base (or the defaults)."""
        base = base or cls()
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(d) - known)
        if unknown:
            raise ConfigError(f"Unknown setting(s): {', '.join(unknown)}")

        changes = {}
        for key, value in d.items():
            if key in _LIST_KEYS:
                if not isinstance(value, list):
                    raise ConfigError(f"Setting '{key}' must be a list")
                changes[key] = tuple(str(v) for v in value)
            elif key in _BOOL_KEYS:
                if not isinstance(value, bool):
                    raise ConfigError(f"Setting '{key}' must be true or false")
                changes[key] = value
            elif key in _STRING_KEYS:
                if not isinstance(value, str):
                    raise ConfigError(f"Setting '{key}' must be a string")
                changes[key] = value
            elif key == "level_map":
                if not isinstance(value, dict):
                    raise ConfigError("Setting 'level_map' must be a mapping")
                changes[key] = {str(k): str(v) for k, v in value.items()}
        return replace(base, **changes)


def _read_yaml(path: Path) -> dict:
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except OSError as exc:
        raise ConfigError(f"Failed to read config {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse config {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must contain a mapping at the top level")
    return data


def resolve_config_path(explicit: str | None = None) -> tuple[Path | None, bool]:
    """Return (path, required). An explicitly named file must exist."""
    if explicit:
        return Path(explicit).expanduser(), True
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser(), True
    default = DEFAULT_CONFIG_PATH.expanduser()
    if default.is_file():
        return default, False
    return None, False


def load_settings(config_path: str | None = None, profile: str | None = None) -> Settings:
    """Build Settings from defaults, the config file and the selected profile."""
    path, required = resolve_config_path(config_path)
    data = {}
    if path is not None:
        if required and not path.is_file():
            raise ConfigError(f"Config file not found: {path}")
        data = _read_yaml(path)
        logger.debug("Loaded config file %s", path)

    data = copy.deepcopy(data)
    profiles = data.pop("profiles", None) or {}
    if not isinstance(profiles, dict):
        raise ConfigError("'profiles' must be a mapping of profile name to settings")
    default_profile = data.pop("default_profile", None)

    settings = Settings.from_dict(data)

    selected = profile or default_profile
    if selected:
        if selected not in profiles:
            raise ConfigError(f"Unknown profile: {selected}")
        profile_data = profiles[selected] or {}
        if not isinstance(profile_data, dict):
            raise ConfigError(f"Profile '{selected}' must be a mapping")
        settings = Settings.from_dict(profile_data, base=settings)
        logger.debug("Using profile %s", selected)

    return settings


def no_color_requested(environ=None) -> bool:
    """True when the NO_COLOR environment variable is set to anything."""
    environ = os.environ if environ is None else environ
    return NO_COLOR_ENV_VAR in environ

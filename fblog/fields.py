"""Field resolver — canonical message/time/level lookup through ordered key lists."""

from dataclasses import dataclass

from fblog.config import Settings
from fblog.timestamp import try_convert_timestamp

DEFAULT_LEVEL = "unknown"


@dataclass(frozen=True)
class ResolvedFields:
    level: str
    message: str
    timestamp: str
    prefix: str = ""


def first_value(flat: dict[str, str], keys) -> str | None:
    """Return the value of the first key in keys present in flat."""
    for key in keys:
        if key in flat:
            return flat[key]
    return None


def resolve(flat: dict[str, str], settings: Settings, prefix: str | None = None) -> ResolvedFields:
    level = first_value(flat, settings.level_keys)
    if level is None:
        level = DEFAULT_LEVEL
    level = settings.level_map.get(level, level)

    message = first_value(flat, settings.message_keys) or ""
    timestamp = try_convert_timestamp(first_value(flat, settings.time_keys) or "")

    return ResolvedFields(
        level=level,
        message=message,
        timestamp=timestamp,
        prefix=(prefix or "").strip(),
    )

"""Flatten a nested JSON object into a sorted, single-level str -> str map."""

import json

NESTED_SEPARATOR = " > "


def format_float(value: float) -> str:
    """Shortest round-trip float text with a bare exponent: 1e100, 1.5e-7, 0.00001."""
    text = repr(value)
    mantissa, sep, exponent = text.partition("e")
    if not sep:
        return text
    exp = int(exponent)
    if exp == -5:
        sign = "-" if mantissa.startswith("-") else ""
        return f"{sign}0.0000{mantissa.lstrip('-').replace('.', '')}"
    return f"{mantissa}e{exp}"


def scalar_to_string(value) -> str:
    """Stringify a JSON scalar the way it appears in the source text."""
    if isinstance(value, str):
        return value
    if isinstance(value, float):
        return format_float(value)
    return json.dumps(value)


def _walk(value, path: str, out: dict[str, str]) -> None:
    if value is None:
        return
    if isinstance(value, dict):
        for key, nested in value.items():
            _walk(nested, f"{path}{NESTED_SEPARATOR}{key}", out)
    elif isinstance(value, list):
        for index, element in enumerate(value, start=1):
            _walk(element, f"{path}[{index}]", out)
    else:
        out[path] = scalar_to_string(value)


def flatten(record: dict) -> dict[str, str]:
    """Return the flat projection of record, ordered by key.

    Nested objects join their keys with " > ", array elements get a
    1-based "[i]" suffix and null values are dropped.
    """
    out: dict[str, str] = {}
    for key, value in record.items():
        _walk(value, key, out)
    return dict(sorted(out.items()))

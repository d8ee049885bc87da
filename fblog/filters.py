"""Lua filter expressions evaluated against one log record.

Every evaluation gets its own LuaRuntime. The record's top-level keys are
bound as Lua globals by a generated bootstrap script, then the expression
runs and must produce a boolean.
"""

import math
import re
from typing import Callable

from lupa import LuaError, LuaRuntime

IDENTIFIER_CLEANUP = re.compile(r"[^A-Za-z_]")

LUA_KEYWORDS = frozenset({
    "and", "break", "do", "else", "elseif", "end", "false", "for", "function",
    "goto", "if", "in", "local", "nil", "not", "or", "repeat", "return", "then",
    "true", "until", "while",
})

SANDBOX_PRELUDE = """
io = nil
debug = nil
package = nil
require = nil
dofile = nil
loadfile = nil
python = nil
os = {time = os.time, clock = os.clock, date = os.date}
"""

_ESCAPES = {
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    '"': '\\"',
    "'": "\\'",
    "\\": "\\\\",
}


class FilterError(Exception):
    """Raised when a filter expression fails to compile, run or yield a boolean."""


def lua_identifier(key: str) -> str:
    """Map a JSON key to a Lua name: non [A-Za-z_] characters become '_'."""
    name = IDENTIFIER_CLEANUP.sub("_", key) or "_"
    if name in LUA_KEYWORDS:
        name += "_"
    return name


def escape_lua_string(text: str) -> str:
    out = []
    for char in text:
        if char in _ESCAPES:
            out.append(_ESCAPES[char])
        elif ord(char) < 32 or ord(char) == 127:
            out.append(f"\\{ord(char):03d}")
        else:
            out.append(char)
    return "".join(out)


def to_lua_literal(value) -> str:
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value):
            return "(0/0)"
        if math.isinf(value):
            return "math.huge" if value > 0 else "-math.huge"
        return repr(value)
    if isinstance(value, str):
        return f'"{escape_lua_string(value)}"'
    if isinstance(value, list):
        return "{" + ", ".join(to_lua_literal(v) for v in value) + "}"
    if isinstance(value, dict):
        entries = (f"{lua_identifier(k)} = {to_lua_literal(v)}" for k, v in value.items())
        return "{" + ", ".join(entries) + "}"
    raise FilterError(f"Unsupported value type: {type(value).__name__}")


def record_to_lua(record: dict) -> str:
    """Generate the bootstrap script binding each top-level key as a global."""
    return "\n".join(f"{lua_identifier(k)} = {to_lua_literal(v)}" for k, v in record.items())


def _new_runtime() -> LuaRuntime:
    lua = LuaRuntime(register_eval=False, register_builtins=False)
    lua.execute(SANDBOX_PRELUDE)
    return lua


def _wrap(expression: str, implicit_return: bool) -> str:
    return f"return {expression};" if implicit_return else expression


def check_syntax(expression: str, implicit_return: bool = True) -> None:
    """Compile expression once without running it; raises FilterError on syntax errors."""
    try:
        _new_runtime().compile(_wrap(expression, implicit_return))
    except LuaError as exc:
        raise FilterError(str(exc)) from exc


def evaluate(
    record: dict,
    expression: str,
    implicit_return: bool = True,
    script_hook: Callable[[str], None] | None = None,
) -> bool:
    """Return whether record passes the filter expression."""
    script = record_to_lua(record)
    if script_hook is not None:
        script_hook(script)

    lua = _new_runtime()
    try:
        lua.execute(script)
        result = lua.execute(_wrap(expression, implicit_return))
    except LuaError as exc:
        raise FilterError(str(exc)) from exc

    if not isinstance(result, bool):
        raise FilterError(f"Filter expression must return a boolean, got {_lua_type_name(result)}")
    return result


def _lua_type_name(value) -> str:
    if value is None:
        return "nil"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    return type(value).__name__

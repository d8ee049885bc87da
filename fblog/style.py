"""ANSI styling — one Style descriptor, one paint() function."""

import re
from dataclasses import dataclass

RESET = "\033[0m"

# Foreground color codes
COLORS = {
    "default": "39",
    "red": "31",
    "green": "32",
    "yellow": "33",
    "blue": "34",
    "magenta": "35",
    "purple": "35",
    "cyan": "36",
}

ANSI_PATTERN = re.compile(r"\x1b\[[\d;]*[^\d;]")


@dataclass(frozen=True)
class Style:
    color: str | None = None
    bold: bool = False
    dimmed: bool = False

    @classmethod
    def named(cls, name: str, bold: bool = False) -> "Style":
        return cls(color=COLORS[name], bold=bold)

    @classmethod
    def rgb(cls, r: int, g: int, b: int, bold: bool = False) -> "Style":
        return cls(color=f"38;2;{int(r)};{int(g)};{int(b)}", bold=bold)

    def codes(self) -> str:
        parts = []
        if self.bold:
            parts.append("1")
        if self.dimmed:
            parts.append("2")
        if self.color:
            parts.append(self.color)
        return ";".join(parts)


BOLD = Style(bold=True)
DIMMED = Style(dimmed=True)


def paint(text: str, style: Style, no_color: bool = False) -> str:
    """Wrap text in the escape sequence for style, or return it as-is when colors are off."""
    codes = style.codes()
    if no_color or not codes or not text:
        return text
    return f"\033[{codes}m{text}{RESET}"


def strip_ansi(text: str) -> str:
    return ANSI_PATTERN.sub("", text)

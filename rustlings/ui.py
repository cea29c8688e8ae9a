"""Coloured status lines for the terminal."""

from __future__ import annotations

import os

from rich.console import Console
from rich.text import Text

_WARN_EMOJI = "⚠️ "
_WARN_PLAIN = "!"
_SUCCESS_EMOJI = "✅"
_SUCCESS_PLAIN = "✓"


def no_emoji() -> bool:
    """Return True when the NO_EMOJI environment variable is set."""
    return "NO_EMOJI" in os.environ


def _emit(symbol: str, message: str, colour: str) -> None:
    console = Console(highlight=False, soft_wrap=True, emoji=False)
    text = Text()
    text.append(symbol, style=colour)
    text.append(" ")
    text.append(message, style=colour)
    console.print(text)


def warn(message: str) -> None:
    """Print a warning line in red."""
    symbol = _WARN_PLAIN if no_emoji() else _WARN_EMOJI
    _emit(symbol, message, "red")


def success(message: str) -> None:
    """Print a success line in green."""
    symbol = _SUCCESS_PLAIN if no_emoji() else _SUCCESS_EMOJI
    _emit(symbol, message, "green")
"""Messages for the user on standard error, with optional color."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass

enable_verbose = False
enable_trace = False

_RESET = "\x1b[0m"
_LOCUS = "\x1b[37;1m"
_WARNING = "\x1b[35;1m"
_ERROR = "\x1b[31;1m"


def _is_terminal(stream) -> bool:
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        return False


def _color_unsuitable(stream) -> bool:
    return os.environ.get("TERM") == "dumb" or not _is_terminal(stream)


@dataclass
class _OutputState:
    """Program name and color setting shared by all messages."""

    program: str = ""
    no_color: bool = False


_state = _OutputState(no_color=_color_unsuitable(sys.stdout))


def init(program: str) -> None:
    """Set the program name that prefixes each message."""
    _state.program = program


def always_color() -> None:
    """Always write messages with color."""
    _state.no_color = False


def auto_color() -> None:
    """Use color only if standard error is a terminal and TERM is not dumb."""
    _state.no_color = _color_unsuitable(sys.stderr)


def never_color() -> None:
    """Never write messages with color."""
    _state.no_color = True


def _paint(text: str, code: str) -> str:
    return text if _state.no_color else f"{code}{text}{_RESET}"


def _write(text: str) -> None:
    sys.stderr.write(text)


def _locus() -> None:
    _write(_paint(f"{_state.program}: ", _LOCUS))


def _message(msg: str, args: tuple) -> None:
    _write((msg % args if args else msg) + "\n")


def error(msg: str, *args) -> None:
    _locus()
    _write(_paint("error: ", _ERROR))
    _message(msg, args)


def warning(msg: str, *args) -> None:
    _locus()
    _write(_paint("warning: ", _WARNING))
    _message(msg, args)


def info(msg: str, *args) -> None:
    _locus()
    _message(msg, args)


def verbose(msg: str, *args) -> None:
    if not enable_verbose and not enable_trace:
        return
    _locus()
    _message(msg, args)


def trace(msg: str, *args) -> None:
    if not enable_trace:
        return
    _message(msg, args)
"""
easy-cli settings: environment-driven configuration of the launcher.

Variables
- EASY_CLI_NAME ........ tool name used in help and completions (default "cli")
- EASY_CLI_INTERPRETER . program that runs the scripts (default: run them directly)
- EASY_CLI_WORKERS ..... thread count of the build phase (positive integer)
- EASY_CLI_LOG_LEVEL ... logging level name or number (default WARNING)
- EASY_CLI_COLOR ....... auto, always or never (NO_COLOR forces never under auto)
- EASY_CLI_FANCY ....... boolean, render faults in a panel

Precedence: explicit overrides (the launcher's flags) > environment > defaults.
Overrides set to None are treated as not given.
"""
import logging
import os
from enum import Enum
from typing import NamedTuple

PREFIX = "EASY_CLI_"

_TRUTHY = frozenset(("1", "true", "yes", "on"))
_FALSY = frozenset(("0", "false", "no", "off", ""))


class ColorMode(Enum):
    AUTO = "auto"
    ALWAYS = "always"
    NEVER = "never"


def _boolean(variable, text):
    match text.strip().lower():
        case value if value in _TRUTHY:
            return True
        case value if value in _FALSY:
            return False
    raise ValueError(f"{variable} must be a boolean, got {text!r}")


def _workers(variable, text):
    try:
        workers = int(text)
    except ValueError:
        raise ValueError(f"{variable} must be a positive integer, got {text!r}") from None
    if workers < 1:
        raise ValueError(f"{variable} must be a positive integer, got {text!r}")
    return workers


def _level(variable, text):
    text = str(text).strip()
    if text.isdigit():
        return int(text)
    level = logging.getLevelName(text.upper())
    if not isinstance(level, int):
        raise ValueError(f"{variable} must be a logging level, got {text!r}")
    return level


def _color(variable, text):
    try:
        return ColorMode(text.strip().lower())
    except ValueError:
        choices = ", ".join(mode.value for mode in ColorMode)
        raise ValueError(f"{variable} must be one of {choices}, got {text!r}") from None


class Settings(NamedTuple):
    """
    immutable launcher configuration; build it with Settings.load().
    """
    name: str = "cli"
    interpreter: str | None = None
    workers: int | None = None
    log_level: int = logging.WARNING
    color: ColorMode = ColorMode.AUTO
    fancy: bool = False
    no_color: bool = False

    @classmethod
    def load(cls, environ=None, /, **overrides):
        """
        read the EASY_CLI_* variables of environ (os.environ by default) and apply overrides.

        raises ValueError naming the variable when a value is malformed, and
        TypeError for unknown override names.
        """
        environ = os.environ if environ is None else environ
        if unknown := set(overrides) - set(cls._fields):
            raise TypeError(f"unknown settings: {', '.join(sorted(unknown))}")

        values = {}
        for field, parser in (
            ("name", None),
            ("interpreter", None),
            ("workers", _workers),
            ("log_level", _level),
            ("color", _color),
            ("fancy", _boolean),
        ):
            variable = PREFIX + field.upper()
            text = environ.get(variable)
            if not text:
                continue
            values[field] = parser(variable, text) if parser else text

        # https://no-color.org: any non-empty value disables colour
        values["no_color"] = bool(environ.get("NO_COLOR"))

        for field, value in overrides.items():
            if value is None:
                continue
            match field:
                case "workers":
                    value = _workers("workers", str(value))
                case "log_level":
                    value = _level("log_level", value)
                case "color" if not isinstance(value, ColorMode):
                    value = _color("color", value)
            values[field] = value

        return cls(**values)

    @property
    def colorful(self):
        """
        whether faults are rendered with colour.
        """
        match self.color:
            case ColorMode.ALWAYS:
                return True
            case ColorMode.NEVER:
                return False
            case ColorMode.AUTO:
                return not self.no_color


__all__ = (
    "PREFIX",
    "ColorMode",
    "Settings",
)

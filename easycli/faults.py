"""
easy-cli faults (errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing failure.
  Codes are grouped by domain (reading, interpretation, validation, resolution,
  completion, dispatch) and each domain maps onto its own exit-status range.
- Fault: base type that carries message + options (code, script, tag, line, hint)
  and knows how to render itself in a friendly, lowercased and actionable way.
- BuildError (ReadError, InterpretError, ValidationError), ArityError, ShellError and
  DispatchError: the concrete taxonomy.
- trigger(): central entry point to surface any fault (respecting shell/fancy/colorful).

Exit statuses
- build failures ............ 100-109 (interpretation 101, validation 102, reading 103)
- invocation failures ....... 110-119 (arity 110, completion shell 111)
- dispatch failures ......... 125-127 (spawn 125, not executable 126, missing 127)

Integration
- The build phase raises ReadError/InterpretError/ValidationError and aborts on
  the first one.
- The launcher calls trigger(fault, shell=True, ...) which prints through rich on
  stderr and exits with the fault's status; with shell=False the fault is raised.
"""
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, UnsetType

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the tool (stable identifiers).

    grouping (by high-level domain)
    - reading (20xxx): the source directory or a script cannot be read.
    - interpretation (21xxx): illegal tag use while folding a script's tags.
    - validation (22xxx): identifier syntax, uniqueness and structural rules.
    - resolution (23xxx): parsed values that cannot be linearized for dispatch.
    - completion (24xxx): completion script generation.
    - dispatch (25xxx): the underlying script could not be run.
    """
    # --- reading errors (20xxx) ---
    UNREADABLE_SOURCE           = 20101
    UNREADABLE_SCRIPT           = 20102

    # --- interpretation errors (21xxx) ---
    MISSING_NAME                = 21101
    MALFORMED_NAME              = 21102
    NAME_AFTER_SUB              = 21103
    SUB_AFTER_ARGS              = 21104
    ARG_AFTER_SUBS              = 21105
    ARG_AFTER_VARARG            = 21106
    DUPLICATE_VARARG            = 21107

    # --- validation errors (22xxx) ---
    INVALID_IDENTIFIER          = 22101
    INVALID_SHORT               = 22102
    DUPLICATE_COMMAND           = 22111
    DUPLICATE_SUBCOMMAND        = 22112
    DUPLICATE_OPTION            = 22113
    DUPLICATE_SHORT             = 22114
    DUPLICATE_ARGUMENT          = 22115
    MIXED_ARGS_AND_SUBCOMMANDS  = 22121
    MISPLACED_VARARG            = 22122
    NESTED_SUBCOMMAND           = 22123

    # --- resolution errors (23xxx) ---
    MISSING_VALUE               = 23101
    UNEXPECTED_VALUE            = 23102

    # --- completion errors (24xxx) ---
    UNKNOWN_SHELL               = 24101

    # --- dispatch errors (25xxx) ---
    SPAWN_FAILED                = 25101
    NOT_EXECUTABLE              = 25102
    SCRIPT_MISSING              = 25103

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))

    @property
    def title(self):
        return self.name.lower().replace("_", " ")

    @property
    def status(self):
        """
        process exit status for this code (see the module docstring for ranges).
        """
        match self.value // 1000:
            case 20:
                return 103
            case 21:
                return 101
            case 22:
                return 102
            case 23:
                return 110
            case 24:
                return 111
            case 25:
                return {
                    FaultCode.SPAWN_FAILED: 125,
                    FaultCode.NOT_EXECUTABLE: 126,
                    FaultCode.SCRIPT_MISSING: 127,
                }[self]
        raise AssertionError(f"unmapped fault code {self!r}")


class Fault(Exception):
    """
    base for every easy-cli failure.

    options (all optional, read-only after construction)
    - code: FaultCode, defaults to the class' __code__.
    - script: path of the script the fault is about.
    - tag: annotation tag name (without '@') that triggered the fault.
    - line: 1-based source line of that tag.
    - hint: one short, actionable sentence.
    - shell/fancy/colorful/prog: rendering switches used by trigger().
    """
    __code__ = Unset

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | UnsetType)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code", type(self).__code__)

    @property
    def status(self):
        return self.code.status

    @property
    def script(self):
        return self.options.get("script")

    @property
    def tag(self):
        return self.options.get("tag")

    @property
    def line(self):
        return self.options.get("line")

    @property
    def location(self):
        """
        'path, line N (@tag)' style location, or None when nothing is known.
        """
        parts = []
        if self.script is not None:
            parts.append(str(self.script))
        if self.line is not None:
            parts.append(f"line {self.line}")
        location = ", ".join(parts)
        if self.tag is not None:
            location = f"{location} (@{self.tag})" if location else f"@{self.tag}"
        return location or None

    def __str__(self):
        message = str(self.message) if self.message is not Unset else self.code.title
        if self.location:
            return f"{message} [{self.location}]"
        return message

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", True)
        fancy = self.options.get("fancy", False)

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "location": "#8A8FA3",  # muted location line
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}))

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            return Text(str(fragment), style)

        prog = text(self.options.get("prog", getattr(main, "__prog__", "easy-cli")), styler("prog-name"))

        header = Text.assemble(
            "[ ",
            prog,
            " — ",
            text(self.code.normalize(), styler("code")),
            " | ",
            text(self.options.get("title", self.code.title).title(), styler("error-title")),
            " ]"
        )
        body = [text(self.message if self.message is not Unset else self.code.title, styler("error-message"))]
        if self.location:
            body.append(text(f"at {self.location}", styler("location")))
        if hint := self.options.get("hint"):
            body.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))

        if fancy:
            return Panel(Group(*body), title=header, title_align="left")

        return Group(header, *body)

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(self.status)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class BuildError(Fault):
    """failures of the build phase; they abort the whole schema build."""


class ReadError(BuildError):
    __code__ = FaultCode.UNREADABLE_SCRIPT


class InterpretError(BuildError):
    __code__ = FaultCode.MALFORMED_NAME


class ValidationError(BuildError):
    __code__ = FaultCode.INVALID_IDENTIFIER


class ArityError(Fault):
    __code__ = FaultCode.MISSING_VALUE


class ShellError(Fault):
    __code__ = FaultCode.UNKNOWN_SHELL


class DispatchError(Fault):
    __code__ = FaultCode.SPAWN_FAILED


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see Fault).
    - options are merged into the fault via __replace__(**options) before triggering.
    - in shell mode, the fault is rendered on stderr via rich and the process exits
      with the fault's status; otherwise the (merged) fault is raised.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


__all__ = (
    "FaultCode",
    "Fault",
    "BuildError",
    "ReadError",
    "InterpretError",
    "ValidationError",
    "ArityError",
    "ShellError",
    "DispatchError",
    "trigger",
)

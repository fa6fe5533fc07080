"""
Schema: the validated, immutable command tree of a script directory.

Build phase
- build_script(path): read → scan → interpret → validate one script.
- build_schema(directory): run build_script for every script of a directory on
  a thread pool (scripts share no state), join, then check the cross-script
  rules. Scripts are visited in sorted path order and the first failure in
  that order aborts the build; no partial schema is ever returned.

Selection
- Schema.select(command, subcommand=None) → Selection, the pair the resolver
  and dispatcher work on.
"""
import logging
import os
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from types import MappingProxyType
from typing import NamedTuple

from .faults import FaultCode, ReadError
from .interpreter import interpret
from .scanner import scan
from .specs import ScriptRef
from .utils import stem
from .validator import validate_command, validate_schema

logger = logging.getLogger(__name__)


class Selection(NamedTuple):
    """
    a top-level command and, for multi-subcommand scripts, the selected subcommand.
    """
    command: object
    subcommand: object = None

    @property
    def scope(self):
        return self.subcommand if self.subcommand is not None else self.command

    @property
    def options(self):
        """
        options visible in the selected scope: the parent's first, then the subcommand's own.
        """
        if self.subcommand is None:
            return self.command.options
        return self.command.options + self.subcommand.options

    @property
    def script(self):
        return self.command.script


class Schema(Mapping):
    """
    read-only mapping of top-level command name → CommandSpec.

    - source: the directory the schema was built from.
    - ignored: ScriptRefs of scripts that opted out with @ignore.
    """
    __slots__ = ("_commands", "_source", "_ignored")

    def __init__(self, commands, /, source=None, ignored=()):
        self._commands = MappingProxyType(dict(commands))
        self._source = Path(source) if source is not None else None
        self._ignored = tuple(ignored)

    @property
    def source(self):
        return self._source

    @property
    def ignored(self):
        return self._ignored

    def __getitem__(self, name):
        return self._commands[name]

    def __iter__(self):
        return iter(self._commands)

    def __len__(self):
        return len(self._commands)

    def __repr__(self):
        return f"schema(source={str(self._source)!r}, commands={list(self._commands)!r})"

    def __rich_repr__(self):
        yield "source", self._source
        yield "commands", dict(self._commands)
        if self._ignored:
            yield "ignored", self._ignored

    def select(self, command, subcommand=None, /):
        """
        look up a command (and subcommand) by name; raises KeyError when unknown.
        """
        spec = self._commands[command]
        if subcommand is None:
            return Selection(spec)
        return Selection(spec, spec.subcommands[subcommand])


def build_script(path, /):
    """
    build one script into (ScriptRef, CommandSpec | None).

    the CommandSpec is None when the script opted out with @ignore; an
    unreadable script raises ReadError.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as error:
        raise ReadError(
            f"cannot read script {str(path)!r}: {error.strerror or error}", script=path,
            hint="check the permissions of the script",
        ) from error
    command = interpret(scan(text), path=path)
    if command is None:
        return ScriptRef(path, stem(path), ignored=True), None
    validate_command(command)
    logger.debug("%s: built command %r", path, command.name)
    return command.script, command


def discover(directory, /):
    """
    the script files of a directory, sorted; directories and hidden entries are skipped.
    """
    directory = Path(directory)
    try:
        return sorted(
            entry for entry in directory.iterdir()
            if not entry.name.startswith(".") and entry.is_file()
        )
    except OSError as error:
        raise ReadError(
            f"cannot list scripts in {str(directory)!r}: {error.strerror or error}",
            code=FaultCode.UNREADABLE_SOURCE,
        ) from error


def build_schema(directory, /, workers=None):
    """
    build and validate the Schema of a script directory.

    raises
    - ReadError when the directory or a script cannot be read.
    - InterpretError / ValidationError on the first failing script (sorted order).
    """
    directory = Path(directory)
    paths = discover(directory)
    logger.info("building schema from %d script(s) in %s", len(paths), directory)

    with ThreadPoolExecutor(max_workers=workers or min(32, (os.cpu_count() or 1) + 4)) as executor:
        # map() yields in submission order and re-raises the first failure in that order
        built = list(executor.map(build_script, paths))

    ignored = [script for script, command in built if command is None]
    commands = validate_schema(command for _, command in built if command is not None)
    return Schema(commands, source=directory, ignored=ignored)


__all__ = (
    "Selection",
    "Schema",
    "build_script",
    "build_schema",
    "discover",
)

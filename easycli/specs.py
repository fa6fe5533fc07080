"""
easy-cli schema specifications.

Overview
- Specs
  • ArgSpec: positional argument declared with @arg/@vararg (optional flag, type hint, variadic).
  • OptionSpec: option declared with @opt (long name, optional short char, takes-value flag).
  • CommandSpec: a top-level command or one of its subcommands.
  • ScriptRef: binding between a command and the script file it runs.
- ArgType: presentation-only type hint for arguments (<path>, <file>, <dir>).

Introspection & representation
- SpecType metaclass exposes every name in __introspectable__ as a read-only
  property over a private slot, and provides stable __repr__/__rich_repr__,
  structural __eq__ (over __compared__) and a matching __hash__.
- Specs are sealed once built: fields are written only inside the guarded
  construction block of __new__; any later assignment raises AttributeError.

Quick example:
    >>> OptionSpec("longname", "l", True, "The description of longname")
    option-spec(long='longname', short='l', takes_value=True, description='The description of longname')
"""
import functools
import operator
import re
from collections.abc import Iterable, Mapping
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from types import MappingProxyType

from .utils import Unset, coalesce, mirror


class ArgType(Enum):
    UNKNOWN = "unknown"
    PATH = "path"
    FILE = "file"
    DIR = "dir"

    @classmethod
    def parse(cls, token, /):
        """
        map a '<type>' token (brackets optional, case-insensitive) to an ArgType.

        anything that is not path/file/dir maps to UNKNOWN.
        """
        word = token.strip()
        if word.startswith("<") and word.endswith(">"):
            word = word[1:-1]
        try:
            return cls(word.strip().lower())
        except ValueError:
            return cls.UNKNOWN


def _hashable(object):
    if isinstance(object, Mapping):
        return tuple((key, _hashable(value)) for key, value in object.items())
    if isinstance(object, (list, tuple)):
        return tuple(map(_hashable, object))
    return object


class SpecType(type):
    """
    Metaclass that turns spec classes into sealed, introspectable records.

    Responsibilities
    - Derive __slots__ ("_<field>") and read-only properties from __introspectable__.
    - Provide __repr__/__rich_repr__ over __displayable__ (or __introspectable__).
    - Provide __eq__/__hash__ over __compared__ (or __introspectable__).

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages and reprs.
    """
    __introspectable__ = ()
    __displayable__ = Unset
    __compared__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        fields = namespace.get("__introspectable__", ())
        namespace = namespace | {
            "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
        } | {
            field: mirror(field) for field in fields
        }
        namespace.setdefault("__slots__", tuple("_" + field for field in fields))

        self = super().__new__(cls, name, bases, namespace)

        if not fields:
            return self

        def __repr__(self):
            return f"{type(self).__typename__}(%s)" % ", ".join(
                map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__())
            )
        self.__repr__ = __repr__

        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        def __eq__(self, other):
            if type(other) is not type(self):
                return NotImplemented
            return all(
                getattr(self, name) == getattr(other, name)
                for name in coalesce(type(self).__compared__, type(self).__introspectable__)
            )
        self.__eq__ = __eq__

        def __hash__(self):
            return hash((type(self).__typename__, *(
                _hashable(getattr(self, name))
                for name in coalesce(type(self).__compared__, type(self).__introspectable__)
            )))
        self.__hash__ = __hash__

        return self


class Spec(metaclass=SpecType):
    """
    Sealed base for all specs.

    Construction happens inside the context-managed __new__; after the 'with'
    block, every attribute is read-only:
        with super().__new__(cls) as self:
            self._name = name
    """
    __slots__ = ("__building",)

    @contextmanager
    def __new__(cls):
        self = super().__new__(cls)
        object.__setattr__(self, "_Spec__building", True)
        try:
            yield self
        finally:
            object.__setattr__(self, "_Spec__building", False)

    def __setattr__(self, name, value, /):
        if not self.__building:
            raise AttributeError(f"{type(self).__typename__} is read-only")
        object.__setattr__(self, name, value)

    def __delattr__(self, name, /):
        raise AttributeError(f"{type(self).__typename__} is read-only")


def _check_description(description):
    if description is not None and not isinstance(description, str):
        raise TypeError("description must be a string")
    return description or None


class ArgSpec(Spec):
    """
    A declared positional argument.

    - name: identifier of the argument (validated by the schema validator).
    - optional: whether the argument may be omitted (default False).
    - type: presentation hint (ArgType), never checked against the filesystem.
    - description: help text or None.
    - variadic: captures every remaining token (declared with @vararg).
    - tag: the Tag this argument was declared by (None for implicit arguments).
    """
    __introspectable__ = ("name", "optional", "type", "description", "variadic", "tag")
    __displayable__ = ("name", "optional", "type", "description", "variadic")
    __compared__ = __displayable__

    def __new__(cls, name, /, optional=False, type=ArgType.UNKNOWN, description=None, variadic=False, *, tag=None):
        if not isinstance(name, str):
            raise TypeError("argument name must be a string")
        if not isinstance(type, ArgType):
            raise TypeError("argument type must be an ArgType")
        with super().__new__(cls) as self:
            self._name = name
            self._optional = bool(optional)
            self._type = type
            self._description = _check_description(description)
            self._variadic = bool(variadic)
            self._tag = tag
        return self


class OptionSpec(Spec):
    """
    A declared option.

    - long: long name, used as --long.
    - short: single character used as -s, or None.
    - takes_value: whether the option carries a value (default False: a flag).
    - description: help text or None.
    - tag: the Tag this option was declared by.
    """
    __introspectable__ = ("long", "short", "takes_value", "description", "tag")
    __displayable__ = ("long", "short", "takes_value", "description")
    __compared__ = __displayable__

    def __new__(cls, long, /, short=None, takes_value=False, description=None, *, tag=None):
        if not isinstance(long, str):
            raise TypeError("option long name must be a string")
        if short is not None and not isinstance(short, str):
            raise TypeError("option short name must be a string")
        with super().__new__(cls) as self:
            self._long = long
            self._short = short
            self._takes_value = bool(takes_value)
            self._description = _check_description(description)
            self._tag = tag
        return self


class ScriptRef(Spec):
    """
    Binding to an underlying executable file.

    - path: Path of the script.
    - name: explicit (@name) or derived (file stem) command name.
    - ignored: the script opted out with @ignore and yields no command.
    """
    __introspectable__ = ("path", "name", "ignored")

    def __new__(cls, path, /, name, *, ignored=False):
        with super().__new__(cls) as self:
            self._path = Path(path)
            self._name = name
            self._ignored = bool(ignored)
        return self


class CommandSpec(Spec):
    """
    A command or subcommand.

    - name, about: identifier and description (None when not declared).
    - options: ordered OptionSpecs of this scope.
    - args: ordered ArgSpecs; mutually exclusive with subcommands.
    - subcommands: read-only mapping name → CommandSpec (declaration order kept).
    - script: ScriptRef of the script that declared this command (shared by its subcommands).
    - passthrough: the script declared no tags; its whole tail is forwarded verbatim.
    - tag: the Tag that named this scope (@name or @sub), when there is one.
    """
    __introspectable__ = ("name", "about", "options", "args", "subcommands", "script", "passthrough", "tag")
    __displayable__ = ("name", "about", "options", "args", "subcommands", "passthrough")
    __compared__ = ("name", "about", "options", "args", "subcommands", "script", "passthrough")

    def __new__(
            cls,
            name,
            /,
            about=None,
            options=(),
            args=(),
            subcommands=Unset,
            *,
            script=None,
            passthrough=False,
            tag=None,
    ):
        if not isinstance(name, str):
            raise TypeError("command name must be a string")
        children = {}
        if isinstance(subcommands, Mapping):
            children.update(subcommands)
        elif isinstance(subcommands, Iterable):
            for subcommand in subcommands:
                if children.setdefault(subcommand.name, subcommand) is not subcommand:
                    raise ValueError(f"subcommand name {subcommand.name!r} is already in use")
        with super().__new__(cls) as self:
            self._name = name
            self._about = _check_description(about)
            self._options = tuple(options)
            self._args = tuple(args)
            self._subcommands = MappingProxyType(children)
            self._script = script
            self._passthrough = bool(passthrough)
            self._tag = tag
        return self

    @property
    def variadic(self):
        """
        the trailing variadic ArgSpec, or None.
        """
        if self.args and self.args[-1].variadic:
            return self.args[-1]
        return None

    @property
    def line(self):
        return getattr(self.tag, "line", None)


__all__ = (
    "ArgType",
    "ArgSpec",
    "OptionSpec",
    "ScriptRef",
    "CommandSpec",
)

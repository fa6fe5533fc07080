"""
easy-cli utilities shared by the spec, schema and fault modules.

Overview
- Unset: "no value given" marker for parameters where None is a real value.
- coalesce(value, default=None): Unset falls back to default; None, 0 and ""
  stay as they are.
- mirror("attr"): read-only property over self._attr that hands out tuples,
  mapping proxies or frozensets instead of the mutable backing container.
- isidentifier(text) / IDENTIFIER: the annotation identifier syntax,
  [A-Za-z_][A-Za-z0-9_]* (ASCII only).
- stem(path): command name of a script file (file name minus its last suffix).

Quick examples
    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> isidentifier("build_all"), isidentifier("build-all")
    (True, False)
    >>> stem("scripts/deploy.prod.sh")
    'deploy.prod'
"""
import functools
import os.path
import re
from collections.abc import Sequence, Mapping, Set
from types import MappingProxyType
from typing import final


@final
class UnsetType:
    """
    type of the Unset marker; UnsetType() always returns that one instance.

    Unset is falsey but is neither None nor 0, so options can tell "left out"
    apart from "given as None". The type cannot be subclassed.
    """

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


Unset = UnsetType()


def coalesce(object, default=None, /):
    """
    default when object is Unset, object otherwise.
    """
    return default if object is Unset else object


def _freeze(object):
    """
    read-only counterpart of a container; strs and tuples (named tuples
    included) come back unchanged, other sequences and mappings are copied with
    their items frozen in turn.
    """
    if isinstance(object, (str, tuple)):
        return object
    elif isinstance(object, Sequence):
        return tuple(map(_freeze, object))
    elif isinstance(object, MappingProxyType):
        return object
    elif isinstance(object, Mapping):
        return MappingProxyType(dict(zip(object.keys(), map(_freeze, object.values()))))
    elif isinstance(object, Set):
        return frozenset(object)
    return object


def mirror(name, /):
    """
    property named name that returns _freeze(self._<name>); it has no setter.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    def getter(self):
        return _freeze(getattr(self, "_" + name))

    getter.__name__ = getter.__qualname__ = name
    return property(getter)


IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def isidentifier(text, /):
    """
    Whether text matches the annotation identifier syntax exactly.
    """
    return isinstance(text, str) and IDENTIFIER.fullmatch(text) is not None


def stem(path, /):
    """
    Strip the last suffix (everything from the last '.') from a file name.

    Names without a dot are returned unchanged; a leading dot is not treated
    as a suffix separator.
    """
    name = os.path.basename(os.fspath(path))
    head, dot, _ = name.rpartition(".")
    return head if dot and head else name


__all__ = (
    "UnsetType",
    "Unset",
    "coalesce",
    "mirror",
    "IDENTIFIER",
    "isidentifier",
    "stem",
)

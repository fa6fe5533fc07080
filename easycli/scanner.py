"""
Tag scanner: raw script text → ordered annotation tags.

A line is a tag line when, after its leading whitespace, it reads exactly
'#', one space, '@'. The tag name runs up to the next whitespace; the payload
is everything after it with its leading whitespace removed (nothing else is
trimmed). Every other line is ignored. Scanning never fails: unknown tag names
are passed through and classified as TagKind.UNKNOWN.

    >>> scan("#!/bin/sh\\n# @about Lists files\\necho hi\\n")
    (Tag(name='about', payload='Lists files', line=2),)
"""
import logging
import re
from enum import Enum
from typing import NamedTuple

logger = logging.getLogger(__name__)

_TAG_LINE = re.compile(r"# @(?P<name>\S*)(?:\s+(?P<payload>.*))?", re.DOTALL)


class TagKind(Enum):
    """
    closed set of annotation tags; everything else is UNKNOWN.
    """
    IGNORE = "ignore"
    NAME = "name"
    ABOUT = "about"
    OPT = "opt"
    ARG = "arg"
    VARARG = "vararg"
    SUB = "sub"
    UNKNOWN = None

    @classmethod
    def classify(cls, name, /):
        if not name:
            return cls.UNKNOWN
        try:
            return cls(name)
        except ValueError:
            return cls.UNKNOWN


class Tag(NamedTuple):
    name: str
    payload: str
    line: int

    @property
    def kind(self):
        return TagKind.classify(self.name)


def scan_lines(lines, /):
    """
    scan an iterable of lines (with or without line endings) into a tuple of Tags.
    """
    tags = []
    for number, line in enumerate(lines, 1):
        match = _TAG_LINE.fullmatch(line.lstrip().rstrip("\r\n"))
        if match is None:
            continue
        tags.append(Tag(match["name"], match["payload"] or "", number))
    return tuple(tags)


def scan(text, /):
    """
    scan the full text of one script.
    """
    # only \n ends a line; splitlines() would also break on \x0c, \x85 or \u2028
    tags = scan_lines(text.split("\n"))
    logger.debug("scanned %d tag(s)", len(tags))
    return tags


__all__ = (
    "TagKind",
    "Tag",
    "scan",
    "scan_lines",
)

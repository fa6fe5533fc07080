"""
Tests for the shared helpers and the sealed spec records built on them.

Scope
- Unset sentinel, coalesce(), mirror(), isidentifier() and stem().
- mirror()-backed specs: read-only fields, immutable container views,
  structural equality and hashing.

Conventions
- Test method names follow CamelCase per project convention.
"""
import unittest
from pathlib import Path
from types import MappingProxyType
from unittest import TestCase

from easycli.scanner import Tag
from easycli.specs import ArgSpec, ArgType, CommandSpec, OptionSpec
from easycli.utils import Unset, UnsetType, coalesce, isidentifier, mirror, stem


class TestHelpers(TestCase):
    def testUnsetIsAFalseySingleton(self):
        self.assertIs(UnsetType(), Unset)
        self.assertFalse(Unset)
        self.assertEqual(repr(Unset), "Unset")
        with self.assertRaises(TypeError):
            type("Subclass", (UnsetType,), {})

    def testCoalesce(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 1), 0)

    def testMirror(self):
        class Box:
            items = mirror("items")

            def __init__(self, items):
                self._items = items

        self.assertEqual(Box.items.fget.__name__, "items")
        self.assertEqual(Box([1, [2]]).items, (1, (2,)))
        self.assertIsInstance(Box({"a": 1}).items, MappingProxyType)
        with self.assertRaises(AttributeError):
            Box([]).items = ()
        with self.assertRaises(TypeError):
            mirror(1)

    def testIsIdentifier(self):
        for text in ("build", "_private", "Message", "v2"):
            self.assertTrue(isidentifier(text), text)
        for text in ("", "2nd", "dry-run", "naïve", "a b", None):
            self.assertFalse(isidentifier(text), text)

    def testStem(self):
        self.assertEqual(stem("scripts/deploy.prod.sh"), "deploy.prod")
        self.assertEqual(stem(Path("/x/list.sh")), "list")
        self.assertEqual(stem("Makefile"), "Makefile")
        self.assertEqual(stem(".env"), ".env")


class TestSpecs(TestCase):
    def testFieldsAreReadOnly(self):
        option = OptionSpec("verbose")
        with self.assertRaises(AttributeError):
            option.long = "quiet"
        with self.assertRaises(AttributeError):
            del option.long

    def testContainersAreImmutableViews(self):
        command = CommandSpec("multi", options=[OptionSpec("quiet")], subcommands=[CommandSpec("one")])
        self.assertIsInstance(command.options, tuple)
        self.assertIsInstance(command.subcommands, MappingProxyType)
        with self.assertRaises(TypeError):
            command.subcommands["two"] = CommandSpec("two")

    def testEqualityIgnoresTags(self):
        first = ArgSpec("file", True, ArgType.FILE, tag=Tag("arg", "file true <file>", 3))
        second = ArgSpec("file", True, ArgType.FILE)
        self.assertEqual(first, second)
        self.assertEqual(hash(first), hash(second))
        self.assertNotEqual(first, ArgSpec("file"))

    def testEmptyDescriptionIsNone(self):
        self.assertIsNone(OptionSpec("verbose", description="").description)

    def testDuplicateSubcommandsRejected(self):
        with self.assertRaises(ValueError):
            CommandSpec("multi", subcommands=[CommandSpec("one"), CommandSpec("one")])

    def testVariadic(self):
        rest = ArgSpec("rest", variadic=True)
        self.assertIs(CommandSpec("echo", args=[ArgSpec("first"), rest]).variadic, rest)
        self.assertIsNone(CommandSpec("echo", args=[ArgSpec("first")]).variadic)

    def testRepr(self):
        self.assertEqual(
            repr(OptionSpec("longname", "l", True, "The description of longname")),
            "option-spec(long='longname', short='l', takes_value=True, description='The description of longname')",
        )

    def testArgTypeParse(self):
        self.assertIs(ArgType.parse("<Path>"), ArgType.PATH)
        self.assertIs(ArgType.parse("file"), ArgType.FILE)
        self.assertIs(ArgType.parse("<url>"), ArgType.UNKNOWN)


if __name__ == "__main__":
    unittest.main()

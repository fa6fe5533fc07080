"""
Invocation resolver tests.

Conventions
- Test method names follow CamelCase per project convention.
"""
import unittest
from unittest import TestCase

from easycli.faults import ArityError, FaultCode
from easycli.schema import Selection
from easycli.specs import ArgSpec, CommandSpec, OptionSpec, ScriptRef
from easycli.resolver import resolve

SCRIPT = ScriptRef("/scripts/multi.sh", "multi")

ONE = CommandSpec(
    "one",
    options=[OptionSpec("option", "o")],
    args=[ArgSpec("Message")],
    script=SCRIPT,
)
TWO = CommandSpec(
    "two",
    options=[OptionSpec("level", "l", True)],
    args=[ArgSpec("target", True), ArgSpec("words", True, variadic=True)],
    script=SCRIPT,
)
MULTI = CommandSpec("multi", options=[OptionSpec("quiet", "q")], subcommands=[ONE, TWO], script=SCRIPT)


class TestResolve(TestCase):
    def testFlagAndArgument(self):
        selection = Selection(CommandSpec("multi", subcommands=[ONE], script=SCRIPT), ONE)
        self.assertEqual(resolve(selection, {"option": True}, {"Message": "hi"}), ("true", "hi"))

    def testParentOptionsComeFirst(self):
        values = resolve(Selection(MULTI, ONE), {"quiet": False, "option": True}, {"Message": "hi"})
        self.assertEqual(values, ("false", "true", "hi"))

    def testAbsentValuesKeepTheirPositions(self):
        values = resolve(Selection(MULTI, TWO), {}, {})
        self.assertEqual(values, ("false", "", ""))

    def testVariadicTokensAreAppendedSeparately(self):
        values = resolve(
            Selection(MULTI, TWO),
            {"level": "3"},
            {"target": "prod", "words": ("a b", "--c")},
        )
        self.assertEqual(values, ("false", "3", "prod", "a b", "--c"))

    def testMissingRequiredArgument(self):
        with self.assertRaises(ArityError) as context:
            resolve(Selection(MULTI, ONE), {}, {})
        self.assertEqual(context.exception.code, FaultCode.MISSING_VALUE)
        self.assertEqual(context.exception.status, 110)

    def testRequiredVarargNeedsOneToken(self):
        command = CommandSpec("echo", args=[ArgSpec("words", variadic=True)], script=SCRIPT)
        with self.assertRaises(ArityError):
            resolve(Selection(command), {}, {"words": ()})
        self.assertEqual(resolve(Selection(command), {}, {"words": ["x"]}), ("x",))

    def testUnknownBindingsAreRejected(self):
        with self.assertRaises(ArityError) as context:
            resolve(Selection(MULTI, ONE), {"verbose": True}, {"Message": "hi"})
        self.assertEqual(context.exception.code, FaultCode.UNEXPECTED_VALUE)
        self.assertIn("'verbose'", context.exception.message)

    def testMultipleValuesForSingleArgument(self):
        with self.assertRaises(ArityError):
            resolve(Selection(MULTI, ONE), {}, {"Message": ["a", "b"]})

    def testNoBindings(self):
        command = CommandSpec("noop", script=SCRIPT)
        self.assertEqual(resolve(Selection(command)), ())


if __name__ == "__main__":
    unittest.main()

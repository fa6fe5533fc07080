"""
Dispatcher tests.

Scope
- plan(): argv conventions for single and multi-subcommand scripts.
- dispatch(): real /bin/sh scripts, exit-status passthrough, launch faults,
  signal forwarding.
- _Forwarder: held signals, SIGINT and the terminal foreground group.
- render_eval() and render_echo(): the evaluated-mode snippets.

Conventions
- Test method names follow CamelCase per project convention.
- Scripts record their argv into a file next to them instead of printing.
"""
import shutil
import signal
import stat
import tempfile
import threading
import time
import unittest
from pathlib import Path
from unittest import TestCase
from unittest.mock import Mock, patch

from easycli.dispatcher import Invocation, _Forwarder, dispatch, plan, render_echo, render_eval
from easycli.faults import DispatchError, FaultCode
from easycli.schema import Selection
from easycli.specs import ArgSpec, CommandSpec, OptionSpec, ScriptRef


def selection_for(path):
    script = ScriptRef(path, "multi")
    one = CommandSpec("one", options=[OptionSpec("option", "o")], args=[ArgSpec("Message")], script=script)
    return Selection(CommandSpec("multi", subcommands=[one], script=script), one)


class TestPlan(TestCase):
    def testSubcommandNameComesFirst(self):
        invocation = plan(selection_for("/scripts/multi.sh"), ("true", "hi"))
        self.assertEqual(invocation, Invocation(Path("/scripts/multi.sh"), ("one", "true", "hi")))

    def testSingleCommand(self):
        script = ScriptRef("/scripts/list.sh", "list")
        command = CommandSpec("list", args=[ArgSpec("directory")], script=script)
        self.assertEqual(plan(Selection(command), ["/tmp"]).argv, ("/tmp",))

    def testCommandLine(self):
        invocation = Invocation(Path("/scripts/multi.sh"), ("one", "a b"))
        self.assertEqual(invocation.command_line(), ["/scripts/multi.sh", "one", "a b"])
        self.assertEqual(invocation.command_line("bash -e"), ["bash", "-e", "/scripts/multi.sh", "one", "a b"])


@unittest.skipUnless(shutil.which("sh"), "requires a POSIX shell")
class TestDispatch(TestCase):
    def setUp(self):
        directory = tempfile.TemporaryDirectory()
        self.addCleanup(directory.cleanup)
        self.directory = Path(directory.name)
        self.record = self.directory / "argv.txt"

    def script(self, name, body, executable=True):
        path = self.directory / name
        path.write_text(f"#!/bin/sh\n{body}\n", encoding="utf-8")
        if executable:
            path.chmod(path.stat().st_mode | stat.S_IXUSR)
        return path

    def recorded(self):
        return self.record.read_text(encoding="utf-8").splitlines()

    def testRunsScriptWithPlannedArguments(self):
        path = self.script("multi.sh", f"printf '%s\\n' \"$@\" > '{self.record}'")
        status = dispatch(plan(selection_for(path), ("true", "hi")))
        self.assertEqual(status, 0)
        self.assertEqual(self.recorded(), ["one", "true", "hi"])

    def testExitStatusIsPassedThrough(self):
        path = self.script("fail.sh", "exit 3")
        self.assertEqual(dispatch(Invocation(path, ())), 3)

    def testDeathBySignal(self):
        path = self.script("killed.sh", "kill -TERM $$")
        self.assertEqual(dispatch(Invocation(path, ())), 128 + 15)

    def testMissingScript(self):
        with self.assertRaises(DispatchError) as context:
            dispatch(Invocation(self.directory / "gone.sh", ()))
        self.assertEqual(context.exception.code, FaultCode.SCRIPT_MISSING)
        self.assertEqual(context.exception.status, 127)

    def testNotExecutable(self):
        path = self.script("plain.sh", "exit 0", executable=False)
        with self.assertRaises(DispatchError) as context:
            dispatch(Invocation(path, ()))
        self.assertEqual(context.exception.code, FaultCode.NOT_EXECUTABLE)
        self.assertEqual(context.exception.status, 126)

    def testInterpreterSkipsExecutableCheck(self):
        path = self.script("plain.sh", f"printf '%s\\n' \"$@\" > '{self.record}'", executable=False)
        self.assertEqual(dispatch(Invocation(path, ("a b",)), interpreter="sh"), 0)
        self.assertEqual(self.recorded(), ["a b"])

    def testSpawnFailure(self):
        path = self.script("tool.sh", "exit 0")
        with self.assertRaises(DispatchError) as context:
            dispatch(Invocation(path, ()), interpreter="/nonexistent/interpreter")
        self.assertEqual(context.exception.code, FaultCode.SPAWN_FAILED)

    @unittest.skipUnless(hasattr(signal, "pthread_kill"), "requires pthread_kill")
    def testForwardsTerminationSignal(self):
        ready = self.directory / "ready"
        marker = self.directory / "marker"
        path = self.script("trap.sh", (
            f"trap 'echo term > \"{marker}\"; exit 7' TERM\n"
            f": > '{ready}'\n"
            "i=0\n"
            "while [ $i -lt 100 ]; do sleep 0.1; i=$((i+1)); done"
        ))

        def terminate_when_ready():
            deadline = time.monotonic() + 10
            while not ready.exists() and time.monotonic() < deadline:
                time.sleep(0.01)
            signal.pthread_kill(threading.main_thread().ident, signal.SIGTERM)

        sender = threading.Thread(target=terminate_when_ready, daemon=True)
        sender.start()
        status = dispatch(Invocation(path, ()))
        sender.join()
        self.assertEqual(status, 7)
        self.assertEqual(marker.read_text(encoding="utf-8"), "term\n")

    def testHandlersInstalledBeforeSpawn(self):
        path = self.script("tool.sh", "exit 0")
        handlers = []

        def spawn(command_line):
            handlers.append(signal.getsignal(signal.SIGTERM))
            return Mock(pid=42, **{"wait.return_value": 0})

        previous = signal.getsignal(signal.SIGTERM)
        with patch("easycli.dispatcher.subprocess.Popen", side_effect=spawn):
            self.assertEqual(dispatch(Invocation(path, ())), 0)
        self.assertIsInstance(handlers[0], _Forwarder)
        self.assertIs(signal.getsignal(signal.SIGTERM), previous)


class TestForwarder(TestCase):
    def testSignalsBeforeAttachAreDelivered(self):
        forwarder, child = _Forwarder(), Mock(pid=42)
        forwarder(signal.SIGTERM, None)
        child.send_signal.assert_not_called()
        forwarder.attach(child)
        child.send_signal.assert_called_once_with(signal.SIGTERM)

    def testInterruptNotForwardedToForegroundGroup(self):
        forwarder, child = _Forwarder(), Mock(pid=42)
        forwarder.attach(child)
        with patch("easycli.dispatcher._foreground", return_value=True):
            forwarder(signal.SIGINT, None)
            forwarder(signal.SIGTERM, None)
        child.send_signal.assert_called_once_with(signal.SIGTERM)

    def testInterruptForwardedOutsideForegroundGroup(self):
        forwarder, child = _Forwarder(), Mock(pid=42)
        forwarder.attach(child)
        with patch("easycli.dispatcher._foreground", return_value=False):
            forwarder(signal.SIGINT, None)
        child.send_signal.assert_called_once_with(signal.SIGINT)

    def testVanishedChildIsIgnored(self):
        forwarder = _Forwarder()
        forwarder.attach(Mock(pid=42, **{"send_signal.side_effect": ProcessLookupError}))
        forwarder(signal.SIGTERM, None)


class TestRenderEcho(TestCase):
    def testQuotesText(self):
        self.assertEqual(render_echo("Usage: cli [OPTIONS]\n\n  it's here\n"), "echo 'Usage: cli [OPTIONS]\n\n  it'\"'\"'s here'\n")

    def testErrorsGoToStandardError(self):
        self.assertEqual(render_echo("Error: no such command", stderr=True), "echo 'Error: no such command' >&2\n")


class TestRenderEval(TestCase):
    def testSnippet(self):
        selection = selection_for("/scripts/multi.sh")
        invocation = plan(selection, ("true", "hi there"))
        snippet = render_eval(invocation, selection, {"option": True}, {"Message": "hi there"})
        self.assertEqual(snippet, (
            "#eval\n"
            "typeset -A cli_args\n"
            "cli_args=(Message 'hi there')\n"
            "typeset -A cli_opts\n"
            "cli_opts=(option true)\n"
            "source /scripts/multi.sh\n"
            "one\n"
        ))

    def testSingleCommandHasNoSubcommandLine(self):
        script = ScriptRef("/scripts/list.sh", "list")
        command = CommandSpec(
            "list",
            options=[OptionSpec("level", None, True)],
            args=[ArgSpec("words", True, variadic=True)],
            script=script,
        )
        selection = Selection(command)
        snippet = render_eval(plan(selection, ()), selection, {}, {"words": ("a", "b")})
        self.assertEqual(snippet.splitlines()[2:], [
            "cli_args=(words a,b)",
            "typeset -A cli_opts",
            "cli_opts=(level '')",
            "source /scripts/list.sh",
        ])


if __name__ == "__main__":
    unittest.main()

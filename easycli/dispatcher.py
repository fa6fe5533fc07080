"""
Dispatcher: run the underlying script with the resolved values.

Conventions
- single-command scripts: <script> <values...>
- multi-subcommand scripts: <script> <subcommand> <values...>

Execution
- synchronous, stdio inherited, fire-once/wait-once (no timeout, no retry);
- SIGINT, SIGTERM and SIGHUP are caught from before the spawn until the child
  exits and forwarded to it so it is never orphaned; SIGINT is not forwarded
  when the terminal already delivered it to the whole foreground group;
- the child's exit status is returned unchanged (death by signal N ⇒ 128+N).

Failures to run the script at all raise DispatchError (missing, not executable,
failed to spawn); they are distinct from every build-time fault.

Evaluated mode
- render_eval() renders a shell snippet that sources the script with the values
  bound in the associative arrays cli_args and cli_opts, instead of running it;
- render_echo() wraps text to display (help, usage errors) in an echo snippet.
"""
import logging
import os
import shlex
import signal
import subprocess
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import NamedTuple

from .faults import DispatchError, FaultCode

logger = logging.getLogger(__name__)

FORWARDED_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGINT", "SIGTERM", "SIGHUP") if hasattr(signal, name)
)


class Invocation(NamedTuple):
    """
    a planned script run: the script path and the arguments it receives.
    """
    script: Path
    argv: tuple

    def command_line(self, interpreter=None, /):
        prefix = shlex.split(interpreter) if interpreter else []
        return [*prefix, str(self.script), *self.argv]


def plan(selection, values, /):
    """
    build the Invocation for a resolved selection.
    """
    values = tuple(values)
    if selection.subcommand is not None:
        values = (selection.subcommand.name, *values)
    return Invocation(selection.script.path, values)


def _foreground():
    """
    whether this process group owns the controlling terminal.

    a terminal's ^C already reaches every process of the foreground group, the
    child included; forwarding SIGINT as well would deliver it twice.
    """
    try:
        return os.tcgetpgrp(sys.stdin.fileno()) == os.getpgrp()
    except (AttributeError, OSError, ValueError):
        return False


class _Forwarder:
    """
    signal handler relaying termination signals to the attached child.

    signals received before a child is attached are held and delivered on
    attach(), so nothing is lost between installing the handlers and spawning.
    """
    def __init__(self):
        self.child = None
        self.pending = []

    def __call__(self, signum, frame):
        if self.child is None:
            self.pending.append(signum)
        elif signum == getattr(signal, "SIGINT", None) and _foreground():
            logger.debug("not forwarding SIGINT: pid %d shares the terminal", self.child.pid)
        else:
            self.send(signum)

    def send(self, signum):
        logger.debug("forwarding signal %d to pid %d", signum, self.child.pid)
        try:
            self.child.send_signal(signum)
        except ProcessLookupError:
            pass

    def attach(self, child):
        self.child = child
        pending, self.pending = self.pending, []
        for signum in pending:
            self.send(signum)


@contextmanager
def _forwarding():
    """
    install a _Forwarder for the termination signals while active.
    """
    forwarder = _Forwarder()
    previous = {}
    for signum in FORWARDED_SIGNALS:
        try:
            previous[signum] = signal.signal(signum, forwarder)
        except ValueError:
            # not the main thread; signals stay with their current handlers
            break
    try:
        yield forwarder
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)


def dispatch(invocation, /, interpreter=None):
    """
    run the invocation and wait for it; returns the exit status.

    parameters
    - invocation: Invocation from plan().
    - interpreter: optional command (e.g. "zsh" or "bash -e") that runs the
      script; when set, the script does not need to be executable.
    """
    script = Path(invocation.script)
    if not script.is_file():
        raise DispatchError(
            f"script {str(script)!r} does not exist", code=FaultCode.SCRIPT_MISSING, script=script,
        )
    if not interpreter and not os.access(script, os.X_OK):
        raise DispatchError(
            f"script {str(script)!r} is not executable", code=FaultCode.NOT_EXECUTABLE, script=script,
            hint=f"run 'chmod +x {script}' or pass --interpreter",
        )

    command_line = invocation.command_line(interpreter)
    logger.info("dispatching %s", shlex.join(command_line))
    with _forwarding() as forwarder:
        try:
            child = subprocess.Popen(command_line)
        except OSError as error:
            raise DispatchError(
                f"failed to run {str(script)!r}: {error.strerror or error}", code=FaultCode.SPAWN_FAILED, script=script,
            ) from error
        forwarder.attach(child)
        status = child.wait()

    logger.debug("%s exited with %d", script, status)
    return 128 - status if status < 0 else status


def render_echo(text, /, stderr=False):
    """
    render a shell snippet that prints text when evaluated.

    used in evaluated mode for everything the caller's shell must display
    rather than run (help pages, usage errors).
    """
    snippet = f"echo {shlex.quote(text.rstrip(chr(10)))}"
    return f"{snippet} >&2\n" if stderr else f"{snippet}\n"


def render_eval(invocation, selection, /, options=None, arguments=None):
    """
    render the evaluated-mode shell snippet for an invocation.

    cli_args maps argument names to values (variadic tokens joined with ',');
    cli_opts maps option names to "true"/"false" or their value.
    """
    def pairs(mapping):
        return " ".join(f"{shlex.quote(key)} {shlex.quote(value)}" for key, value in mapping.items())

    opts = {}
    for option in selection.options:
        value = (options or {}).get(option.long)
        if option.takes_value:
            opts[option.long] = "" if value is None else str(value)
        else:
            opts[option.long] = "true" if value else "false"

    args = {}
    for arg in selection.scope.args:
        value = (arguments or {}).get(arg.name)
        if arg.variadic:
            args[arg.name] = ",".join(map(str, value or ()))
        else:
            args[arg.name] = "" if value is None else str(value)

    lines = [
        "#eval",
        "typeset -A cli_args",
        f"cli_args=({pairs(args)})",
        "typeset -A cli_opts",
        f"cli_opts=({pairs(opts)})",
        f"source {shlex.quote(str(invocation.script))}",
    ]
    if selection.subcommand is not None:
        lines.append(shlex.quote(selection.subcommand.name))
    return "\n".join(lines) + "\n"


__all__ = (
    "FORWARDED_SIGNALS",
    "Invocation",
    "plan",
    "dispatch",
    "render_eval",
    "render_echo",
)

"""
easy-cli launcher: turn a directory of annotated scripts into a command line.

    easy-cli [-n NAME] [--completions SHELL] [--eval] [--interpreter PROG]
             [-v...] SOURCE [-- ARGS...]

Flow
- build the schema of SOURCE (any build fault aborts before parsing);
- with --completions, print the completion script for SHELL and stop;
- otherwise parse ARGS with the generated click tree, resolve the values and
  either run the selected script (exit status = the script's) or, with --eval,
  print the evaluated-mode snippet. In that mode help pages and usage errors
  of the generated CLI are printed as echo snippets, never as raw text.

Every easy-cli fault is rendered through rich on stderr and mapped onto its
exit status (see easycli.faults).
"""
import io
import logging
import sys
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path

import click

from .completions import describe, generate
from .dispatcher import dispatch, plan, render_echo, render_eval
from .engine import HELP_OPTION_NAMES, Parsed, parse, to_click
from .faults import Fault, trigger
from .logs import setup_logging, verbosity
from .resolver import resolve
from .schema import build_schema
from .settings import Settings

logger = logging.getLogger(__name__)


def run(source, args=(), /, settings=None, shell=None, evaluate=False, out=None):
    """
    run one launcher invocation and return its exit status.

    faults propagate to the caller; click usage errors of the generated CLI are
    reported by click (or echoed, when evaluating) and returned as their status.
    """
    settings = settings or Settings()
    out = out or sys.stdout

    schema = build_schema(source, workers=settings.workers)
    logger.debug("schema: %d command(s), %d ignored", len(schema), len(schema.ignored))

    if shell is not None:
        click.echo(generate(describe(schema, name=settings.name), shell), file=out, nl=False)
        return 0

    cli = to_click(schema, name=settings.name)
    if evaluate:
        # the caller evals stdout; whatever click prints must come back as echo
        with redirect_stdout(io.StringIO()) as captured, redirect_stderr(captured):
            parsed = parse(cli, args, prog_name=settings.name)
        if not isinstance(parsed, Parsed):
            click.echo(render_echo(captured.getvalue(), stderr=parsed != 0), file=out, nl=False)
            return parsed
    else:
        parsed = parse(cli, args, prog_name=settings.name)
        if not isinstance(parsed, Parsed):
            return parsed

    selection, options, arguments = parsed
    invocation = plan(selection, resolve(selection, options=options, arguments=arguments))
    if evaluate:
        click.echo(render_eval(invocation, selection, options=options, arguments=arguments), file=out, nl=False)
        return 0
    return dispatch(invocation, interpreter=settings.interpreter)


@click.command(
    "easy-cli",
    context_settings={"help_option_names": list(HELP_OPTION_NAMES), "allow_interspersed_args": False},
)
@click.option("-n", "--name", default=None, help="Name of the generated command line (default: cli).")
@click.option("--completions", "shell", default=None, metavar="SHELL",
              help="Print the completion script for SHELL (bash, zsh, fish) and exit.")
@click.option("--eval", "evaluate", is_flag=True, help="Print a shell snippet that sources the script instead of running it.")
@click.option("--interpreter", default=None, metavar="PROG", help="Run the scripts through PROG.")
@click.option("-v", "--verbose", count=True, help="Increase log verbosity (repeatable).")
@click.argument("source", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.version_option(package_name="easy-cli", message="%(prog)s %(version)s")
def main(name, shell, evaluate, interpreter, verbose, source, args):
    """
    Generate a command line from the annotated scripts in SOURCE and run it with ARGS.
    """
    try:
        settings = Settings.load(name=name, interpreter=interpreter)
    except ValueError as error:
        raise click.UsageError(str(error)) from None

    setup_logging(verbosity(verbose, default=settings.log_level), colorful=settings.colorful)
    logger.debug("settings: %r", settings)

    try:
        status = run(source, args, settings=settings, shell=shell, evaluate=evaluate)
    except Fault as fault:
        trigger(fault, shell=True, colorful=settings.colorful, fancy=settings.fancy, prog=settings.name)
    else:
        sys.exit(status)


__all__ = (
    "run",
    "main",
)

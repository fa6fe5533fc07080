"""
Completion emitter: finalized Schema → completion descriptor → shell script.

- describe(schema, name) walks the schema into a CompletionNode tree: command
  names, subcommand names, every scope's options (long/short/takes-value) and
  argument completion hints.
- generate(descriptor, shell) hands the descriptor to click's shell
  completion generator (bash, zsh, fish) and returns its script text; no shell
  syntax is authored here.

The generated script calls back into the tool with click's completion
environment variable (_<NAME>_COMPLETE) set; the engine's click tree answers
those requests at runtime.
"""
from typing import NamedTuple

import click
from click.shell_completion import get_completion_class

from .engine import completer, hint
from .faults import FaultCode, ShellError

SHELLS = ("bash", "zsh", "fish")


class CompletionOption(NamedTuple):
    long: str
    short: str | None
    takes_value: bool


class CompletionArgument(NamedTuple):
    name: str
    variadic: bool
    hint: str | None


class CompletionNode(NamedTuple):
    name: str
    about: str | None = None
    options: tuple = ()
    arguments: tuple = ()
    children: tuple = ()


def _options(options):
    return tuple(CompletionOption(option.long, option.short, option.takes_value) for option in options)


def _arguments(args):
    return tuple(CompletionArgument(arg.name, arg.variadic, hint(arg.type)) for arg in args)


def describe(schema, /, name="cli"):
    """
    completion descriptor (root CompletionNode) for a schema.

    subcommands list their parent's options first, since they are inherited.
    """
    commands = []
    for command in schema.values():
        children = tuple(
            CompletionNode(
                subcommand.name,
                subcommand.about,
                _options(command.options + subcommand.options),
                _arguments(subcommand.args),
            )
            for subcommand in command.subcommands.values()
        )
        commands.append(CompletionNode(
            command.name,
            command.about,
            () if children else _options(command.options),
            _arguments(command.args),
            children,
        ))
    return CompletionNode(name, children=tuple(commands))


def complete_var(name, /):
    """
    click's completion environment variable for a program name.
    """
    return f"_{name}_COMPLETE".replace("-", "_").upper()


def _skeleton(node):
    params = [
        click.Option(
            [f"--{option.long}", *([f"-{option.short}"] if option.short else [])],
            is_flag=not option.takes_value,
        )
        for option in node.options
    ]
    params += [
        click.Argument(
            [argument.name],
            required=False,
            nargs=-1 if argument.variadic else 1,
            **({"shell_complete": completer(argument.hint)} if argument.hint else {}),
        )
        for argument in node.arguments
    ]
    if node.children:
        return click.Group(node.name, params=params, help=node.about,
                           commands={child.name: _skeleton(child) for child in node.children})
    return click.Command(node.name, params=params, help=node.about)


def generate(descriptor, shell, /):
    """
    shell completion script for a descriptor; raises ShellError for unknown shells.
    """
    name = shell.lower() if isinstance(shell, str) else None
    if name not in SHELLS or (cls := get_completion_class(name)) is None:
        raise ShellError(
            f"cannot generate completions for shell {shell!r}", code=FaultCode.UNKNOWN_SHELL,
            hint=f"supported shells are {', '.join(SHELLS)}",
        )
    return cls(_skeleton(descriptor), {}, descriptor.name, complete_var(descriptor.name)).source()


__all__ = (
    "SHELLS",
    "CompletionOption",
    "CompletionArgument",
    "CompletionNode",
    "describe",
    "complete_var",
    "generate",
)

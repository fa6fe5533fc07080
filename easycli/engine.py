"""
Engine: finalized Schema → click command tree, and parsing through click.

click is the external argument-parsing collaborator: it renders help and usage,
parses real user tokens against the tree built here and answers shell
completion requests. This module only translates specs into click parameters
and translates click's parsed values back into Parsed, keyed by the spec names
the resolver works with.

Mapping
- top-level command of a single-command script → click.Command
- top-level command of a multi-subcommand script → click.Group whose commands
  are the subcommands; the parent's options are attached to every subcommand
- OptionSpec → click.Option (flag unless it takes a value)
- ArgSpec → click.Argument (nargs=-1 when variadic); <path>/<file>/<dir>
  hints only drive shell completion, values stay plain strings
- a pass-through command ignores unknown options, stops option parsing at the
  first positional token and has no help option, so its tail reaches the
  script verbatim
"""
import logging
from typing import NamedTuple

import click
from click.shell_completion import CompletionItem

from .schema import Selection
from .specs import ArgType

logger = logging.getLogger(__name__)

HELP_OPTION_NAMES = ("-h", "--help")


class Parsed(NamedTuple):
    """
    what click selected and parsed: a Selection and values keyed by spec name.
    """
    selection: Selection
    options: dict
    arguments: dict


def hint(type, /):
    """
    shell completion hint ('file', 'dir' or None) for an ArgType.
    """
    match type:
        case ArgType.PATH | ArgType.FILE:
            return "file"
        case ArgType.DIR:
            return "dir"
        case ArgType.UNKNOWN:
            return None


def completer(kind, /):
    def complete(ctx, param, incomplete):
        return [CompletionItem(incomplete, type=kind)]
    return complete


def _help_names(options):
    taken = {f"--{option.long}" for option in options} | {f"-{option.short}" for option in options if option.short}
    return [name for name in HELP_OPTION_NAMES if name not in taken]


def _option(option, key):
    declarations = [key, f"--{option.long}"]
    if option.short:
        declarations.append(f"-{option.short}")
    if option.takes_value:
        return click.Option(declarations, type=click.STRING, default=None, help=option.description)
    return click.Option(declarations, is_flag=True, default=False, help=option.description)


def _metavar(arg):
    metavar = arg.name.upper()
    if arg.optional:
        metavar = f"[{metavar}]"
    if arg.variadic:
        metavar += "..."
    return metavar


def _argument(arg, key):
    attributes = {}
    if kind := hint(arg.type):
        attributes["shell_complete"] = completer(kind)
    return click.Argument(
        [key],
        required=not arg.optional,
        nargs=-1 if arg.variadic else 1,
        metavar=_metavar(arg),
        **attributes,
    )


def _epilog(args):
    described = [arg for arg in args if arg.description]
    if not described:
        return None
    width = max(len(_metavar(arg)) for arg in described)
    return "\b\nArguments:\n" + "\n".join(
        f"  {_metavar(arg).ljust(width)}  {arg.description}" for arg in described
    )


def _leaf(selection, name):
    """
    click.Command for the scope of a selection.
    """
    scope = selection.scope
    options = {f"option{index}": option for index, option in enumerate(selection.options)}
    args = {f"argument{index}": arg for index, arg in enumerate(scope.args)}

    def callback(**values):
        return Parsed(
            selection,
            {option.long: values[key] for key, option in options.items()},
            {arg.name: values[key] for key, arg in args.items()},
        )

    params = [_option(option, key) for key, option in options.items()]
    params += [_argument(arg, key) for key, arg in args.items()]

    settings = {"help_option_names": _help_names(selection.options)}
    if scope.passthrough:
        settings |= {"ignore_unknown_options": True, "allow_interspersed_args": False}

    return click.Command(
        name,
        context_settings=settings,
        callback=callback,
        params=params,
        help=scope.about or f"Runs the {selection.command.name} script",
        epilog=_epilog(scope.args),
        add_help_option=not scope.passthrough and bool(settings["help_option_names"]),
    )


def to_click_command(command, /):
    """
    click command (or group) for one top-level CommandSpec.
    """
    if not command.subcommands:
        return _leaf(Selection(command), command.name)
    return click.Group(
        command.name,
        context_settings={"help_option_names": _help_names(command.options)},
        commands={
            name: _leaf(Selection(command, subcommand), name)
            for name, subcommand in command.subcommands.items()
        },
        help=command.about or f"Runs the {command.name} script",
    )


def to_click(schema, /, name="cli"):
    """
    root click.Group holding one entry per top-level command of the schema.
    """
    group = click.Group(
        name,
        context_settings={"help_option_names": list(HELP_OPTION_NAMES)},
        commands={command.name: to_click_command(command) for command in schema.values()},
        help=f"Commands provided by the scripts in {schema.source}" if schema.source else None,
    )
    logger.debug("click tree built for %d command(s)", len(schema))
    return group


def parse(cli, tokens, /, prog_name=None):
    """
    parse tokens with click.

    returns Parsed on success, or an exit status when click finished on its own
    (help, usage error, completion request handled, abort). Usage errors are
    reported by click on stderr.
    """
    try:
        result = cli.main(args=list(tokens), prog_name=prog_name or cli.name, standalone_mode=False)
    except click.ClickException as error:
        error.show()
        return error.exit_code
    except click.exceptions.Abort:
        click.echo("Aborted!", err=True)
        return 1
    if isinstance(result, Parsed):
        return result
    return result if isinstance(result, int) else 0


__all__ = (
    "HELP_OPTION_NAMES",
    "Parsed",
    "hint",
    "to_click_command",
    "to_click",
    "parse",
)

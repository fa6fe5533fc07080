"""
Schema validator: cross-cutting invariants over built commands.

Rules
- identifiers: command, subcommand, option long and argument names match
  [A-Za-z_][A-Za-z0-9_]*; short options are one character, neither
  whitespace nor '-'.
- uniqueness: top-level names across the directory; subcommand names within
  a command; option long names, option short characters and argument names
  within a scope. A subcommand's scope also holds its parent's options, which
  are inherited by every subcommand.
- structure: args and subcommands are mutually exclusive; a variadic argument
  is unique and last; subcommands never nest.

Every failure raises ValidationError carrying script path, tag and line; the
first failure aborts the build.
"""
from .faults import FaultCode, ValidationError
from .utils import isidentifier


def _fail(message, command, code, *, origin=None, hint=None):
    tag = origin if origin is not None else command.tag
    raise ValidationError(
        message,
        code=code,
        script=command.script.path if command.script is not None else None,
        tag=getattr(tag, "name", None),
        line=getattr(tag, "line", None),
        hint=hint,
    )


def _check_name(command, name, what, origin=None):
    if not isidentifier(name):
        _fail(
            f"invalid {what} name {name!r}", command, FaultCode.INVALID_IDENTIFIER, origin=origin,
            hint="use letters, digits and underscores, starting with a letter or underscore",
        )


def _check_scope(command, inherited=()):
    """
    validate one scope; inherited are the parent's options (for subcommands).
    """
    longs = {option.long: option for option in inherited}
    shorts = {option.short: option for option in inherited if option.short is not None}

    for option in command.options:
        _check_name(command, option.long, "option", option.tag)
        if option.short is not None and (len(option.short) != 1 or option.short.isspace() or option.short == "-"):
            _fail(f"invalid short name {option.short!r} for option {option.long!r}", command,
                  FaultCode.INVALID_SHORT, origin=option.tag)
        if longs.setdefault(option.long, option) is not option:
            _fail(f"option {option.long!r} is declared twice", command,
                  FaultCode.DUPLICATE_OPTION, origin=option.tag)
        if option.short is not None and shorts.setdefault(option.short, option) is not option:
            _fail(f"short name {option.short!r} of option {option.long!r} is already used by "
                  f"{shorts[option.short].long!r}", command, FaultCode.DUPLICATE_SHORT, origin=option.tag)

    names = set()
    for index, arg in enumerate(command.args):
        _check_name(command, arg.name, "argument", arg.tag)
        if arg.name in names:
            _fail(f"argument {arg.name!r} is declared twice", command,
                  FaultCode.DUPLICATE_ARGUMENT, origin=arg.tag)
        names.add(arg.name)
        if arg.variadic and index != len(command.args) - 1:
            _fail(f"variadic argument {arg.name!r} must be the last argument", command,
                  FaultCode.MISPLACED_VARARG, origin=arg.tag)

    if command.args and command.subcommands:
        _fail(f"command {command.name!r} declares both arguments and subcommands", command,
              FaultCode.MIXED_ARGS_AND_SUBCOMMANDS)


def validate_command(command, /):
    """
    validate one script's CommandSpec (and its subcommands); returns it unchanged.
    """
    _check_name(command, command.name, "command")
    _check_scope(command)
    for subcommand in command.subcommands.values():
        _check_name(subcommand, subcommand.name, "subcommand")
        if subcommand.subcommands:
            _fail(f"subcommand {subcommand.name!r} cannot have subcommands", subcommand,
                  FaultCode.NESTED_SUBCOMMAND)
        _check_scope(subcommand, command.options)
    return command


def validate_schema(commands, /):
    """
    validate the assembled set of top-level commands (in build order).

    returns a dict name → CommandSpec; two scripts claiming the same name is an error.
    """
    claimed = {}
    for command in commands:
        validate_command(command)
        if (other := claimed.setdefault(command.name, command)) is not command:
            _fail(
                f"command name {command.name!r} is already used by {str(other.script.path)!r}",
                command, FaultCode.DUPLICATE_COMMAND,
                hint="rename one of the scripts or give it a distinct '# @name'",
            )
    return claimed


__all__ = (
    "validate_command",
    "validate_schema",
)

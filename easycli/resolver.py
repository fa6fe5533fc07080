"""
Invocation resolver: already-parsed values → the ordered value list a script expects.

Contract
- Input: a Selection plus the parsed values, keyed by option long name and by
  argument name. Flags are booleans (absent means not given), value options
  are strings (absent or None means not given), arguments are strings and a
  variadic argument is a sequence of strings.
- Output, in order:
  (a) one value per visible option, parent options first: "true"/"false" for
      flags, the supplied string for value options, "" when a value option
      was not given;
  (b) one value per non-variadic argument ("" for an omitted optional one);
  (c) every variadic token as its own value.
- ArityError when a required argument has no value, or when a value is bound
  to a name the scope does not declare. Values are never dropped.
"""
from collections.abc import Sequence

from .faults import ArityError, FaultCode


def _flag(value):
    return "true" if value else "false"


def resolve(selection, /, options=None, arguments=None):
    """
    linearize parsed values for the selected scope; returns a tuple of strings.
    """
    options = dict(options or {})
    arguments = dict(arguments or {})
    scope = selection.scope
    script = selection.script.path if selection.script is not None else None
    values = []

    for option in selection.options:
        value = options.pop(option.long, None)
        if not option.takes_value:
            values.append(_flag(value))
        else:
            values.append("" if value is None else str(value))

    for arg in scope.args:
        value = arguments.pop(arg.name, None)
        if arg.variadic:
            if isinstance(value, str):
                value = (value,)
            tokens = [str(token) for token in value or ()]
            if not tokens and not arg.optional:
                raise ArityError(
                    f"{arg.name!r} requires at least one value", code=FaultCode.MISSING_VALUE,
                    script=script, tag=getattr(arg.tag, "name", None), line=getattr(arg.tag, "line", None),
                )
            values.extend(tokens)
            continue
        if value is None:
            if not arg.optional:
                raise ArityError(
                    f"missing value for required argument {arg.name!r}", code=FaultCode.MISSING_VALUE,
                    script=script, tag=getattr(arg.tag, "name", None), line=getattr(arg.tag, "line", None),
                )
            value = ""
        elif isinstance(value, Sequence) and not isinstance(value, str):
            raise ArityError(
                f"argument {arg.name!r} takes a single value, got {len(value)}",
                code=FaultCode.UNEXPECTED_VALUE, script=script,
            )
        values.append(str(value))

    if leftover := [*options, *arguments]:
        raise ArityError(
            f"{scope.name!r} does not declare {', '.join(map(repr, leftover))}",
            code=FaultCode.UNEXPECTED_VALUE, script=script,
        )

    return tuple(values)


__all__ = (
    "resolve",
)

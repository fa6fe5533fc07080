"""
Annotation interpreter: ordered tags → per-script CommandSpec.

Scope
- Folds the tag stream of one script into a CommandSpec, tracking the "current
  scope" (the top-level command or the active @sub) as an index into an arena
  of scope drafts. Drafts are frozen into immutable specs once the stream ends.
- Parses tag payloads (@opt, @arg, @vararg grammar).
- Raises InterpretError for illegal tag use; duplicate @sub names are a
  ValidationError (uniqueness rule). Identifier syntax of option and argument
  names is left to the validator.

Payload grammar
    @opt    <long> ['<s>'] [true|false] [<description...>]
    @arg    <name> [true|false] [<type>] [<description...>]
    @vararg <name> [true|false] [<type>] [<description...>]
"""
import logging
import re

from .faults import FaultCode, InterpretError, ValidationError
from .scanner import TagKind
from .specs import ArgSpec, ArgType, CommandSpec, OptionSpec, ScriptRef
from .utils import isidentifier, stem

logger = logging.getLogger(__name__)

PASSTHROUGH = ArgSpec("args", True, ArgType.UNKNOWN, "Any arguments are passed to the script", True)

_TOKEN = re.compile(r"\S+")
_BOOLEAN = re.compile(r"(?i:true|false)(?=\s|$)")
_SHORT = re.compile(r"'(.)'(?=\s|$)")
_TYPE = re.compile(r"<[^>]*>")


class _Payload:
    """
    cursor over a tag payload: consume leading tokens, keep the rest verbatim.
    """
    __slots__ = ("text",)

    def __init__(self, text):
        self.text = text.lstrip()

    def take(self, pattern=_TOKEN):
        if (match := pattern.match(self.text)) is None:
            return None
        self.text = self.text[match.end():].lstrip()
        return match.group()

    def rest(self):
        return self.text or None


class _Scope:
    """
    mutable draft of one scope; frozen into a CommandSpec by _Interpreter.freeze().
    """
    __slots__ = ("name", "about", "options", "args", "subscopes", "tag")

    def __init__(self, name, tag=None):
        self.name = name
        self.about = None
        self.options = []
        self.args = []
        self.subscopes = []
        self.tag = tag


class _Interpreter:
    def __init__(self, path):
        self.path = path
        self.arena = [_Scope(stem(path))]
        self.current = 0
        self.recognized = 0

    @property
    def top(self):
        return self.arena[0]

    @property
    def scope(self):
        return self.arena[self.current]

    def fail(self, message, tag, code, *, hint=None, cls=InterpretError):
        raise cls(message, code=code, script=self.path, tag=tag.name, line=tag.line, hint=hint)

    def feed(self, tag):
        """
        apply one tag; returns False when the script opts out with @ignore.
        """
        match tag.kind:
            case TagKind.IGNORE:
                if self.recognized:
                    logger.debug("%s:%d: @ignore after other tags has no effect", self.path, tag.line)
                    return True
                return False
            case TagKind.NAME:
                self.on_name(tag)
            case TagKind.ABOUT:
                self.scope.about = tag.payload or None
            case TagKind.OPT:
                self.on_opt(tag)
            case TagKind.ARG:
                self.on_arg(tag, variadic=False)
            case TagKind.VARARG:
                self.on_arg(tag, variadic=True)
            case TagKind.SUB:
                self.on_sub(tag)
            case TagKind.UNKNOWN:
                logger.debug("%s:%d: ignoring unknown tag @%s", self.path, tag.line, tag.name)
                return True
        self.recognized += 1
        return True

    def identifier(self, tag):
        name = _Payload(tag.payload).take()
        if name is None:
            self.fail(f"@{tag.name} requires a name", tag, FaultCode.MISSING_NAME)
        return name

    def on_name(self, tag):
        if self.current != 0:
            self.fail(
                "@name must come before the first @sub", tag, FaultCode.NAME_AFTER_SUB,
                hint="move the @name tag above every @sub tag",
            )
        name = self.identifier(tag)
        if not isidentifier(name):
            self.fail(
                f"malformed command name {name!r}", tag, FaultCode.MALFORMED_NAME,
                hint="use letters, digits and underscores, starting with a letter or underscore",
            )
        self.top.name = name
        self.top.tag = tag

    def on_opt(self, tag):
        payload = _Payload(tag.payload)
        if (long := payload.take()) is None:
            self.fail("@opt requires a long name", tag, FaultCode.MISSING_NAME)
        short = payload.take(_SHORT)
        takes_value = payload.take(_BOOLEAN)
        self.scope.options.append(OptionSpec(
            long,
            short[1] if short else None,
            takes_value is not None and takes_value.lower() == "true",
            payload.rest(),
            tag=tag,
        ))

    def on_arg(self, tag, *, variadic):
        scope = self.scope
        if scope.subscopes:
            self.fail(
                f"@{tag.name} cannot be used on a command that has subcommands", tag, FaultCode.ARG_AFTER_SUBS,
            )
        if variadic and any(arg.variadic for arg in scope.args):
            self.fail("only one @vararg is allowed per command", tag, FaultCode.DUPLICATE_VARARG)
        if scope.args and scope.args[-1].variadic:
            self.fail(
                f"@{tag.name} cannot follow a variadic argument", tag, FaultCode.ARG_AFTER_VARARG,
                hint="a @vararg must be the last argument of its command",
            )
        payload = _Payload(tag.payload)
        if (name := payload.take()) is None:
            self.fail(f"@{tag.name} requires a name", tag, FaultCode.MISSING_NAME)
        optional = payload.take(_BOOLEAN)
        type = payload.take(_TYPE)
        scope.args.append(ArgSpec(
            name,
            optional is not None and optional.lower() == "true",
            ArgType.parse(type) if type else ArgType.UNKNOWN,
            payload.rest(),
            variadic,
            tag=tag,
        ))

    def on_sub(self, tag):
        name = self.identifier(tag)
        if not isidentifier(name):
            self.fail(
                f"malformed subcommand name {name!r}", tag, FaultCode.MALFORMED_NAME,
                hint="use letters, digits and underscores, starting with a letter or underscore",
            )
        if self.top.args:
            self.fail(
                "@sub cannot be used after arguments were declared", tag, FaultCode.SUB_AFTER_ARGS,
                hint="a command takes either arguments or subcommands, not both",
            )
        if any(self.arena[index].name == name for index in self.top.subscopes):
            self.fail(
                f"subcommand {name!r} is declared twice", tag, FaultCode.DUPLICATE_SUBCOMMAND,
                cls=ValidationError,
            )
        self.arena.append(_Scope(name, tag))
        self.current = len(self.arena) - 1
        self.top.subscopes.append(self.current)

    def freeze(self, script, index=0):
        scope = self.arena[index]
        return CommandSpec(
            scope.name,
            scope.about,
            scope.options,
            scope.args,
            [self.freeze(script, subindex) for subindex in scope.subscopes],
            script=script,
            tag=scope.tag,
        )


def interpret(tags, /, path):
    """
    fold the tags of the script at path into a CommandSpec.

    returns
    - None when the first recognized tag is @ignore;
    - a pass-through CommandSpec (named after the file stem, accepting any
      tail verbatim) when no tag is recognized;
    - otherwise the declared command.

    raises
    - InterpretError / ValidationError as described in the module docstring.
    """
    interpreter = _Interpreter(path)
    for tag in tags:
        if not interpreter.feed(tag):
            logger.info("%s: ignored", path)
            return None

    if not interpreter.recognized:
        script = ScriptRef(path, stem(path))
        return CommandSpec(script.name, script=script, args=(PASSTHROUGH,), passthrough=True)

    script = ScriptRef(path, interpreter.top.name)
    return interpreter.freeze(script)


__all__ = (
    "PASSTHROUGH",
    "interpret",
)

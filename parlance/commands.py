r"""
Parlance commands and the command handler.

Overview
- Command
  • Immutable descriptor: id, aliases, arguments (Argument descriptors and
    steps), content parser settings, argument defaults and the callback.
  • parse(context, content): parse the content and run the arguments;
    returns the argument record or a control flag.

- CommandHandler
  • Registry of commands (ids and aliases, case-insensitive), the type
    resolver, handler-wide argument defaults and the prompt registry.
  • parse_command(context): recognise "<prefix><alias> <content>".
  • handle(context): parse, run the arguments, react to the flags:
      Cancel              → stop, nothing runs.
      Retry(message)      → handle `message` instead.
      Continue(id, …)     → run command `id` on the remaining content.
      anything else       → await command.exec(context, record).
    Messages from an author being prompted in that channel are ignored.

Argument defaults
- A mapping with optional keys "prompt" (prompt settings), "otherwise" and
  "modify_otherwise"; argument settings win over command defaults, which win
  over handler defaults.

Quick example:
    >>> handler = CommandHandler(prefix="!")
    >>> @handler.command("add", arguments=[Argument("a", type="integer"), Argument("b", type="integer")])
    ... async def add(context, values):
    ...     await context.send(str(values["a"] + values["b"]))
    >>> await handler.handle(message)  # message.content == "!add 1 2"
    True
"""
import logging
import warnings
from collections.abc import Iterable, Mapping
from typing import NamedTuple

from .arguments import Argument, DescriptorType, Match
from .content import ContentParser
from .control import Cancel, Continue, Retry
from .faults import AmbiguousFlagWarning, DuplicatedArgumentError, DuplicatedCommandError
from .prompts import PromptOptions, PromptRegistry
from .runner import ArgumentRunner
from .types import TypeResolver
from .utils import *

logger = logging.getLogger(__name__)


class ParsedCommand(NamedTuple):
    command: object
    prefix: str
    alias: str
    content: str


def _sanitize_defaults(owner, defaults, /):
    """
    Internal: validate an argument defaults mapping and return a copy.
    """
    if defaults is Unset or defaults is None:
        return {}
    if not isinstance(defaults, Mapping):
        raise TypeError(f"{owner} 'argument_defaults' must be a mapping")
    if unknown := defaults.keys() - {"prompt", "otherwise", "modify_otherwise"}:
        raise TypeError(f"{owner} 'argument_defaults' has unknown keys: {", ".join(sorted(unknown))}")
    defaults = dict(defaults)
    if (prompt := defaults.get("prompt")) is not None:
        PromptOptions.merge(prompt)
        defaults["prompt"] = prompt.asdict() if isinstance(prompt, PromptOptions) else dict(prompt)
    if not (defaults.get("modify_otherwise") is None or callable(defaults["modify_otherwise"])):
        raise TypeError(f"{owner} 'modify_otherwise' must be callable")
    return defaults


def _sanitize_words(cls, name, words, /):
    if isinstance(words, str):
        words = (words,)
    sanitized = []
    for word in words:
        if not isinstance(word, str):
            raise TypeError(f"{cls.__typename__} {name!r} must contain only strings")
        elif not (word := word.strip()):
            raise ValueError(f"{cls.__typename__} {name!r} cannot contain empty strings")
        if word.casefold() not in map(str.casefold, sanitized):
            sanitized.append(word)
    return sanitized


class Command(metaclass=DescriptorType):
    """
    A chat command.

    Properties
    - The names listed in __introspectable__ are exposed as read-only
      attributes mirroring the sanitized metadata.
    - handler: the CommandHandler the command is registered in (or None).
    - content_parser: the ContentParser built from the flag spellings.
    """

    __introspectable__ = (
        "id",
        "aliases",
        "arguments",
        "flags",
        "option_flags",
        "quoted",
        "separator",
        "argument_defaults",
        "description",
        "exec",
    )
    __displayable__ = (
        "id",
        "aliases",
        "arguments",
        "separator",
        "description",
    )

    def __init__(
            self,
            id,
            /,
            *,
            aliases=(),
            arguments=(),
            flags=(),
            option_flags=(),
            quoted=True,
            separator=Unset,
            argument_defaults=Unset,
            description=Unset,
            exec=Unset,
    ):
        """
        Construct a command.

        Parameters
        - id: str                       unique identifier (also an alias).
        - aliases: Iterable[str]        names the command is invoked by.
        - arguments: Iterable           Argument descriptors and steps.
        - flags / option_flags          extra flag spellings, for arguments
                                        returned by steps.
        - quoted: bool                  recognise quotes in the content.
        - separator: str                split phrases on a literal separator.
        - argument_defaults: Mapping    command-wide argument defaults.
        - description: str              short help text.
        - exec: callable                (context, values), sync or async.
        """
        cls = type(self)
        if not isinstance(id, str):
            raise TypeError(f"{cls.__typename__} 'id' must be a string")
        elif not (id := id.strip()):
            raise ValueError(f"{cls.__typename__} 'id' cannot be empty")
        aliases = _sanitize_words(cls, "aliases", aliases)
        if id.casefold() not in map(str.casefold, aliases):
            aliases.insert(0, id)

        if not isinstance(arguments, Iterable):
            raise TypeError(f"{cls.__typename__} 'arguments' must be iterable")
        entries, ids = [], set()
        for entry in arguments:
            if isinstance(entry, Argument):
                if entry.id in ids:
                    raise DuplicatedArgumentError(
                        "command %r declares argument %r twice" % (id, entry.id),
                        hint="argument ids are the keys of the argument record and must be unique",
                    )
                ids.add(entry.id)
            elif not callable(entry):
                raise TypeError(f"{cls.__typename__} 'arguments' must contain arguments or steps")
            entries.append(entry)

        flags = _sanitize_words(cls, "flags", flags)
        option_flags = _sanitize_words(cls, "option_flags", option_flags)
        for entry in entries:
            if isinstance(entry, Argument) and entry.match is Match.FLAG:
                flags.extend(word for word in entry.flag if word.casefold() not in map(str.casefold, flags))
            if isinstance(entry, Argument) and entry.match is Match.OPTION:
                option_flags.extend(word for word in entry.flag if word.casefold() not in map(str.casefold, option_flags))
        if ambiguous := set(map(str.casefold, flags)) & set(map(str.casefold, option_flags)):
            warnings.warn(AmbiguousFlagWarning(
                "command %r uses %s both as flag and option flag" % (id, ", ".join(sorted(ambiguous))),
                hint="flag spellings are matched first, so the option flag never receives a value",
            ), stacklevel=2)

        if not isinstance(separator, str | Unset):
            raise TypeError(f"{cls.__typename__} 'separator' must be a string")
        elif isinstance(separator, str) and not separator.strip():
            raise ValueError(f"{cls.__typename__} 'separator' cannot be blank")

        if not isinstance(description, str | Unset):
            raise TypeError(f"{cls.__typename__} 'description' must be a string")
        if not (exec is Unset or callable(exec)):
            raise TypeError(f"{cls.__typename__} 'exec' must be callable")

        self._id = id
        self._aliases = tuple(aliases)
        self._flags = tuple(flags)
        self._option_flags = tuple(option_flags)
        self._quoted = bool(quoted)
        self._separator = coalesce(separator)
        self._argument_defaults = _sanitize_defaults(f"{cls.__typename__} {id!r}", argument_defaults)
        self._description = coalesce(description)
        self._exec = coalesce(exec)
        self._arguments = tuple(entry.__bind__(self) if isinstance(entry, Argument) else entry for entry in entries)
        self.handler = None
        self.content_parser = ContentParser(
            flag_words=self._flags,
            option_flag_words=self._option_flags,
            quoted=self._quoted,
            separator=coalesce(self._separator, Unset),
        )

    async def parse(self, context, content, /):
        """
        Parse `content` and run the arguments; returns the argument record or a
        control flag.
        """
        return await ArgumentRunner(self).run(context, self.content_parser.parse(content))

    async def execute(self, context, values, /):
        if self._exec is not None:
            await settle(self._exec(context, values))


class CommandHandler:
    """
    Registry and dispatcher of commands.

    Parameters
    - prefix: str | Iterable[str]     invocation prefix(es), default "!".
    - argument_defaults: Mapping      handler-wide argument defaults.
    - types: Mapping                  extra type casters registered up front.
    """

    def __init__(self, prefix="!", /, *, argument_defaults=Unset, types=Unset):
        prefixes = (prefix,) if isinstance(prefix, str) else tuple(prefix)
        if not prefixes or not all(isinstance(prefix, str) for prefix in prefixes):
            raise TypeError("handler 'prefix' must be a string or strings")
        # Longest first so that "!!" wins over "!".
        self.prefixes = tuple(sorted(prefixes, key=len, reverse=True))
        self.argument_defaults = _sanitize_defaults("handler", argument_defaults)
        self.commands = {}
        self.aliases = {}
        self.resolver = TypeResolver(self)
        self.prompts = PromptRegistry()
        if types is not Unset:
            self.resolver.add_types(types)

    def register(self, command, /):
        """
        Register `command`; raises DuplicatedCommandError on an id or alias clash.
        """
        if not isinstance(command, Command):
            raise TypeError("only commands can be registered")
        if command.id in self.commands:
            raise DuplicatedCommandError(
                "command %r is already registered" % command.id,
                hint="remove the previous command first",
            )
        for alias in command.aliases:
            if (owner := self.aliases.get(alias.casefold())) is not None:
                raise DuplicatedCommandError(
                    "alias %r of command %r is taken by command %r" % (alias, command.id, owner),
                    hint="aliases are case-insensitive and shared by every command of a handler",
                )
        if command.handler not in (None, self):
            raise DuplicatedCommandError("command %r belongs to another handler" % command.id)
        self.commands[command.id] = command
        for alias in command.aliases:
            self.aliases[alias.casefold()] = command.id
        command.handler = self
        logger.debug("command %r registered", command.id)
        return command

    def remove(self, id, /):
        """
        Unregister and return the command `id` (KeyError when unknown).
        """
        command = self.commands.pop(id)
        for alias in command.aliases:
            self.aliases.pop(alias.casefold(), None)
        command.handler = None
        logger.debug("command %r removed", id)
        return command

    def command(self, id, /, **options):
        """
        Decorator registering a callback as command `id`.
        """
        def wrapper(callback, /):
            return self.register(Command(id, exec=callback, **options))

        return rename(wrapper, "command")

    def find(self, alias, /):
        """
        The command invoked by `alias` (case-insensitive), or None.
        """
        if not isinstance(alias, str):
            return None
        id = self.aliases.get(alias.casefold())
        return None if id is None else self.commands[id]

    async def parse_command(self, context, /):
        """
        Recognise "<prefix><alias> <content>" in `context.content`.

        Returns a ParsedCommand, or None when the message is not an invocation
        of a registered command.
        """
        text = context.content.lstrip()
        for prefix in self.prefixes:
            if text.casefold().startswith(prefix.casefold()):
                break
        else:
            return None
        rest = text[len(prefix):]
        if not rest or rest[0].isspace():
            return None
        alias = rest.split(None, 1)[0]
        if (command := self.find(alias)) is None:
            return None
        content = rest[len(alias):].lstrip()
        return ParsedCommand(command, prefix, alias, content)

    async def handle(self, context, /):
        """
        Handle one incoming message; returns True when a command ran.
        """
        if self.prompts.has(context):
            logger.debug("message from %r ignored: prompt in progress", context.author)
            return False
        if (parsed := await self.parse_command(context)) is None:
            return False
        return await self.run(context, parsed.command, parsed.content)

    async def run(self, context, command, content, /):
        """
        Run `command` with `content` and react to the resulting flag.
        """
        match await command.parse(context, content):
            case Cancel():
                logger.debug("command %r cancelled", command.id)
                return False
            case Retry(message):
                logger.debug("command %r retried with %r", command.id, message.content)
                return await self.handle(message)
            case Continue(id, _, rest):
                if (target := self.commands.get(id)) is None:
                    logger.warning("command %r continued to unknown command %r", command.id, id)
                    return False
                logger.debug("command %r continued to %r", command.id, id)
                return await self.run(context, target, coalesce(rest, ""))
            case values:
                await command.execute(context, values)
                logger.debug("command %r executed", command.id)
                return True

    def __repr__(self):
        return "command-handler(prefixes=%r, commands=%r)" % (self.prefixes, sorted(self.commands))


__all__ = (
    "ParsedCommand",
    "Command",
    "CommandHandler",
)

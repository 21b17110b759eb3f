r"""
Parlance argument descriptors.

Overview
- Match
  • How an argument claims its share of the parsed content: phrase, flag,
    option, rest, separate, text, content, restContent or none.

- Argument
  • Immutable descriptor owned by a command: id, match, type, flag spellings,
    index/unordered/limit windowing, prompt settings, default and otherwise.
  • process(context, phrase): cast the phrase, fall back to the default, the
    otherwise responder or the interactive prompt.
  • cast(context, phrase): cast with this argument's type and its handler's
    type resolver (no prompting).
  • collect(context, phrase, failure): the interactive prompt.

Processing (process)
1. Empty phrase and optional prompt → otherwise responder (→ Cancel) when one
   is configured, the default otherwise.
2. Cast the phrase. On success the value is returned.
3. On failure: otherwise responder (→ Cancel), else the prompt when the
   argument has one, else the default (or the failure itself without one).

Prompting (collect)
- Sends the start prompt (retry prompt after a failed reply), waits for one
  reply from the same author in the same channel, then:
  • no reply in time          → timeout text, Cancel.
  • a command invocation      → Retry(reply) when breakout is enabled.
  • the cancel word           → cancel text, Cancel.
  • the stop word (infinite)  → the values so far (re-prompt when none).
  • a failed cast             → retry prompt while retries remain, else
                                ended text, Cancel.
  • a value                   → the value; infinite mode accumulates until
                                the limit and returns the list.
- A failed non-empty command-line phrase counts as the first attempt.
- Matching `separate` with nothing given prompts in infinite mode.

Metadata (sanitized on construction)
- id: str, non-empty after trimming.
- match: Match (or its value); anything else raises UnknownMatchError.
- type: registered name, sequence of choices, compiled pattern, callable or
  combinator.
- flag: str or iterable of str; required for flag and option matches.
- index: Unset | int (>= 0).
- unordered: bool | int (>= 0, start index) | iterable of int.
- limit: int (>= 1) or math.inf.
- prompt: Unset | True | mapping of prompt settings (see PromptOptions).
- default: literal or supplier (context, FailureData).
- otherwise / modify_otherwise: content or supplier / modifier.

Quick example:
    >>> from parlance.arguments import Argument
    >>> Argument("count", type="integer", default=1)
    argument(id='count', match=<Match.PHRASE: 'phrase'>, type='integer', ...)
"""
import asyncio
import builtins
import copy
import functools
import logging
import math
import operator
import re
from collections.abc import Iterable, Mapping, Sequence
from enum import StrEnum

from . import casting
from .control import Cancel, Retry, isfailure
from .faults import UnboundArgumentError, UnknownMatchError
from .prompts import FailureData, PromptData, PromptOptions
from .utils import *

logger = logging.getLogger(__name__)


class Match(StrEnum):
    PHRASE = "phrase"
    FLAG = "flag"
    OPTION = "option"
    REST = "rest"
    SEPARATE = "separate"
    TEXT = "text"
    CONTENT = "content"
    REST_CONTENT = "restContent"
    NONE = "none"


class DescriptorType(type):
    """
    Metaclass for immutable, introspectable descriptors.

    Responsibilities
    - Expose every name listed in __introspectable__ as a read-only property
      mirroring the private "_name" field.
    - Provide stable __repr__/__rich_repr__ implementations.

    Conventions
    - __typename__ is derived from the class name (camel-case split with
      hyphens) and used in messages and reprs.
    - __displayable__ (if set) narrows which properties __rich_repr__ shows.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_strings(cls, name, strings, /):
    if isinstance(strings, str):
        strings = (strings,)
    if not isinstance(strings, Iterable):
        raise TypeError(f"{cls.__typename__} {name!r} must be a string or an iterable of strings")
    sanitized = []
    for string in strings:
        if not isinstance(string, str):
            raise TypeError(f"{cls.__typename__} {name!r} must contain only strings")
        elif not (string := string.strip()):
            raise ValueError(f"{cls.__typename__} {name!r} cannot contain empty strings")
        elif string.casefold() in map(str.casefold, sanitized):
            raise ValueError(f"{cls.__typename__} {name!r} cannot contain duplicates")
        sanitized.append(string)
    return tuple(sanitized)


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize and validate argument metadata in place.

    Raises
    - TypeError / ValueError for malformed fields.
    - UnknownMatchError when 'match' is not a Match.
    """
    if not isinstance(id := metadata["id"], str):
        raise TypeError(f"{cls.__typename__} 'id' must be a string")
    elif not (id := id.strip()):
        raise ValueError(f"{cls.__typename__} 'id' cannot be empty")
    metadata["id"] = id

    try:
        metadata["match"] = Match(metadata["match"])
    except ValueError:
        raise UnknownMatchError(
            "argument %r has an unknown match %r" % (id, metadata["match"]),
            hint="use one of: %s" % ", ".join(Match),
        ) from None

    type = metadata["type"]
    if not (
        isinstance(type, str | Sequence | re.Pattern)
        or hasattr(type, "__cast__")
        or callable(type)
    ):
        raise TypeError(f"{cls.__typename__} 'type' must be a type name, choices, a pattern or a caster")
    if isinstance(type, str) and not type.strip():
        raise ValueError(f"{cls.__typename__} 'type' cannot be empty")
    if isinstance(type, Sequence) and not isinstance(type, str):
        if not type:
            raise ValueError(f"{cls.__typename__} 'type' choices cannot be empty")
        metadata["type"] = tuple(
            tuple(entry) if isinstance(entry, Sequence) and not isinstance(entry, str) else entry
            for entry in type
        )

    if metadata["flag"] is Unset:
        if metadata["match"] in (Match.FLAG, Match.OPTION):
            raise TypeError(f"{cls.__typename__} with match {metadata["match"]!r} must specify 'flag'")
        metadata["flag"] = ()
    else:
        metadata["flag"] = _sanitize_strings(cls, "flag", metadata["flag"])
        if not metadata["flag"]:
            raise ValueError(f"{cls.__typename__} 'flag' cannot be empty")

    if not isinstance(index := metadata["index"], int | Unset) or isinstance(index, bool):
        raise TypeError(f"{cls.__typename__} 'index' must be an integer")
    elif isinstance(index, int) and index < 0:
        raise ValueError(f"{cls.__typename__} 'index' must be a non-negative integer")
    metadata["index"] = coalesce(index)

    match metadata["unordered"]:
        case bool():
            pass
        case int() as start if start >= 0:
            pass
        case int():
            raise ValueError(f"{cls.__typename__} 'unordered' start index must be non-negative")
        case Iterable() as indices:
            indices = tuple(indices)
            if not all(isinstance(index, int) and not isinstance(index, bool) and index >= 0 for index in indices):
                raise TypeError(f"{cls.__typename__} 'unordered' indices must be non-negative integers")
            metadata["unordered"] = indices
        case _:
            raise TypeError(f"{cls.__typename__} 'unordered' must be a boolean, an integer or integers")

    if not isinstance(limit := metadata["limit"], int | float) or isinstance(limit, bool):
        raise TypeError(f"{cls.__typename__} 'limit' must be a number")
    elif limit < 1 or (isinstance(limit, float) and limit != math.inf):
        raise ValueError(f"{cls.__typename__} 'limit' must be a positive integer or infinity")

    match metadata["prompt"]:
        case UnsetType() | None:
            metadata["prompt"] = None
        case True:
            metadata["prompt"] = {}
        case PromptOptions() as prompt:
            metadata["prompt"] = prompt.asdict()
        case Mapping() as prompt:
            # Validates the keys and values; the raw mapping is kept for merging.
            PromptOptions.merge(prompt)
            metadata["prompt"] = dict(prompt)
        case _:
            raise TypeError(f"{cls.__typename__} 'prompt' must be a mapping of prompt settings")

    metadata["otherwise"] = coalesce(metadata["otherwise"])
    if not (metadata["modify_otherwise"] is Unset or callable(metadata["modify_otherwise"])):
        raise TypeError(f"{cls.__typename__} 'modify_otherwise' must be callable")
    metadata["modify_otherwise"] = coalesce(metadata["modify_otherwise"])


class Argument(metaclass=DescriptorType):
    """
    Argument of a command.

    Arguments are bound to their command when the command is built; an unbound
    argument can be described and copied, but not processed.

    Properties
    - The names listed in __introspectable__ are exposed as read-only
      attributes mirroring the sanitized metadata.
    - command / handler / resolver: the owning command, its handler and the
      handler's type resolver (UnboundArgumentError when missing).
    """

    __introspectable__ = (
        "id",
        "match",
        "type",
        "flag",
        "multiple_flags",
        "index",
        "unordered",
        "limit",
        "prompt",
        "default",
        "otherwise",
        "modify_otherwise",
    )
    __displayable__ = (
        "id",
        "match",
        "type",
        "flag",
        "index",
        "unordered",
        "prompt",
        "default",
    )

    def __init__(
            self,
            id,
            /,
            *,
            match=Match.PHRASE,
            type="string",
            flag=Unset,
            multiple_flags=False,
            index=Unset,
            unordered=False,
            limit=math.inf,
            prompt=Unset,
            default=None,
            otherwise=Unset,
            modify_otherwise=Unset,
    ):
        """
        Construct an argument descriptor.

        Parameters
        - id: str                   key of the value in the argument record.
        - match: Match | str        how content is claimed (default "phrase").
        - type                      type name, choices, pattern, caster or
                                    combinator (default "string").
        - flag: str | Iterable[str] spellings for flag/option matches.
        - multiple_flags: bool      count flags / collect every option value.
        - index: int                fixed phrase (or entry) index.
        - unordered: bool | int | Iterable[int]
                                    pick the first phrase that casts.
        - limit: int                phrases taken by window matches.
        - prompt: True | Mapping    prompt settings (None: never prompt).
        - default                   value or supplier used on failure.
        - otherwise                 content or supplier sent on failure (cancels).
        - modify_otherwise          modifier of the otherwise content.
        """
        metadata = {
            "id": id,
            "match": match,
            "type": type,
            "flag": flag,
            "multiple_flags": bool(multiple_flags),
            "index": index,
            "unordered": unordered,
            "limit": limit,
            "prompt": prompt,
            "default": default,
            "otherwise": otherwise,
            "modify_otherwise": modify_otherwise,
        }
        _sanitize_metadata(builtins.type(self), metadata)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        self._command = None

    @property
    def command(self):
        if self._command is None:
            raise UnboundArgumentError(
                "argument %r is not bound to a command" % self.id,
                hint="declare the argument in a Command before processing input with it",
            )
        return self._command

    @property
    def handler(self):
        if (handler := self.command.handler) is None:
            raise UnboundArgumentError(
                "argument %r belongs to command %r, which is not registered" % (self.id, self.command.id),
                hint="register the command in a CommandHandler first",
            )
        return handler

    @property
    def resolver(self):
        return self.handler.resolver

    @property
    def unordered_active(self):
        # 0 is a start index, not "disabled".
        return self._unordered is not False

    def __bind__(self, command, /):
        """
        Return this argument bound to `command` (a bound copy when it already
        belongs to another command).
        """
        if self._command is None:
            self._command = command
            return self
        if self._command is command:
            return self
        return copy.replace(self).__bind__(command)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        options = {name: getattr(self, "_" + name) for name in type(self).__introspectable__}
        options = options | overrides
        if not options["flag"]:
            options["flag"] = Unset
        return type(self)(options.pop("id"), **{
            name: Unset if name in ("index", "otherwise", "modify_otherwise") and object is None else object
            for name, object in options.items()
        })

    def _defaults(self):
        return self.handler.argument_defaults, self.command.argument_defaults

    def prompt_options(self):
        """
        The merged prompt settings (handler → command → argument).
        """
        handler, command = self._defaults()
        return PromptOptions.merge(handler.get("prompt"), command.get("prompt"), self.prompt)

    async def process(self, context, phrase, /):
        """
        Cast `phrase`, falling back to the otherwise responder, the prompt or
        the default; returns the value or a control flag.
        """
        handler, command = self._defaults()
        otherwise = choice(self.otherwise, command.get("otherwise"), handler.get("otherwise"))

        if not phrase and self.prompt_options().optional:
            if otherwise is not None:
                return await self._respond(context, otherwise, FailureData(phrase, None))
            return await supply(self.default, context, FailureData(phrase, None))

        result = await self.cast(context, phrase)
        if not isfailure(result):
            return result

        if otherwise is not None:
            return await self._respond(context, otherwise, FailureData(phrase, result))
        if self.prompt is not None:
            return await self.collect(context, phrase, result)
        if self.default is None:
            return result
        return await supply(self.default, context, FailureData(phrase, result))

    async def _respond(self, context, otherwise, data, /):
        handler, command = self._defaults()
        modifier = choice(self.modify_otherwise, command.get("modify_otherwise"), handler.get("modify_otherwise"))
        text = joinlines(await supply(otherwise, context, data))
        if modifier is not None:
            text = joinlines(await supply(modifier, context, text, data))
        if text:
            await context.send(text)
        logger.debug("argument %r answered with otherwise", self.id)
        return Cancel()

    async def cast(self, context, phrase, /):
        """
        Cast `phrase` with this argument's type (never prompts).
        """
        return await casting.cast(self.type, self.resolver, context, phrase)

    async def collect(self, context, phrase="", failure=None, /):
        """
        Prompt the author of `context` until a value is collected.

        Parameters
        - phrase: the command-line input that failed to cast ("" when none).
        - failure: the failed cast result of that input.

        Returns the value (a list in infinite mode) or Cancel / Retry.
        """
        options = self.prompt_options()
        infinite = options.infinite or (self.match is Match.SEPARATE and not phrase)
        values = []
        retries = 1 + bool(phrase)
        message = context

        async def say(stage, data):
            if text := await options.text(stage, context, data):
                await context.send(text)

        with self.handler.prompts.prompting(context):
            while True:
                # Infinite prompts stay silent between values.
                if retries != 1 or not infinite or not values:
                    await say("start" if retries == 1 else "retry", PromptData(retries, infinite, message, phrase, failure))

                try:
                    async with asyncio.timeout(options.time / 1000):
                        reply = await context.wait_reply(options.time / 1000)
                except TimeoutError:
                    logger.debug("prompt for argument %r timed out", self.id)
                    await say("timeout", PromptData(retries, infinite, message, phrase, ""))
                    return Cancel()

                if options.breakout and await self.handler.parse_command(reply) is not None:
                    logger.debug("prompt for argument %r broken out by %r", self.id, reply.content)
                    return Retry(reply)

                content = reply.content
                if content.casefold() == options.cancel_word.casefold():
                    logger.debug("prompt for argument %r cancelled", self.id)
                    await say("cancel", PromptData(retries, infinite, reply, content, "cancel"))
                    return Cancel()

                if infinite and content.casefold() == options.stop_word.casefold():
                    if values:
                        return values
                    message, phrase, failure, retries = reply, content, None, retries + 1
                    continue

                value = await self.cast(reply, content)
                if isfailure(value):
                    if retries <= options.retries:
                        message, phrase, failure, retries = reply, content, value, retries + 1
                        continue
                    logger.debug("prompt for argument %r ran out of retries", self.id)
                    await say("ended", PromptData(retries, infinite, reply, content, "stop"))
                    return Cancel()

                if not infinite:
                    return value

                values.append(value)
                if len(values) >= options.limit:
                    return values
                message, phrase, failure, retries = context, content, value, 1

    isfailure = staticmethod(isfailure)
    union = staticmethod(casting.union)
    product = staticmethod(casting.product)
    validate = staticmethod(casting.validate)
    range = staticmethod(casting.range)
    compose = staticmethod(casting.compose)
    compose_with_failure = staticmethod(casting.compose_with_failure)
    with_input = staticmethod(casting.with_input)
    tagged = staticmethod(casting.tagged)
    tagged_with_input = staticmethod(casting.tagged_with_input)
    tagged_union = staticmethod(casting.tagged_union)


__all__ = (
    "Match",
    "DescriptorType",
    "Argument",
)

r"""
Casting: turn one unit of input into a value through its declared type.

`cast(type, resolver, context, phrase)` accepts several kinds of `type`:

- a sequence of choices: case-insensitive exact match. An entry may itself be
  a sequence of aliases, in which case its first element is the canonical value
  returned for any alias: `[("yes", "y"), ("no", "n")]`.
- a compiled regular expression: searched in the phrase; the result is a
  RegexResult(match, matches) where `matches` lists every match in the phrase.
- an object implementing `__cast__(resolver, context, phrase)`: the combinators
  below; they need the resolver to cast their sub-types.
- any other callable: called as `caster(context, phrase)`, awaited if needed.
- a string: a type name looked up in the resolver.
- anything else (or an unknown name): the phrase itself if non-empty, else None.

Failure is a value: None or a Fail flag (see `parlance.control.isfailure`).

Combinators
- union(*types)              first successful result, in order.
- product(*types)            every sub-type must succeed; list of results.
- validate(type, predicate)  extra check predicate(context, phrase, value).
- range(type, min, max, inclusive=False)
                             validate on the value (numbers) or its len()/size.
- compose(*types)            pipe the input left to right, stop at a failure.
- compose_with_failure(*types)
                             pipe left to right, failures included.
- with_input(type)           {"input": phrase, "value": result}.
- tagged(type, tag=type)     {"tag": tag, "value": result}.
- tagged_with_input(type, tag=type)
                             {"tag": tag, "input": phrase, "value": result}.
- tagged_union(*types)       union whose result is tagged with its sub-type.

Wrapped failures are returned as Fail(payload) so that callers can still tell
which branch failed.

Example
    >>> positive = validate("integer", lambda context, phrase, value: value > 0)
    >>> await cast(positive, TypeResolver(), context, "12")
    12
    >>> await cast(positive, TypeResolver(), context, "-3") is None
    True
"""
import builtins
import re
from collections.abc import Sequence, Sized
from typing import NamedTuple

from .control import Fail, isfailure
from .utils import rename, settle


class RegexResult(NamedTuple):
    match: re.Match
    matches: list


async def cast(type, resolver, context, phrase, /):
    """
    Cast `phrase` with `type` (see the module documentation for the cases).
    """
    if isinstance(type, Sequence) and not isinstance(type, str):
        folded = str(phrase).casefold()
        for entry in type:
            if isinstance(entry, Sequence) and not isinstance(entry, str):
                if any(str(alias).casefold() == folded for alias in entry):
                    return entry[0]
            elif str(entry).casefold() == folded:
                return entry
        return None

    if isinstance(type, re.Pattern):
        if not isinstance(phrase, str) or not (match := type.search(phrase)):
            return None
        return RegexResult(match, list(type.finditer(phrase)))

    if hasattr(type, "__cast__"):
        return await type.__cast__(resolver, context, phrase)

    if callable(type):
        return await settle(type(context, phrase))

    if isinstance(type, str) and (caster := resolver.type(type)) is not None:
        return await settle(caster(context, phrase))

    return phrase or None


class Combinator:
    """
    Base class of the type combinators.

    Subclasses implement `__cast__`; calling a combinator directly needs the
    resolver, so they are used through `cast()` (arguments do this for you).
    """
    __slots__ = ("types",)

    def __init__(self, *types):
        if not types:
            raise TypeError(f"{type(self).__name__.lower()}() requires at least one type")
        self.types = types

    async def __cast__(self, resolver, context, phrase):
        raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__name__.lower()}({", ".join(map(repr, self.types))})"


class Union(Combinator):
    __slots__ = ()

    async def __cast__(self, resolver, context, phrase):
        for entry in self.types:
            result = await cast(entry, resolver, context, phrase)
            if not isfailure(result):
                return result
        return None


class Product(Combinator):
    __slots__ = ()

    async def __cast__(self, resolver, context, phrase):
        results = []
        for entry in self.types:
            result = await cast(entry, resolver, context, phrase)
            if isfailure(result):
                return result
            results.append(result)
        return results


class Validate(Combinator):
    __slots__ = ("predicate",)

    def __init__(self, type, predicate):
        if not callable(predicate):
            raise TypeError("validate() predicate must be callable")
        super().__init__(type)
        self.predicate = predicate

    async def __cast__(self, resolver, context, phrase):
        result = await cast(self.types[0], resolver, context, phrase)
        if isfailure(result):
            return result
        if not await settle(self.predicate(context, phrase, result)):
            return None
        return result


class Compose(Combinator):
    __slots__ = ("stop",)

    def __init__(self, *types, stop=True):
        super().__init__(*types)
        self.stop = stop

    async def __cast__(self, resolver, context, phrase):
        accumulator = phrase
        for entry in self.types:
            accumulator = await cast(entry, resolver, context, accumulator)
            if self.stop and isfailure(accumulator):
                return accumulator
        return accumulator

    def __repr__(self):
        name = "compose" if self.stop else "compose_with_failure"
        return f"{name}({", ".join(map(repr, self.types))})"


class Tagged(Combinator):
    __slots__ = ("tag", "input")

    def __init__(self, type, tag, *, input=False):
        super().__init__(type)
        self.tag = tag
        self.input = input

    async def __cast__(self, resolver, context, phrase):
        result = await cast(self.types[0], resolver, context, phrase)
        wrapped = {}
        if self.tag is not _UNTAGGED:
            wrapped["tag"] = self.tag
        if self.input:
            wrapped["input"] = phrase
        wrapped["value"] = result
        return Fail(wrapped) if isfailure(result) else wrapped


_UNTAGGED = object()


def union(*types):
    return Union(*types)


def product(*types):
    return Product(*types)


def validate(type, predicate):
    return Validate(type, predicate)


def _measure(value):
    if isinstance(value, int | float):
        return value
    if isinstance(value, Sized):
        return len(value)
    return getattr(value, "size", None)


def range(type, min, max, inclusive=False):
    """
    Validate that the cast value lies in [min, max) ([min, max] if inclusive).

    Numbers are compared directly; other values by len() or their `size`.
    Values with no measure fail the cast.
    """
    @rename("in_range")
    def predicate(context, phrase, value):
        measured = _measure(value)
        if not isinstance(measured, int | float) or isinstance(measured, bool):
            return None
        return measured >= min and (measured <= max if inclusive else measured < max)

    return Validate(type, predicate)


def compose(*types):
    return Compose(*types)


def compose_with_failure(*types):
    return Compose(*types, stop=False)


def with_input(type):
    return Tagged(type, _UNTAGGED, input=True)


def tagged(type, tag=_UNTAGGED):
    return Tagged(type, type if tag is _UNTAGGED else tag)


def tagged_with_input(type, tag=_UNTAGGED):
    return Tagged(type, type if tag is _UNTAGGED else tag, input=True)


def tagged_union(*types):
    return Union(*builtins.map(tagged, types))


__all__ = (
    "RegexResult",
    "cast",
    "Combinator",
    "union",
    "product",
    "validate",
    # range() is left out so that star imports keep the builtin.
    "compose",
    "compose_with_failure",
    "with_input",
    "tagged",
    "tagged_with_input",
    "tagged_union",
)

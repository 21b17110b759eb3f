"""
Parlance utilities (internal helpers, carefully exposed)

Scope
- Small building blocks shared by the tokenizer, the argument pipeline and the
  dispatcher so that "not provided", "supplier or literal" and "maybe awaitable"
  are handled the same way everywhere.

Overview
- UnsetType / Unset
  • Singleton sentinel for "value not provided" without conflating with None.
  • Falsey, printable as "Unset", non-subclassable.

- coalesce(value, default=None)
  • Replace Unset with a concrete default, preserving None/0/""/[].

- choice(*values)
  • First value that is neither Unset nor None (priority-ordered lookups).

- rename(callable, name) / @rename("name")
  • Stable __name__/__qualname__ for generated casters and steps.

- mirror("attr")
  • Read-only property over a private backing field (self._attr).

- settle(value)
  • Await the value when it is awaitable, otherwise return it unchanged.

- supply(x, *args, **kwargs)
  • Resolve "content or supplier": call x when callable (awaiting the result),
    otherwise return it as-is.

- joinlines(text)
  • Join sequence-valued message content with newlines.

Quick examples
    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> choice(Unset, None, 3, 4)
    3
    >>> await supply(lambda context: "hi", context)
    'hi'
"""
import builtins
import functools
import inspect
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    Used when None is a legitimate user value (an argument default of None, a
    prompt text of None) but the API still needs to tell "not provided" apart.

    Characteristics
    - Boolean-false: bool(Unset) is False, but it is distinct from None and 0.
    - Printable: repr(Unset) -> "Unset".
    - Non-subclassable and a per-process singleton.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in isinstance checks (e.g., str | Unset).
        """
        try:
            return type(self) | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        """
        Support reversed PEP 604 unions when Unset appears on the right.
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Returns `object` unless it is Unset, in which case `default` is returned.
    Falsey values like None, 0, "" or [] are preserved as-is.

    Examples
    - coalesce("name", "fallback") -> "name"
    - coalesce(Unset, "fallback")  -> "fallback"
    - coalesce(None, "fallback")   -> None
    """
    return object if object is not Unset else default


def choice(*objects):
    """
    Return the first object that is neither Unset nor None, or None.

    This is the lookup used for layered settings where the most specific
    layer comes first (argument, then command, then handler).
    """
    for object in objects:
        if object is not Unset and object is not None:
            return object
    return None


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator
    that will do so later.

    Forms
    - rename(callable, name) -> callable (renamed in place)
    - rename(name)           -> decorator

    Combinators and steps are produced by closures whose default names
    ("union.<locals>.caster") leak implementation details into reprs and
    tracebacks; renaming keeps them readable.
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _immortalize(object):
    """
    Recursively copy container values so callers cannot mutate backing state.

    Sequences (non-string) become lists, mappings become dicts and sets become
    sets; anything else is returned as-is.
    """
    if isinstance(object, Sequence) and not isinstance(object, str):
        return list(map(_immortalize, object))
    elif isinstance(object, Mapping):
        return dict(zip(object.keys(), map(_immortalize, object.values())))
    elif isinstance(object, Set):
        return set(map(_immortalize, object))
    return object


def mirror(name, /):
    """
    Define a read-only property that mirrors a private backing attribute.

    The property reads "_{name}" on the instance and hands out copies of
    container values, so descriptors stay immutable after construction.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _immortalize(getattr(self, "_" + name))

    return property(getter)


async def settle(object, /):
    """
    Await `object` when it is awaitable; return it unchanged otherwise.

    Casters, suppliers and steps may be plain functions or coroutine
    functions, so every call site funnels its result through here.
    """
    if inspect.isawaitable(object):
        return await object
    return object


async def supply(object, /, *args, **kwargs):
    """
    Resolve a "content or supplier" value.

    - callable → called with the given arguments, result awaited if needed.
    - anything else → returned unchanged (a literal).
    """
    if callable(object):
        return await settle(object(*args, **kwargs))
    return object


def joinlines(text, /):
    """
    Join sequence-valued message content with newlines; pass strings through.
    """
    if isinstance(text, Sequence) and not isinstance(text, str):
        return "\n".join(map(str, text))
    return text


Unset = UnsetType()
"""
Internal sentinel for "not provided".

Use Unset as a default when None is a valid, user-meaningful value but you still
need to distinguish "no input" from "explicitly passed None".
"""


__all__ = (
    # Functions
    "coalesce",
    "choice",
    "rename",
    "mirror",
    "settle",
    "supply",
    "joinlines",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)

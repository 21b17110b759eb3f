"""
Control flags threaded through casting, argument processing and running.

A Flag is an ordinary return value, never an exception. The closed set of
variants is:

- Cancel()                         stop the command here, no further side effects.
- Retry(message)                   the user typed something else (usually another
                                   command while being prompted); handle that
                                   message instead.
- Fail(value)                      a type caster failed; `value` carries whatever
                                   diagnostic payload the caster chose.
- Continue(command, ignore, rest)  hand the remaining content over to another
                                   command (by id); `rest` is filled in by the
                                   runner.

Consumers pattern-match on the variants:

    match result:
        case Cancel():
            ...
        case Retry(message):
            ...
        case Continue(command, ignore, rest):
            ...

Casting failure is either None or a Fail; `isfailure` checks both.
"""
from rich.text import Text


class Flag:
    """
    Base class of the control flags. Not instantiated directly.
    """
    __slots__ = ()
    __match_args__ = ()

    def __init_subclass__(cls, **options):
        # The set of variants is closed: only this module defines them.
        if cls.__module__ != __name__:
            raise TypeError(f"type {Flag.__name__!r} is not an acceptable base type")
        super().__init_subclass__(**options)

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return all(getattr(self, name) == getattr(other, name) for name in self.__match_args__)

    def __hash__(self):
        # Payloads may be unhashable (lists, messages); equal flags share a type.
        return hash(type(self))

    def __repr__(self):
        return f"{type(self).__name__}({", ".join(
            "%s=%r" % (name, getattr(self, name)) for name in self.__match_args__
        )})"

    def __rich_repr__(self):
        for name in self.__match_args__:
            yield name, getattr(self, name)

    def __rich__(self):
        return Text.assemble(("flag", "dim"), ":", (type(self).__name__.lower(), "bold magenta"))


class Cancel(Flag):
    """
    Stop processing: the command must not run.
    """
    __slots__ = ()


class Retry(Flag):
    """
    Abort the current command and handle `message` instead.
    """
    __slots__ = ("message",)
    __match_args__ = ("message",)

    def __init__(self, message):
        self.message = message


class Fail(Flag):
    """
    A caster failed; `value` is the diagnostic payload.
    """
    __slots__ = ("value",)
    __match_args__ = ("value",)

    def __init__(self, value=None):
        self.value = value


class Continue(Flag):
    """
    Hand off to the command with id `command`.

    `ignore` asks the dispatcher to skip its checks for the next command;
    `rest` is the untouched remaining content, set by the runner when the
    flag short-circuits a run.
    """
    __slots__ = ("command", "ignore", "rest")
    __match_args__ = ("command", "ignore", "rest")

    def __init__(self, command, ignore=False, rest=None):
        self.command = command
        self.ignore = ignore
        self.rest = rest


def cancel():
    return Cancel()


def retry(message):
    return Retry(message)


def fail(value=None):
    return Fail(value)


def proceed(command, ignore=False, rest=None):
    """
    Build a Continue flag (`continue` is a keyword, hence the name).
    """
    return Continue(command, ignore, rest)


def isfailure(value, /):
    """
    True when `value` is a casting failure: None or a Fail flag.
    """
    return value is None or isinstance(value, Fail)


def isshortcircuit(value, /):
    """
    True when `value` must stop an argument run immediately.

    Fail is a plain value as far as the runner is concerned; the other three
    variants end the run.
    """
    match value:
        case Cancel() | Retry() | Continue():
            return True
        case _:
            return False


__all__ = (
    "Flag",
    "Cancel",
    "Retry",
    "Fail",
    "Continue",
    "cancel",
    "retry",
    "fail",
    "proceed",
    "isfailure",
    "isshortcircuit",
)

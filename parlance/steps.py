"""
Argument flow steps.

A command's argument list may mix Argument descriptors with steps. A step is a
callable `(context, values)` (sync or async) run when the runner reaches it;
`values` is a copy of the record collected so far. It returns:

- None               carry on with the next entry.
- an iterable        argument descriptors and steps, run next (spliced in
                     right after the step).
- END                stop here; the record collected so far is the result.
- Cancel/Retry/Continue
                     stop the run with that flag.

Helpers
- branch(condition, then, otherwise)  entries chosen by condition(context, values).
- cases(condition, entries, ..., fallback)
                                      first entries whose condition holds.
- end()                               stop the run.
- tap(function)                       side effect, then carry on.

Example
    >>> arguments = [
    ...     Argument("kind", type=["user", "role"]),
    ...     branch(
    ...         lambda context, values: values["kind"] == "user",
    ...         [Argument("name")],
    ...         [Argument("color", type="color")],
    ...     ),
    ... ]
"""
from .utils import rename, settle


class EndType:
    """
    Marker returned by end() steps.
    """
    __slots__ = ()

    def __repr__(self):
        return "END"


END = EndType()


def branch(condition, then=(), otherwise=(), /):
    then, otherwise = tuple(then), tuple(otherwise)

    @rename("branch")
    async def step(context, values):
        return then if await settle(condition(context, values)) else otherwise

    return step


def cases(*entries):
    """
    Pair conditions with argument lists; an odd trailing list is the fallback.

        cases(is_user, [Argument("user")], is_role, [Argument("role")], [])
    """
    pairs = [(entries[index], tuple(entries[index + 1])) for index in range(0, len(entries) - 1, 2)]
    fallback = tuple(entries[-1]) if len(entries) % 2 else ()
    for condition, _ in pairs:
        if not callable(condition):
            raise TypeError("cases() conditions must be callable")

    @rename("cases")
    async def step(context, values):
        for condition, arguments in pairs:
            if await settle(condition(context, values)):
                return arguments
        return fallback

    return step


def end():
    @rename("end")
    def step(context, values):
        return END

    return step


def tap(function, /):
    if not callable(function):
        raise TypeError("tap() argument must be callable")

    @rename("tap")
    async def step(context, values):
        await settle(function(context, values))

    return step


__all__ = (
    "END",
    "branch",
    "cases",
    "end",
    "tap",
)

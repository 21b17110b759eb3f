"""
Parlance faults (configuration errors and warnings) and rendering.

Scope
- FaultCode: stable numeric identifiers for every programmer-facing issue.
- ParlanceError / ParlanceWarning: base types carrying a message plus options,
  rendered through rich in a short, lowercased, actionable way.

What is (and is not) a fault
- Faults are raised at command-load time for mistakes in the declarations
  (a reserved type name, an unknown match kind, an argument bound twice...).
- Bad user input, prompt timeouts and cancellations are not faults: they are
  control flags (see parlance.control) and never raised.

Integration
- Hosts may print a fault with rich (`console.print(fault)`); the header uses
  `__prog__` from __main__ when present, and `__styles__` / `__codes__` mappings
  in __main__ override colours and code labels.
"""
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping (by domain)
    - types (2110x)
      • RESERVED_TYPE_NAME, INVALID_TYPE_NAME
    - arguments (2120x)
      • UNKNOWN_MATCH, UNBOUND_ARGUMENT, DUPLICATED_ARGUMENT
    - commands (2130x)
      • DUPLICATED_COMMAND
    - warnings (2210x)
      • AMBIGUOUS_FLAG
    """
    # --- type registry errors ---
    RESERVED_TYPE_NAME          = 21101
    INVALID_TYPE_NAME           = 21102

    # --- argument declaration errors ---
    UNKNOWN_MATCH               = 21201
    UNBOUND_ARGUMENT            = 21202
    DUPLICATED_ARGUMENT         = 21203

    # --- command registry errors ---
    DUPLICATED_COMMAND          = 21301

    # --- warnings ---
    AMBIGUOUS_FLAG              = 22101

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__ to
        override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _render(fault, palette):
    main = __import__("__main__")
    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))
    colorful = fault.options.get("colorful", True)

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), styles[style] if colorful else "")

    header = Text.assemble(
        "[ ",
        text(getattr(main, "__prog__", "parlance"), "prog-name"),
        " — ",
        text(type(fault).code.normalize(), "code"),
        " | ",
        text(type(fault).title.title(), "title"),
        " ]",
    )
    body = [text(fault.message, "message")]
    if hint := fault.options.get("hint"):
        body.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))

    if fault.options.get("fancy", False):
        return Panel(Group(*body), title=header, title_align="left")
    return Group(header, *body)


class ParlanceError(Exception):
    """
    base class of configuration errors.

    subclasses set `code` and `title`; instances carry the message and free-form
    options (at least an optional `hint`).
    """
    code = Unset
    title = "error"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = coalesce(message, "")
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "title": "bold #FF4DA6",
            "message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        })

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ReservedTypeError(ParlanceError):
    code = FaultCode.RESERVED_TYPE_NAME
    title = "reserved type name"


class InvalidTypeNameError(ParlanceError, TypeError):
    code = FaultCode.INVALID_TYPE_NAME
    title = "invalid type name"


class UnknownMatchError(ParlanceError, ValueError):
    code = FaultCode.UNKNOWN_MATCH
    title = "unknown match"


class UnboundArgumentError(ParlanceError):
    code = FaultCode.UNBOUND_ARGUMENT
    title = "unbound argument"


class DuplicatedArgumentError(ParlanceError):
    code = FaultCode.DUPLICATED_ARGUMENT
    title = "duplicated argument"


class DuplicatedCommandError(ParlanceError):
    code = FaultCode.DUPLICATED_COMMAND
    title = "duplicated command"


class ParlanceWarning(Warning):
    """
    base class of configuration warnings (same rendering as errors, amber palette).
    """
    code = Unset
    title = "warning"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = coalesce(message, "")
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #FFB400",
            "title": "bold #FFC2E0",
            "message": "#D6D6DE",
            "hint-arrow": "#B8EFAF dim",
            "hint": "italic #B8EFAF",
        })

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class AmbiguousFlagWarning(ParlanceWarning):
    code = FaultCode.AMBIGUOUS_FLAG
    title = "ambiguous flag"


__all__ = (
    "FaultCode",
    "ParlanceError",
    "ReservedTypeError",
    "InvalidTypeNameError",
    "UnknownMatchError",
    "UnboundArgumentError",
    "DuplicatedArgumentError",
    "DuplicatedCommandError",
    "ParlanceWarning",
    "AmbiguousFlagWarning",
)

"""
Type resolver: the registry of named type casters.

A type caster is a function `(context, phrase) -> value | None | Fail`, plain
or async. None and Fail mean "could not cast"; anything else is the value.
The resolver maps type names to casters; argument descriptors refer to types
by name (or pass a caster directly, see parlance.casting).

Built-in names
- string        the phrase itself when non-empty
- lowercase     phrase.lower()
- uppercase     phrase.upper()
- charCodes     list of code points
- number        float (finite values only)
- integer       int (decimal strings, or floats truncated toward zero)
- bigint        int (exact; accepts 0x/0o/0b prefixes)
- emojint       integer written with keycap emoji (1️⃣2️⃣ → 12)
- url           urllib SplitResult with a scheme and a location; <…> stripped
- date          datetime from ISO 8601 or RFC 2822 text
- color         0xRRGGBB integer from "#RRGGBB" / "RRGGBB"
- command       a registered Command, looked up by id
- commandAlias  a registered Command, looked up by alias (case-insensitive)

Registrations
- add_type(name, caster) / add_types({name: caster, ...}); the last
  registration wins, built-ins included. Combinator names are reserved.
"""
import logging
import math
import re
from datetime import datetime
from email.utils import parsedate_to_datetime
from enum import StrEnum
from urllib.parse import urlsplit

from .faults import InvalidTypeNameError, ReservedTypeError
from .utils import Unset, coalesce

logger = logging.getLogger(__name__)


class BuiltinType(StrEnum):
    STRING = "string"
    LOWERCASE = "lowercase"
    UPPERCASE = "uppercase"
    CHAR_CODES = "charCodes"
    NUMBER = "number"
    INTEGER = "integer"
    BIGINT = "bigint"
    EMOJINT = "emojint"
    URL = "url"
    DATE = "date"
    COLOR = "color"
    COMMAND = "command"
    COMMAND_ALIAS = "commandAlias"


# Names of the combinators in parlance.casting; a type registered under one of
# them would read like a combinator call in declarations.
RESERVED_TYPE_NAMES = frozenset({
    "union",
    "product",
    "validate",
    "range",
    "compose",
    "composeWithFailure",
    "withInput",
    "tagged",
    "taggedWithInput",
    "taggedUnion",
})

_KEYCAPS = re.compile("([0-9])\ufe0f?\u20e3|\U0001f51f")


def _string(context, phrase):
    return phrase or None


def _lowercase(context, phrase):
    return phrase.lower() if phrase else None


def _uppercase(context, phrase):
    return phrase.upper() if phrase else None


def _char_codes(context, phrase):
    return [ord(char) for char in phrase] if phrase else None


def _number(context, phrase):
    if not phrase or "_" in phrase:
        return None
    try:
        number = float(phrase)
    except ValueError:
        return None
    # float() also reads "nan"/"inf"; those are not numbers a user typed.
    return number if math.isfinite(number) else None


def _integer(context, phrase):
    if not phrase or "_" in phrase:
        return None
    try:
        return int(phrase)
    except ValueError:
        number = _number(context, phrase)
        return None if number is None else int(number)


def _bigint(context, phrase):
    if not phrase or "_" in phrase:
        return None
    for base in (10, 0):
        try:
            return int(phrase, base)
        except ValueError:
            continue
    return None


def _emojint(context, phrase):
    if not phrase:
        return None
    digits = _KEYCAPS.sub(lambda match: "10" if match[0] == "\U0001f51f" else match[1], phrase)
    return _integer(context, digits)


def _url(context, phrase):
    if not phrase:
        return None
    if len(phrase) > 2 and phrase.startswith("<") and phrase.endswith(">"):
        phrase = phrase[1:-1]
    try:
        url = urlsplit(phrase)
    except ValueError:
        return None
    if not re.fullmatch(r"[a-z][a-z0-9+.-]*", url.scheme) or not (url.netloc or url.path):
        return None
    if any(char.isspace() for char in phrase):
        return None
    return url


def _date(context, phrase):
    if not phrase:
        return None
    try:
        return datetime.fromisoformat(phrase)
    except ValueError:
        pass
    try:
        return parsedate_to_datetime(phrase)
    except (TypeError, ValueError, IndexError):
        return None


def _color(context, phrase):
    if not phrase:
        return None
    if not re.fullmatch(r"#?[0-9a-fA-F]{6}", phrase):
        return None
    return int(phrase.removeprefix("#"), 16)


class TypeResolver:
    """
    Registry of type casters, one per command handler.

    Parameters
    - handler: the CommandHandler whose commands back the `command` and
      `commandAlias` types (optional; without it those types always fail).
    """

    def __init__(self, handler=Unset):
        self.handler = coalesce(handler)
        self.types = {}
        self._add_builtin_types()

    def _add_builtin_types(self):
        builtins = {
            BuiltinType.STRING: _string,
            BuiltinType.LOWERCASE: _lowercase,
            BuiltinType.UPPERCASE: _uppercase,
            BuiltinType.CHAR_CODES: _char_codes,
            BuiltinType.NUMBER: _number,
            BuiltinType.INTEGER: _integer,
            BuiltinType.BIGINT: _bigint,
            BuiltinType.EMOJINT: _emojint,
            BuiltinType.URL: _url,
            BuiltinType.DATE: _date,
            BuiltinType.COLOR: _color,
            BuiltinType.COMMAND: self._command,
            BuiltinType.COMMAND_ALIAS: self._command_alias,
        }
        for name, caster in builtins.items():
            self.types[str(name)] = caster

    def _command(self, context, phrase):
        if not phrase or self.handler is None:
            return None
        return self.handler.commands.get(phrase)

    def _command_alias(self, context, phrase):
        if not phrase or self.handler is None:
            return None
        return self.handler.find(phrase)

    def type(self, name, /):
        """
        Return the caster registered under `name`, or None.
        """
        return self.types.get(name)

    def add_type(self, name, caster, /):
        """
        Register `caster` under `name` (replacing any previous registration).

        Raises
        - InvalidTypeNameError when the name is not a non-empty string.
        - ReservedTypeError when the name is a combinator name.
        - TypeError when the caster is not callable.
        """
        if not isinstance(name, str) or not name.strip():
            raise InvalidTypeNameError(
                "type names must be non-empty strings, got %r" % (name,),
                hint="register casters under a descriptive name such as 'duration'",
            )
        if name in RESERVED_TYPE_NAMES:
            raise ReservedTypeError(
                "type name %r is reserved for a combinator" % name,
                hint="pick another name; reserved: %s" % ", ".join(sorted(RESERVED_TYPE_NAMES)),
            )
        if not callable(caster):
            raise TypeError("type caster for %r must be callable" % name)
        if name in self.types:
            logger.debug("type %r replaced", name)
        self.types[name] = caster
        return self

    def add_types(self, types, /):
        """
        Register every `name: caster` pair of a mapping.
        """
        for name, caster in dict(types).items():
            self.add_type(name, caster)
        return self

    def __contains__(self, name):
        return name in self.types

    def __repr__(self):
        return "type-resolver(types=%r)" % sorted(self.types)


__all__ = (
    "BuiltinType",
    "RESERVED_TYPE_NAMES",
    "TypeResolver",
)

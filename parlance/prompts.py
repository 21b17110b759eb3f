"""
Prompt configuration and bookkeeping.

Overview
- PromptOptions
  • Immutable set of prompt settings with the library defaults.
  • merge(*layers): handler → command → argument; later layers win and
    missing (or None) keys fall through to the earlier ones.
- PromptData
  • What prompt text suppliers and modifiers receive: retries, infinite,
    message (the latest reply), phrase (its content), failure (the last failed
    cast, or the word that ended the prompt).
- FailureData
  • What default and otherwise suppliers receive: phrase, failure.
- PromptRegistry
  • Set of (channel, author) pairs currently being prompted; the dispatcher
    ignores their messages so that a reply is never handled as a command.

Content
- Every text setting is "content or supplier": a literal (str, a sequence of
  lines joined with newlines, or None for "send nothing") or a callable
  (context, data) returning one, sync or async.
- modify_* settings are callables (context, text, data) post-processing the
  resolved text.

Example
    >>> options = PromptOptions.merge({"retries": 3}, {"start": "which one?"})
    >>> options.retries, options.start, options.cancel_word
    (3, 'which one?', 'cancel')
"""
import logging
import math
from collections.abc import Mapping
from contextlib import contextmanager
from typing import NamedTuple

from .utils import Unset, joinlines, supply

logger = logging.getLogger(__name__)


class PromptData(NamedTuple):
    retries: int
    infinite: bool
    message: object
    phrase: str
    failure: object


class FailureData(NamedTuple):
    phrase: str
    failure: object


class PromptOptions:
    """
    Resolved prompt settings.

    Settings
    - retries: int          failed replies tolerated before giving up (default 1).
    - time: float           milliseconds to wait for each reply (default 30000).
    - cancel_word: str      reply that cancels the prompt (default "cancel").
    - stop_word: str        reply that ends an infinite prompt (default "stop").
    - optional: bool        an empty input resolves to the default (no prompt).
    - infinite: bool        collect values until the stop word or the limit.
    - limit: float          maximum number of values in infinite mode.
    - breakout: bool        a reply that is a command invocation aborts with Retry.
    - start/retry/timeout/ended/cancel: content or supplier.
    - modify_start/.../modify_cancel: modifier callables.
    """
    DEFAULTS = {
        "retries": 1,
        "time": 30000,
        "cancel_word": "cancel",
        "stop_word": "stop",
        "optional": False,
        "infinite": False,
        "limit": math.inf,
        "breakout": True,
        "start": None,
        "retry": None,
        "timeout": None,
        "ended": None,
        "cancel": None,
        "modify_start": None,
        "modify_retry": None,
        "modify_timeout": None,
        "modify_ended": None,
        "modify_cancel": None,
    }

    __slots__ = tuple(DEFAULTS)

    def __init__(self, **settings):
        if unknown := settings.keys() - self.DEFAULTS.keys():
            raise TypeError("unknown prompt settings: %s" % ", ".join(sorted(unknown)))
        for name, default in self.DEFAULTS.items():
            object.__setattr__(self, name, settings.get(name, default))
        if not isinstance(self.retries, int) or self.retries < 0:
            raise ValueError("prompt 'retries' must be a non-negative integer")
        if not isinstance(self.time, int | float) or self.time <= 0:
            raise ValueError("prompt 'time' must be a positive number of milliseconds")
        if not isinstance(self.limit, int | float) or self.limit < 1:
            raise ValueError("prompt 'limit' must be at least 1")
        for name in ("cancel_word", "stop_word"):
            if not isinstance(getattr(self, name), str) or not getattr(self, name):
                raise TypeError(f"prompt {name!r} must be a non-empty string")
        for name in self.DEFAULTS:
            if name.startswith("modify_") and not (getattr(self, name) is None or callable(getattr(self, name))):
                raise TypeError(f"prompt {name!r} must be callable")

    def __setattr__(self, name, value):
        raise AttributeError("prompt options are read-only")

    @classmethod
    def merge(cls, *layers):
        """
        Merge settings layers, least specific first.

        Each layer is a mapping, a PromptOptions, or None/Unset (skipped).
        A None value inside a mapping means "not set here".
        """
        settings = {}
        for layer in layers:
            if layer is None or layer is Unset or layer is True:
                continue
            if isinstance(layer, PromptOptions):
                layer = layer.asdict()
            if not isinstance(layer, Mapping):
                raise TypeError("prompt settings must be a mapping")
            settings.update((name, value) for name, value in layer.items() if value is not None)
        return cls(**settings)

    def asdict(self):
        return {name: getattr(self, name) for name in self.DEFAULTS}

    def modifier(self, stage, /):
        return getattr(self, "modify_" + stage)

    async def text(self, stage, context, data, /):
        """
        Resolve the content of one stage ("start", "retry", "timeout", "ended"
        or "cancel") and pass it through that stage's modifier.
        """
        text = joinlines(await supply(getattr(self, stage), context, data))
        if modifier := self.modifier(stage):
            text = joinlines(await supply(modifier, context, text, data))
        return text

    def __eq__(self, other):
        if not isinstance(other, PromptOptions):
            return NotImplemented
        return self.asdict() == other.asdict()

    __hash__ = None

    def __rich_repr__(self):
        for name, default in self.DEFAULTS.items():
            if (value := getattr(self, name)) != default:
                yield name, value

    def __repr__(self):
        return "prompt-options(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())


class PromptRegistry:
    """
    Channel+author pairs currently inside a prompt.
    """

    def __init__(self):
        self._entries = set()

    @staticmethod
    def key(context, /):
        return context.channel, context.author

    def add(self, context, /):
        self._entries.add(self.key(context))

    def remove(self, context, /):
        self._entries.discard(self.key(context))

    def has(self, context, /):
        return self.key(context) in self._entries

    __contains__ = has

    @contextmanager
    def prompting(self, context, /):
        """
        Register `context`'s author for the duration of a prompt.

        Entries added by an outer prompt are left in place.
        """
        key = self.key(context)
        if key in self._entries:
            yield
            return
        self._entries.add(key)
        logger.debug("prompt opened for %r in %r", context.author, context.channel)
        try:
            yield
        finally:
            self._entries.discard(key)
            logger.debug("prompt closed for %r in %r", context.author, context.channel)

    def __len__(self):
        return len(self._entries)

    def __repr__(self):
        return "prompt-registry(%d)" % len(self._entries)


__all__ = (
    "PromptData",
    "FailureData",
    "PromptOptions",
    "PromptRegistry",
)

"""
Argument runner: match parsed content against a command's arguments.

run(context, parsed) walks the command's entries in order (arguments and
steps, see parlance.steps) and returns the argument record `{id: value}` in
declaration order, or the first Cancel / Retry / Continue met.

Match kinds
- phrase       the next phrase (or the one at `index`); unordered arguments
               take the first unused phrase that casts.
- rest         the raw phrases from the cursor (or `index`), up to `limit`,
               joined verbatim with the outer whitespace stripped; cast once.
- separate     the same window, every phrase cast on its own; a list.
- flag         presence of any spelling (inverted when a default is set);
               the number of occurrences with multiple_flags.
- option       the value of the first option flag with a configured
               spelling; every value (up to `limit`) with multiple_flags.
- text         like rest over phrases, from `index` (default 0), no cursor.
- content      like text over every entry (flags included).
- restContent  like content, from the cursor.
- none         an empty phrase.

Sequential arguments (phrase, rest, separate, restContent without `index`)
share a cursor and advance it by the number of phrases they consumed, so
several plain arguments read the phrases left to right.
"""
import logging
import math
from collections.abc import Iterable

from .arguments import Argument, Match
from .content import ResultKind
from .control import Continue, Flag, isfailure, isshortcircuit
from .faults import DuplicatedArgumentError
from .steps import EndType
from .utils import settle

logger = logging.getLogger(__name__)


class RunState:
    """
    Cursor state of one run.

    - used_indices: phrase indices taken by unordered arguments.
    - phrase_index: next phrase for sequential arguments.
    - index: matching position in `parsed.all` (entries before it were consumed).
    """
    __slots__ = ("used_indices", "phrase_index", "index")

    def __init__(self):
        self.used_indices = set()
        self.phrase_index = 0
        self.index = 0

    def advance(self, parsed, count=1, /):
        self.phrase_index += count
        seen = 0
        for position, entry in enumerate(parsed.all):
            if entry.type is ResultKind.PHRASE:
                seen += 1
                if seen == self.phrase_index:
                    self.index = position + 1
                    return
        self.index = len(parsed.all)

    def __repr__(self):
        return "run-state(phrase_index=%d, index=%d, used_indices=%r)" % (
            self.phrase_index,
            self.index,
            sorted(self.used_indices),
        )


def _window(entries, start, limit, /):
    if limit == math.inf:
        return entries[start:]
    return entries[start:start + limit]


def _joined(entries, /):
    return "".join(entry.raw for entry in entries).strip()


def _spelled(names, key, /):
    return key.casefold() in map(str.casefold, names)


class ArgumentRunner:
    """
    Runs the arguments of one command.
    """

    def __init__(self, command, /):
        self.command = command

    async def run(self, context, parsed, /, entries=None):
        """
        Run `entries` (the command's arguments by default) over `parsed`.
        """
        state = RunState()
        values = {}
        entries = list(self.command.arguments if entries is None else entries)
        cursor = 0

        while cursor < len(entries):
            entry = entries[cursor]
            cursor += 1

            if isinstance(entry, Argument):
                argument = entry.__bind__(self.command)
                if argument.id in values:
                    raise DuplicatedArgumentError(
                        "argument %r of command %r was collected twice" % (argument.id, self.command.id),
                        hint="give every argument of a flow a distinct id",
                    )
                result = await self.run_one(context, parsed, state, argument)
                if isshortcircuit(result):
                    return self._stop(result, parsed, state)
                values[argument.id] = result
                continue

            match await settle(entry(context, dict(values))):
                case None:
                    pass
                case EndType():
                    break
                case Flag() as result if isshortcircuit(result):
                    return self._stop(result, parsed, state)
                case Flag() as result:
                    raise TypeError("steps cannot return %r" % result)
                case Iterable() as spliced:
                    entries[cursor:cursor] = list(spliced)
                case result:
                    raise TypeError("steps must return None, END, a flag or entries, not %r" % (result,))

        return values

    def _stop(self, flag, parsed, state, /):
        if isinstance(flag, Continue):
            flag.rest = "".join(entry.raw for entry in parsed.all[state.index:])
        logger.debug("command %r stopped with %r", self.command.id, flag)
        return flag

    async def run_one(self, context, parsed, state, argument, /):
        match argument.match:
            case Match.PHRASE:
                return await self.run_phrase(context, parsed, state, argument)
            case Match.FLAG:
                return self.run_flag(context, parsed, state, argument)
            case Match.OPTION:
                return await self.run_option(context, parsed, state, argument)
            case Match.REST:
                return await self.run_rest(context, parsed, state, argument)
            case Match.SEPARATE:
                return await self.run_separate(context, parsed, state, argument)
            case Match.TEXT:
                return await self.run_text(context, parsed, state, argument)
            case Match.CONTENT:
                return await self.run_content(context, parsed, state, argument)
            case Match.REST_CONTENT:
                return await self.run_rest_content(context, parsed, state, argument)
            case Match.NONE:
                return await argument.process(context, "")

    async def run_phrase(self, context, parsed, state, argument):
        phrases = parsed.phrases
        if argument.unordered_active:
            match argument.unordered:
                case True:
                    indices = range(len(phrases))
                case int() as start:
                    indices = range(start, len(phrases))
                case indices:
                    pass
            for index in indices:
                if index in state.used_indices:
                    continue
                phrase = phrases[index].value if index < len(phrases) else ""
                # Candidates are cast, never prompted for.
                result = await argument.cast(context, phrase)
                if not isfailure(result):
                    state.used_indices.add(index)
                    return result
            return await argument.process(context, "")

        index = state.phrase_index if argument.index is None else argument.index
        phrase = phrases[index].value if index < len(phrases) else ""
        result = await argument.process(context, phrase)
        if argument.index is None:
            state.advance(parsed)
        return result

    async def run_rest(self, context, parsed, state, argument):
        index = state.phrase_index if argument.index is None else argument.index
        window = _window(parsed.phrases, index, argument.limit)
        result = await argument.process(context, _joined(window))
        if argument.index is None:
            state.advance(parsed, max(1, len(window)))
        return result

    async def run_separate(self, context, parsed, state, argument):
        index = state.phrase_index if argument.index is None else argument.index
        window = _window(parsed.phrases, index, argument.limit)
        if not _joined(window):
            # Nothing given (blank input is a single empty phrase).
            result = await argument.process(context, "")
        else:
            result = []
            for phrase in window:
                value = await argument.process(context, phrase.value)
                if isshortcircuit(value):
                    return value
                result.append(value)
        if argument.index is None:
            state.advance(parsed, max(1, len(window)))
        return result

    def run_flag(self, context, parsed, state, argument):
        found = [flag for flag in parsed.flags if _spelled(argument.flag, flag.key)]
        if argument.multiple_flags:
            return len(found)
        return bool(found) if argument.default is None else not found

    async def run_option(self, context, parsed, state, argument):
        found = [option for option in parsed.option_flags if _spelled(argument.flag, option.key)]
        if argument.multiple_flags:
            results = []
            for option in _window(found, 0, argument.limit):
                value = await argument.process(context, option.value)
                if isshortcircuit(value):
                    return value
                results.append(value)
            return results
        return await argument.process(context, found[0].value if found else "")

    async def run_text(self, context, parsed, state, argument):
        index = 0 if argument.index is None else argument.index
        return await argument.process(context, _joined(_window(parsed.phrases, index, argument.limit)))

    async def run_content(self, context, parsed, state, argument):
        index = 0 if argument.index is None else argument.index
        return await argument.process(context, _joined(_window(parsed.all, index, argument.limit)))

    async def run_rest_content(self, context, parsed, state, argument):
        index = state.index if argument.index is None else argument.index
        window = _window(parsed.all, index, argument.limit)
        result = await argument.process(context, _joined(window))
        if argument.index is None:
            consumed = sum(entry.type is ResultKind.PHRASE for entry in window)
            state.advance(parsed, max(1, consumed))
        return result


__all__ = (
    "RunState",
    "ArgumentRunner",
)

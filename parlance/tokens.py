r"""
Tokenizer for command content.

The tokenizer is the first half of the content parser: it turns the raw
argument text of a command into a flat list of tokens. It never fails; any
input (including malformed quoting) produces a valid token stream ending in
an EOF token.

Token kinds
- FlagWord         a configured flag spelling, e.g. "--verbose"
- OptionFlagWord   a configured option-flag spelling, e.g. "--name=" or "-n"
- Quote            the plain double quote '"'
- OpenQuote        the opening smart quote '“'
- EndQuote         the closing smart quote '”'
- Word             a run of non-space characters (quote-aware inside quotes)
- Separator        a configured literal separator, e.g. ","
- WS               a run of whitespace
- EOF              end of input (always the last token, empty value)

Scanning
- One left-to-right pass with an exclusive state: Default, InQuote ("…")
  or InSpecialQuote (“…”).
- At each position exactly one production consumes input, tried in this
  order: flag words, option-flag words (both only in Default state and only
  without a separator), quotes (only when quoting is enabled and no separator
  is configured), the separator (only when configured), a word, whitespace.
- Flag spellings are matched case-insensitively and longest first, so that
  "--flag" is never shadowed by "-f".

Example
    >>> [str(token) for token in tokenize('hi "a b" --v', flag_words=["--v"])]
    ['Word:hi', 'WS: ', 'Quote:"', 'Word:a', 'WS: ', 'Word:b', 'Quote:"', 'WS: ', 'FlagWord:--v', 'EOF:']
"""
import re
from enum import IntEnum, StrEnum
from typing import NamedTuple

from .utils import Unset, coalesce


class Quotes(StrEnum):
    NORMAL = '"'
    OPEN = "“"
    END = "”"


class TokenKind(StrEnum):
    FLAG_WORD = "FlagWord"
    OPTION_FLAG_WORD = "OptionFlagWord"
    QUOTE = "Quote"
    OPEN_QUOTE = "OpenQuote"
    END_QUOTE = "EndQuote"
    WORD = "Word"
    SEPARATOR = "Separator"
    WS = "WS"
    EOF = "EOF"


class State(IntEnum):
    DEFAULT = 0
    IN_QUOTE = 1
    IN_SPECIAL_QUOTE = 2


class Token(NamedTuple):
    kind: TokenKind
    value: str

    def __str__(self):
        return f"{self.kind}:{self.value}"


_WHITESPACE = re.compile(r"\s+")

# Word patterns per state: anything non-blank by default, and stop at the
# closing delimiter(s) inside quotes.
_WORDS = {
    State.DEFAULT: re.compile(r"\S+"),
    State.IN_QUOTE: re.compile(r'[^\s"]+'),
    State.IN_SPECIAL_QUOTE: re.compile(r"[^\s“”]+"),
}


def _sanitize_words(words, what, /):
    """
    Validate flag spellings and order them longest first.
    """
    if isinstance(words, str):
        raise TypeError(f"{what} must be an iterable of strings, not a string")
    sanitized = []
    for word in words:
        if not isinstance(word, str):
            raise TypeError(f"{what} must contain only strings")
        if not word or word.isspace():
            raise ValueError(f"{what} cannot contain empty strings")
        sanitized.append(word)
    # sorted() is stable: equal lengths keep declaration order.
    return tuple(sorted(sanitized, key=len, reverse=True))


class Tokenizer:
    """
    Single-use scanner over one content string.

    Use `tokenize()` for the common case; the class exists so that the
    scanning state (position, quote state, produced tokens) has one owner.
    """

    def __init__(self, content, /, flag_words=(), option_flag_words=(), *, quoted=True, separator=Unset):
        if not isinstance(content, str):
            raise TypeError("tokenizer content must be a string")
        if not isinstance(separator, str | Unset) or separator == "":
            raise TypeError("tokenizer 'separator' must be a non-empty string")
        self.content = content
        self.flag_words = _sanitize_words(flag_words, "flag words")
        self.option_flag_words = _sanitize_words(option_flag_words, "option flag words")
        self.quoted = bool(quoted)
        self.separator = coalesce(separator)
        self.position = 0
        self.state = State.DEFAULT
        self.tokens = []

    def startswith(self, text):
        return self.content[self.position:self.position + len(text)].lower() == text.lower()

    def add(self, kind, value):
        self.tokens.append(Token(kind, value))
        self.position += len(value)

    def tokenize(self):
        productions = (
            self.run_flags,
            self.run_option_flags,
            self.run_quote,
            self.run_open_quote,
            self.run_end_quote,
            self.run_separator,
            self.run_word,
            self.run_whitespace,
        )
        while self.position < len(self.content):
            start = self.position
            for production in productions:
                if production():
                    break
            # Every character is either blank or non-blank, so some production
            # always consumes; this guards the loop against future edits.
            assert self.position > start, "tokenizer made no progress"
        self.tokens.append(Token(TokenKind.EOF, ""))
        return self.tokens

    def _run_words(self, words, kind):
        if self.state is not State.DEFAULT or self.separator is not None:
            return False
        for word in words:
            if self.startswith(word):
                self.add(kind, self.content[self.position:self.position + len(word)])
                return True
        return False

    def run_flags(self):
        return self._run_words(self.flag_words, TokenKind.FLAG_WORD)

    def run_option_flags(self):
        return self._run_words(self.option_flag_words, TokenKind.OPTION_FLAG_WORD)

    def _quoting(self, quote, foreign):
        # Quotes of the other style are plain text while inside a quote.
        return (
            self.separator is None
            and self.quoted
            and self.state is not foreign
            and self.startswith(quote)
        )

    def run_quote(self):
        if not self._quoting(Quotes.NORMAL, State.IN_SPECIAL_QUOTE):
            return False
        self.state = State.IN_QUOTE if self.state is State.DEFAULT else State.DEFAULT
        self.add(TokenKind.QUOTE, Quotes.NORMAL)
        return True

    def run_open_quote(self):
        if not self._quoting(Quotes.OPEN, State.IN_QUOTE):
            return False
        # A nested opening quote stays inside the current special quote.
        self.state = State.IN_SPECIAL_QUOTE
        self.add(TokenKind.OPEN_QUOTE, Quotes.OPEN)
        return True

    def run_end_quote(self):
        if not self._quoting(Quotes.END, State.IN_QUOTE):
            return False
        # A stray closing quote outside a special quote is a phrase of its own.
        self.state = State.DEFAULT
        self.add(TokenKind.END_QUOTE, Quotes.END)
        return True

    def run_separator(self):
        if self.separator is None or not self.startswith(self.separator):
            return False
        self.add(TokenKind.SEPARATOR, self.content[self.position:self.position + len(self.separator)])
        return True

    def run_word(self):
        match = _WORDS[self.state].match(self.content, self.position)
        if not match:
            return False
        word = match[0]
        if self.separator is not None:
            # A word stops right before an embedded separator ("a,b" → "a" "," "b").
            index = word.lower().find(self.separator.lower())
            if index == 0:
                return False
            if index > 0:
                word = word[:index]
        self.add(TokenKind.WORD, word)
        return True

    def run_whitespace(self):
        match = _WHITESPACE.match(self.content, self.position)
        if not match:
            return False
        self.add(TokenKind.WS, match[0])
        return True


def tokenize(content, /, flag_words=(), option_flag_words=(), *, quoted=True, separator=Unset):
    """
    Tokenize `content` and return the list of tokens (EOF-terminated).

    Parameters
    - content: str
    - flag_words: Iterable[str]          spellings producing FlagWord tokens.
    - option_flag_words: Iterable[str]   spellings producing OptionFlagWord tokens.
    - quoted: bool                       recognise quotes (default True).
    - separator: str                     literal separator; disables quotes and flags.
    """
    return Tokenizer(
        content,
        flag_words,
        option_flag_words,
        quoted=quoted,
        separator=separator,
    ).tokenize()


__all__ = (
    "Quotes",
    "TokenKind",
    "Token",
    "Tokenizer",
    "tokenize",
)

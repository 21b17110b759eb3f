r"""
Content parser: tokens → phrases, flags and option flags.

Grammar (one token of lookahead, no backtracking, every token consumed once)

    Arguments  = (Argument (WS? Argument)*)? EOF
    Argument   = Flag | Phrase
    Flag       = FlagWord | OptionFlagWord WS? Phrase?
    Phrase     = Quote (Word | WS)* Quote?
               | OpenQuote (Word | OpenQuote | Quote | WS)* EndQuote?
               | EndQuote
               | Word

With a separator configured, flags and quotes are off and a phrase is the
greedy run `Word (WS Word)*` up to the next separator (possibly empty).

Every entry keeps two views of its text:
- value: the semantic content (quotes stripped, option value only).
- raw:   the exact original substring, with the surrounding whitespace and the
         closing separator folded in.

Concatenating the raw spans of `ContentParserResult.all` gives back the
original content for every input (whitespace-only input is a single empty
phrase).

Example
    >>> parser = ContentParser(flag_words=["--flag"], option_flag_words=["-o"])
    >>> result = parser.parse('hello "foo bar" --flag -o 42')
    >>> [phrase.value for phrase in result.phrases]
    ['hello', 'foo bar']
    >>> [(option.key, option.value) for option in result.option_flags]
    [('-o', '42')]
"""
from enum import StrEnum
from typing import NamedTuple

from .tokens import TokenKind, tokenize
from .utils import Unset, coalesce


class ResultKind(StrEnum):
    PHRASE = "Phrase"
    FLAG = "Flag"
    OPTION_FLAG = "OptionFlag"


class ParsedPhrase(NamedTuple):
    value: str
    raw: str

    type = ResultKind.PHRASE


class ParsedFlag(NamedTuple):
    key: str
    raw: str

    type = ResultKind.FLAG


class ParsedOptionFlag(NamedTuple):
    key: str
    value: str
    raw: str

    type = ResultKind.OPTION_FLAG


class ContentParserResult(NamedTuple):
    """
    Ordered parse result.

    `all` keeps the left-to-right order of the input; `phrases`, `flags` and
    `option_flags` are the stable sub-sequences of `all` by entry type.
    """
    all: tuple = ()
    phrases: tuple = ()
    flags: tuple = ()
    option_flags: tuple = ()

    @property
    def raw(self):
        """
        The concatenated raw spans (always the original content).
        """
        return "".join(entry.raw for entry in self.all)


_QUOTES = (TokenKind.QUOTE, TokenKind.OPEN_QUOTE, TokenKind.END_QUOTE)
_PHRASE_STARTS = (*_QUOTES, TokenKind.WORD)


class Parser:
    """
    Recursive-descent parser over one token list.
    """

    def __init__(self, tokens, /, *, separated=False):
        self.tokens = tokens
        self.separated = bool(separated)
        self.position = 0
        self.all = []

    def lookahead(self, *kinds, offset=0):
        index = self.position + offset
        return index < len(self.tokens) and self.tokens[index].kind in kinds

    def match(self, *kinds):
        if not self.lookahead(*kinds):
            token = self.tokens[self.position]
            # Unreachable with tokenizer output; kept loud for hand-built tokens.
            raise ValueError(f"unexpected {token.kind} token {token.value!r} at {self.position}")
        self.position += 1
        return self.tokens[self.position - 1]

    def optional(self, *kinds):
        return self.match(*kinds).value if self.lookahead(*kinds) else ""

    def parse(self):
        while not self.lookahead(TokenKind.EOF):
            self.parse_argument()
        self.match(TokenKind.EOF)
        return ContentParserResult(
            tuple(self.all),
            tuple(entry for entry in self.all if entry.type is ResultKind.PHRASE),
            tuple(entry for entry in self.all if entry.type is ResultKind.FLAG),
            tuple(entry for entry in self.all if entry.type is ResultKind.OPTION_FLAG),
        )

    def parse_argument(self):
        leading = self.optional(TokenKind.WS)
        if self.lookahead(TokenKind.EOF):
            # Trailing blanks belong to the previous entry.
            if self.all:
                self.all[-1] = self.all[-1]._replace(raw=self.all[-1].raw + leading)
            elif leading:
                # Blank input is one empty phrase so that its raw span survives.
                self.all.append(ParsedPhrase("", leading))
            return

        if self.lookahead(TokenKind.FLAG_WORD, TokenKind.OPTION_FLAG_WORD):
            parsed = self.parse_flag()
        else:
            parsed = self.parse_phrase()

        trailing = self.optional(TokenKind.WS)
        separator = self.optional(TokenKind.SEPARATOR)
        self.all.append(parsed._replace(raw=leading + parsed.raw + trailing + separator))

    def parse_flag(self):
        if self.lookahead(TokenKind.FLAG_WORD):
            key = self.match(TokenKind.FLAG_WORD).value
            return ParsedFlag(key, key)

        key = self.match(TokenKind.OPTION_FLAG_WORD).value
        separation = self.optional(TokenKind.WS)
        if self.lookahead(*_PHRASE_STARTS):
            phrase = self.parse_phrase()
            return ParsedOptionFlag(key, phrase.value, key + separation + phrase.raw)
        return ParsedOptionFlag(key, "", key + separation)

    def parse_phrase(self):
        if self.separated:
            return self.parse_separated_phrase()

        if self.lookahead(TokenKind.QUOTE):
            return self.parse_quoted(TokenKind.QUOTE, (TokenKind.WORD, TokenKind.WS), TokenKind.QUOTE)

        if self.lookahead(TokenKind.OPEN_QUOTE):
            return self.parse_quoted(
                TokenKind.OPEN_QUOTE,
                (TokenKind.WORD, TokenKind.OPEN_QUOTE, TokenKind.QUOTE, TokenKind.WS),
                TokenKind.END_QUOTE,
            )

        if self.lookahead(TokenKind.END_QUOTE):
            value = self.match(TokenKind.END_QUOTE).value
            return ParsedPhrase(value, value)

        value = self.match(TokenKind.WORD).value
        return ParsedPhrase(value, value)

    def parse_quoted(self, opener, inner, closer):
        opening = self.match(opener).value
        value = ""
        while self.lookahead(*inner):
            value += self.match(*inner).value
        # An unterminated quote runs to the end of the input.
        closing = self.optional(closer)
        return ParsedPhrase(value, opening + value + closing)

    def parse_separated_phrase(self):
        if not self.lookahead(TokenKind.WORD):
            # Nothing between two separators: an empty phrase.
            return ParsedPhrase("", "")
        value = self.match(TokenKind.WORD).value
        while self.lookahead(TokenKind.WS) and self.lookahead(TokenKind.WORD, offset=1):
            value += self.match(TokenKind.WS).value
            value += self.match(TokenKind.WORD).value
        return ParsedPhrase(value, value)


class ContentParser:
    """
    Reusable parser configuration for one command.

    Parameters
    - flag_words: Iterable[str]          spellings of presence flags.
    - option_flag_words: Iterable[str]   spellings of flags that take a value.
    - quoted: bool                       recognise "…" and “…” quoting.
    - separator: str                     split phrases on this literal instead of
                                         whitespace (disables quotes and flags).
    """

    def __init__(self, *, flag_words=(), option_flag_words=(), quoted=True, separator=Unset):
        self.flag_words = tuple(flag_words)
        self.option_flag_words = tuple(option_flag_words)
        self.quoted = bool(quoted)
        self.separator = coalesce(separator)

    def tokenize(self, content, /):
        return tokenize(
            content,
            self.flag_words,
            self.option_flag_words,
            quoted=self.quoted,
            separator=Unset if self.separator is None else self.separator,
        )

    def parse(self, content, /):
        return Parser(self.tokenize(content), separated=self.separator is not None).parse()

    def __repr__(self):
        return "content-parser(flag_words=%r, option_flag_words=%r, quoted=%r, separator=%r)" % (
            self.flag_words,
            self.option_flag_words,
            self.quoted,
            self.separator,
        )


__all__ = (
    "ResultKind",
    "ParsedPhrase",
    "ParsedFlag",
    "ParsedOptionFlag",
    "ContentParserResult",
    "Parser",
    "ContentParser",
)

"""
Content parser behavioral tests.

Scope
- Validate phrases, flags and option flags (values and raw spans).
- Validate the raw round-trip over a set of awkward inputs.
- Validate separator mode (empty phrases, no flags).

Conventions
- Test method names follow CamelCase per project convention.
"""
import unittest
from unittest import TestCase

from parlance.content import ContentParser, ParsedPhrase, ParsedFlag, ParsedOptionFlag, ResultKind


class TestContentParser(TestCase):
    """Behavioral tests for ContentParser.parse()."""

    def setUp(self):
        self.parser = ContentParser(flag_words=["--flag"], option_flag_words=["-o"])

    def testPhraseScenario(self):
        result = self.parser.parse('hello "foo bar" --flag -o 42')
        self.assertEqual([phrase.value for phrase in result.phrases], ["hello", "foo bar"])
        self.assertEqual([flag.key for flag in result.flags], ["--flag"])
        self.assertEqual([(option.key, option.value) for option in result.option_flags], [("-o", "42")])

    def testOrderOfAllEntries(self):
        result = self.parser.parse('hello "foo bar" --flag -o 42')
        self.assertEqual(
            [entry.type for entry in result.all],
            [ResultKind.PHRASE, ResultKind.PHRASE, ResultKind.FLAG, ResultKind.OPTION_FLAG],
        )

    def testRawSpansFoldWhitespace(self):
        result = self.parser.parse('  hello   "foo bar"  ')
        self.assertEqual(result.all, (
            ParsedPhrase("hello", "  hello   "),
            ParsedPhrase("foo bar", '"foo bar"  '),
        ))

    def testRoundTrip(self):
        inputs = (
            'hello "foo bar" --flag -o 42',
            "  spaced    out  ",
            '"unterminated quote',
            "“smart quotes” and “nested “inner” text”",
            "stray ” end quote",
            '-o "quoted value" --flag',
            "-o",
            "tab\tand\nnewline",
            '"" empty',
            "   ",
            "\t",
        )
        for content in inputs:
            with self.subTest(content=content):
                self.assertEqual(self.parser.parse(content).raw, content)

    def testEmptyInputHasNoEntries(self):
        result = self.parser.parse("")
        self.assertEqual(result.all, ())
        self.assertEqual(result.raw, "")

    def testBlankInputRoundTrips(self):
        for content in ("   ", "\t\n", " "):
            with self.subTest(content=content):
                result = self.parser.parse(content)
                self.assertEqual(result.raw, content)
                self.assertEqual(result.phrases, (ParsedPhrase("", content),))

    def testDefaultParser(self):
        result = ContentParser().parse('a "b c"')
        self.assertEqual([phrase.value for phrase in result.phrases], ["a", "b c"])
        self.assertEqual(result.raw, 'a "b c"')

    def testOptionFlagWithoutValue(self):
        result = self.parser.parse("-o")
        self.assertEqual(result.option_flags, (ParsedOptionFlag("-o", "", "-o"),))

    def testOptionFlagTakesQuotedValue(self):
        result = self.parser.parse('-o "a b" c')
        self.assertEqual(result.option_flags[0].value, "a b")
        self.assertEqual([phrase.value for phrase in result.phrases], ["c"])

    def testUnterminatedQuoteRunsToEnd(self):
        result = self.parser.parse('a "b c')
        self.assertEqual([phrase.value for phrase in result.phrases], ["a", "b c"])

    def testSmartQuotesAllowPlainQuotesInside(self):
        result = self.parser.parse('“say "hi"”')
        self.assertEqual(result.phrases[0].value, 'say "hi"')

    def testStrayEndQuoteIsAPhrase(self):
        result = self.parser.parse("a ” b")
        self.assertEqual([phrase.value for phrase in result.phrases], ["a", "”", "b"])

    def testFlagEntry(self):
        result = self.parser.parse("--FLAG")
        self.assertEqual(result.flags, (ParsedFlag("--FLAG", "--FLAG"),))


class TestSeparatedContent(TestCase):
    """Behavioral tests for separator mode."""

    def setUp(self):
        self.parser = ContentParser(flag_words=["--flag"], separator=",")

    def testPhrasesSplitOnSeparator(self):
        result = self.parser.parse("a b, c,,d")
        self.assertEqual([phrase.value for phrase in result.phrases], ["a b", "c", "", "d"])
        self.assertEqual(result.raw, "a b, c,,d")

    def testFlagsAreJustText(self):
        result = self.parser.parse("--flag, x")
        self.assertEqual(result.flags, ())
        self.assertEqual([phrase.value for phrase in result.phrases], ["--flag", "x"])


if __name__ == "__main__":
    unittest.main()

"""
Casting and combinator behavioral tests.

Scope
- Validate cast() over choices, patterns, callables (sync and async), type
  names and the fallback.
- Validate combinators: union/product short-circuits (with call counts),
  validate, range boundaries, compose, tagging.

Conventions
- Test method names follow CamelCase per project convention.
"""
import re
import unittest
from unittest import IsolatedAsyncioTestCase

from parlance.casting import (
    RegexResult,
    cast,
    union,
    product,
    validate,
    range,
    compose,
    compose_with_failure,
    with_input,
    tagged,
    tagged_with_input,
    tagged_union,
)
from parlance.control import Fail, isfailure
from parlance.types import TypeResolver


class Counter:
    """Caster returning a fixed result and counting its calls."""

    def __init__(self, result):
        self.result = result
        self.calls = 0

    def __call__(self, context, phrase):
        self.calls += 1
        return self.result


class TestCast(IsolatedAsyncioTestCase):
    """Behavioral tests for cast()."""

    def setUp(self):
        self.resolver = TypeResolver()

    async def cast(self, type, phrase):
        return await cast(type, self.resolver, None, phrase)

    async def testChoices(self):
        self.assertEqual(await self.cast(["red", "blue"], "BLUE"), "blue")
        self.assertIsNone(await self.cast(["red", "blue"], "green"))

    async def testChoiceAliasesReturnCanonicalEntry(self):
        self.assertEqual(await self.cast([("yes", "y"), ("no", "n")], "Y"), "yes")

    async def testPattern(self):
        result = await self.cast(re.compile(r"\d+"), "a1b22")
        self.assertIsInstance(result, RegexResult)
        self.assertEqual(result.match[0], "1")
        self.assertEqual([match[0] for match in result.matches], ["1", "22"])
        self.assertIsNone(await self.cast(re.compile(r"\d+"), "none"))

    async def testSyncAndAsyncCallables(self):
        async def shout(context, phrase):
            return phrase.upper()

        self.assertEqual(await self.cast(shout, "hi"), "HI")
        self.assertEqual(await self.cast(lambda context, phrase: phrase[::-1], "abc"), "cba")

    async def testTypeName(self):
        self.assertEqual(await self.cast("integer", "12"), 12)

    async def testFallback(self):
        self.assertEqual(await self.cast("no-such-type", "raw"), "raw")
        self.assertIsNone(await self.cast("no-such-type", ""))


class TestCombinators(IsolatedAsyncioTestCase):
    """Behavioral tests for the combinators."""

    def setUp(self):
        self.resolver = TypeResolver()

    async def cast(self, type, phrase):
        return await cast(type, self.resolver, None, phrase)

    async def testUnionReturnsFirstSuccess(self):
        failing, succeeding = Counter(None), Counter("b")
        self.assertEqual(await self.cast(union(failing, succeeding), "x"), "b")
        self.assertEqual((failing.calls, succeeding.calls), (1, 1))

    async def testUnionStopsAtFirstSuccess(self):
        first, second = Counter("a"), Counter("b")
        self.assertEqual(await self.cast(union(first, second), "x"), "a")
        self.assertEqual(second.calls, 0)

    async def testUnionFailsWhenEveryTypeFails(self):
        self.assertIsNone(await self.cast(union(Counter(None), Counter(Fail("no"))), "x"))

    async def testProductCollectsResults(self):
        self.assertEqual(await self.cast(product("integer", "string"), "5"), [5, "5"])

    async def testProductShortCircuits(self):
        failing, never = Counter(None), Counter("b")
        self.assertTrue(isfailure(await self.cast(product(failing, never), "x")))
        self.assertEqual((failing.calls, never.calls), (1, 0))

    async def testValidate(self):
        positive = validate("integer", lambda context, phrase, value: value > 0)
        self.assertEqual(await self.cast(positive, "12"), 12)
        self.assertIsNone(await self.cast(positive, "-3"))
        self.assertIsNone(await self.cast(positive, "x"))

    async def testValidateAsyncPredicate(self):
        async def short(context, phrase, value):
            return len(value) < 3

        self.assertEqual(await self.cast(validate("string", short), "ab"), "ab")
        self.assertIsNone(await self.cast(validate("string", short), "abc"))

    async def testRangeInclusive(self):
        bounded = range("integer", 1, 4, inclusive=True)
        for phrase in ("1", "4"):
            self.assertEqual(await self.cast(bounded, phrase), int(phrase))
        for phrase in ("0", "5"):
            self.assertIsNone(await self.cast(bounded, phrase))

    async def testRangeExclusive(self):
        bounded = range("integer", 1, 4)
        for phrase in ("1", "2", "3"):
            self.assertEqual(await self.cast(bounded, phrase), int(phrase))
        self.assertIsNone(await self.cast(bounded, "4"))

    async def testRangeOnLength(self):
        self.assertEqual(await self.cast(range("string", 2, 4), "abc"), "abc")
        self.assertIsNone(await self.cast(range("string", 2, 4), "abcd"))

    async def testRangeOnUnmeasurableValueFails(self):
        self.assertIsNone(await self.cast(range("date", 0, 5), "2024-01-01"))

    async def testComposePipesLeftToRight(self):
        self.assertEqual(await self.cast(compose("integer", lambda context, value: value * 2), "21"), 42)

    async def testComposeStopsAtFailure(self):
        never = Counter("x")
        self.assertIsNone(await self.cast(compose("integer", never), "nope"))
        self.assertEqual(never.calls, 0)

    async def testComposeWithFailureKeepsGoing(self):
        recover = lambda context, value: "fallback" if value is None else value
        self.assertEqual(await self.cast(compose_with_failure("integer", recover), "nope"), "fallback")

    async def testTagged(self):
        self.assertEqual(await self.cast(tagged("integer"), "5"), {"tag": "integer", "value": 5})
        self.assertEqual(await self.cast(tagged("integer", "n"), "5"), {"tag": "n", "value": 5})
        self.assertEqual(await self.cast(tagged("integer"), "x"), Fail({"tag": "integer", "value": None}))

    async def testWithInput(self):
        self.assertEqual(await self.cast(with_input("integer"), "5"), {"input": "5", "value": 5})

    async def testTaggedWithInput(self):
        self.assertEqual(
            await self.cast(tagged_with_input("integer"), "5"),
            {"tag": "integer", "input": "5", "value": 5},
        )

    async def testTaggedUnion(self):
        self.assertEqual(await self.cast(tagged_union("integer", "string"), "abc"), {"tag": "string", "value": "abc"})
        self.assertEqual(await self.cast(tagged_union("integer", "string"), "3"), {"tag": "integer", "value": 3})

    async def testCombinatorsRequireTypes(self):
        with self.assertRaises(TypeError):
            union()
        with self.assertRaises(TypeError):
            validate("integer", "not callable")


if __name__ == "__main__":
    unittest.main()

"""
Utilities and logging setup tests.

Scope
- Validate the Unset sentinel, coalesce/choice, rename, mirror and the
  supplier helpers.
- Validate setup_logging() (rich handler, level, overrides).

Conventions
- Test method names follow CamelCase per project convention.
"""
import logging
import unittest
from unittest import TestCase, IsolatedAsyncioTestCase

from rich.logging import RichHandler

from parlance.logs import setup_logging
from parlance.utils import Unset, UnsetType, choice, coalesce, joinlines, mirror, rename, settle, supply


class TestUnset(TestCase):
    """The Unset sentinel."""

    def testSingleton(self):
        self.assertIs(UnsetType(), Unset)

    def testFalseyAndPrintable(self):
        self.assertFalse(Unset)
        self.assertEqual(repr(Unset), "Unset")

    def testNotSubclassable(self):
        with self.assertRaises(TypeError):
            type("Subclass", (UnsetType,), {})

    def testUnionWithTypes(self):
        self.assertIsInstance(Unset, str | Unset)
        self.assertIsInstance("x", str | Unset)


class TestHelpers(TestCase):
    """coalesce, choice, rename, mirror and joinlines."""

    def testCoalesce(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))
        self.assertEqual(coalesce(0, "fallback"), 0)
        self.assertIsNone(coalesce(None, "fallback"))

    def testChoice(self):
        self.assertEqual(choice(Unset, None, 3, 4), 3)
        self.assertEqual(choice("", "x"), "")
        self.assertIsNone(choice(Unset, None))

    def testRename(self):
        renamed = rename(lambda: None, "named")
        self.assertEqual((renamed.__name__, renamed.__qualname__), ("named", "named"))

        @rename("decorated")
        def function():
            pass

        self.assertEqual(function.__name__, "decorated")
        with self.assertRaises(TypeError):
            rename("not callable", "name")

    def testMirrorHandsOutCopies(self):
        class Holder:
            items = mirror("items")

            def __init__(self):
                self._items = ("a", ("b",))

        holder = Holder()
        items = holder.items
        self.assertEqual(items, ["a", ["b"]])
        items.append("c")
        self.assertEqual(holder.items, ["a", ["b"]])
        with self.assertRaises(AttributeError):
            holder.items = []

    def testJoinLines(self):
        self.assertEqual(joinlines(["a", "b"]), "a\nb")
        self.assertEqual(joinlines("a"), "a")
        self.assertIsNone(joinlines(None))


class TestSuppliers(IsolatedAsyncioTestCase):
    """settle and supply."""

    async def testSettle(self):
        async def value():
            return 3

        self.assertEqual(await settle(value()), 3)
        self.assertEqual(await settle(4), 4)

    async def testSupply(self):
        async def supplier(context, data):
            return "%s-%s" % (context, data)

        self.assertEqual(await supply(supplier, "c", "d"), "c-d")
        self.assertEqual(await supply(lambda context: context * 2, "x"), "xx")
        self.assertEqual(await supply("literal", "ignored"), "literal")


class TestSetupLogging(TestCase):
    """setup_logging() installs the rich handler on the package logger."""

    def tearDown(self):
        logger = logging.getLogger("parlance")
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)
        logger.propagate = True

    def testRichHandler(self):
        logger = setup_logging("debug")
        self.assertEqual(logger.name, "parlance")
        self.assertEqual(logger.level, logging.DEBUG)
        self.assertTrue(any(isinstance(handler, RichHandler) for handler in logger.handlers))
        self.assertFalse(logger.propagate)

    def testNumericLevelAndOverrides(self):
        logger = setup_logging(logging.WARNING, overrides={"loggers": {"parlance": {"propagate": True}}})
        self.assertEqual(logger.level, logging.WARNING)
        self.assertTrue(logger.propagate)

    def testChildLoggersReachTheHandler(self):
        setup_logging("INFO")
        with self.assertLogs("parlance", "INFO") as logs:
            logging.getLogger("parlance.commands").info("dispatched")
        self.assertEqual(logs.output, ["INFO:parlance.commands:dispatched"])


if __name__ == "__main__":
    unittest.main()

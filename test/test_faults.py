"""
Faults and control flags behavioral tests.

Scope
- Validate fault codes, titles and the rich rendering (plain and fancy).
- Validate copy.replace() on faults and the warning family.
- Validate the control flags: equality, hashing, reprs, pattern matching and
  the isfailure / isshortcircuit predicates.

Conventions
- Test method names follow CamelCase per project convention.
"""
import copy
import io
import unittest
from unittest import TestCase

from rich.console import Console

from parlance.control import (
    Cancel,
    Continue,
    Fail,
    Flag,
    Retry,
    cancel,
    fail,
    isfailure,
    isshortcircuit,
    proceed,
    retry,
)
from parlance.faults import (
    AmbiguousFlagWarning,
    FaultCode,
    InvalidTypeNameError,
    ParlanceError,
    ReservedTypeError,
    UnknownMatchError,
)


def render(renderable):
    console = Console(file=io.StringIO(), width=120, color_system=None)
    console.print(renderable)
    return console.file.getvalue()


class TestFaults(TestCase):
    """Fault classes and their rendering."""

    def testCodes(self):
        self.assertEqual(ReservedTypeError.code, FaultCode.RESERVED_TYPE_NAME)
        self.assertEqual(int(FaultCode.RESERVED_TYPE_NAME), 21101)
        self.assertEqual(AmbiguousFlagWarning.code, FaultCode.AMBIGUOUS_FLAG)

    def testHierarchy(self):
        self.assertTrue(issubclass(InvalidTypeNameError, TypeError))
        self.assertTrue(issubclass(UnknownMatchError, ValueError))
        self.assertTrue(issubclass(ReservedTypeError, ParlanceError))
        self.assertTrue(issubclass(AmbiguousFlagWarning, Warning))

    def testMessageAndOptions(self):
        error = ReservedTypeError("type 'command' is reserved", hint="pick another name")
        self.assertEqual(str(error), "type 'command' is reserved")
        self.assertEqual(error.options["hint"], "pick another name")
        with self.assertRaises(TypeError):
            error.options["hint"] = "mutated"

    def testRendering(self):
        output = render(ReservedTypeError("type 'command' is reserved", hint="pick another name"))
        self.assertIn("21101", output)
        self.assertIn("Reserved Type Name", output)
        self.assertIn("type 'command' is reserved", output)
        self.assertIn("pick another name", output)

    def testFancyRendering(self):
        output = render(ReservedTypeError("reserved", fancy=True, colorful=False))
        self.assertIn("Reserved Type Name", output)
        self.assertIn("reserved", output)

    def testWarningRendering(self):
        self.assertIn("22101", render(AmbiguousFlagWarning("-f is ambiguous")))

    def testReplace(self):
        error = ReservedTypeError("reserved", hint="first")
        other = copy.replace(error, hint="second")
        self.assertIsInstance(other, ReservedTypeError)
        self.assertEqual((other.message, other.options["hint"]), ("reserved", "second"))
        self.assertEqual(error.options["hint"], "first")


class TestFlags(TestCase):
    """Control flags."""

    def testEquality(self):
        self.assertEqual(Cancel(), Cancel())
        self.assertEqual(Fail(1), Fail(1))
        self.assertNotEqual(Fail(1), Fail(2))
        self.assertNotEqual(Cancel(), Fail())
        self.assertEqual(Continue("a"), Continue("a", False, None))

    def testHashableWithUnhashablePayloads(self):
        self.assertEqual(hash(Fail([1])), hash(Fail([2])))
        self.assertEqual(len({Cancel(), Cancel()}), 1)

    def testRepr(self):
        self.assertEqual(repr(Cancel()), "Cancel()")
        self.assertEqual(repr(Fail("x")), "Fail(value='x')")
        self.assertEqual(repr(Continue("a", True)), "Continue(command='a', ignore=True, rest=None)")

    def testRich(self):
        self.assertIn("flag:cancel", render(Cancel()))

    def testClosedHierarchy(self):
        with self.assertRaises(TypeError):
            type("Skip", (Flag,), {})

    def testFactories(self):
        self.assertEqual(cancel(), Cancel())
        self.assertEqual(retry("m"), Retry("m"))
        self.assertEqual(fail(), Fail(None))
        self.assertEqual(proceed("b", True, "rest"), Continue("b", True, "rest"))

    def testPatternMatching(self):
        match Continue("b", False, "x y"):
            case Continue(command, _, rest):
                self.assertEqual((command, rest), ("b", "x y"))
            case _:
                self.fail("Continue did not match")

    def testIsFailure(self):
        self.assertTrue(isfailure(None))
        self.assertTrue(isfailure(Fail("why")))
        for value in (0, "", [], False, Cancel()):
            with self.subTest(value=value):
                self.assertFalse(isfailure(value))

    def testIsShortCircuit(self):
        for value in (Cancel(), Retry("m"), Continue("b")):
            with self.subTest(value=value):
                self.assertTrue(isshortcircuit(value))
        for value in (Fail(), None, 1):
            with self.subTest(value=value):
                self.assertFalse(isshortcircuit(value))


if __name__ == "__main__":
    unittest.main()

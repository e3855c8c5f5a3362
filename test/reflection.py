"""
Reflection layer tests (records, fields, bindings, zero values, conversion).

Scope
- Validate record detection and field discovery order (bases first).
- Validate tag sources: Annotated[..., Tag(...)] and dataclass field metadata.
- Validate Binding reads/writes and settability of frozen records.
- Validate zero() and convert() across scalars, collections, enums, and callables.

Conventions
- Test method names follow CamelCase per project convention.
- Records are declared at module level so their hints resolve.
"""

from __future__ import annotations

import unittest
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Annotated, ClassVar, Literal, NamedTuple
from unittest import TestCase

from tagflags import Binding, Field, Tag, convert, fields, is_record, zero
from tagflags.faults import MalformedDefaultError


class Mode(Enum):
    FAST = "fast"
    SAFE = "safe"


class Point(NamedTuple):
    x: int
    y: int


class Bare:
    pass


@dataclass
class Inline:
    depth: Annotated[int, Tag('long:"depth"')] = 0


@dataclass
class Base:
    first: Annotated[str, Tag('long:"first"')] = ""


@dataclass
class Derived(Base):
    counter: ClassVar[int] = 0
    second: Annotated[str, Tag('long:"second"')] = ""
    _private: str = ""
    inline: Inline | None = None
    meta: str = field(default="", metadata={"tag": 'long:"meta"'})


class Plain:
    level: Annotated[int, Tag('long:"level"')]


@dataclass(frozen=True)
class Frozen:
    name: str = "orig"


class TestRecords(TestCase):
    """Behavioral tests for is_record() and fields()."""

    def testDataclassIsRecord(self):
        self.assertTrue(is_record(Derived))

    def testPlainAnnotatedClassIsRecord(self):
        self.assertTrue(is_record(Plain))

    def testNonRecords(self):
        for candidate in (int, str, list, list[int], Mode, Point, Bare, object, Path, 42):
            with self.subTest(candidate=candidate):
                self.assertFalse(is_record(candidate))

    def testFieldsKeepDeclarationOrderBasesFirst(self):
        self.assertEqual([item.name for item in fields(Derived)], ["first", "second", "_private", "inline", "meta"])

    def testClassVarIsNotAField(self):
        self.assertNotIn("counter", [item.name for item in fields(Derived)])

    def testAnnotatedTagIsExtracted(self):
        first, second, *_ = fields(Derived)
        self.assertEqual(first.tag, 'long:"first"')
        self.assertIs(first.type, str)
        self.assertEqual(second.index, 1)

    def testDataclassMetadataTagIsExtracted(self):
        self.assertEqual(fields(Derived)[-1].tag, 'long:"meta"')

    def testUntaggedFieldHasEmptyTag(self):
        self.assertEqual(fields(Derived)[2].tag, "")

    def testExported(self):
        exported = {item.name: item.exported for item in fields(Derived)}
        self.assertFalse(exported["_private"])
        self.assertTrue(exported["second"])

    def testOptionalTarget(self):
        inline = fields(Derived)[3]
        self.assertTrue(inline.optional)
        self.assertIs(inline.target, Inline)
        self.assertFalse(fields(Derived)[0].optional)

    def testFieldsRejectsNonRecords(self):
        with self.assertRaises(TypeError):
            fields(int)

    def testFieldsCacheIsBounded(self):
        self.assertIsNotNone(fields.cache_info().maxsize)
        self.assertIs(fields(Derived), fields(Derived))


class TestBinding(TestCase):
    """Behavioral tests for live bindings."""

    def testReadsAndWritesTheRecord(self):
        record = Base()
        binding = Binding(record, fields(Base)[0])
        binding.set("written")
        self.assertEqual(record.first, "written")
        record.first = "direct"
        self.assertEqual(binding.get(), "direct")
        self.assertIs(binding.record, record)
        self.assertEqual(binding.name, "first")

    def testMissingAttributeReadsZero(self):
        binding = Binding(Plain(), fields(Plain)[0])
        self.assertEqual(binding.get(), 0)

    def testFrozenRecordIsNotSettable(self):
        binding = Binding(Frozen(), fields(Frozen)[0])
        self.assertFalse(binding.settable)
        self.assertEqual(binding.get(), "orig")
        with self.assertRaises(AttributeError):
            binding.set("changed")


class TestZero(TestCase):
    """Behavioral tests for zero()."""

    def testScalars(self):
        self.assertIs(zero(bool), False)
        self.assertEqual(zero(int), 0)
        self.assertEqual(zero(float), 0.0)
        self.assertEqual(zero(str), "")
        self.assertEqual(zero(bytes), b"")

    def testCollectionsAreFresh(self):
        self.assertEqual(zero(list[int]), [])
        self.assertIsNot(zero(list[int]), zero(list[int]))
        self.assertEqual(zero(dict[str, int]), {})
        self.assertEqual(zero(tuple[int, ...]), ())
        self.assertEqual(zero(set[str]), set())

    def testAbstractCollections(self):
        self.assertEqual(zero(Sequence[str]), [])
        self.assertEqual(zero(Mapping[str, int]), {})

    def testOptionalIsNone(self):
        self.assertIsNone(zero(int | None))

    def testAnnotatedIsStripped(self):
        self.assertEqual(zero(Annotated[int, Tag("")]), 0)

    def testUnknownIsNone(self):
        self.assertIsNone(zero(Path))


class TestConvert(TestCase):
    """Behavioral tests for convert()."""

    def testString(self):
        self.assertEqual(convert("x", str), "x")

    def testNumbers(self):
        self.assertEqual(convert("42", int), 42)
        self.assertEqual(convert("0.5", float), 0.5)
        self.assertEqual(convert("7", int | None), 7)

    def testBooleans(self):
        for text, expected in (("true", True), ("Yes", True), ("1", True), ("off", False), ("FALSE", False)):
            with self.subTest(text=text):
                self.assertIs(convert(text, bool), expected)

    def testBadBoolean(self):
        with self.assertRaises(MalformedDefaultError):
            convert("maybe", bool)

    def testBadNumber(self):
        with self.assertRaises(MalformedDefaultError):
            convert("many", int)

    def testEnumByNameOrValue(self):
        self.assertIs(convert("FAST", Mode), Mode.FAST)
        self.assertIs(convert("safe", Mode), Mode.SAFE)
        with self.assertRaises(MalformedDefaultError):
            convert("slow", Mode)

    def testListAppendsInPlace(self):
        current = [1]
        result = convert("2", list[int], current)
        self.assertIs(result, current)
        self.assertEqual(current, [1, 2])

    def testTupleAndSetAccumulate(self):
        self.assertEqual(convert("3", tuple[int, ...], (1,)), (1, 3))
        self.assertEqual(convert("a", set[str], {"b"}), {"a", "b"})

    def testMappingParsesPairs(self):
        current = {}
        convert("a:1", dict[str, int], current)
        convert("b:2", dict[str, int], current)
        self.assertEqual(current, {"a": 1, "b": 2})

    def testMappingWithoutSeparator(self):
        with self.assertRaises(MalformedDefaultError):
            convert("a", dict[str, int], {})

    def testCallableType(self):
        self.assertEqual(convert("/tmp", Path), Path("/tmp"))

    def testLiteralAnswersMatchingValue(self):
        self.assertEqual(convert("fast", Literal["fast", "slow"]), "fast")
        self.assertEqual(convert("2", Literal[1, 2, 3]), 2)

    def testLiteralRejectsOtherValues(self):
        with self.assertRaises(MalformedDefaultError):
            convert("medium", Literal["fast", "slow"])

    def testUnionTriesMembersInOrder(self):
        self.assertEqual(convert("80", int | str), 80)
        self.assertEqual(convert("http", int | str), "http")
        self.assertEqual(convert("80", str | int), "80")
        self.assertEqual(convert("7", int | str | None), 7)

    def testUnionWithoutMatchingMember(self):
        with self.assertRaises(MalformedDefaultError):
            convert("many", int | float)


if __name__ == "__main__":
    unittest.main()

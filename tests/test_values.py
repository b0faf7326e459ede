#
# TextDump - Values Tests
#

# Standard library -----------------------------------------------------------------------------------------------------
import dataclasses
import functools
import ipaddress
import uuid
from collections import OrderedDict
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum, Flag, IntEnum
from pathlib import PurePosixPath
from urllib.parse import urlparse

# Third-party ----------------------------------------------------------------------------------------------------------
import pytest

# Local ----------------------------------------------------------------------------------------------------------------
from textdump.policy import DumpPolicy
from textdump.sentinels import DB_NULL
from textdump.settings import DumpFormat
from textdump.values import (
    ValueKind,
    classify, is_basic, is_framework_type, render_basic, render_delegate, render_enum, render_metadata,
)

FMT = DumpFormat()


# Local Classes & Methods ----------------------------------------------------------------------------------------------

class Color(Enum):
    RED = 1
    GREEN = 2


class Perm(Flag):
    A = 1
    B = 2
    C = 4


class Level(IntEnum):
    LOW = 0
    HIGH = 1


class Point:
    def __init__(self, x=1):
        self._x = x

    @property
    def x(self) -> int:
        return self._x

    @x.setter
    def x(self, value):
        self._x = value

    def move(self, dx):
        return dx

    @staticmethod
    def origin() -> "Point":
        return Point(0)

    @classmethod
    def at(cls, x: int) -> "Point":
        return cls(x)


class Bag(list):
    pass


def handler():
    pass


@dataclasses.dataclass
class Pair:
    left: int = 0


class TestClassify:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            pytest.param(None, ValueKind.NULL, id="none"),
            pytest.param(42, ValueKind.BASIC, id="int"),
            pytest.param("s", ValueKind.BASIC, id="str"),
            pytest.param(Color.RED, ValueKind.BASIC, id="enum"),
            pytest.param(DB_NULL, ValueKind.BASIC, id="db-null"),
            pytest.param(handler, ValueKind.DELEGATE, id="function"),
            pytest.param(Point().move, ValueKind.DELEGATE, id="bound-method"),
            pytest.param(len, ValueKind.DELEGATE, id="builtin"),
            pytest.param(functools.partial(handler), ValueKind.DELEGATE, id="partial"),
            pytest.param(Point, ValueKind.METADATA, id="class"),
            pytest.param(vars(Point)["x"], ValueKind.METADATA, id="property"),
            pytest.param(b"ab", ValueKind.BYTES, id="bytes"),
            pytest.param({"a": 1}, ValueKind.MAPPING, id="dict"),
            pytest.param(OrderedDict(), ValueKind.MAPPING, id="ordered-dict"),
            pytest.param([1], ValueKind.SEQUENCE, id="list"),
            pytest.param({1}, ValueKind.SEQUENCE, id="set"),
            pytest.param(Point(), ValueKind.COMPOSITE, id="user-class"),
            pytest.param(Bag(), ValueKind.COMPOSITE, id="user-list"),
        ],
    )
    def test_classify(self, value, expected):
        assert classify(value) is expected

    def test_leaf_kinds(self):
        assert ValueKind.BASIC.is_leaf
        assert not ValueKind.SEQUENCE.is_leaf

    def test_framework_type(self):
        assert is_framework_type(dict)
        assert is_framework_type(OrderedDict)
        assert not is_framework_type(Bag)

    def test_is_basic(self):
        assert is_basic(True)
        assert is_basic(Decimal("1.5"))
        assert not is_basic(Point())


class TestRenderBasic:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            pytest.param(42, "42", id="int"),
            pytest.param(True, "True", id="bool"),
            pytest.param(0.1, "0.1", id="float"),
            pytest.param(Decimal("1.50"), "1.50", id="decimal"),
            pytest.param(datetime(2024, 1, 2, 3, 4, 5), "2024-01-02T03:04:05", id="datetime"),
            pytest.param(date(2024, 1, 2), "2024-01-02", id="date"),
            pytest.param(timedelta(hours=1), "1:00:00", id="timedelta"),
            pytest.param(uuid.UUID(int=0), "00000000-0000-0000-0000-000000000000", id="uuid"),
            pytest.param(urlparse("https://example.com/a?b=1"), "https://example.com/a?b=1", id="url"),
            pytest.param(PurePosixPath("/tmp/x"), "/tmp/x", id="path"),
            pytest.param(ipaddress.ip_address("10.0.0.1"), "10.0.0.1", id="ip"),
            pytest.param(DB_NULL, "DBNull", id="db-null"),
            pytest.param("plain", "plain", id="str"),
        ],
    )
    def test_table(self, value, expected):
        assert render_basic(value, None, FMT) == expected

    def test_deterministic(self):
        policy = DumpPolicy(max_length=3)
        assert render_basic("abcdef", policy, FMT) == render_basic("abcdef", policy, FMT) == "abc..."

    def test_string_max_length(self):
        assert render_basic("Hello, World", DumpPolicy(max_length=5), FMT) == "Hello..."

    def test_string_unlimited_by_default(self):
        assert render_basic("x" * 1000, DumpPolicy(), FMT) == "x" * 1000

    def test_mask(self):
        assert render_basic("secret", DumpPolicy(mask=True), FMT) == "******"
        assert render_basic(1234, DumpPolicy(mask=True, mask_text="<hidden>"), FMT) == "<hidden>"

    def test_to_string(self):
        assert render_basic(Color.RED, DumpPolicy(value_format="ToString"), FMT) == "Color.RED"
        assert render_basic(0.5, DumpPolicy(value_format="ToString"), FMT) == "0.5"

    def test_value_format_pattern(self):
        assert render_basic(3.14159, DumpPolicy(value_format="{0:.2f}"), FMT) == "3.14"

    def test_invalid_value_format(self):
        assert render_basic(1, DumpPolicy(value_format="{0:.2q}"), FMT).startswith("*** Invalid value format")


class TestRenderEnum:
    def test_single_value(self):
        assert render_enum(Color.GREEN, FMT) == "Color.GREEN"

    def test_int_enum(self):
        assert render_basic(Level.HIGH, None, FMT) == "Level.HIGH"

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            pytest.param(Perm.A | Perm.C, "Perm.A|Perm.C", id="a-c"),
            pytest.param(Perm.C | Perm.A | Perm.B, "Perm.A|Perm.B|Perm.C", id="all-ascending"),
            pytest.param(Perm.B, "Perm.B", id="single"),
            pytest.param(Perm(0), "Perm(0)", id="zero"),
        ],
    )
    def test_flags(self, value, expected):
        assert render_enum(value, FMT) == expected

    def test_flags_custom_format(self):
        fmt = DumpFormat(enum_flag="{name}", enum_flags_prefix="{type}(", enum_flags_separator=", ",
                         enum_flags_suffix=")")
        assert render_enum(Perm.A | Perm.B, fmt) == "Perm(A, B)"


class TestRenderDelegate:
    def test_module_function(self):
        assert render_delegate(handler, FMT) == f"static {handler.__module__}.handler"

    def test_bound_method(self):
        assert render_delegate(Point().move, FMT) == "Point.move"

    def test_static_method(self):
        assert render_delegate(Point.origin, FMT) == "static Point.origin"

    def test_class_method(self):
        assert render_delegate(Point.at, FMT) == "static Point.at"

    def test_partial_unwrapped(self):
        assert render_delegate(functools.partial(Point().move, 1), FMT) == "Point.move"

    def test_builtin(self):
        assert render_delegate(len, FMT) == "static builtins.len"


class TestRenderMetadata:
    def test_type(self):
        assert render_metadata(Point, FMT) == f"(Type): {Point.__module__}.Point"
        assert render_metadata(int, FMT) == "(Type): builtins.int"

    def test_property(self):
        assert render_metadata(vars(Point)["x"], FMT) == "(Property): int Point.x { get; set; }"

    def test_static_method(self):
        assert render_metadata(vars(Point)["origin"], FMT) == "(Method): Point Point.origin()"

    def test_class_method_skips_cls(self):
        assert render_metadata(vars(Point)["at"], FMT) == "(Method): Point Point.at(x: int)"

    def test_dataclass_field(self):
        assert render_metadata(dataclasses.fields(Pair)[0], FMT) == "(Field): int left"

    def test_module(self):
        assert render_metadata(dataclasses, FMT) == "(Module): dataclasses"

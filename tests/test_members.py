#
# TextDump - Members Tests
#

# Standard library -----------------------------------------------------------------------------------------------------
import functools
from dataclasses import dataclass, field
from typing import Annotated, ClassVar

# Third-party ----------------------------------------------------------------------------------------------------------
import pytest

# Local ----------------------------------------------------------------------------------------------------------------
from textdump.members import (
    MemberKind,
    declared_names, declaring_levels, describe, governing_level, hierarchy, is_public, member_policy,
    undeclared_instance_names,
)
from textdump.policy import DumpPolicy, TAIL_ORDER


# Local Classes & Methods ----------------------------------------------------------------------------------------------

class Base:
    counter: ClassVar[int] = 0
    name: str
    _secret: str

    def __init__(self):
        self.name = "base"
        self._secret = "s"
        self.extra = 1

    @property
    def title(self) -> str:
        return self.name.title()

    def _set_writer_only(self, value):
        self._written = value

    writer_only = property(None, _set_writer_only)

    def method(self):
        return 1


class Derived(Base):
    size: Annotated[int, DumpPolicy(0)] = 3

    @property
    def title(self) -> Annotated[str, DumpPolicy(1)]:
        return "derived"

    @functools.cached_property
    def total(self) -> int:
        return 42


class Slotted:
    __slots__ = ("x", "y")


@dataclass
class Record:
    id: int = field(default=0, metadata={"dump": DumpPolicy(0)})
    note: str = ""


class RecordShadow:
    note: Annotated[str, DumpPolicy.hidden()]


class Indexed:
    @property
    def item(self):
        return 1


Indexed.item = property(lambda self, index: index)


class TestHierarchy:
    def test_excludes_object(self):
        assert hierarchy(Derived) == [Derived, Base]


class TestDeclaredNames:
    def test_fields_and_properties(self):
        names = declared_names(Base)
        assert names == {"name": MemberKind.FIELD, "title": MemberKind.PROPERTY,
                         "writer_only": MemberKind.PROPERTY}

    def test_private_names(self):
        assert "_secret" in declared_names(Base, include_private=True)
        assert "_secret" not in declared_names(Base)

    def test_class_var_excluded(self):
        assert "counter" not in declared_names(Base, include_private=True)

    def test_cached_property(self):
        assert declared_names(Derived)["total"] is MemberKind.PROPERTY

    def test_slots(self):
        assert declared_names(Slotted) == {"x": MemberKind.FIELD, "y": MemberKind.FIELD}

    def test_builtin_descriptor_named_by_shadow(self):
        class ErrorShadow:
            args: tuple

        assert declared_names(BaseException, ErrorShadow) == {"args": MemberKind.FIELD}
        assert declared_names(BaseException) == {}


class TestUndeclaredInstanceNames:
    def test_only_undeclared_public(self):
        assert undeclared_instance_names(Base()) == ["extra"]

    def test_no_instance_dict(self):
        assert undeclared_instance_names(Slotted()) == []


class TestMemberPolicy:
    def test_annotated_field(self):
        assert member_policy("size", Derived) == DumpPolicy(0)

    def test_property_return_annotation(self):
        assert member_policy("title", Derived) == DumpPolicy(1)
        assert member_policy("title", Base) is DumpPolicy.DEFAULT

    def test_dataclass_metadata(self):
        assert member_policy("id", Record) == DumpPolicy(0)

    def test_shadow_first(self):
        assert member_policy("note", Record, RecordShadow) == DumpPolicy.hidden()
        assert member_policy("id", Record, RecordShadow) == DumpPolicy(0)

    def test_tail_order(self):
        class Tail:
            last: Annotated[int, DumpPolicy(TAIL_ORDER)]

        assert member_policy("last", Tail).order == TAIL_ORDER


class TestDescribe:
    def test_write_only_property_not_eligible(self):
        member = describe("writer_only", MemberKind.PROPERTY, Base)
        assert not member.readable
        assert not member.eligible

    def test_indexed_property_not_eligible(self):
        member = describe("item", MemberKind.PROPERTY, Indexed)
        assert member.indexed
        assert not member.eligible

    @pytest.mark.parametrize(
        ("order", "expected"),
        [
            pytest.param(0, (0, 0, "m"), id="zero"),
            pytest.param(-1, (1, 1, "m"), id="negative"),
            pytest.param(TAIL_ORDER, (1, 2 ** 31, "m"), id="tail"),
        ],
    )
    def test_sort_key(self, order, expected):
        class Holder:
            m: Annotated[int, DumpPolicy(order)]

        assert describe("m", MemberKind.FIELD, Holder).sort_key == expected

    def test_read(self):
        member = describe("title", MemberKind.PROPERTY, Base)
        assert member.read(Base()) == "Base"


class TestOverridable:
    def test_declaring_levels(self):
        assert declaring_levels(Derived, "title") == [Derived, Base]
        assert declaring_levels(Derived, "size") == [Derived]

    def test_governing_level_most_derived_non_default(self):
        assert governing_level(Derived, "title", lambda level: level) is Derived

    def test_governing_level_none_when_all_default(self):
        assert governing_level(Derived, "name", lambda level: level) is None


class TestIsPublic:
    @pytest.mark.parametrize(
        ("name", "include_private", "expected"),
        [
            pytest.param("name", False, True, id="public"),
            pytest.param("_name", False, False, id="private"),
            pytest.param("_name", True, True, id="private-included"),
            pytest.param("__dict__", True, False, id="dunder"),
        ],
    )
    def test_is_public(self, name, include_private, expected):
        assert is_public(name, include_private) is expected

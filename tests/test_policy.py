#
# TextDump - Policy Tests
#

# Third-party ----------------------------------------------------------------------------------------------------------
import pytest

# Local ----------------------------------------------------------------------------------------------------------------
from textdump.policy import (
    DEFAULT_ORDER, POLICY_ATTR, SHADOW_ATTR,
    DumpPolicy, ShouldDump,
    declared_policy, declared_shadow, dump_policy, shadow_type,
)


# Local Classes & Methods ----------------------------------------------------------------------------------------------

class PointShadow:
    pass


@dump_policy(dump_null_values=ShouldDump.SKIP, max_depth=3)
@shadow_type(PointShadow)
class Point:
    pass


class Point3D(Point):
    pass


class TestDumpPolicy:
    def test_defaults(self):
        policy = DumpPolicy()
        assert policy.order == DEFAULT_ORDER
        assert policy.skip is ShouldDump.DEFAULT
        assert policy.is_default
        assert policy == DumpPolicy.DEFAULT

    def test_positional_order(self):
        assert DumpPolicy(0).order == 0
        assert not DumpPolicy(0).is_default

    def test_value_equality(self):
        assert DumpPolicy(3, mask=True) == DumpPolicy(order=3, mask=True)
        assert hash(DumpPolicy(3)) == hash(DumpPolicy(3))

    def test_tri_state_accepts_strings(self):
        assert DumpPolicy(skip="skip").skip is ShouldDump.SKIP

    def test_hidden(self):
        assert DumpPolicy.hidden().skip is ShouldDump.SKIP

    def test_frozen(self):
        with pytest.raises(AttributeError):
            DumpPolicy().order = 1

    @pytest.mark.parametrize(
        ("kwargs", "exc", "match"),
        [
            pytest.param({"skip": "maybe"}, ValueError, r"DumpPolicy\.skip must be a ShouldDump", id="tri-state"),
            pytest.param({"order": "1"}, TypeError, r"DumpPolicy\.order must be an int", id="order"),
            pytest.param({"max_depth": True}, TypeError, r"DumpPolicy\.max_depth must be an int", id="bool"),
            pytest.param({"mask_text": None}, TypeError, r"DumpPolicy\.mask_text must be a str", id="mask-text"),
            pytest.param({"formatter": "Fmt"}, TypeError, r"DumpPolicy\.formatter must be a class", id="formatter"),
        ],
    )
    def test_validation(self, kwargs, exc, match):
        with pytest.raises(exc, match=match):
            DumpPolicy(**kwargs)

    def test_differences(self):
        assert DumpPolicy(0, mask=True).differences() == {"order": 0, "mask": True}
        assert DumpPolicy().differences() == {}


class TestMergedWith:
    def test_instance_value_wins(self):
        instance = DumpPolicy(dump_null_values=ShouldDump.DUMP)
        merged = instance.merged_with(DumpPolicy(dump_null_values=ShouldDump.SKIP))
        assert merged.dump_null_values is ShouldDump.DUMP

    def test_class_value_fills_default(self):
        merged = DumpPolicy().merged_with(DumpPolicy(recurse_dump=ShouldDump.SKIP, default_member="name"))
        assert merged.recurse_dump is ShouldDump.SKIP
        assert merged.default_member == "name"

    def test_max_depth_from_class(self):
        assert DumpPolicy(max_depth=2).merged_with(DumpPolicy(max_depth=5)).max_depth == 5

    def test_nothing_to_merge_returns_self(self):
        policy = DumpPolicy(0)
        assert policy.merged_with(None) is policy
        assert policy.merged_with(DumpPolicy.DEFAULT) is policy


class TestDecorators:
    def test_attributes_set(self):
        assert vars(Point)[POLICY_ATTR] == DumpPolicy(dump_null_values=ShouldDump.SKIP, max_depth=3)
        assert vars(Point)[SHADOW_ATTR] is PointShadow

    def test_declared_lookups_follow_mro(self):
        assert declared_policy(Point3D).max_depth == 3
        assert declared_shadow(Point3D) is PointShadow

    def test_undecorated(self):
        assert declared_policy(PointShadow) is None
        assert declared_shadow(PointShadow) is None

    def test_dump_policy_accepts_instance(self):
        @dump_policy(DumpPolicy(max_depth=1))
        class Leaf:
            pass

        assert declared_policy(Leaf).max_depth == 1

    def test_dump_policy_rejects_both_forms(self):
        with pytest.raises(TypeError, match="either a DumpPolicy or keyword fields"):
            dump_policy(DumpPolicy(), max_depth=1)

    def test_shadow_type_requires_class(self):
        with pytest.raises(TypeError, match="shadow type must be a class"):
            shadow_type("PointShadow")

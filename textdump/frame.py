"""
TraversalFrame: the ordered member cursor of one instance at one class level.
"""

# Standard library -----------------------------------------------------------------------------------------------------
from typing import Any, Callable

# Local ----------------------------------------------------------------------------------------------------------------
from .members import (
    MemberDescriptor, MemberKind, declared_names, declaring_levels, describe, undeclared_instance_names,
)
from .policy import DumpPolicy, ShouldDump
from .registry import ClassDumpInfo
from .utils import class_name


# Classes --------------------------------------------------------------------------------------------------------------

class TraversalFrame:
    """
    Cursor over the members an instance's class level declares, in dump order.

    Members are sorted by order (non-negative ascending, then negative from
    -1 down to the tail order), ties broken by name. The member list is built
    on the first ``advance``. The most-derived level also lists instance
    attributes that no class level declares.

    Args:
        instance: The object being dumped.
        level: Class level of the instance: its own class or an ancestor.
        info: ClassDumpInfo of the level.
        instance_policy: Policy of the member holding the instance, or of the top-level call.
        include_private: Also list single-underscore members.
    """

    def __init__(self,
                 instance: Any,
                 level: type,
                 info: ClassDumpInfo,
                 instance_policy: DumpPolicy | None = None,
                 include_private: bool = False,
                 ) -> None:
        self.instance = instance
        self.level = level
        self.info = info
        self.instance_policy = (instance_policy or DumpPolicy.DEFAULT).merged_with(info.policy)
        self.include_private = include_private
        self._members: list[MemberDescriptor] | None = None
        self._index = -1

    def __repr__(self) -> str:
        return f"TraversalFrame({class_name(self.instance)} at {class_name(self.level)}, index={self._index})"

    @property
    def is_top_level(self) -> bool:
        """True for the frame of the instance's own class."""
        return type(self.instance) is self.level

    @property
    def members(self) -> list[MemberDescriptor]:
        if self._members is None:
            self._members = sorted(self._discover(), key=lambda m: m.sort_key)
        return self._members

    @property
    def current(self) -> MemberDescriptor | None:
        if 0 <= self._index < len(self.members):
            return self.members[self._index]
        return None

    @property
    def dump_null_values(self) -> ShouldDump:
        return self.info.effective_dump_null_values(self.instance_policy)

    def advance(self) -> bool:
        """Move to the next member; False once the members are exhausted."""
        if self._index < len(self.members):
            self._index += 1
        return self.current is not None

    def _discover(self) -> list[MemberDescriptor]:
        tp = type(self.instance)
        names = declared_names(self.level, self.info.shadow, self.include_private)
        if self.is_top_level:
            for name in undeclared_instance_names(self.instance, self.include_private):
                names.setdefault(name, MemberKind.FIELD)

        return [describe(name, kind, self.level, self.info.shadow,
                         overridable=len(declaring_levels(tp, name, self.include_private)) > 1)
                for name, kind in names.items()]


def find_member(instance: Any, name: str, shadow_of: Callable[[type], ClassDumpInfo],
                include_private: bool = False) -> MemberDescriptor | None:
    """
    The descriptor of member name as declared by the most-derived level of the instance's class.

    Used to render the representative member of an instance whose members are not walked.
    """
    tp = type(instance)
    levels = declaring_levels(tp, name, include_private=include_private)
    if levels:
        info = shadow_of(levels[0])
        kind = declared_names(levels[0], info.shadow, include_private).get(name, MemberKind.FIELD)
        return describe(name, kind, levels[0], info.shadow)
    if name in undeclared_instance_names(instance, include_private):
        return describe(name, MemberKind.FIELD, tp, shadow_of(tp).shadow)
    return None

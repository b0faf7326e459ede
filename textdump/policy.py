"""
Declarative dump configuration: ShouldDump, DumpPolicy and the class decorators.

A DumpPolicy can be attached to a class (``@dump_policy``), to a member of a
class or of its shadow type (``Annotated[int, DumpPolicy(...)]``, dataclass
field metadata, or a property's return annotation), or passed by a caller
for a single top-level dump.
"""

# Standard library -----------------------------------------------------------------------------------------------------
from dataclasses import dataclass, fields, replace as dataclasses_replace
from enum import Enum, unique
from typing import Any, Callable, ClassVar, TypeVar

# Local ----------------------------------------------------------------------------------------------------------------
from .formatters import fmt_type, fmt_value

T = TypeVar("T", bound=type)

#: Order of members that carry no explicit order; they follow all explicitly ordered members.
DEFAULT_ORDER = 2 ** 31 - 1

#: Reserved order of the members rendered after everything else, whatever their inheritance level.
TAIL_ORDER = -(2 ** 31)

DEFAULT_MAX_DEPTH = 10
DEFAULT_MAX_ELEMENTS = 10
DEFAULT_MASK_TEXT = "******"
DEFAULT_LABEL_FORMAT = "{0:<24} = "

#: A value_format meaning "render the value's own str()".
VALUE_FORMAT_TO_STRING = "ToString"

#: Method looked up on a formatter class when formatter_method is blank.
DEFAULT_FORMATTER_METHOD = "dump"

POLICY_ATTR = "__dump_policy__"
SHADOW_ATTR = "__dump_shadow__"


# Classes --------------------------------------------------------------------------------------------------------------

@unique
class ShouldDump(str, Enum):
    """
    Tri-state switch of a dump policy field:
        - "default": no decision here, defer to the class level or the engine default
        - "dump": do it
        - "skip": don't
    """
    DEFAULT = "default"
    DUMP = "dump"
    SKIP = "skip"


@dataclass(frozen=True)
class DumpPolicy:
    """Rendering behavior of a type, of a member, or of one top-level dump call.

    Policies are compared by value; ``DumpPolicy.DEFAULT`` is the baseline
    that every field of every other policy is measured against.

    Attributes:
        order: Position of a member among its siblings. Non-negative orders are rendered base class first,
            negative orders after all non-negative ones (derived class first), and TAIL_ORDER last of all.
        dump_null_values: Whether members holding None are rendered.
        skip: ShouldDump.SKIP excludes a member from the dump.
        recurse_dump: ShouldDump.SKIP renders only the type name and the default_member of a composite.
        default_member: Member shown when recursion into a composite is suppressed.
        max_depth: Depth budget of a top-level dump; taken from the class-level policy.
        enumerate: Whether the elements of a custom (non-builtin) iterable class are rendered after its members.
        mask: Render mask_text instead of the value.
        mask_text: Replacement text of a masked value.
        max_length: Maximum length of a string value, or maximum number of rendered elements of a sequence.
            0 selects the default, a negative value means unlimited.
        label_format: ``str.format`` pattern of a member label, receives the member name.
        value_format: ``str.format`` pattern applied to the value, or "ToString" for ``str(value)``.
        formatter: Class holding a custom static formatting method.
        formatter_method: Name of the custom formatting method.

    Examples:
        >>> DumpPolicy(0).order
        0
        >>> DumpPolicy.hidden().skip
        <ShouldDump.SKIP: 'skip'>
    """
    DEFAULT: ClassVar["DumpPolicy"]

    order: int = DEFAULT_ORDER
    dump_null_values: ShouldDump = ShouldDump.DEFAULT
    skip: ShouldDump = ShouldDump.DEFAULT
    recurse_dump: ShouldDump = ShouldDump.DEFAULT
    default_member: str = ""
    max_depth: int = DEFAULT_MAX_DEPTH
    enumerate: ShouldDump = ShouldDump.DEFAULT
    mask: bool = False
    mask_text: str = DEFAULT_MASK_TEXT
    max_length: int = 0
    label_format: str = DEFAULT_LABEL_FORMAT
    value_format: str = ""
    formatter: type | None = None
    formatter_method: str = ""

    def __post_init__(self) -> None:
        """Validate field types; tri-state fields also accept their string values."""
        for name in ("dump_null_values", "skip", "recurse_dump", "enumerate"):
            val = getattr(self, name)
            if isinstance(val, ShouldDump):
                continue
            try:
                object.__setattr__(self, name, ShouldDump(val))
            except ValueError:
                raise ValueError(f"DumpPolicy.{name} must be a ShouldDump value, but got {fmt_value(val)}") from None

        for name in ("order", "max_depth", "max_length"):
            val = getattr(self, name)
            if isinstance(val, bool) or not isinstance(val, int):
                raise TypeError(f"DumpPolicy.{name} must be an int, but got {fmt_type(val)}")

        for name in ("default_member", "mask_text", "label_format", "value_format", "formatter_method"):
            val = getattr(self, name)
            if not isinstance(val, str):
                raise TypeError(f"DumpPolicy.{name} must be a str, but got {fmt_type(val)}")

        if self.formatter is not None and not isinstance(self.formatter, type):
            raise TypeError(f"DumpPolicy.formatter must be a class or None, but got {fmt_type(self.formatter)}")

    @classmethod
    def hidden(cls) -> "DumpPolicy":
        """A member policy that excludes the member from the dump."""
        return cls(skip=ShouldDump.SKIP)

    @property
    def is_default(self) -> bool:
        """True if every field equals the baseline."""
        return self == DumpPolicy.DEFAULT

    def merged_with(self, class_policy: "DumpPolicy | None") -> "DumpPolicy":
        """
        Combine this instance-scoped policy with a class-level policy.

        The tri-state fields and default_member left at their default here are
        taken from the class policy; max_depth always comes from the class
        policy, since only the type decides how deep its instances are dumped.

        Args:
            class_policy: The class-level policy, None for the baseline.

        Returns:
            The combined policy; self when there is nothing to take over.
        """
        if class_policy is None or class_policy is self:
            return self

        changes: dict[str, Any] = {}
        for name in ("dump_null_values", "recurse_dump", "enumerate"):
            if getattr(self, name) is ShouldDump.DEFAULT and getattr(class_policy, name) is not ShouldDump.DEFAULT:
                changes[name] = getattr(class_policy, name)
        if not self.default_member.strip() and class_policy.default_member.strip():
            changes["default_member"] = class_policy.default_member
        if self.max_depth != class_policy.max_depth:
            changes["max_depth"] = class_policy.max_depth

        return dataclasses_replace(self, **changes) if changes else self

    def differences(self) -> dict[str, Any]:
        """Fields that differ from the baseline, for log records and reprs."""
        return {f.name: getattr(self, f.name)
                for f in fields(self)
                if getattr(self, f.name) != getattr(DumpPolicy.DEFAULT, f.name)}


DumpPolicy.DEFAULT = DumpPolicy()


# Methods --------------------------------------------------------------------------------------------------------------

def dump_policy(policy: DumpPolicy | None = None, /, **kwargs: Any) -> Callable[[T], T]:
    """
    Class decorator attaching a class-level DumpPolicy.

    Pass either a ready DumpPolicy or its fields as keyword arguments.

    Examples:
        >>> @dump_policy(recurse_dump=ShouldDump.SKIP, default_member="name")
        ... class Person:
        ...     name: str = "Alice"
    """
    if policy is not None and kwargs:
        raise TypeError("dump_policy() accepts either a DumpPolicy or keyword fields, not both")
    if policy is None:
        policy = DumpPolicy(**kwargs)
    elif not isinstance(policy, DumpPolicy):
        raise TypeError(f"DumpPolicy expected, but got {fmt_type(policy)}")

    def decorator(cls: T) -> T:
        setattr(cls, POLICY_ATTR, policy)
        return cls

    return decorator


def shadow_type(shadow: type) -> Callable[[T], T]:
    """
    Class decorator naming the class whose annotations configure the decorated class.

    Member policies are looked up on the shadow type first, and the class-level
    policy of the shadow type, if any, applies to the decorated class.

    Examples:
        >>> class PointShadow:
        ...     y: Annotated[int, DumpPolicy(0)]
        >>> @shadow_type(PointShadow)
        ... class Point:
        ...     x: int = 1
        ...     y: int = 2
    """
    if not isinstance(shadow, type):
        raise TypeError(f"shadow type must be a class, but got {fmt_type(shadow)}")

    def decorator(cls: T) -> T:
        setattr(cls, SHADOW_ATTR, shadow)
        return cls

    return decorator


def declared_policy(cls: Any) -> DumpPolicy | None:
    """The class-level DumpPolicy of cls or of its nearest decorated ancestor."""
    policy = getattr(cls, POLICY_ATTR, None)
    return policy if isinstance(policy, DumpPolicy) else None


def declared_shadow(cls: Any) -> type | None:
    """The shadow type declared with ``@shadow_type`` on cls or on its nearest decorated ancestor."""
    shadow = getattr(cls, SHADOW_ATTR, None)
    return shadow if isinstance(shadow, type) else None

"""
Member discovery: which members a class level declares, and the DumpPolicy attached to each.

A class level declares:
    - properties: ``property`` and ``functools.cached_property`` objects in its ``__dict__``;
    - fields: its own non-ClassVar annotations and ``__slots__``, plus builtin data
      descriptors named by its shadow type;
    - for the most-derived class only, instance attributes no class level declares.

Member policies are looked up on the shadow type first, then on the declaring class:
``Annotated[T, DumpPolicy(...)]`` annotations, dataclass field metadata under
the "dump" key, and the return annotation of a property getter.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import dataclasses
import functools
import inspect
import logging
import typing
from dataclasses import dataclass
from enum import Enum, unique
from typing import Annotated, Any, Callable, ClassVar

# Local ----------------------------------------------------------------------------------------------------------------
from .policy import DumpPolicy
from .utils import class_name

logger = logging.getLogger(__name__)

#: Key of the DumpPolicy in ``dataclasses.field(metadata=...)``.
METADATA_KEY = "dump"


# Classes --------------------------------------------------------------------------------------------------------------

@unique
class MemberKind(str, Enum):
    FIELD = "field"
    PROPERTY = "property"


@dataclass(frozen=True)
class MemberDescriptor:
    """A dumpable member as declared at one class level.

    Attributes:
        name: Attribute name.
        kind: Field or property.
        owner: The class level declaring the member.
        policy: The member's DumpPolicy at this level.
        readable: False for write-only properties.
        indexed: True for properties whose getter needs arguments besides the instance.
        overridable: True when more than one level of the instance's class declares the name.
    """
    name: str
    kind: MemberKind
    owner: type
    policy: DumpPolicy = DumpPolicy.DEFAULT
    readable: bool = True
    indexed: bool = False
    overridable: bool = False

    @property
    def eligible(self) -> bool:
        return self.readable and not self.indexed

    @property
    def sort_key(self) -> tuple[int, int, str]:
        """Non-negative orders ascending, then negative orders from -1 down to the tail, ties by name."""
        order = self.policy.order
        return (0, order, self.name) if order >= 0 else (1, -order, self.name)

    def read(self, instance: Any) -> Any:
        return getattr(instance, self.name)


# Methods --------------------------------------------------------------------------------------------------------------

def hierarchy(tp: type) -> list[type]:
    """Class levels of tp from the most derived to the least derived, ``object`` excluded."""
    return [cls for cls in tp.__mro__ if cls is not object]


def declared_names(level: type, shadow: type | None = None, include_private: bool = False) -> dict[str, MemberKind]:
    """
    Names of the members declared at a single class level.

    Args:
        level: The class level.
        shadow: Shadow type of the level; its annotations may expose builtin data descriptors of the level.
        include_private: Also list names starting with a single underscore.

    Returns:
        A mapping of member name to kind; properties win over a same-named annotation.
    """
    names: dict[str, MemberKind] = {}
    namespace = vars(level)

    for name, annotation in own_annotations(level).items():
        if _is_class_var(annotation):
            continue
        names[name] = MemberKind.FIELD

    for name in _slot_names(level):
        names.setdefault(name, MemberKind.FIELD)

    if shadow is not None and shadow is not level:
        for name in shadow_annotations(shadow):
            if _is_data_descriptor(namespace.get(name)):
                names.setdefault(name, MemberKind.FIELD)

    for name, attr in namespace.items():
        if isinstance(attr, (property, functools.cached_property)):
            names[name] = MemberKind.PROPERTY

    return {name: kind for name, kind in names.items() if is_public(name, include_private)}


def undeclared_instance_names(instance: Any, include_private: bool = False) -> list[str]:
    """Instance ``__dict__`` keys no class level of the instance declares, in insertion order."""
    try:
        attrs = vars(instance)
    except TypeError:
        return []
    declared: set[str] = set()
    for level in hierarchy(type(instance)):
        declared.update(own_annotations(level))
        declared.update(_slot_names(level))
        declared.update(name for name, attr in vars(level).items()
                        if isinstance(attr, (property, functools.cached_property)))
    return [name for name in attrs if name not in declared and is_public(name, include_private)]


def member_policy(name: str, level: type, shadow: type | None = None) -> DumpPolicy:
    """
    The DumpPolicy of member name at a class level.

    The shadow type is consulted first (annotations along its MRO, then its
    dataclass field metadata), then the level itself (its own annotations,
    dataclass field metadata, property getter return annotation).

    Returns:
        The declared policy, DumpPolicy.DEFAULT when none is declared.
    """
    if shadow is not None and shadow is not level:
        policy = _policy_of(shadow_annotations(shadow).get(name)) or _field_metadata_policy(shadow, name)
        if policy is not None:
            return policy

    policy = _policy_of(own_annotations(level).get(name)) or _field_metadata_policy(level, name)
    if policy is None:
        attr = vars(level).get(name)
        if isinstance(attr, property) and attr.fget is not None:
            policy = _policy_of(_annotations(attr.fget).get("return"))
        elif isinstance(attr, functools.cached_property):
            policy = _policy_of(_annotations(attr.func).get("return"))
    return policy or DumpPolicy.DEFAULT


def describe(name: str,
             kind: MemberKind,
             level: type,
             shadow: type | None = None,
             overridable: bool = False,
             ) -> MemberDescriptor:
    """Build the MemberDescriptor of a member declared at a class level."""
    readable, indexed = True, False
    attr = vars(level).get(name)
    if isinstance(attr, property):
        readable = attr.fget is not None
        indexed = readable and _required_arguments(attr.fget) > 1
    return MemberDescriptor(name=name,
                            kind=kind,
                            owner=level,
                            policy=member_policy(name, level, shadow),
                            readable=readable,
                            indexed=indexed,
                            overridable=overridable)


def declaring_levels(tp: type, name: str, include_private: bool = False) -> list[type]:
    """Levels of tp, most derived first, declaring member name."""
    return [level for level in hierarchy(tp) if name in declared_names(level, include_private=include_private)]


def governing_level(tp: type, name: str, shadow_of: Callable[[type], type]) -> type | None:
    """
    The most-derived level of tp declaring name with a non-default policy.

    An overridable member is rendered once: at this level when one exists,
    otherwise at the first level the traversal reaches.

    Args:
        tp: Class of the instance.
        name: Member name.
        shadow_of: Maps a class level to its shadow type.

    Returns:
        The governing level, or None when every declaration has the default policy.
    """
    for level in hierarchy(tp):
        shadow = shadow_of(level)
        if name in declared_names(level, shadow, include_private=True):
            if not member_policy(name, level, shadow).is_default:
                return level
    return None


def is_public(name: str, include_private: bool = False) -> bool:
    """Dunder names never are; single-underscore names only when include_private is set."""
    if name.startswith("__"):
        return False
    return include_private or not name.startswith("_")


def own_annotations(cls: type) -> dict[str, Any]:
    """Annotations written in the body of cls itself, evaluated where possible."""
    if not isinstance(cls, type):
        return {}
    return _annotations(cls)


def shadow_annotations(shadow: type) -> dict[str, Any]:
    """Annotations of a shadow type along its MRO; the most derived declaration of a name wins."""
    merged: dict[str, Any] = {}
    for cls in reversed(hierarchy(shadow)):
        merged.update(own_annotations(cls))
    return merged


# Private Methods ------------------------------------------------------------------------------------------------------

def _annotations(obj: Any) -> dict[str, Any]:
    """Annotations of a class or function; unresolvable string annotations are kept as strings."""
    try:
        return dict(inspect.get_annotations(obj, eval_str=True))
    except (NameError, SyntaxError, TypeError, AttributeError) as e:
        logger.debug("Could not evaluate the annotations of %s: %s", class_name(obj), e)
    try:
        return dict(inspect.get_annotations(obj))
    except (NameError, TypeError, AttributeError) as e:
        logger.debug("Could not read the annotations of %s: %s", class_name(obj), e)
        return {}


def _policy_of(annotation: Any) -> DumpPolicy | None:
    """The first DumpPolicy in the metadata of an ``Annotated`` annotation."""
    if typing.get_origin(annotation) is not Annotated:
        return None
    for meta in getattr(annotation, "__metadata__", ()):
        if isinstance(meta, DumpPolicy):
            return meta
    return None


def _field_metadata_policy(cls: type, name: str) -> DumpPolicy | None:
    field = getattr(cls, "__dataclass_fields__", {}).get(name) if dataclasses.is_dataclass(cls) else None
    if field is None:
        return None
    policy = field.metadata.get(METADATA_KEY)
    return policy if isinstance(policy, DumpPolicy) else None


def _is_class_var(annotation: Any) -> bool:
    if isinstance(annotation, str):
        return annotation.startswith(("ClassVar", "typing.ClassVar"))
    if typing.get_origin(annotation) is Annotated:
        annotation = typing.get_args(annotation)[0]
    return annotation is ClassVar or typing.get_origin(annotation) is ClassVar


def _slot_names(cls: type) -> list[str]:
    slots = vars(cls).get("__slots__", ())
    if isinstance(slots, str):
        slots = (slots,)
    return [name for name in slots if name not in ("__dict__", "__weakref__")]


def _is_data_descriptor(attr: Any) -> bool:
    return attr is not None and inspect.isdatadescriptor(attr)


def _required_arguments(func: Callable) -> int:
    """Number of positional parameters of func without a default value."""
    try:
        params = inspect.signature(func).parameters.values()
    except (TypeError, ValueError):
        return 1
    return sum(1 for p in params
               if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD) and p.default is p.empty)

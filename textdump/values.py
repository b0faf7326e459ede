"""
Value classification and rendering of leaf values.

Every value is classified once into a ValueKind; the engine dispatches on it.
Leaves (basic values, enums, function references and metadata handles such
as classes and properties) are rendered to a single string here.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import collections.abc as abc
import ctypes
import dataclasses
import functools
import inspect
import ipaddress
import sys
import types
import typing
import uuid
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum, Flag, unique
from fractions import Fraction
from pathlib import PurePath
from typing import Any, Callable
from urllib.parse import DefragResult, ParseResult, SplitResult

# Local ----------------------------------------------------------------------------------------------------------------
from .formatters import truncate_text
from .policy import DumpPolicy, VALUE_FORMAT_TO_STRING
from .sentinels import DBNullType
from .settings import DumpFormat
from .utils import class_name, full_name

# Basic values table: the renderer is looked up along the MRO of the value's class.
BASIC_RENDERERS: dict[type, Callable[[Any], str]] = {
    DBNullType: str,
    bool: str,
    int: str,
    float: repr,
    complex: str,
    Decimal: str,
    Fraction: str,
    datetime: datetime.isoformat,
    date: date.isoformat,
    time: time.isoformat,
    timedelta: str,
    uuid.UUID: str,
    ParseResult: ParseResult.geturl,
    SplitResult: SplitResult.geturl,
    DefragResult: DefragResult.geturl,
    PurePath: str,
    ipaddress.IPv4Address: str,
    ipaddress.IPv6Address: str,
    ipaddress.IPv4Network: str,
    ipaddress.IPv6Network: str,
    ctypes.c_void_p: lambda v: f"0x{(v.value or 0):016x}",
}

BYTES_TYPES = (bytes, bytearray, memoryview)

_STDLIB_MODULES = frozenset(getattr(sys, "stdlib_module_names", ())) | {"builtins"}


# Classes --------------------------------------------------------------------------------------------------------------

@unique
class ValueKind(str, Enum):
    """
    What a value is, as far as the dumper is concerned:
        - "null": None
        - "basic": scalar rendered from the basic values table, a string, or an enum member
        - "delegate": a function, bound method, builtin or functools.partial
        - "metadata": a class, property, static/class method, dataclass field or module
        - "bytes": bytes, bytearray or memoryview
        - "mapping": a standard library mapping
        - "sequence": a standard library collection
        - "composite": anything else; its members are walked
    """
    NULL = "null"
    BASIC = "basic"
    DELEGATE = "delegate"
    METADATA = "metadata"
    BYTES = "bytes"
    MAPPING = "mapping"
    SEQUENCE = "sequence"
    COMPOSITE = "composite"

    @property
    def is_leaf(self) -> bool:
        return self in (ValueKind.NULL, ValueKind.BASIC, ValueKind.DELEGATE, ValueKind.METADATA)


# Methods --------------------------------------------------------------------------------------------------------------

def classify(value: Any) -> ValueKind:
    """
    Classify a value for dispatch.

    Examples:
        >>> classify(42)
        <ValueKind.BASIC: 'basic'>
        >>> classify([1, 2])
        <ValueKind.SEQUENCE: 'sequence'>
        >>> classify(len)
        <ValueKind.DELEGATE: 'delegate'>
    """
    if value is None:
        return ValueKind.NULL
    if is_basic(value):
        return ValueKind.BASIC
    if isinstance(value, (type, property, functools.cached_property, staticmethod, classmethod,
                          dataclasses.Field, types.ModuleType)):
        return ValueKind.METADATA
    if is_delegate(value):
        return ValueKind.DELEGATE
    if isinstance(value, BYTES_TYPES):
        return ValueKind.BYTES
    if is_framework_type(type(value)):
        if isinstance(value, abc.Mapping):
            return ValueKind.MAPPING
        if isinstance(value, abc.Collection):
            return ValueKind.SEQUENCE
    return ValueKind.COMPOSITE


def is_basic(value: Any) -> bool:
    """True for strings, enum members and values of a class in the basic values table."""
    if isinstance(value, (str, Enum)):
        return True
    return _basic_renderer(type(value)) is not None


def is_delegate(value: Any) -> bool:
    return (inspect.isfunction(value)
            or inspect.ismethod(value)
            or inspect.isbuiltin(value)
            or isinstance(value, functools.partial))


def is_framework_type(tp: type) -> bool:
    """True for builtin and standard library classes."""
    root = (getattr(tp, "__module__", None) or "").split(".")[0]
    return root in _STDLIB_MODULES or root.lstrip("_") in _STDLIB_MODULES


def render_basic(value: Any, policy: DumpPolicy | None, fmt: DumpFormat) -> str:
    """
    Render a basic value.

    In order: the policy's mask, its value_format ("ToString" renders ``str(value)``,
    any other pattern is applied with ``str.format``), then the type's own rule.
    Strings are cut to the policy's max_length when it is positive.

    Args:
        value: A value for which ``is_basic`` holds.
        policy: Policy of the member holding the value, or of the top-level call.
        fmt: Output templates.

    Returns:
        The rendered value.

    Examples:
        >>> render_basic("Hello, World", DumpPolicy(max_length=5), DumpFormat())
        'Hello...'
    """
    if policy is not None:
        if policy.mask:
            return policy.mask_text
        value_format = policy.value_format.strip()
        if value_format == VALUE_FORMAT_TO_STRING:
            return str(value)
        if value_format:
            try:
                return policy.value_format.format(value)
            except (ValueError, TypeError, IndexError, KeyError) as e:
                return f"*** Invalid value format {policy.value_format!r} for {class_name(value)}: {e}"

    if isinstance(value, Enum):
        return render_enum(value, fmt)
    if isinstance(value, str):
        max_length = policy.max_length if policy is not None else 0
        return truncate_text(value, max_length)

    renderer = _basic_renderer(type(value))
    if renderer is None:
        return f"[{class_name(value)} value]"
    return renderer(value)


def render_enum(value: Enum, fmt: DumpFormat) -> str:
    """
    Render an enum member as ``Type.NAME``; a flag value as its set bits in ascending order.

    Examples:
        >>> class Color(Flag):
        ...     A = 1
        ...     B = 2
        ...     C = 4
        >>> render_enum(Color.A | Color.C, DumpFormat())
        'Color.A|Color.C'
    """
    tp = type(value)
    type_name = class_name(tp)

    if not isinstance(value, Flag):
        return fmt.enum.format(type=type_name, name=value.name)

    bits = int(value.value)
    names: dict[int, str] = {}
    for name, member in tp.__members__.items():
        names.setdefault(int(member.value), name)

    if bits == 0:
        if 0 in names:
            return fmt.enum.format(type=type_name, name=names[0])
        return f"{type_name}(0)"

    parts = []
    bit = 1
    while bit <= bits:
        if bits & bit:
            parts.append(fmt.enum_flag.format(type=type_name, name=names.get(bit, str(bit))))
        bit <<= 1

    return (fmt.enum_flags_prefix.format(type=type_name)
            + fmt.enum_flags_separator.join(parts)
            + fmt.enum_flags_suffix.format(type=type_name))


def render_delegate(value: Any, fmt: DumpFormat) -> str:
    """
    Render a function reference as ``[static ]Owner.name``.

    Functions, static methods, class methods and builtins not bound to an
    instance are marked static; methods bound to an instance are not. The
    owner is the class that defines the function, or its module.
    """
    while isinstance(value, functools.partial):
        value = value.func

    func, bound_to = value, None
    if inspect.ismethod(value):
        func, bound_to = value.__func__, value.__self__
    elif inspect.isbuiltin(value):
        bound_to = getattr(value, "__self__", None)

    static = bound_to is None or isinstance(bound_to, (type, types.ModuleType))
    owner, name = _split_qualname(func)
    if inspect.isbuiltin(value) and not static:
        owner = class_name(bound_to)

    return fmt.delegate.format(static=fmt.static_marker if static else "", owner=owner, name=name)


def render_metadata(value: Any, fmt: DumpFormat) -> str:
    """
    Render a metadata handle in a concise signature form.

    Examples:
        >>> render_metadata(int, DumpFormat())
        '(Type): builtins.int'
    """
    if isinstance(value, type):
        return (fmt.member_kind.format(kind="Type")
                + fmt.type_info.format(type=class_name(value), full_name=full_name(value)))

    if isinstance(value, types.ModuleType):
        return fmt.member_kind.format(kind="Module") + value.__name__

    if isinstance(value, dataclasses.Field):
        return fmt.member_kind.format(kind="Field") + f"{_annotation_name(value.type)} {value.name}"

    if isinstance(value, (property, functools.cached_property)):
        getter = value.fget if isinstance(value, property) else value.func
        owner, name = _split_qualname(getter) if getter is not None else ("", "")
        accessors = []
        if getter is not None:
            accessors.append("get;")
        if isinstance(value, property) and value.fset is not None:
            accessors.append("set;")
        return_type = _annotation_name(_return_annotation(getter)) if getter is not None else "Any"
        return (fmt.member_kind.format(kind="Property")
                + fmt.member_info.format(type=return_type, owner=owner, name=name)
                + " { " + " ".join(accessors) + " }")

    # staticmethod / classmethod
    func = value.__func__
    owner, name = _split_qualname(func)
    return (fmt.member_kind.format(kind="Method")
            + fmt.member_info.format(type=_annotation_name(_return_annotation(func)), owner=owner, name=name)
            + _parameters(func, skip_first=isinstance(value, classmethod)))


# Private Methods ------------------------------------------------------------------------------------------------------

def _basic_renderer(tp: type) -> Callable[[Any], str] | None:
    """Nearest entry of the basic values table along the MRO of tp."""
    for cls in getattr(tp, "__mro__", (tp,)):
        renderer = BASIC_RENDERERS.get(cls)
        if renderer is not None:
            return renderer
    return None


def _split_qualname(func: Any) -> tuple[str, str]:
    qualname = getattr(func, "__qualname__", None) or getattr(func, "__name__", None) or repr(func)
    owner, _, name = qualname.rpartition(".")
    if not owner:
        owner = getattr(func, "__module__", None) or "builtins"
    return owner, name


def _return_annotation(func: Callable) -> Any:
    try:
        return inspect.signature(func).return_annotation
    except (TypeError, ValueError):
        return inspect.Signature.empty


def _annotation_name(annotation: Any) -> str:
    if annotation is inspect.Signature.empty or annotation is dataclasses.MISSING:
        return "Any"
    if isinstance(annotation, str):
        return annotation
    if annotation is None or annotation is type(None):
        return "None"
    if isinstance(annotation, type) or typing.get_origin(annotation) is not None:
        return class_name(annotation)
    return str(annotation).replace("typing.", "")


def _parameters(func: Callable, skip_first: bool = False) -> str:
    try:
        params = list(inspect.signature(func).parameters.values())
    except (TypeError, ValueError):
        return "(...)"
    if skip_first:
        params = params[1:]
    parts = []
    for p in params:
        if p.annotation is p.empty:
            parts.append(p.name)
        else:
            parts.append(f"{p.name}: {_annotation_name(p.annotation)}")
    return "(" + ", ".join(parts) + ")"

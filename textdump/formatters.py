"""
Short, robust formatters for exception messages and log records.

These never raise: a broken ``__repr__`` or ``__str__`` is reported in place
of the value so that an error message about a bad object can always be built.
"""

# Standard library -----------------------------------------------------------------------------------------------------
from typing import Any, Literal

# Local ----------------------------------------------------------------------------------------------------------------
from .utils import class_name

PRIMITIVE_TYPES = (
    type(None),
    bool,
    int,
    float,
    str,
)

# Classes --------------------------------------------------------------------------------------------------------------

Style = Literal["ascii", "equal"]


# Methods --------------------------------------------------------------------------------------------------------------

def fmt_type(obj: Any, *, style: Style = "ascii", fully_qualified: bool = False) -> str:
    """Format the type of an object, or a type itself, for an exception message.

    Args:
        obj: Any object or type.
        style: "ascii" wraps the name in angle brackets, "equal" leaves it bare.
        fully_qualified: Include the module of user classes.

    Returns:
        A string like "<Point>" or "Point".

    Examples:
        >>> fmt_type(42)
        '<int>'
        >>> fmt_type(int, style="equal")
        'int'
    """
    name = class_name(obj, fully_qualified=fully_qualified)
    return f"<{name}>" if style == "ascii" else name


def fmt_value(obj: Any, *, style: Style = "ascii", max_repr: int = 80) -> str:
    """
    Format a value as a type-value pair for exception messages.

    Primitives are shown by their repr only; other objects are labelled with
    their type name. Long reprs are truncated and marked with "...".

    Args:
        obj: Any object.
        style: "ascii" gives "<int: 42>", "equal" gives "int=42".
        max_repr: Maximum length of the repr before truncation.

    Returns:
        The formatted value.

    Examples:
        >>> fmt_value(-1)
        '-1'
        >>> fmt_value([1, 2])
        '<list: [1, 2]>'
    """
    repr_ = truncate_text(_safe_repr(obj), max_repr)
    if type(obj) in PRIMITIVE_TYPES:
        return repr_
    t = class_name(obj)
    if style == "ascii":
        return f"<{t}: {repr_}>"
    return f"{t}={repr_}"


def fmt_exception(exc: BaseException) -> str:
    """One-line 'Type: message' form of an exception; the type alone when the message is empty."""
    message = _safe_str(exc)
    name = class_name(exc)
    return f"{name}: {message}" if message else name


def truncate_text(text: str, max_len: int, ellipsis: str = "...") -> str:
    """
    Keep at most max_len characters of text and append the ellipsis when anything was cut.

    A non-positive max_len means no limit.

    Examples:
        >>> truncate_text("Hello, World", 5)
        'Hello...'
        >>> truncate_text("Hi", 5)
        'Hi'
    """
    if max_len <= 0 or len(text) <= max_len:
        return text
    return text[:max_len] + ellipsis


# Private Methods ------------------------------------------------------------------------------------------------------

def _safe_repr(obj: Any) -> str:
    try:
        return repr(obj)
    except Exception as e:
        return f"<{type(obj).__name__} object (repr failed: {type(e).__name__})>"


def _safe_str(obj: Any) -> str:
    try:
        return str(obj)
    except Exception as e:
        return f"<str failed: {type(e).__name__}>"

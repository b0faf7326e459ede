"""
Type naming helpers shared across the package.

Contains functions used by multiple modules to avoid circular imports.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import typing
from typing import Any


# Methods --------------------------------------------------------------------------------------------------------------

def class_name(
    obj: Any,
    fully_qualified: bool = False,
    fully_qualified_builtins: bool = False,
) -> str:
    """
    Get the display name of the class of an object, or of a class itself.

    Nested classes are shown with their qualified name (``Outer.Inner``).
    Parameterised generic aliases keep their arguments, e.g. ``Box[int]``.

    Args:
        obj: An object, a class, or a generic alias.
        fully_qualified: If true, prefix user classes with their module.
        fully_qualified_builtins: If true, prefix builtin classes with ``builtins``.

    Returns:
        The class name.

    Examples:
        >>> class_name(10)
        'int'
        >>> class_name(10, fully_qualified_builtins=True)
        'builtins.int'
        >>> class Point: ...
        >>> class_name(Point())
        'Point'
    """
    origin = typing.get_origin(obj)
    if origin is not None and typing.get_args(obj):
        args = ", ".join(class_name(a, fully_qualified, fully_qualified_builtins) for a in typing.get_args(obj))
        return f"{class_name(origin, fully_qualified, fully_qualified_builtins)}[{args}]"

    cls = obj if isinstance(obj, type) else obj.__class__
    name = getattr(cls, "__qualname__", None) or getattr(cls, "__name__", None) or repr(cls)
    module = getattr(cls, "__module__", None)

    if module == "builtins":
        return f"builtins.{name}" if fully_qualified_builtins else name
    if fully_qualified and module:
        return f"{module}.{name}"
    return name


def full_name(obj: Any) -> str:
    """Module-qualified class name, builtins included: ``pkg.mod.Point`` or ``builtins.list``."""
    return class_name(obj, fully_qualified=True, fully_qualified_builtins=True)


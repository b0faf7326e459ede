"""
Dump configuration: output templates (DumpFormat) and engine settings (DumpSettings).
"""

# Standard library -----------------------------------------------------------------------------------------------------
from dataclasses import dataclass, field, fields, replace as dataclasses_replace
from typing import Any

# Local ----------------------------------------------------------------------------------------------------------------
from .formatters import fmt_type, fmt_value
from .policy import DEFAULT_MAX_ELEMENTS

DEFAULT_INDENT_SIZE = 2
DEFAULT_MAX_LENGTH = 4 * 1024 * 1024


# Classes --------------------------------------------------------------------------------------------------------------

@dataclass(frozen=True)
class DumpFormat:
    """Output templates of the dumper.

    Every template is a ``str.format`` pattern; the keyword fields each one
    receives are listed next to it.

    Attributes:
        type_header: Header of a composite. Fields: type, full_name.
        cyclic_reference: Marker of an object rendered already. Fields: type, full_name.
        max_depth_reached: Marker written instead of a composite once the depth budget is spent.
        null: Token of a None value.
        read_failure: Placeholder of a member that could not be read. Fields: message, error.
        enum: A single enum member. Fields: type, name.
        enum_flag: One bit of a flag enum. Fields: type, name.
        enum_flags_prefix: Written before the bits of a flag enum. Fields: type.
        enum_flags_separator: Written between the bits of a flag enum.
        enum_flags_suffix: Written after the bits of a flag enum. Fields: type.
        delegate: A function reference. Fields: static, owner, name.
        static_marker: The ``static`` field of delegate for functions not bound to an instance.
        sequence_type_name: Header of a sequence. Fields: type, count.
        sequence_type: Qualification following the sequence header. Fields: type, full_name.
        sequence_truncated: Marker of elements left out. Fields: shown, count.
        mapping_key: Label of a mapping entry; the rendered key replaces {key}.
        byte_separator: Separator of the hex digits of a byte sequence.
        member_kind: Prefix of a metadata handle. Fields: kind.
        type_info: A class handle. Fields: type, full_name.
        member_info: A property, field or method handle. Fields: type, owner, name.
        permission_denied: Written when a dump is refused. Fields: value.
        exception_trailer: Appended when the dumper itself fails. Fields: error.
    """
    type_header: str = "{type} ({full_name}):"
    cyclic_reference: str = "{type} (see above)"
    max_depth_reached: str = ("...object dump reached the maximum depth level. "
                              "Use DumpPolicy.max_depth to increase the depth level if needed.")
    null: str = "<null>"
    read_failure: str = "<{message}>"
    enum: str = "{type}.{name}"
    enum_flag: str = "{type}.{name}"
    enum_flags_prefix: str = ""
    enum_flags_separator: str = "|"
    enum_flags_suffix: str = ""
    delegate: str = "{static}{owner}.{name}"
    static_marker: str = "static "
    sequence_type_name: str = "{type}[{count}]: "
    sequence_type: str = "({full_name})"
    sequence_truncated: str = "... dumped the first {shown}/{count} elements."
    mapping_key: str = "[{key}] = "
    byte_separator: str = "-"
    member_kind: str = "({kind}): "
    type_info: str = "{full_name}"
    member_info: str = "{type} {owner}.{name}"
    permission_denied: str = "The caller does not have permission to dump the object {value}."
    exception_trailer: str = "\n\nATTENTION:\nThe TextDumper threw an exception:\n{error}"

    def __post_init__(self) -> None:
        for f in fields(self):
            val = getattr(self, f.name)
            if not isinstance(val, str):
                raise TypeError(f"DumpFormat.{f.name} must be a str, but got {fmt_type(val)}")


@dataclass(frozen=True)
class DumpSettings:
    """Settings of an Engine.

    Attributes:
        indent_size: Spaces per indent level, at least 1.
        max_length: Maximum number of characters written by one dump; longer output is cut with a notice.
        max_elements: Elements rendered from a sequence whose policy leaves max_length at 0.
        include_private: Also dump members whose names start with an underscore (dunder names never are).
        format: Output templates.

    Examples:
        >>> DumpSettings().replace(indent_size=4).indent_size
        4
    """
    indent_size: int = DEFAULT_INDENT_SIZE
    max_length: int = DEFAULT_MAX_LENGTH
    max_elements: int = DEFAULT_MAX_ELEMENTS
    include_private: bool = False
    format: DumpFormat = field(default_factory=DumpFormat)

    def __post_init__(self) -> None:
        """Validate types and ranges."""
        for name in ("indent_size", "max_length", "max_elements"):
            val = getattr(self, name)
            if isinstance(val, bool) or not isinstance(val, int):
                raise TypeError(f"DumpSettings.{name} must be an int, but got {fmt_type(val)}")
            if val < 1:
                raise ValueError(f"DumpSettings.{name} must be >=1, but got {fmt_value(val)}")
        if not isinstance(self.include_private, bool):
            raise TypeError(f"DumpSettings.include_private must be a bool, but got {fmt_type(self.include_private)}")
        if not isinstance(self.format, DumpFormat):
            raise TypeError(f"DumpSettings.format must be a DumpFormat, but got {fmt_type(self.format)}")

    def replace(self, **kwargs: Any) -> "DumpSettings":
        """Return a copy with the given fields replaced."""
        return dataclasses_replace(self, **kwargs)


DEFAULT_SETTINGS = DumpSettings()

"""
Rendering of sequences, byte sequences and mappings.

The renderers write through a ``DumpSession`` and call back into it for
every element, so nested composites get the same cycle and depth control
as members do.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import collections.abc as abc
from typing import TYPE_CHECKING, Any, Iterable, Iterator

# Local ----------------------------------------------------------------------------------------------------------------
from .policy import DumpPolicy, ShouldDump
from .utils import class_name, full_name
from .values import BYTES_TYPES, is_basic

if TYPE_CHECKING:
    from .engine import DumpSession


# Methods --------------------------------------------------------------------------------------------------------------

def max_to_dump(policy: DumpPolicy | None, count: int | None, default_max: int) -> int:
    """
    Number of elements to render.

    A negative max_length renders everything, 0 renders up to default_max, a
    positive max_length up to that many.

    Examples:
        >>> max_to_dump(DumpPolicy(), 20, 10)
        10
        >>> max_to_dump(DumpPolicy(max_length=-1), 20, 10)
        20
    """
    max_length = policy.max_length if policy is not None else 0
    if max_length < 0:
        return count if count is not None else -1
    limit = default_max if max_length == 0 else max_length
    return min(limit, count) if count is not None else limit


def element_count(value: Any) -> int | None:
    try:
        return len(value)
    except TypeError:
        return None


def dump_sequence(session: "DumpSession", value: Iterable, policy: DumpPolicy | None) -> None:
    """
    Render a sequence: ``Type[count]: (full.Name)`` then one element per line.

    Only the header is written when the policy suppresses recursion.
    Sets are rendered sorted when their elements can be ordered.
    """
    writer, fmt = session.writer, session.settings.format
    count = element_count(value)

    if isinstance(value, BYTES_TYPES):
        dump_bytes(session, value, policy)
        return

    writer.write(fmt.sequence_type_name.format(type=class_name(value), count="" if count is None else count))
    writer.write(fmt.sequence_type.format(type=class_name(value), full_name=full_name(value)))

    if policy is not None and policy.recurse_dump is ShouldDump.SKIP:
        return

    limit = max_to_dump(policy, count, session.settings.max_elements)
    writer.indent()
    try:
        for n, item in enumerate(_guarded(session, value, _ordered(value))):
            writer.newline()
            if 0 <= limit <= n:
                writer.write(fmt.sequence_truncated.format(shown=limit, count="?" if count is None else count))
                break
            session.dump_element(item)
    finally:
        writer.unindent()


def dump_bytes(session: "DumpSession", value: bytes | bytearray | memoryview, policy: DumpPolicy | None) -> None:
    """Render a byte sequence as hex digits: ``bytes[18]: 00-01-02... dumped the first 3/18 elements.``"""
    writer, fmt = session.writer, session.settings.format
    data = value.tobytes() if isinstance(value, memoryview) else bytes(value)
    count = len(data)
    limit = max_to_dump(policy, count, session.settings.max_elements)
    if limit < 0:
        limit = count

    writer.write(fmt.sequence_type_name.format(type=class_name(value), count=count))
    writer.write(fmt.byte_separator.join(f"{b:02X}" for b in data[:limit]))
    if limit < count:
        writer.write(fmt.sequence_truncated.format(shown=limit, count=count))


def dump_mapping(session: "DumpSession", value: abc.Mapping, policy: DumpPolicy | None) -> None:
    """
    Render a mapping with basic keys as a brace-delimited block of ``[key] = value`` entries.

    A mapping with a non-basic key is rendered as a sequence of (key, value) pairs instead.
    """
    if not all(is_basic(key) for key in value.keys()):
        dump_sequence(session, list(value.items()), policy)
        return

    writer, fmt = session.writer, session.settings.format
    count = element_count(value)

    writer.write(fmt.sequence_type_name.format(type=class_name(value), count="" if count is None else count))
    writer.write(fmt.sequence_type.format(type=class_name(value), full_name=full_name(value)))

    if policy is not None and policy.recurse_dump is ShouldDump.SKIP:
        return

    limit = max_to_dump(policy, count, session.settings.max_elements)
    writer.newline().write("{")
    writer.indent()
    try:
        for n, (key, item) in enumerate(_guarded(session, value, value.items())):
            writer.newline()
            if 0 <= limit <= n:
                writer.write(fmt.sequence_truncated.format(shown=limit, count="?" if count is None else count))
                break
            writer.write(fmt.mapping_key.format(key=session.render_leaf(key)))
            session.dump_element(item)
    finally:
        writer.unindent()
    writer.newline().write("}")


# Private Methods ------------------------------------------------------------------------------------------------------

def _ordered(value: Iterable) -> Iterable:
    """Sets in sorted order when possible, anything else as iterated."""
    if isinstance(value, abc.Set):
        try:
            return sorted(value)
        except TypeError:
            return value
    return value


def _guarded(session: "DumpSession", value: Any, items: Iterable) -> Iterator:
    """
    Iterate items; a failure of the iteration itself is rendered on a new line and ends it.

    Failures raised while an item is being rendered are not seen here.
    """
    try:
        yield from items
    except PermissionError:
        raise
    except Exception as e:
        session.writer.newline()
        session.render_failure(e, f"the elements of {class_name(value)}")

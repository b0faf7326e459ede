"""
The dump engine: traversal of an object graph into indented text.

An ``Engine`` owns a ``DumpWriter`` and runs one top-level dump at a time.
Each top-level call gets a fresh ``DumpSession`` holding the visited-object
and visited-virtual-member sets and the depth budget; the session is
discarded when the call returns, whatever the outcome.

Members of a composite are walked across its class hierarchy in three passes:
    - non-negative orders, base class first;
    - negative orders above the tail order, most-derived class first;
    - the tail order, most-derived class first.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import collections.abc as abc
import inspect
import logging
import traceback
from typing import Any, Callable, Iterator, TextIO

# Local ----------------------------------------------------------------------------------------------------------------
from .formatters import fmt_exception, fmt_type
from .frame import TraversalFrame, find_member
from .members import MemberDescriptor, governing_level, hierarchy
from .policy import DEFAULT_FORMATTER_METHOD, DEFAULT_MAX_DEPTH, TAIL_ORDER, DumpPolicy, ShouldDump, declared_policy
from .registry import ClassDumpInfo, MetadataRegistry, registry as default_registry
from .sequences import dump_bytes, dump_mapping, dump_sequence
from .settings import DEFAULT_SETTINGS, DumpSettings
from .utils import class_name, full_name
from .values import ValueKind, classify, is_basic, render_basic, render_delegate, render_metadata
from .writer import DumpWriter

logger = logging.getLogger(__name__)

STATIC_FORMATTER_NOT_FOUND = ("*** Could not find a public, static, method {name}, with return type of str, "
                              "with a single parameter of type {type} in the class {cls}.")

INSTANCE_FORMATTER_NOT_FOUND = ("*** Could not find a public instance method with name {name} and no parameters "
                                "or static method with a single parameter of type {type}, with return type of str "
                                "in the class {type}.")

FORMATTER_FAILED = "*** The formatter {cls}.{name} failed: {error}"


# Classes --------------------------------------------------------------------------------------------------------------

class DumpSession:
    """
    State of a single top-level dump.

    Attributes:
        writer: The output sink.
        settings: Engine settings.
        registry: Metadata registry resolving class levels.
        visited_objects: ``(id, type)`` pairs of the composites rendered so far.
        visited_virtual_members: ``(id, name)`` pairs of the overridable members rendered so far.
        depth_budget: Remaining nesting levels; None until the first composite is entered.
    """

    def __init__(self, writer: DumpWriter, settings: DumpSettings, registry: MetadataRegistry) -> None:
        self.writer = writer
        self.settings = settings
        self.registry = registry
        self.visited_objects: set[tuple[int, type]] = set()
        self.visited_virtual_members: set[tuple[int, str]] = set()
        self.depth_budget: int | None = None
        # keeps visited objects alive so that their ids are not reused during the dump
        self._pinned: list[Any] = []
        self._governing: dict[tuple[type, str], type | None] = {}

    def close(self) -> None:
        self.visited_objects.clear()
        self.visited_virtual_members.clear()
        self.depth_budget = None
        self._pinned.clear()
        self._governing.clear()

    def render_leaf(self, value: Any, policy: DumpPolicy | None = None) -> str:
        """Render a None, basic, delegate or metadata value to a string."""
        fmt = self.settings.format
        kind = classify(value)
        if kind is ValueKind.NULL:
            return fmt.null
        if kind is ValueKind.BASIC:
            return render_basic(value, policy, fmt)
        if kind is ValueKind.DELEGATE:
            return render_delegate(value, fmt)
        if kind is ValueKind.METADATA:
            return render_metadata(value, fmt)
        raise TypeError(f"a leaf value expected, but got {fmt_type(value)}")

    def render_failure(self, error: Exception, where: str) -> None:
        """Log a rendering failure and write its inline placeholder."""
        logger.warning("Could not render %s: %s", where, fmt_exception(error))
        self.writer.write(self.settings.format.read_failure.format(message=fmt_exception(error), error=error))

    def dump_element(self, value: Any) -> None:
        """
        Render a sequence or mapping element.

        A failure is rendered in place of the element so that its siblings are
        still dumped; a PermissionError propagates.
        """
        try:
            self.dump_object(value)
        except PermissionError:
            raise
        except Exception as e:
            self.render_failure(e, f"an element of type {class_name(value)}")

    def dump_object(self, value: Any, shadow: type | None = None, policy: DumpPolicy | None = None) -> None:
        """
        Render any value at the current writer position.

        Leaves are written in place. Composites go through the leaf, cycle and
        depth tests before their elements or members are rendered.

        Args:
            value: The value to render.
            shadow: Shadow type overriding the registered one for the value's own class.
            policy: Policy of the member holding the value, or of the top-level call.
        """
        writer, fmt = self.writer, self.settings.format
        kind = classify(value)

        if kind.is_leaf:
            writer.write(self.render_leaf(value, policy))
            return
        if kind is ValueKind.BYTES:
            dump_bytes(self, value, policy)
            return

        tp = type(value)
        info = self._info(tp, shadow)
        instance_policy = (policy or DumpPolicy.DEFAULT).merged_with(info.policy)

        if tp is object:
            writer.write(class_name(tp))
            return

        if kind is ValueKind.COMPOSITE and info.effective_recurse_dump(policy) is ShouldDump.SKIP:
            writer.write(fmt.type_header.format(type=class_name(value), full_name=full_name(value)))
            self._dump_default_member(value, info, policy)
            return

        key = (id(value), tp)
        if key in self.visited_objects:
            writer.write(fmt.cyclic_reference.format(type=class_name(value), full_name=full_name(value)))
            self._dump_default_member(value, info, policy)
            return

        if self.depth_budget is None:
            if policy is not None and policy.max_depth != DEFAULT_MAX_DEPTH:
                self.depth_budget = policy.max_depth
            else:
                self.depth_budget = info.policy.max_depth
        if self.depth_budget < 0:
            writer.write(fmt.max_depth_reached)
            return

        # only rendered composites are visited; one cut off by the depth budget may be rendered later
        self.visited_objects.add(key)
        self._pinned.append(value)
        self.depth_budget -= 1
        try:
            if kind is ValueKind.MAPPING or (isinstance(value, abc.Mapping)
                                             and all(is_basic(k) for k in value.keys())):
                dump_mapping(self, value, instance_policy)
            elif kind is ValueKind.SEQUENCE:
                dump_sequence(self, value, instance_policy)
            else:
                self._dump_composite(value, info, policy, instance_policy)
        finally:
            self.depth_budget += 1

    def _dump_composite(self, value: Any, info: ClassDumpInfo, policy: DumpPolicy | None,
                        instance_policy: DumpPolicy) -> None:
        writer, fmt = self.writer, self.settings.format
        writer.write(fmt.type_header.format(type=class_name(value), full_name=full_name(value)))
        writer.indent()
        try:
            self._walk(value, info, instance_policy)
            if (isinstance(value, abc.Iterable)
                    and info.effective_enumerate(policy) is ShouldDump.DUMP
                    and not writer.exceeded):
                writer.newline()
                dump_sequence(self, value, instance_policy)
        finally:
            writer.unindent()

    def _walk(self, value: Any, info: ClassDumpInfo, instance_policy: DumpPolicy) -> None:
        """Render the members of value in the three-pass order."""
        tp = type(value)
        suspended: list[TraversalFrame] = []
        tail: list[TraversalFrame] = []

        for level in reversed(hierarchy(tp)):
            level_info = info if level is tp else self._info(level)
            frame = TraversalFrame(value, level, level_info, instance_policy, self.settings.include_private)
            while frame.advance():
                if frame.current.policy.order < 0:
                    suspended.append(frame)
                    break
                self._visit(frame, frame.current)

        while suspended:
            frame = suspended.pop()
            for member in _remaining(frame):
                if member.policy.order == TAIL_ORDER:
                    tail.append(frame)
                    break
                self._visit(frame, member)

        for frame in tail:
            for member in _remaining(frame):
                self._visit(frame, member)

    def _visit(self, frame: TraversalFrame, member: MemberDescriptor) -> None:
        """Apply the eligibility and overridable-member rules, then render the member."""
        if self.writer.exceeded:
            return
        if not member.eligible or member.policy.skip is ShouldDump.SKIP:
            return

        if member.overridable:
            key = (id(frame.instance), member.name)
            if key in self.visited_virtual_members:
                return
            governing = self._governing_level(type(frame.instance), member.name)
            if governing is not None and governing is not frame.level:
                return
            self.visited_virtual_members.add(key)

        self._dump_member(frame.instance, member, frame.dump_null_values, frame.info.shadow)

    def _dump_member(self, instance: Any, member: MemberDescriptor, dump_null_values: ShouldDump,
                     shadow: type) -> None:
        writer = self.writer
        policy = member.policy

        try:
            value = member.read(instance)
        except PermissionError:
            raise
        except Exception as e:
            writer.newline().write(policy.label_format.format(member.name))
            self.render_failure(e, f"{class_name(member.owner)}.{member.name}")
            return

        if value is None:
            null_policy = policy.dump_null_values
            if null_policy is ShouldDump.DEFAULT:
                null_policy = dump_null_values
            if null_policy is ShouldDump.SKIP:
                return

        writer.newline().write(policy.label_format.format(member.name))
        try:
            self._dump_value(value, policy, member.owner, shadow)
        except PermissionError:
            raise
        except Exception as e:
            self.render_failure(e, f"{class_name(member.owner)}.{member.name}")

    def _dump_value(self, value: Any, policy: DumpPolicy, declaring: type, shadow: type) -> None:
        if value is None:
            self.writer.write(self.settings.format.null)
        elif policy.formatter is not None or policy.formatter_method.strip():
            self.writer.write(self._custom_format(value, policy, declaring, shadow))
        elif policy.mask or policy.value_format.strip():
            self.writer.write(render_basic(value, policy, self.settings.format))
        else:
            self.dump_object(value, policy=policy)

    def _dump_default_member(self, value: Any, info: ClassDumpInfo, policy: DumpPolicy | None) -> None:
        """Render the representative member of a value whose members are not walked."""
        name = info.effective_default_member(policy)
        if not name:
            return
        member = find_member(value, name, self._info, include_private=True)
        if member is None or not member.eligible:
            logger.debug("Default member %r not found on %s", name, class_name(value))
            return
        self.writer.indent()
        try:
            self._dump_member(value, member, info.effective_dump_null_values(policy), info.shadow)
        finally:
            self.writer.unindent()

    def _custom_format(self, value: Any, policy: DumpPolicy, declaring: type, shadow: type) -> str:
        """
        Render value with a configured formatting method.

        With a formatter class, a static method of that class taking a single
        parameter is used: the one annotated with the exact type of the value,
        else the first whose parameter accepts it. Without one, an instance
        method of the value taking no arguments is used, else a static method
        on the value's class, the declaring class or the shadow type.
        An unresolvable or failing formatter renders a placeholder.
        """
        name = policy.formatter_method.strip() or DEFAULT_FORMATTER_METHOD
        tp = type(value)

        if policy.formatter is not None:
            func = _static_formatter(policy.formatter, name, value)
            if func is None:
                logger.warning("No formatter %s.%s for %s", class_name(policy.formatter), name, class_name(tp))
                return STATIC_FORMATTER_NOT_FOUND.format(name=name, type=class_name(tp),
                                                         cls=class_name(policy.formatter))
            return _invoke(func, value, policy.formatter, name)

        method = inspect.getattr_static(tp, name, None)
        if inspect.isfunction(method) and _required_arguments(method) == 1:
            return _invoke(getattr(value, name), None, tp, name)

        for owner in (tp, declaring, shadow):
            func = _static_formatter(owner, name, value)
            if func is not None:
                return _invoke(func, value, owner, name)

        logger.warning("No formatting method %r for %s", name, class_name(tp))
        return INSTANCE_FORMATTER_NOT_FOUND.format(name=name, type=class_name(tp))

    def _info(self, tp: type, shadow: type | None = None) -> ClassDumpInfo:
        info = self.registry.resolve(tp)
        if shadow is not None and shadow is not info.shadow:
            info = ClassDumpInfo(shadow=shadow, policy=declared_policy(shadow) or info.policy)
        return info

    def _governing_level(self, tp: type, name: str) -> type | None:
        key = (tp, name)
        if key not in self._governing:
            self._governing[key] = governing_level(tp, name, lambda level: self._info(level).shadow)
        return self._governing[key]


class Engine:
    """
    Renders object graphs as indented text.

    An Engine is reusable but not reentrant: one top-level ``dump`` runs at a
    time. Use one Engine per concurrent caller.

    Args:
        stream: A DumpWriter, a text stream, or None for an in-memory buffer.
        indent_level: Indent level every dump starts at.
        settings: Engine settings; DEFAULT_SETTINGS when None.
        registry: Metadata registry; the process-wide registry when None.

    Examples:
        >>> Engine().dump([1, 2]).getvalue()
        'list[2]: (builtins.list)\\n  1\\n  2'
    """

    def __init__(self,
                 stream: DumpWriter | TextIO | None = None,
                 indent_level: int = 0,
                 settings: DumpSettings | None = None,
                 registry: MetadataRegistry | None = None,
                 ) -> None:
        self.settings = settings if settings is not None else DEFAULT_SETTINGS
        if not isinstance(self.settings, DumpSettings):
            raise TypeError(f"DumpSettings expected, but got {fmt_type(self.settings)}")
        if isinstance(indent_level, bool) or not isinstance(indent_level, int) or indent_level < 0:
            raise ValueError(f"indent_level must be a non-negative int, but got {indent_level!r}")

        if isinstance(stream, DumpWriter):
            self.writer = stream
        else:
            self.writer = DumpWriter(stream, self.settings.indent_size, self.settings.max_length)
        self.indent_level = indent_level
        self.registry = registry if registry is not None else default_registry
        self._session: DumpSession | None = None

    def dump(self, value: Any, shadow: type | None = None, policy: DumpPolicy | None = None) -> "Engine":
        """
        Render value to the writer.

        Rendering failures do not propagate: a PermissionError is reported with
        a one-line notice, any other exception with a trailer holding its
        traceback.

        Args:
            value: The object to render.
            shadow: Shadow type to use for the value's own class.
            policy: Policy of this call; its non-default fields win over the class-level policy.

        Returns:
            The engine, for chaining.

        Raises:
            TypeError: If shadow is not a class or policy is not a DumpPolicy.
            RuntimeError: If a dump is already running on this engine.
        """
        if shadow is not None and not isinstance(shadow, type):
            raise TypeError(f"shadow type must be a class, but got {fmt_type(shadow)}")
        if policy is not None and not isinstance(policy, DumpPolicy):
            raise TypeError(f"DumpPolicy expected, but got {fmt_type(policy)}")
        if self._session is not None:
            raise RuntimeError("Engine.dump() is already running; use one Engine per concurrent caller")

        self.writer.reset(self.indent_level)
        session = self._session = DumpSession(self.writer, self.settings, self.registry)
        try:
            session.dump_object(value, shadow, policy)
        except PermissionError:
            self.writer.newline().write(self.settings.format.permission_denied.format(value=class_name(value)))
        except Exception:
            logger.exception("Failed to dump %s", fmt_type(value))
            self.writer.write(self.settings.format.exception_trailer.format(error=traceback.format_exc()))
        finally:
            session.close()
            self._session = None
            self.writer.indent_level = self.indent_level
        return self

    def getvalue(self) -> str:
        """Text written so far, when the stream keeps it."""
        return self.writer.getvalue()


# Methods --------------------------------------------------------------------------------------------------------------

def dump(value: Any,
         stream: DumpWriter | TextIO | None = None,
         shadow: type | None = None,
         policy: DumpPolicy | None = None,
         indent_level: int = 0,
         settings: DumpSettings | None = None,
         ) -> DumpWriter:
    """
    Render value to a stream.

    Returns:
        The DumpWriter wrapping the stream.
    """
    return Engine(stream, indent_level, settings).dump(value, shadow, policy).writer


def dump_to_string(value: Any,
                   shadow: type | None = None,
                   policy: DumpPolicy | None = None,
                   indent_level: int = 0,
                   settings: DumpSettings | None = None,
                   ) -> str:
    """
    Render value to a string.

    Examples:
        >>> dump_to_string(42)
        '42'
    """
    return Engine(None, indent_level, settings).dump(value, shadow, policy).getvalue()


# Private Methods ------------------------------------------------------------------------------------------------------

def _remaining(frame: TraversalFrame) -> Iterator[MemberDescriptor]:
    """The current member of a suspended frame and every member after it."""
    member = frame.current
    while member is not None:
        yield member
        member = frame.current if frame.advance() else None


def _static_formatter(owner: type, name: str, value: Any) -> Callable[[Any], Any] | None:
    """
    A static method name along the MRO of owner taking one parameter that accepts value.

    An exact annotation match wins over an assignable one; an unannotated parameter accepts anything.
    """
    exact, assignable = None, None
    for cls in getattr(owner, "__mro__", ()):
        attr = vars(cls).get(name)
        if not isinstance(attr, staticmethod):
            continue
        func = attr.__func__
        param_type = _single_parameter_type(func)
        if param_type is inspect.Parameter.empty:
            continue
        if param_type is type(value):
            exact = exact or func
        elif param_type is None or (isinstance(param_type, type) and isinstance(value, param_type)):
            assignable = assignable or func
    return exact or assignable


def _single_parameter_type(func: Callable) -> Any:
    """
    The annotation of the only parameter of func.

    Returns:
        The annotated class, None for an unannotated parameter, or ``Parameter.empty``
        when func does not take exactly one parameter.
    """
    try:
        params = list(inspect.signature(func, eval_str=True).parameters.values())
    except (TypeError, ValueError, NameError):
        return inspect.Parameter.empty
    if len(params) != 1 or params[0].kind not in (params[0].POSITIONAL_ONLY, params[0].POSITIONAL_OR_KEYWORD):
        return inspect.Parameter.empty
    annotation = params[0].annotation
    if annotation is params[0].empty or annotation is Any or annotation is object:
        return None
    return annotation


def _required_arguments(func: Callable) -> int:
    try:
        params = inspect.signature(func).parameters.values()
    except (TypeError, ValueError):
        return -1
    return sum(1 for p in params
               if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD) and p.default is p.empty)


def _invoke(func: Callable, value: Any, owner: type, name: str) -> str:
    """Call a formatter; a failure renders a placeholder."""
    try:
        result = func() if value is None else func(value)
    except PermissionError:
        raise
    except Exception as e:
        logger.warning("Formatter %s.%s failed: %s", class_name(owner), name, fmt_exception(e))
        return FORMATTER_FAILED.format(cls=class_name(owner), name=name, error=fmt_exception(e))
    return result if isinstance(result, str) else str(result)

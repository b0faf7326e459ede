"""
Metadata registry: resolves a type to its shadow type and class-level DumpPolicy.

The registry is the only state shared between dumps running on different
threads. Lookups take a shared (read) lock, registrations an exclusive
(write) lock.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import logging
import threading
import types
import typing
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Annotated, Any, Iterator

# Local ----------------------------------------------------------------------------------------------------------------
from .formatters import fmt_type
from .policy import DumpPolicy, ShouldDump, declared_policy, declared_shadow
from .sentinels import UNSET, UnsetType
from .utils import class_name

logger = logging.getLogger(__name__)


# Classes --------------------------------------------------------------------------------------------------------------

class RegistrationConflictError(ValueError):
    """A type is already registered with a different shadow type or policy."""


class ReaderWriterLock:
    """
    Many concurrent readers or one writer.

    Writers are preferred: once a writer waits, new readers queue behind it,
    so a steady stream of lookups cannot starve a registration.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


@dataclass(frozen=True)
class ClassDumpInfo:
    """The shadow type and class-level policy of a type.

    The ``effective_*`` accessors apply the instance-over-type precedence rule:
    a non-default value of the instance-scoped policy (for example the policy
    of the member holding the instance) wins over the class-level value, which
    in turn wins over the engine default.

    Attributes:
        shadow: Class whose annotations configure the dump; the type itself when none was declared.
        policy: The class-level DumpPolicy.
    """
    shadow: type
    policy: DumpPolicy = DumpPolicy.DEFAULT

    def __post_init__(self) -> None:
        if not isinstance(self.shadow, type):
            raise TypeError(f"ClassDumpInfo.shadow must be a class, but got {fmt_type(self.shadow)}")
        if not isinstance(self.policy, DumpPolicy):
            raise TypeError(f"ClassDumpInfo.policy must be a DumpPolicy, but got {fmt_type(self.policy)}")

    def effective_dump_null_values(self, instance_policy: DumpPolicy | None = None) -> ShouldDump:
        """Whether None members are rendered; never ShouldDump.DEFAULT."""
        return self._effective("dump_null_values", instance_policy)

    def effective_recurse_dump(self, instance_policy: DumpPolicy | None = None) -> ShouldDump:
        """Whether the members of a composite are walked; never ShouldDump.DEFAULT."""
        return self._effective("recurse_dump", instance_policy)

    def effective_enumerate(self, instance_policy: DumpPolicy | None = None) -> ShouldDump:
        """Whether the elements of a custom iterable are rendered; defaults to ShouldDump.SKIP."""
        return self._effective("enumerate", instance_policy, fallback=ShouldDump.SKIP)

    def effective_default_member(self, instance_policy: DumpPolicy | None = None) -> str:
        """Name of the representative member, "" if none is configured."""
        if instance_policy is not None and instance_policy.default_member.strip():
            return instance_policy.default_member.strip()
        return self.policy.default_member.strip()

    def _effective(self, name: str, instance_policy: DumpPolicy | None,
                   fallback: ShouldDump = ShouldDump.DUMP) -> ShouldDump:
        if instance_policy is not None and getattr(instance_policy, name) is not ShouldDump.DEFAULT:
            return getattr(instance_policy, name)
        if getattr(self.policy, name) is not ShouldDump.DEFAULT:
            return getattr(self.policy, name)
        return fallback


class MetadataRegistry:
    """
    Process-wide cache of ClassDumpInfo entries keyed by type.

    Entries are created lazily on the first ``resolve`` of a type, or ahead of
    time with ``register`` for types that cannot be decorated (builtins,
    third-party classes). A parameterised generic alias such as ``Box[int]``
    is looked up by itself first and then by its origin ``Box``, so a single
    registration of ``Box`` covers every parameterisation.

    Examples:
        >>> registry = MetadataRegistry()
        >>> registry.register(Point, policy=DumpPolicy(max_depth=2)).resolve(Point).policy.max_depth
        2
    """

    def __init__(self, defaults: bool = True) -> None:
        self._lock = ReaderWriterLock()
        self._entries: dict[Any, ClassDumpInfo] = {}
        self._defaults = defaults
        if defaults:
            register_defaults(self)

    def resolve(self, tp: Any) -> ClassDumpInfo:
        """
        Get the ClassDumpInfo of a type, deriving and caching it on the first request.

        Args:
            tp: A class or a parameterised generic alias.

        Returns:
            The cached or newly derived entry.
        """
        origin = _generic_origin(tp)
        with self._lock.read_locked():
            info = self._entries.get(tp)
            if info is None and origin is not None:
                info = self._entries.get(origin)
        if info is not None:
            return info

        info = self._derive(tp, UNSET, UNSET)
        with self._lock.write_locked():
            # another thread may have resolved or registered it meanwhile
            info = self._entries.setdefault(tp, info)
        logger.debug("Resolved %s: shadow=%s, policy=%s", class_name(tp), class_name(info.shadow),
                     info.policy.differences())
        return info

    def register(self,
                 tp: Any,
                 shadow: type | None | UnsetType = UNSET,
                 policy: DumpPolicy | None | UnsetType = UNSET,
                 replace: bool = False,
                 ) -> "MetadataRegistry":
        """
        Associate a type with a shadow type and/or a class-level policy.

        Args:
            tp: The class (or generic alias) to configure.
            shadow: Class supplying the member annotations. UNSET or None keeps the declared shadow,
                or the type itself.
            policy: Class-level policy. UNSET or None keeps the policy declared on the shadow or the type.
            replace: Overwrite an existing, different registration instead of failing.

        Returns:
            The registry, so that registrations can be chained.

        Raises:
            TypeError: If tp is not a class or a generic alias.
            RegistrationConflictError: If tp is registered already with a different shadow type or policy
                and replace is False.
        """
        if not isinstance(tp, type) and _generic_origin(tp) is None:
            raise TypeError(f"a class or a generic alias expected, but got {fmt_type(tp)}")

        info = self._derive(tp, shadow, policy)
        with self._lock.write_locked():
            existing = self._entries.get(tp)
            if existing is not None and existing != info and not replace:
                raise RegistrationConflictError(
                    f"The type {fmt_type(tp)} is already associated with shadow type {fmt_type(existing.shadow)} "
                    f"and a DumpPolicy instance; pass replace=True to override.")
            self._entries[tp] = info
        logger.debug("Registered %s: shadow=%s, policy=%s", class_name(tp), class_name(info.shadow),
                     info.policy.differences())
        return self

    def reset(self) -> None:
        """Forget all entries, then restore the default registrations this registry was created with."""
        with self._lock.write_locked():
            self._entries.clear()
        if self._defaults:
            register_defaults(self)

    @staticmethod
    def _derive(tp: Any, shadow: type | None | UnsetType, policy: DumpPolicy | None | UnsetType) -> ClassDumpInfo:
        """Build an entry from the declarations on the type, its generic origin and its shadow type."""
        target = _generic_origin(tp) or tp

        if shadow is UNSET or shadow is None:
            shadow = declared_shadow(target) or target
        if policy is UNSET or policy is None:
            policy = declared_policy(shadow) or declared_policy(target) or DumpPolicy.DEFAULT

        return ClassDumpInfo(shadow=shadow, policy=policy)


def _generic_origin(tp: Any) -> Any:
    """The origin class of a parameterised generic alias, None for anything else."""
    if isinstance(tp, type) and not isinstance(tp, types.GenericAlias):
        return None
    origin = typing.get_origin(tp)
    return origin if isinstance(origin, type) else None


# Default registrations ------------------------------------------------------------------------------------------------

class _ExceptionShadow:
    args: Annotated[tuple, DumpPolicy(0)]


class _OSErrorShadow:
    errno: Annotated[int, DumpPolicy(0)]
    strerror: Annotated[str, DumpPolicy(1)]
    filename: Annotated[str, DumpPolicy(2, dump_null_values=ShouldDump.SKIP)]
    filename2: Annotated[str, DumpPolicy(3, dump_null_values=ShouldDump.SKIP)]


class _ThreadShadow:
    name: Annotated[str, DumpPolicy(0)]
    ident: Annotated[int, DumpPolicy(1)]
    daemon: Annotated[bool, DumpPolicy(2)]


def register_defaults(registry: MetadataRegistry) -> MetadataRegistry:
    """Register the shadow types of builtin classes whose interesting members are not public attributes."""
    return (registry
            .register(BaseException, _ExceptionShadow, replace=True)
            .register(OSError, _OSErrorShadow, replace=True)
            .register(threading.Thread, _ThreadShadow, DumpPolicy(default_member="name"), replace=True))


# Module-level registry ------------------------------------------------------------------------------------------------

registry = MetadataRegistry()


def register_shadow_type(tp: Any,
                         shadow: type | None | UnsetType = UNSET,
                         policy: DumpPolicy | None | UnsetType = UNSET,
                         replace: bool = False,
                         ) -> MetadataRegistry:
    """Register a shadow type and/or class-level policy for tp in the process-wide registry."""
    return registry.register(tp, shadow, policy, replace=replace)


def reset_registry() -> None:
    """Clear the process-wide registry; intended for tests."""
    registry.reset()

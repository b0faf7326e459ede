"""
Sentinel objects used by the dumper.

Sentinels:
    UNSET: An optional argument that was not provided (distinct from None).
    DB_NULL: The "no value" marker of a database column; rendered as ``DBNull``.

All sentinels are singletons and must be compared by identity.

Example:
    >>> registry.register(Point, shadow=UNSET, policy=DumpPolicy(max_depth=2))
    >>> row = {"id": 1, "name": DB_NULL}
"""

from typing import Any, Final

__all__ = [
    'UNSET',
    'DB_NULL',
    'UnsetType',
    'DBNullType',
]


# Base Sentinel --------------------------------------------------------------------------------------------------------

class _SentinelBase:
    """
    Base class for all sentinel objects.

    Sentinels are singleton objects optimized for identity checks.
    """
    __slots__ = ('_name',)

    _instance: Any = None

    def __new__(cls) -> Any:
        """Ensures singleton behavior per sentinel type."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, name: str) -> None:
        self._name = name

    def __repr__(self) -> str:
        return f'<{self._name}>'

    def __eq__(self, other: Any) -> bool:
        return self is other

    def __hash__(self) -> int:
        return id(self)

    def __bool__(self) -> bool:
        """Sentinels are falsy."""
        return False

    def __reduce__(self) -> tuple:
        """Ensure unpickling returns the singleton instance."""
        return (self.__class__, ())


# Sentinel Types -------------------------------------------------------------------------------------------------------

class UnsetType(_SentinelBase):
    """
    Sentinel type for UNSET.

    Distinguishes 'not provided' from 'explicitly set to None', e.g. when a
    registration should keep the shadow type it would otherwise derive.
    """
    __slots__ = ()

    def __init__(self) -> None:
        super().__init__("UNSET")


class DBNullType(_SentinelBase):
    """
    Sentinel type for DB_NULL.

    Stands for a database column holding no value, which is not the same
    thing as a missing attribute or a Python None.
    """
    __slots__ = ()

    def __init__(self) -> None:
        super().__init__("DBNull")

    def __str__(self) -> str:
        return "DBNull"


# Sentinel Instances ---------------------------------------------------------------------------------------------------

UNSET: Final[UnsetType] = UnsetType()
DB_NULL: Final[DBNullType] = DBNullType()

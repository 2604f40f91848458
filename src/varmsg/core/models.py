"""Core domain models.

These types are shared across the core and adapters to avoid tight coupling
to any particular variable store or transport.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Optional

# Tag specs at or beyond this length are rejected, never truncated.
MAX_TAGSPEC_LEN = 256

# Sizing for variable sets built from a query.
CACHE_SIZE_INITIAL = 50
CACHE_SIZE_GROW_BY = 50

# Growth for variable sets built from an explicit name list.
LIST_CACHE_GROW_BY = 10


class VarFlag(enum.IntFlag):
    """Variable flag vocabulary understood by queries and stores."""

    NONE = 0
    VOLATILE = 1
    READONLY = 2
    HIDDEN = 4
    DIRTY = 8
    METRIC = 16
    AUDIT = 32
    PASSWORD = 64
    TRIGGER = 128


class QueryKind(enum.IntFlag):
    """Which filters a QuerySpec applies."""

    NONE = 0
    TAGS = 1
    MATCH = 2
    FLAGS = 4
    INSTANCE_ID = 8


class OutputType(enum.Enum):
    """Destination kind for rendered messages."""

    DISABLED = "disabled"
    STDOUT = "stdout"
    MQUEUE = "mqueue"
    FILE = "file"

    @classmethod
    def parse(cls, value: Any) -> "OutputType":
        """Map a configuration string to an OutputType.

        Unknown or missing values silently become DISABLED.
        """

        for output_type in cls:
            if output_type.value == value:
                return output_type
        return cls.DISABLED


@dataclass(frozen=True)
class QuerySpec:
    """Declarative filter used to select variables from the store."""

    kind: QueryKind
    tag_spec: str = ""
    match: Optional[str] = None
    flags: VarFlag = VarFlag.NONE
    instance_id: Optional[int] = None

    @property
    def tags(self) -> list[str]:
        return [tag.strip() for tag in self.tag_spec.split(",") if tag.strip()]


@dataclass(frozen=True)
class VarInfo:
    """Descriptor of one variable as reported by the store."""

    name: str
    instance_id: int = 0
    flags: VarFlag = VarFlag.NONE
    tags: tuple[str, ...] = ()


class VariableSet:
    """Ordered, duplicate-free collection of variable handles.

    Capacity is tracked the way a growable cache would track it: it starts at
    initial_size and grows by grow_by whenever an insert would overflow.
    """

    def __init__(self, initial_size: int = CACHE_SIZE_INITIAL, grow_by: int = CACHE_SIZE_GROW_BY) -> None:
        self.capacity = max(initial_size, 0)
        self.grow_by = max(grow_by, 1)
        self._handles: list[int] = []
        self._members: set[int] = set()

    def add(self, handle: int) -> bool:
        """Append a handle; return False if it was already present."""

        if handle in self._members:
            return False
        if len(self._handles) >= self.capacity:
            self.capacity += self.grow_by
        self._handles.append(handle)
        self._members.add(handle)
        return True

    def extend(self, handles: Iterable[int]) -> int:
        """Add handles in order and return how many were new."""

        return sum(1 for handle in handles if self.add(handle))

    def __iter__(self) -> Iterator[int]:
        return iter(list(self._handles))

    def __len__(self) -> int:
        return len(self._handles)

    def __contains__(self, handle: object) -> bool:
        return handle in self._members

    def __repr__(self) -> str:
        return f"VariableSet({self._handles!r})"


@dataclass
class MessageDefinition:
    """Runtime record for one configured message."""

    name: str
    body_set: VariableSet
    enabled: bool = False
    prefix: Optional[str] = None
    interval: int = 0
    countdown: int = 0
    tx_count: int = 0
    err_count: int = 0
    trigger_set: Optional[VariableSet] = None
    output_type: OutputType = OutputType.DISABLED
    output: Optional[str] = None
    header: Optional[str] = None
    # Raw configuration nodes, kept so a rescan can rebuild the sets.
    trigger_config: Any = field(default=None, repr=False)
    vars_config: Any = field(default=None, repr=False)

    def status_name(self, leaf: str) -> Optional[str]:
        """Return '<prefix>/<leaf>' or None when no prefix is configured."""

        if not self.prefix:
            return None
        return f"{self.prefix.rstrip('/')}/{leaf}"

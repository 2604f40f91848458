"""Ports (interfaces) used by the core engine.

Ports define the minimal contracts for the variable store and the output
sinks so that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Iterable, Optional, Protocol, TextIO

from varmsg.core.models import MessageDefinition, QuerySpec, VarInfo


class VariableStorePort(Protocol):
    """Variable store operations required by the engine."""

    def find_by_name(self, name: str) -> Optional[int]:
        ...

    def get_info(self, handle: int) -> VarInfo:
        ...

    def print_value(self, handle: int, stream: TextIO) -> None:
        ...

    def query(self, spec: QuerySpec) -> Iterable[int]:
        ...

    def get_value(self, name: str) -> Optional[str]:
        ...

    def set_value(self, name: str, value: str) -> None:
        ...

    def close(self) -> None:
        ...


class SinkPort(Protocol):
    """A writable destination for rendered messages."""

    def write(self, message: str) -> None:
        ...

    def close(self) -> None:
        ...


class DispatcherPort(Protocol):
    """Routes a rendered message to the definition's destination."""

    def open(self, definition: MessageDefinition) -> None:
        ...

    def close(self) -> None:
        ...

    def dispatch(self, definition: MessageDefinition, message: str) -> None:
        ...

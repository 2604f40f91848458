from __future__ import annotations

from typing import Optional, TextIO

import pytest

from varmsg.core.errors import NotFoundError
from varmsg.core.models import MessageDefinition, QueryKind, QuerySpec, VarFlag, VarInfo


class FakeStore:
    def __init__(self) -> None:
        self.infos: dict[int, VarInfo] = {}
        self.values: dict[int, str] = {}
        self.names: dict[str, int] = {}
        self.queries: list[QuerySpec] = []
        self._next = 1

    def add(
        self,
        name: str,
        value: str = "",
        instance_id: int = 0,
        tags: tuple[str, ...] = (),
        flags: VarFlag = VarFlag.NONE,
    ) -> int:
        handle = self._next
        self._next += 1
        self.infos[handle] = VarInfo(name=name, instance_id=instance_id, flags=flags, tags=tags)
        self.values[handle] = value
        key = f"[{instance_id}]{name}" if instance_id else name
        self.names[key] = handle
        return handle

    def find_by_name(self, name: str) -> Optional[int]:
        return self.names.get(name)

    def get_info(self, handle: int) -> VarInfo:
        if handle not in self.infos:
            raise NotFoundError(f"handle {handle}")
        return self.infos[handle]

    def print_value(self, handle: int, stream: TextIO) -> None:
        if handle not in self.values:
            raise NotFoundError(f"handle {handle}")
        stream.write(self.values[handle])

    def query(self, spec: QuerySpec) -> list[int]:
        self.queries.append(spec)
        found = []
        for handle, info in self.infos.items():
            if spec.kind & QueryKind.TAGS and not set(spec.tags) <= set(info.tags):
                continue
            if spec.kind & QueryKind.MATCH and spec.match not in info.name:
                continue
            if spec.kind & QueryKind.FLAGS and (info.flags & spec.flags) != spec.flags:
                continue
            if spec.kind & QueryKind.INSTANCE_ID and info.instance_id != spec.instance_id:
                continue
            found.append(handle)
        return found

    def get_value(self, name: str) -> Optional[str]:
        handle = self.names.get(name)
        return None if handle is None else self.values[handle]

    def set_value(self, name: str, value: str) -> None:
        handle = self.names.get(name)
        if handle is None:
            self.add(name, value)
        else:
            self.values[handle] = value

    def close(self) -> None:
        pass


class FakeDispatcher:
    def __init__(self) -> None:
        self.opened: list[str] = []
        self.sent: list[tuple[str, str]] = []
        self.fail_for: set[str] = set()

    def open(self, definition: MessageDefinition) -> None:
        self.opened.append(definition.name)

    def close(self) -> None:
        pass

    def dispatch(self, definition: MessageDefinition, message: str) -> None:
        if definition.name in self.fail_for:
            raise OSError("sink is broken")
        self.sent.append((definition.name, message))


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def dispatcher() -> FakeDispatcher:
    return FakeDispatcher()

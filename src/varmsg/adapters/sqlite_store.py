"""SQLite variable store adapter.

Implements the core VariableStorePort on top of a single SQLite table, so the
generator can run against values written by other processes.
"""

from __future__ import annotations

import re
import sqlite3
from typing import Iterable, Optional, TextIO

from varmsg.core.errors import NotFoundError, StoreError
from varmsg.core.models import QueryKind, QuerySpec, VarFlag, VarInfo

# Names may carry an instance prefix, as rendered in messages: [2]beta
_INSTANCE_NAME = re.compile(r"^\[(\d+)\](.+)$")


def split_instance_name(name: str) -> tuple[str, int]:
    """Split '[N]name' into (name, N); plain names have instance 0."""

    found = _INSTANCE_NAME.match(name)
    if not found:
        return name, 0
    return found.group(2), int(found.group(1))


class SQLiteVariableStore:
    """Thin SQLite wrapper that satisfies the VariableStorePort contract."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None

    def open(self, create: bool = False) -> None:
        """Connect to the database.

        Without create, a missing database is an error rather than a new
        empty store.
        """

        mode = "rwc" if create else "rw"
        try:
            conn = sqlite3.connect(f"file:{self._db_path}?mode={mode}", uri=True)
            conn.row_factory = sqlite3.Row
            conn.execute("SELECT 1").fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot open variable store {self._db_path}: {exc}") from exc
        self._conn = conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreError("Variable store is not open")
        return self._conn

    def _execute(self, sql: str, params: Iterable = ()) -> sqlite3.Cursor:
        try:
            with self._connection() as conn:
                return conn.execute(sql, tuple(params))
        except (sqlite3.Error, OverflowError) as exc:
            raise StoreError(f"Variable store query failed: {exc}") from exc

    def init_db(self) -> None:
        """Create the variables table if it does not exist.

        Fields:
        - handle: stable identifier handed out to the engine
        - name / instance_id: unique variable identity
        - value: current value as text
        - tags: comma-separated tag list, wrapped in commas for matching
        - flags: VarFlag bitmask
        """

        self._execute(
            """
            CREATE TABLE IF NOT EXISTS variables (
                handle INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                instance_id INTEGER NOT NULL DEFAULT 0,
                value TEXT NOT NULL DEFAULT '',
                tags TEXT NOT NULL DEFAULT ',',
                flags INTEGER NOT NULL DEFAULT 0,
                UNIQUE (name, instance_id)
            )
            """
        )

    def create_var(
        self,
        name: str,
        value: str = "",
        instance_id: int = 0,
        tags: Iterable[str] = (),
        flags: VarFlag = VarFlag.NONE,
    ) -> int:
        """Insert a variable and return its handle."""

        tag_text = "," + ",".join(tag.strip() for tag in tags if tag.strip()) + ","
        cur = self._execute(
            """
            INSERT INTO variables (name, instance_id, value, tags, flags)
            VALUES (?, ?, ?, ?, ?)
            """,
            (name, instance_id, value, tag_text, int(flags)),
        )
        return int(cur.lastrowid)

    def find_by_name(self, name: str) -> Optional[int]:
        base_name, instance_id = split_instance_name(name)
        row = self._execute(
            "SELECT handle FROM variables WHERE name = ? AND instance_id = ?",
            (base_name, instance_id),
        ).fetchone()
        return int(row["handle"]) if row else None

    def _row(self, handle: int) -> sqlite3.Row:
        row = self._execute("SELECT * FROM variables WHERE handle = ?", (handle,)).fetchone()
        if row is None:
            raise NotFoundError(f"No variable with handle {handle}")
        return row

    def get_info(self, handle: int) -> VarInfo:
        row = self._row(handle)
        return VarInfo(
            name=row["name"],
            instance_id=int(row["instance_id"]),
            flags=VarFlag(int(row["flags"])),
            tags=tuple(tag for tag in row["tags"].split(",") if tag),
        )

    def print_value(self, handle: int, stream: TextIO) -> None:
        stream.write(self._row(handle)["value"])

    def query(self, spec: QuerySpec) -> list[int]:
        """Return handles matching every filter in the spec, in handle order."""

        clauses: list[str] = []
        params: list = []
        if spec.kind & QueryKind.TAGS:
            for tag in spec.tags:
                clauses.append("instr(tags, ?) > 0")
                params.append(f",{tag},")
        if spec.kind & QueryKind.MATCH:
            clauses.append("instr(name, ?) > 0")
            params.append(spec.match)
        if spec.kind & QueryKind.FLAGS:
            clauses.append("(flags & ?) = ?")
            params.extend([int(spec.flags), int(spec.flags)])
        if spec.kind & QueryKind.INSTANCE_ID:
            clauses.append("instance_id = ?")
            params.append(spec.instance_id)

        where = " AND ".join(clauses) if clauses else "1"
        rows = self._execute(
            f"SELECT handle FROM variables WHERE {where} ORDER BY handle",
            params,
        ).fetchall()
        return [int(row["handle"]) for row in rows]

    def get_value(self, name: str) -> Optional[str]:
        handle = self.find_by_name(name)
        if handle is None:
            return None
        return self._row(handle)["value"]

    def set_value(self, name: str, value: str) -> None:
        """Upsert a variable value by name."""

        base_name, instance_id = split_instance_name(name)
        self._execute(
            """
            INSERT INTO variables (name, instance_id, value)
            VALUES (?, ?, ?)
            ON CONFLICT(name, instance_id) DO UPDATE SET value = excluded.value
            """,
            (base_name, instance_id, value),
        )

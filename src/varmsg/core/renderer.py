"""Message rendering (core domain).

A rendered message is a single-line JSON object with one member per variable
in the definition's body set:

    { "alpha":"12", "[2]beta":"34", "gamma":{"x":1}}

Values that already look like JSON arrays or objects are embedded as-is,
everything else is emitted as a JSON string.
"""

from __future__ import annotations

import io
import json
import logging

from varmsg.core.errors import OutputError, VarMsgError
from varmsg.core.models import MessageDefinition, VarInfo
from varmsg.core.ports import VariableStorePort

LOGGER = logging.getLogger(__name__)

_JSON_BRACKETS = {"[": "]", "{": "}"}
_ASCII_SPACE = " \t\n\r\f\v"


def is_json(value: str) -> bool:
    """Return True when the value, stripped of ASCII whitespace, is a bracket pair."""

    stripped = value.strip(_ASCII_SPACE)
    if not stripped:
        return False
    return _JSON_BRACKETS.get(stripped[0]) == stripped[-1]


def member_key(info: VarInfo) -> str:
    """Return the member key for a variable, with an [instance] prefix when set."""

    if info.instance_id:
        return f"[{info.instance_id}]{info.name}"
    return info.name


def format_member(info: VarInfo, value: str) -> str:
    key = json.dumps(member_key(info), ensure_ascii=False)
    if is_json(value):
        return f"{key}:{value.strip(_ASCII_SPACE)}"
    return f"{key}:{json.dumps(value, ensure_ascii=False)}"


class Renderer:
    """Renders a definition's body set into a wire-format message.

    One formatting buffer is shared by every render. Each variable is written
    into it, read back and cleared before the next one starts.
    """

    def __init__(self, store: VariableStorePort) -> None:
        self._store = store
        self._buffer = io.StringIO()

    def _fetch_text(self, handle: int) -> str:
        self._buffer.seek(0)
        self._buffer.truncate(0)
        try:
            self._store.print_value(handle, self._buffer)
            return self._buffer.getvalue()
        except VarMsgError:
            raise
        except (OSError, ValueError) as exc:
            raise OutputError(f"Failed to format variable {handle}: {exc}") from exc
        finally:
            self._buffer.seek(0)
            self._buffer.truncate(0)

    def render(self, definition: MessageDefinition) -> str:
        """Render the message and count the attempt on the definition.

        Any failure to fetch a variable fails the whole render.
        """

        members: list[str] = []
        try:
            for handle in definition.body_set:
                info = self._store.get_info(handle)
                members.append(format_member(info, self._fetch_text(handle)))
        except (VarMsgError, OSError):
            definition.err_count += 1
            raise

        definition.tx_count += 1
        if not members:
            return "{}\n"
        return "{ " + ", ".join(members) + "}\n"

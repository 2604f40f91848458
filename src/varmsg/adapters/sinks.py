"""Output sink adapters and the sink dispatcher.

Handles are opened once, when a definition is loaded, and reused for every
message the definition produces.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

from varmsg.core.errors import (
    InvalidArgumentError,
    OutputError,
    SinkNotImplementedError,
    VarMsgError,
)
from varmsg.core.models import MessageDefinition, OutputType
from varmsg.core.ports import SinkPort

LOGGER = logging.getLogger(__name__)


class ConsoleSink:
    """Writes messages verbatim to standard output."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream

    def write(self, message: str) -> None:
        # Resolved per write so redirected or captured stdout is honoured.
        stream = self._stream or sys.stdout
        stream.write(message)
        stream.flush()

    def close(self) -> None:
        # stdout belongs to the process, not to this sink.
        pass


class FileSink:
    """Appends messages to a file opened at configuration time."""

    def __init__(self, path: str) -> None:
        self.path = path
        self._handle = open(path, "a", encoding="utf-8")

    def write(self, message: str) -> None:
        self._handle.write(message)
        self._handle.flush()

    def close(self) -> None:
        if not self._handle.closed:
            self._handle.close()


class QueueSink:
    """Named placeholder for external message queue delivery."""

    def __init__(self, queue_name: str) -> None:
        self.queue_name = queue_name

    def write(self, message: str) -> None:
        raise SinkNotImplementedError(f"Message queue output ({self.queue_name}) is not implemented")

    def close(self) -> None:
        pass


class SinkDispatcher:
    """Selects the sink for each definition and writes messages to it."""

    def __init__(self, console: Optional[SinkPort] = None) -> None:
        self._console = console or ConsoleSink()
        self._files: dict[str, FileSink] = {}
        # Keyed by definition identity; names are file stems and may repeat.
        self._sinks: dict[int, SinkPort] = {}

    def open(self, definition: MessageDefinition) -> None:
        """Open (or reuse) the handle for the definition's output type."""

        sink = self._open_sink(definition)
        if sink is None:
            self._sinks.pop(id(definition), None)
            return
        self._sinks[id(definition)] = sink

    def _open_sink(self, definition: MessageDefinition) -> Optional[SinkPort]:
        output_type = definition.output_type
        if output_type is OutputType.DISABLED:
            return None
        if output_type is OutputType.STDOUT:
            return self._console
        if not definition.output:
            raise InvalidArgumentError(
                f"{definition.name}: output_type {output_type.value} requires an 'output'"
            )
        if output_type is OutputType.FILE:
            sink = self._files.get(definition.output)
            if sink is None:
                try:
                    sink = FileSink(definition.output)
                except OSError as exc:
                    raise OutputError(f"Cannot open output file {definition.output}: {exc}") from exc
                self._files[definition.output] = sink
            return sink
        if output_type is OutputType.MQUEUE:
            LOGGER.warning("%s: message queue output is not implemented", definition.name)
            return QueueSink(definition.output)
        raise InvalidArgumentError(f"Unhandled output type: {output_type}")

    def dispatch(self, definition: MessageDefinition, message: str) -> None:
        """Write a rendered message; definitions without a sink drop it."""

        sink = self._sinks.get(id(definition))
        if sink is None:
            LOGGER.debug("Output disabled for %s, message dropped", definition.name)
            return
        try:
            sink.write(message)
        except VarMsgError:
            raise
        except (OSError, ValueError) as exc:
            raise OutputError(f"Failed to write message for {definition.name}: {exc}") from exc

    def close(self) -> None:
        """Close every handle opened by this dispatcher."""

        for sink in self._files.values():
            sink.close()
        self._files.clear()
        self._sinks.clear()

"""Message definition loading and the definition registry."""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Iterator, Mapping, Optional

from varmsg.core.controls import publish_initial
from varmsg.core.errors import InvalidArgumentError, NotFoundError, VarMsgError
from varmsg.core.models import MessageDefinition, OutputType
from varmsg.core.ports import DispatcherPort, VariableStorePort
from varmsg.core.resolver import resolve_variable_set

LOGGER = logging.getLogger(__name__)


class DefinitionRegistry:
    """Owns the loaded message definitions.

    New definitions are prepended, so the most recently loaded definition is
    processed first on every pulse.
    """

    def __init__(self) -> None:
        self._definitions: list[MessageDefinition] = []

    def add(self, definition: MessageDefinition) -> None:
        self._definitions.insert(0, definition)

    def get(self, name: str) -> Optional[MessageDefinition]:
        for definition in self._definitions:
            if definition.name == name:
                return definition
        return None

    def __iter__(self) -> Iterator[MessageDefinition]:
        return iter(list(self._definitions))

    def __len__(self) -> int:
        return len(self._definitions)


def _optional_str(config: Mapping[str, Any], key: str) -> Optional[str]:
    value = config.get(key)
    if value is not None and not isinstance(value, str):
        raise InvalidArgumentError(f"{key!r} must be a string")
    return value


def _interval(config: Mapping[str, Any]) -> int:
    value = config.get("interval", 0)
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError("'interval' must be a whole number of seconds")
    if value < 0:
        raise InvalidArgumentError("'interval' must not be negative")
    return value


def build_definition(name: str, config: Any, store: VariableStorePort) -> MessageDefinition:
    """Map one configuration document onto a MessageDefinition.

    A definition whose trigger or vars cannot be resolved is not built: the
    resolver error propagates to the caller.
    """

    if not isinstance(config, Mapping):
        raise InvalidArgumentError(f"Configuration {name} must be a JSON object")

    enabled = config.get("enabled", False)
    if not isinstance(enabled, bool):
        raise InvalidArgumentError("'enabled' must be true or false")

    interval = _interval(config)

    trigger_config = config.get("trigger")
    trigger_set = None
    if trigger_config is not None:
        trigger_set = resolve_variable_set(trigger_config, store)

    vars_config = config.get("vars")
    if vars_config is None:
        raise NotFoundError(f"Configuration {name} has no 'vars'")
    body_set = resolve_variable_set(vars_config, store)

    return MessageDefinition(
        name=name,
        enabled=enabled,
        prefix=_optional_str(config, "prefix"),
        interval=interval,
        countdown=interval,
        trigger_set=trigger_set,
        body_set=body_set,
        output_type=OutputType.parse(config.get("output_type")),
        output=_optional_str(config, "output"),
        header=_optional_str(config, "header"),
        trigger_config=trigger_config,
        vars_config=vars_config,
    )


def definition_name(path: str) -> str:
    """Derive a definition name from its configuration file path."""

    return os.path.splitext(os.path.basename(path))[0]


def load_definition_file(path: str, store: VariableStorePort) -> MessageDefinition:
    """Read and build a definition from a JSON configuration file."""

    with open(path, "r", encoding="utf-8") as handle:
        try:
            config = json.load(handle)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise InvalidArgumentError(f"{path} is not valid JSON: {exc}") from exc
    return build_definition(definition_name(path), config, store)


class DefinitionLoader:
    """Loads configuration files into a registry.

    Errors are reported per definition; one bad file never stops the others
    from loading.
    """

    def __init__(
        self,
        store: VariableStorePort,
        dispatcher: DispatcherPort,
        registry: Optional[DefinitionRegistry] = None,
    ) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self.registry = registry if registry is not None else DefinitionRegistry()

    def load_file(self, path: str) -> Optional[MessageDefinition]:
        """Load one file; return the definition or None on failure."""

        LOGGER.debug("Processing configuration file %s", path)
        try:
            definition = load_definition_file(path, self._store)
            self._dispatcher.open(definition)
            publish_initial(definition, self._store)
        except (VarMsgError, OSError) as exc:
            LOGGER.error("Failed to load %s: %s", path, exc)
            return None

        self.registry.add(definition)
        LOGGER.info(
            "Loaded %s: %s variables, interval=%ss, output=%s",
            definition.name,
            len(definition.body_set),
            definition.interval,
            definition.output_type.value,
        )
        if definition.header:
            LOGGER.debug("%s header template %s", definition.name, definition.header)
        return definition

    def load_directory(self, dirname: str) -> int:
        """Load every regular file in a directory, in name order.

        Returns the number of definitions loaded.
        """

        LOGGER.debug("Processing configuration directory %s", dirname)
        try:
            entries = sorted(os.listdir(dirname))
        except OSError as exc:
            LOGGER.error("Cannot read configuration directory %s: %s", dirname, exc)
            return 0

        loaded = 0
        for entry in entries:
            path = os.path.join(dirname, entry)
            if not os.path.isfile(path):
                continue
            if self.load_file(path) is not None:
                loaded += 1
        return loaded

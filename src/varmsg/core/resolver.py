"""Variable set resolution (core domain)."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Mapping, Optional

from varmsg.core.errors import InvalidArgumentError, NotFoundError, UnsupportedError
from varmsg.core.models import (
    CACHE_SIZE_GROW_BY,
    CACHE_SIZE_INITIAL,
    LIST_CACHE_GROW_BY,
    VariableSet,
)
from varmsg.core.ports import VariableStorePort
from varmsg.core.query import build_query_spec

LOGGER = logging.getLogger(__name__)


def for_each(items: Iterable[Any], visit: Callable[[Any], None]) -> None:
    """Apply visit to each item in order.

    The first error raised by visit aborts the iteration and propagates.
    """

    for item in items:
        visit(item)


def _resolve_query(
    config: Mapping[str, Any],
    store: VariableStorePort,
    existing: Optional[VariableSet],
) -> VariableSet:
    spec = build_query_spec(config)
    variable_set = existing if existing is not None else VariableSet(CACHE_SIZE_INITIAL, CACHE_SIZE_GROW_BY)
    added = variable_set.extend(store.query(spec))
    LOGGER.debug("Query %s added %s variables", spec, added)
    return variable_set


def _resolve_names(
    names: list[Any],
    store: VariableStorePort,
    existing: Optional[VariableSet],
) -> VariableSet:
    if existing is None:
        if not names:
            raise InvalidArgumentError("Variable list is empty")
        variable_set = VariableSet(len(names), LIST_CACHE_GROW_BY)
    else:
        variable_set = existing

    def add_name(entry: Any) -> None:
        if not isinstance(entry, str):
            raise UnsupportedError(f"Variable list entries must be strings, got {entry!r}")
        handle = store.find_by_name(entry)
        if handle is None:
            raise NotFoundError(f"Variable not found: {entry}")
        variable_set.add(handle)

    for_each(names, add_name)
    return variable_set


def resolve_variable_set(
    node: Any,
    store: VariableStorePort,
    existing: Optional[VariableSet] = None,
) -> VariableSet:
    """Build (or extend) a VariableSet from a query object or a name list.

    Name lists resolve in input order; query results keep the order the
    store returns them in. Duplicates are always dropped.
    """

    if isinstance(node, Mapping):
        return _resolve_query(node, store, existing)
    if isinstance(node, list):
        return _resolve_names(node, store, existing)
    raise InvalidArgumentError("Variable set must be a query object or a list of names")

"""Query spec building (core domain).

Turns the declarative query object of a message configuration into a
QuerySpec. Nothing here touches the store.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from varmsg.core.errors import InvalidArgumentError, SizeLimitError, UnsupportedError
from varmsg.core.models import MAX_TAGSPEC_LEN, QueryKind, QuerySpec, VarFlag

# Instance identifiers are stored as signed 64-bit integers.
INSTANCE_ID_MIN = -(2**63)
INSTANCE_ID_MAX = 2**63 - 1


def parse_flags(flag_list: str) -> VarFlag:
    """Parse a comma-separated list of flag names into a VarFlag mask."""

    mask = VarFlag.NONE
    for token in flag_list.split(","):
        name = token.strip()
        if not name:
            continue
        try:
            mask |= VarFlag[name.upper()]
        except KeyError:
            raise UnsupportedError(f"Unsupported variable flag: {name!r}") from None
    return mask


def _optional_str(config: Mapping[str, Any], key: str) -> Optional[str]:
    value = config.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidArgumentError(f"Query field {key!r} must be a string")
    return value


def _instance_id(value: Any) -> Optional[int]:
    # bool is an int subclass but not a number in a configuration document.
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def build_query_spec(config: Mapping[str, Any]) -> QuerySpec:
    """Build a QuerySpec from a query object.

    Recognized fields are tags, match, flags and instanceID. At least one of
    them must produce a filter, otherwise the query would select everything
    and is rejected as unsupported.
    """

    if not isinstance(config, Mapping):
        raise InvalidArgumentError("Query configuration must be an object")

    kind = QueryKind.NONE
    tag_spec = ""
    flags = VarFlag.NONE

    tags = _optional_str(config, "tags")
    if tags is not None:
        if len(tags) >= MAX_TAGSPEC_LEN:
            raise SizeLimitError(
                f"Tag spec is {len(tags)} characters, limit is {MAX_TAGSPEC_LEN - 1}"
            )
        tag_spec = tags
        kind |= QueryKind.TAGS

    match = _optional_str(config, "match")
    if match is not None:
        kind |= QueryKind.MATCH

    flag_list = _optional_str(config, "flags")
    if flag_list is not None:
        flags = parse_flags(flag_list)
        kind |= QueryKind.FLAGS

    instance_id = _instance_id(config.get("instanceID"))
    if instance_id is not None:
        if not INSTANCE_ID_MIN <= instance_id <= INSTANCE_ID_MAX:
            raise InvalidArgumentError(f"instanceID {instance_id} is out of range")
        kind |= QueryKind.INSTANCE_ID

    if kind == QueryKind.NONE:
        raise UnsupportedError("Query must filter on tags, match, flags or instanceID")

    return QuerySpec(
        kind=kind,
        tag_spec=tag_spec,
        match=match,
        flags=flags,
        instance_id=instance_id,
    )

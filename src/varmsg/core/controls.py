"""Status and control values exposed under a definition's prefix.

For a prefix of /varmsg/msg1 the store carries:

    /varmsg/msg1/txcount  - generations completed
    /varmsg/msg1/errcount - generation or transmission errors
    /varmsg/msg1/enable   - 1 to enable, 0 to disable at runtime
    /varmsg/msg1/rescan   - write 1 to rebuild the variable sets
"""

from __future__ import annotations

import logging
from typing import Optional

from varmsg.core.models import MessageDefinition
from varmsg.core.ports import VariableStorePort
from varmsg.core.resolver import resolve_variable_set

LOGGER = logging.getLogger(__name__)

TXCOUNT = "txcount"
ERRCOUNT = "errcount"
ENABLE = "enable"
RESCAN = "rescan"

_TRUTHY = {"1", "true", "yes", "on"}


def is_truthy(value: Optional[str]) -> bool:
    return value is not None and value.strip().lower() in _TRUTHY


def publish_initial(definition: MessageDefinition, store: VariableStorePort) -> None:
    """Create the status/control values, leaving existing ones untouched."""

    defaults = {
        TXCOUNT: "0",
        ERRCOUNT: "0",
        ENABLE: "1" if definition.enabled else "0",
        RESCAN: "0",
    }
    for leaf, value in defaults.items():
        name = definition.status_name(leaf)
        if name is None:
            return
        if store.get_value(name) is None:
            store.set_value(name, value)


def publish_counters(definition: MessageDefinition, store: VariableStorePort) -> None:
    tx_name = definition.status_name(TXCOUNT)
    err_name = definition.status_name(ERRCOUNT)
    if tx_name is None or err_name is None:
        return
    store.set_value(tx_name, str(definition.tx_count))
    store.set_value(err_name, str(definition.err_count))


def rescan(definition: MessageDefinition, store: VariableStorePort) -> None:
    """Rebuild the trigger and body sets from the stored configuration.

    Both sets are resolved into fresh objects first so a failure leaves the
    previous sets in place.
    """

    trigger_set = None
    if definition.trigger_config is not None:
        trigger_set = resolve_variable_set(definition.trigger_config, store)
    body_set = resolve_variable_set(definition.vars_config, store)
    definition.trigger_set = trigger_set
    definition.body_set = body_set
    LOGGER.info("Rescanned %s: %s body variables", definition.name, len(body_set))


def sync_controls(definition: MessageDefinition, store: VariableStorePort) -> None:
    """Apply the enable and rescan control values to the definition."""

    enable_name = definition.status_name(ENABLE)
    rescan_name = definition.status_name(RESCAN)
    if enable_name is None or rescan_name is None:
        return

    enable_value = store.get_value(enable_name)
    if enable_value is not None:
        enabled = is_truthy(enable_value)
        if enabled != definition.enabled:
            LOGGER.info("%s %s via %s", definition.name, "enabled" if enabled else "disabled", enable_name)
        definition.enabled = enabled

    if is_truthy(store.get_value(rescan_name)):
        # Clear the request first so a failing rescan is not retried every pulse.
        store.set_value(rescan_name, "0")
        rescan(definition, store)

"""Pulse-driven scheduling of message definitions.

Each definition counts down from its interval once per pulse. When the
countdown reaches zero the message is rendered and dispatched, and the
countdown starts again. Everything happens synchronously inside pulse():
the call returns only after every due definition has been handled.
"""

from __future__ import annotations

import logging
from typing import Optional

from varmsg.core.controls import publish_counters, sync_controls
from varmsg.core.definitions import DefinitionRegistry
from varmsg.core.errors import VarMsgError
from varmsg.core.models import MessageDefinition
from varmsg.core.ports import DispatcherPort, VariableStorePort
from varmsg.core.renderer import Renderer
from varmsg.core.ticker import Ticker

LOGGER = logging.getLogger(__name__)


class Scheduler:
    """Advances countdowns and fires due definitions."""

    def __init__(
        self,
        registry: DefinitionRegistry,
        renderer: Renderer,
        dispatcher: DispatcherPort,
        store: Optional[VariableStorePort] = None,
    ) -> None:
        self._registry = registry
        self._renderer = renderer
        self._dispatcher = dispatcher
        # Without a store there are no status/control values to maintain.
        self._store = store

    def pulse(self) -> int:
        """Process one timing pulse and return the number of messages delivered."""

        fired = 0
        for definition in self._registry:
            if self._store is not None:
                try:
                    sync_controls(definition, self._store)
                except (VarMsgError, OSError) as exc:
                    definition.err_count += 1
                    LOGGER.error("Control update failed for %s: %s", definition.name, exc)

            # Interval 0 is trigger-only and never fires from the countdown.
            if not definition.enabled or definition.interval == 0:
                continue

            if definition.countdown > 0:
                definition.countdown -= 1
            if definition.countdown == 0:
                definition.countdown = definition.interval
                if self.fire(definition):
                    fired += 1
        return fired

    def fire(self, definition: MessageDefinition) -> bool:
        """Render and dispatch one definition now.

        Returns True when the message was delivered. Failures are counted on
        the definition and never raised.
        """

        if not definition.enabled:
            return False

        LOGGER.debug("Processing message %s", definition.name)
        delivered = False
        try:
            message = self._renderer.render(definition)
        except (VarMsgError, OSError) as exc:
            # The renderer already counted this failure.
            LOGGER.error("Render failed for %s: %s", definition.name, exc)
        else:
            try:
                self._dispatcher.dispatch(definition, message)
                delivered = True
            except (VarMsgError, OSError) as exc:
                definition.err_count += 1
                LOGGER.error("Dispatch failed for %s: %s", definition.name, exc)

        if self._store is not None:
            try:
                publish_counters(definition, self._store)
            except (VarMsgError, OSError) as exc:
                LOGGER.warning("Could not publish counters for %s: %s", definition.name, exc)
        return delivered

    def run(self, ticker: Ticker) -> None:
        """Process pulses until the ticker is stopped."""

        while ticker.wait():
            self.pulse()

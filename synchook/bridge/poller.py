"""Event poller -- owns the cursor and drives fetch/dispatch cycles.

One cycle:

1. fetch the events newer than the cursor,
2. parse each event and hand its ``type`` to the dispatcher, in arrival order,
3. advance the cursor to the highest id seen.

Cycles are strictly sequential; the scripts a cycle launches are not waited
for and may still be running when the next cycle starts.  The first cycle runs
immediately, later ones on a fixed cadence.  A ``NetworkError`` ends the loop:
there is no retry or backoff here, supervision belongs to the process manager.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Protocol

from synchook.bridge.client import NetworkError
from synchook.bridge.log import component_logger
from synchook.bridge.models.events import Event, RawEvent, to_event

if TYPE_CHECKING:
    from loguru import Logger


class EventSource(Protocol):
    async def fetch_events_since(self, cursor: int | None) -> list[RawEvent]: ...


class EventSink(Protocol):
    def dispatch(self, event_type: str) -> object: ...


class EventPoller:
    """Fixed-interval poll loop.

    The cursor is only ever touched by the task running this poller, so it
    needs no locking.
    """

    def __init__(
        self,
        client: EventSource,
        dispatcher: EventSink,
        *,
        interval: float,
        cursor: int | None = None,
        log: Logger | None = None,
    ) -> None:
        self.client = client
        self.dispatcher = dispatcher
        self.interval = interval
        self._cursor = cursor
        self._log = log or component_logger("poller")

    @property
    def cursor(self) -> int | None:
        """Highest event id observed so far; ``None`` before the first event."""
        return self._cursor

    # -- Cycle -----------------------------------------------------------------

    async def poll_once(self) -> list[Event]:
        """Run one fetch/dispatch cycle and return the parsed events.

        Raises ``NetworkError`` without touching the cursor.
        """
        batch = await self.client.fetch_events_since(self._cursor)
        if not batch:
            self._log.info("No events...")
            return []

        events = []
        for raw in batch:
            event = to_event(raw)
            self._log.info("Running event {} of type: {}", event.id, event.type)
            self._log.debug("Event {} payload matched {}", event.id, event.variant)
            self.dispatcher.dispatch(event.type)
            events.append(event)

        self._advance(max(event.id for event in events))
        return events

    def _advance(self, newest: int) -> None:
        if self._cursor is not None and newest < self._cursor:
            self._log.warning("Ignoring event ids below the cursor ({} < {})", newest, self._cursor)
            return
        self._cursor = newest

    # -- Loop ------------------------------------------------------------------

    async def run(self, max_cycles: int | None = None) -> None:
        """Poll until a ``NetworkError`` (re-raised) or *max_cycles* fetches.

        Ticks are scheduled against absolute deadlines so time spent fetching
        does not push later polls back.
        """
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        cycles = 0
        self._log.info("Beginning to poll (interval={}s, cursor={})", self.interval, self._cursor)

        while True:
            try:
                await self.poll_once()
            except NetworkError as exc:
                self._log.error("Polling stopped at cursor {}: {}", self._cursor, exc)
                raise

            cycles += 1
            if max_cycles is not None and cycles >= max_cycles:
                return

            next_tick += self.interval
            delay = next_tick - loop.time()
            if delay < 0:
                # Missed one or more ticks; resume the cadence from now.
                next_tick = loop.time()
                delay = 0
            await asyncio.sleep(delay)

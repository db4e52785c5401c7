"""Syncthing REST client -- fetches events since a cursor.

Owns the transport concern only: one authenticated GET per call, no retry.
Every failure (connection, TLS, timeout, non-2xx status, malformed body) is
surfaced as ``NetworkError`` with the original exception chained; the poller
decides what to do with it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from synchook.bridge.log import component_logger
from synchook.bridge.models.events import RAW_EVENTS, RawEvent

if TYPE_CHECKING:
    from types import TracebackType

    from loguru import Logger

EVENTS_PATH = "/rest/events"
API_KEY_HEADER = "X-API-KEY"


class NetworkError(RuntimeError):
    """Fetching events failed; ``cause`` holds the underlying exception."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class SyncthingClient:
    """Async client for Syncthing's ``/rest/events`` endpoint.

    Use as an async context manager, or call ``aclose`` when done::

        async with SyncthingClient(address, port, auth_key) as client:
            events = await client.fetch_events_since(None)
    """

    def __init__(
        self,
        address: str,
        port: int,
        auth_key: str,
        *,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
        log: Logger | None = None,
    ) -> None:
        self.base_url = f"{address.rstrip('/')}:{port}"
        self._log = log or component_logger("client")
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            headers={API_KEY_HEADER: auth_key},
            timeout=timeout,
            transport=transport,
        )
        self._log.info("Using address: {}", self.base_url)

    # -- Lifecycle -------------------------------------------------------------

    async def __aenter__(self) -> SyncthingClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # -- Fetch -----------------------------------------------------------------

    async def fetch_events_since(self, cursor: int | None) -> list[RawEvent]:
        """Return the events newer than *cursor*.

        With ``cursor=None`` the ``since`` parameter is omitted and Syncthing
        returns whatever it currently buffers.  Raises ``NetworkError``.
        """
        params = {"since": cursor} if cursor is not None else None
        url = f"{self.base_url}{EVENTS_PATH}"

        try:
            response = await self._http.get(EVENTS_PATH, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            msg = f"GET {url} returned HTTP {exc.response.status_code}"
            raise NetworkError(msg, exc) from exc
        except httpx.HTTPError as exc:
            msg = f"GET {url} failed: {exc!r}"
            raise NetworkError(msg, exc) from exc

        try:
            events = RAW_EVENTS.validate_json(response.content)
        except ValidationError as exc:
            first = exc.errors()[0]["msg"]
            msg = f"GET {url} returned a malformed event list ({exc.error_count()} error(s), first: {first})"
            raise NetworkError(msg, exc) from exc

        self._log.debug("Fetched {} event(s) since {}", len(events), cursor)
        return events

"""Script dispatcher -- launches the scripts registered for an event type.

Each invocation runs in its own detached asyncio task:

1. wait ``delay`` seconds (independently of its siblings),
2. start the child process,
3. record a ``SpawnOutcome`` (the task's result) and log it.

The poller never awaits these tasks.  A launch that fails is logged and
abandoned; it cannot affect sibling launches or the poll loop.  Children run
in their own session with stdin closed and are never killed by the bridge;
a lightweight reaper only logs their exit status.

Before the loop shuts down, ``flush`` cuts every pending delay short so each
scheduled invocation still gets exactly one launch attempt.
"""

from __future__ import annotations

import asyncio
import contextlib
import os
import subprocess
from dataclasses import dataclass
from typing import TYPE_CHECKING

from synchook.bridge.log import component_logger

if TYPE_CHECKING:
    from loguru import Logger

    from synchook.bridge.models.scripts import ScriptInvocation
    from synchook.bridge.registry import ScriptRegistry


class SpawnError(RuntimeError):
    """A script could not be started (missing, not executable, out of resources)."""

    def __init__(self, invocation: ScriptInvocation, cause: OSError | ValueError) -> None:
        reason = getattr(cause, "strerror", None) or cause
        super().__init__(f"Failed to start {invocation.describe()!r}: {reason}")
        self.invocation = invocation
        self.cause = cause


@dataclass(frozen=True)
class SpawnOutcome:
    """Result of one launch attempt.  Exactly one of ``process``/``error`` is set."""

    event_type: str
    invocation: ScriptInvocation
    process: subprocess.Popen[bytes] | None = None
    error: SpawnError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def pid(self) -> int | None:
        return self.process.pid if self.process is not None else None


class ScriptDispatcher:
    """Fire-and-forget launcher for registered scripts.

    Holds strong references to its in-flight tasks (asyncio only keeps weak
    ones) and drops them as they finish.
    """

    def __init__(
        self,
        registry: ScriptRegistry,
        *,
        delay: float = 0.0,
        reap_interval: float = 1.0,
        log: Logger | None = None,
    ) -> None:
        self.registry = registry
        self.delay = delay
        self.reap_interval = reap_interval
        self._log = log or component_logger("dispatcher")
        self._tasks: set[asyncio.Task] = set()
        self._launches: set[asyncio.Task[SpawnOutcome]] = set()
        self._flushing = asyncio.Event()

    # -- Dispatch --------------------------------------------------------------

    def dispatch(self, event_type: str) -> list[asyncio.Task[SpawnOutcome]]:
        """Schedule one launch per invocation registered for *event_type*.

        Returns immediately with the launch tasks; must be called from a
        running event loop.  An unregistered type schedules nothing.
        """
        invocations = self.registry.lookup(event_type)
        if not invocations:
            self._log.debug("No scripts registered for {}", event_type)
            return []

        self._log.info("Dispatching {} script(s) for {}", len(invocations), event_type)
        tasks = [self._track(self._launch(event_type, invocation)) for invocation in invocations]
        for task in tasks:
            self._launches.add(task)
            task.add_done_callback(self._launches.discard)
        return tasks

    async def _launch(self, event_type: str, invocation: ScriptInvocation) -> SpawnOutcome:
        if self.delay > 0 and not self._flushing.is_set():
            # Sleeps out the delay unless flush() wakes it first.
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(self._flushing.wait(), self.delay)

        try:
            process = _spawn(invocation)
        except (OSError, ValueError) as exc:
            error = SpawnError(invocation, exc)
            self._log.error("{} (event {})", error, event_type)
            return SpawnOutcome(event_type, invocation, error=error)

        self._log.info("Started {!r} for {} (pid={})", invocation.describe(), event_type, process.pid)
        self._track(self._reap(invocation, process))
        return SpawnOutcome(event_type, invocation, process=process)

    async def _reap(self, invocation: ScriptInvocation, process: subprocess.Popen[bytes]) -> None:
        # Children stay outside asyncio subprocess transports: closing the loop
        # must not kill them.
        while (code := process.poll()) is None:
            await asyncio.sleep(self.reap_interval)
        if code == 0:
            self._log.debug("{!r} (pid={}) exited cleanly", invocation.describe(), process.pid)
        else:
            self._log.warning("{!r} (pid={}) exited with status {}", invocation.describe(), process.pid, code)

    # -- Task bookkeeping ------------------------------------------------------

    def _track(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def flush(self) -> list[SpawnOutcome]:
        """Launch every invocation still waiting out its delay, right away.

        Waits for the launches only, not for the scripts they start.  Later
        dispatches skip the delay too.
        """
        self._flushing.set()
        launches = list(self._launches)
        if not launches:
            return []
        self._log.warning("Shutting down: launching {} delayed script(s) now", len(launches))
        return list(await asyncio.gather(*launches))

    @property
    def pending(self) -> int:
        """Number of launches and reapers still in flight."""
        return len(self._tasks)

    async def wait_idle(self, timeout: float | None = None) -> bool:
        """Wait until every launch and reaper task has finished.

        Returns ``False`` if *timeout* expired first.  Not part of the poll
        cycle; used for orderly shutdown and tests.
        """
        try:
            async with asyncio.timeout(timeout):
                # asyncio.wait leaves the tasks running when the timeout fires.
                while self._tasks:
                    await asyncio.wait(set(self._tasks))
        except TimeoutError:
            self._log.warning("Dispatcher: {} task(s) still running after {}s", len(self._tasks), timeout)
            return False
        return True


def _spawn(invocation: ScriptInvocation) -> subprocess.Popen[bytes]:
    env = {**os.environ, **invocation.env} if invocation.env else None
    return subprocess.Popen(  # noqa: S603
        invocation.argv,
        cwd=invocation.cwd,
        env=env,
        stdin=subprocess.DEVNULL,
        start_new_session=True,
    )

# path: cable-fault-map/app/services/polling.py

"""
Cancellable repeating fetch.

Each tick runs the fetch in its own task. A tick that finds the previous
fetch still running cancels it first, so a slow, stale response can never
overwrite the result of a newer one. Stopping cancels both the timer and any
fetch in flight; nothing is delivered after stop.
"""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from app.errors import AbortedRequest, CableMapError
from app.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_INTERVAL_SECONDS = 2.0


class PollState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    STOPPED = "stopped"


class StopPolicy(str, Enum):
    POLL_FOREVER = "poll_forever"
    STOP_ON_FIRST_RESULT = "stop_on_first_result"


def is_empty_result(result: Any) -> bool:
    if result is None:
        return True
    try:
        return len(result) == 0
    except TypeError:
        return False


@dataclass
class PollSession:
    runner: Optional[asyncio.Task] = None
    inflight: Optional[asyncio.Task] = None
    stopped: bool = False


class PollingScheduler(Generic[T]):
    def __init__(
        self,
        fetch: Callable[[], Awaitable[T]],
        on_result: Callable[[T], None],
        *,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        stop_policy: StopPolicy = StopPolicy.POLL_FOREVER,
        is_empty: Callable[[T], bool] = is_empty_result,
        on_error: Optional[Callable[[Exception], None]] = None,
        name: str = "poll",
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.fetch = fetch
        self.on_result = on_result
        self.interval = interval
        self.stop_policy = stop_policy
        self.is_empty = is_empty
        self.on_error = on_error
        self.name = name
        self.state = PollState.IDLE
        self.session: Optional[PollSession] = None
        self.cycles = 0
        self.aborted = 0
        self.last_error: Optional[Exception] = None

    @property
    def running(self) -> bool:
        return self.session is not None and not self.session.stopped

    def start(self) -> PollSession:
        """Begin polling: one fetch right away, then one per interval. Needs a running loop."""
        if self.running:
            return self.session
        self.session = PollSession()
        self.state = PollState.IDLE
        self.session.runner = asyncio.create_task(self._run(self.session), name=f"{self.name}-runner")
        return self.session

    async def _run(self, session: PollSession) -> None:
        while not session.stopped:
            self._launch_cycle(session)
            await asyncio.sleep(self.interval)

    def _launch_cycle(self, session: PollSession) -> None:
        previous = session.inflight
        if previous is not None and not previous.done():
            previous.cancel()
        session.inflight = asyncio.create_task(self._cycle(session), name=f"{self.name}-fetch")

    async def _cycle(self, session: PollSession) -> None:
        self.state = PollState.FETCHING
        self.cycles += 1
        try:
            result = await self.fetch()
        except asyncio.CancelledError:
            self.aborted += 1
            self.last_error = AbortedRequest(f"Fetch for {self.name} was superseded or stopped")
            logger.debug("poll_fetch_aborted name=%s", self.name)
            raise
        except CableMapError as e:
            self._fetch_failed(session, e)
            return
        except Exception as e:
            logger.exception("poll_fetch_unexpected_error name=%s", self.name)
            self._fetch_failed(session, e)
            return

        if session.stopped:
            return
        self.state = PollState.IDLE
        self.last_error = None
        self.on_result(result)

        if self.stop_policy is StopPolicy.STOP_ON_FIRST_RESULT and not self.is_empty(result):
            logger.debug("poll_satisfied name=%s cycles=%s", self.name, self.cycles)
            self._halt(session, cancel_inflight=False)

    def _fetch_failed(self, session: PollSession, error: Exception) -> None:
        if session.stopped:
            return
        self.state = PollState.IDLE
        self.last_error = error
        logger.warning("poll_fetch_failed name=%s error=%s", self.name, error)
        if self.on_error is not None:
            self.on_error(error)

    def _halt(self, session: PollSession, cancel_inflight: bool = True) -> None:
        session.stopped = True
        self.state = PollState.STOPPED
        if session.runner is not None and not session.runner.done():
            session.runner.cancel()
        if cancel_inflight and session.inflight is not None and not session.inflight.done():
            session.inflight.cancel()

    def cancel_inflight(self) -> bool:
        """Abort the running fetch, if any, without stopping the schedule."""
        session = self.session
        if session is None or session.inflight is None or session.inflight.done():
            return False
        session.inflight.cancel()
        return True

    def stop(self) -> None:
        """Clear the timer and abort any outstanding fetch."""
        if self.session is not None:
            self._halt(self.session)

    async def aclose(self) -> None:
        session = self.session
        self.stop()
        if session is None:
            return
        for task in (session.runner, session.inflight):
            if task is not None and task is not asyncio.current_task():
                with contextlib.suppress(asyncio.CancelledError):
                    await task

    async def poll_once(self) -> Optional[T]:
        """Run a single fetch outside the schedule; errors are logged and reported, not raised."""
        session = self.session or PollSession()
        try:
            result = await self.fetch()
        except CableMapError as e:
            self._fetch_failed(session, e)
            return None
        if not session.stopped:
            self.on_result(result)
        return result

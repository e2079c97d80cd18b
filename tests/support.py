"""Fakes shared by the test modules."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from lifeguard.domain import StatusReport
from lifeguard.errors import RemoteCallError


class FakeClock:
    """Clock that only moves when slept on."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


class BlockingClock(FakeClock):
    """Clock whose sleep never finishes on its own."""

    def __init__(self) -> None:
        super().__init__()
        self.sleeping = asyncio.Event()

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.sleeping.set()
        await asyncio.get_running_loop().create_future()


class ScriptedQuery:
    """Status query replaying a script; the last entry repeats."""

    def __init__(
        self,
        script: Sequence[StatusReport | BaseException],
        *,
        clock: FakeClock | None = None,
        duration: float = 0.0,
    ) -> None:
        if not script:
            raise ValueError("script must not be empty")
        self._script = list(script)
        self._clock = clock
        self._duration = duration
        self.calls = 0
        self.started_at: list[float] = []

    async def __call__(self) -> StatusReport:
        self.calls += 1
        if self._clock is not None:
            self.started_at.append(self._clock.now)
            self._clock.advance(self._duration)
        item = self._script[min(self.calls, len(self._script)) - 1]
        if isinstance(item, BaseException):
            raise item
        return item


class HangingQuery:
    """Status query that never answers until cancelled."""

    def __init__(self) -> None:
        self.started = asyncio.Event()
        self.was_cancelled = False

    async def __call__(self) -> StatusReport:
        self.started.set()
        try:
            await asyncio.get_running_loop().create_future()
        except asyncio.CancelledError:
            self.was_cancelled = True
            raise
        raise AssertionError("unreachable")


class CountingSubmitter:
    def __init__(self, error: BaseException | None = None) -> None:
        self.calls = 0
        self._error = error

    async def __call__(self) -> None:
        self.calls += 1
        if self._error is not None:
            raise self._error


def in_progress() -> RemoteCallError:
    return RemoteCallError(
        "asynchronous operation has not completed",
        code="AsyncOpIncomplete",
    )


def not_found() -> RemoteCallError:
    return RemoteCallError(
        "Resource group 't-rg-dev' could not be found.",
        code="ResourceGroupNotFound",
        status_code=404,
    )


def fatal() -> RemoteCallError:
    return RemoteCallError(
        "The client does not have authorization to perform action",
        code="AuthorizationFailed",
        status_code=403,
    )


PRESENT = StatusReport(present=True, ready=True, state="Succeeded")
DELETING = StatusReport(present=True, ready=False, state="Deleting")
CREATING = StatusReport(present=True, ready=False, state="Creating")
ABSENT = StatusReport(present=False, ready=False)

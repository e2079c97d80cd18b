"""Bounded polling loop that waits for a remote operation to settle."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from lifeguard.classification import ErrorClassifier
from lifeguard.domain import (
    ErrorCategory,
    LifecycleVerdict,
    OperationOutcome,
    StatusReport,
    TerminalCondition,
    WaitBudget,
)

from .clock import CancellationToken, Clock, SystemClock
from .predicates import StatusPredicate

T = TypeVar("T")

StatusQuery = Callable[[], Awaitable[StatusReport]]
AttemptCallback = Callable[[int, float, OperationOutcome], Awaitable[None]]


class _Interrupted(Exception):
    """The cancellation token fired while a suspension point was pending."""


class PollingCompletionDetector:
    """Re-queries resource state until a terminal condition or the budget runs out.

    Attempts never start once ``budget.timeout`` has elapsed. An attempt that
    started before the deadline is honoured if its result is terminal. The
    sleep preceding the deadline is clipped to the remaining budget, so a
    ``TIMED_OUT`` verdict is returned as soon as the budget is spent.
    """

    def __init__(
        self,
        classifier: ErrorClassifier,
        *,
        clock: Clock | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._classifier = classifier
        self._clock = clock or SystemClock()
        self._logger = logger or logging.getLogger(__name__)

    @property
    def classifier(self) -> ErrorClassifier:
        return self._classifier

    @property
    def clock(self) -> Clock:
        return self._clock

    async def await_terminal(
        self,
        status_query: StatusQuery,
        predicate: StatusPredicate,
        budget: WaitBudget,
        *,
        condition: TerminalCondition = TerminalCondition.ABSENCE,
        cancel_token: CancellationToken | None = None,
        on_attempt: AttemptCallback | None = None,
    ) -> LifecycleVerdict:
        token = cancel_token or CancellationToken()
        start = self._clock.monotonic()
        deadline = start + budget.timeout
        attempts = 0

        while True:
            if self._clock.monotonic() >= deadline:
                return LifecycleVerdict.timed_out(
                    attempts=attempts, elapsed=self._elapsed(start)
                )
            if token.cancelled:
                return self._cancelled(token, attempts, start)

            attempts += 1
            report: StatusReport | None = None
            error: BaseException | None = None
            try:
                report = await self._race(status_query(), token)
            except _Interrupted:
                return self._cancelled(token, attempts, start)
            except Exception as exc:
                error = exc

            category = self._classifier.classify(error)
            outcome = OperationOutcome(category=category, raw_error=error, report=report)
            elapsed = self._elapsed(start)
            self._logger.debug(
                "Attempt %s classified as %s after %.2fs", attempts, category, elapsed
            )
            if on_attempt is not None:
                await on_attempt(attempts, elapsed, outcome)

            if category is ErrorCategory.NOT_FOUND and condition is TerminalCondition.ABSENCE:
                return LifecycleVerdict.already_absent(attempts=attempts, elapsed=elapsed)
            if category is ErrorCategory.FATAL:
                return LifecycleVerdict.failed(
                    f"Status query failed: {error}",
                    error,
                    attempts=attempts,
                    elapsed=elapsed,
                )
            if category is ErrorCategory.NONE and report is not None and predicate(report):
                return LifecycleVerdict.completed(attempts=attempts, elapsed=elapsed)

            remaining = deadline - self._clock.monotonic()
            if remaining <= 0:
                return LifecycleVerdict.timed_out(
                    attempts=attempts, elapsed=self._elapsed(start)
                )
            try:
                await self._race(self._clock.sleep(min(budget.interval, remaining)), token)
            except _Interrupted:
                return self._cancelled(token, attempts, start)

    async def _race(self, awaitable: Awaitable[T], token: CancellationToken) -> T:
        """Await ``awaitable`` unless ``token`` fires first.

        Whichever side loses is cancelled and awaited before this returns.
        """

        work = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(token.wait())
        try:
            done, _ = await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            pending = [future for future in (work, waiter) if not future.done()]
            for future in pending:
                future.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
        if work in done:
            return work.result()
        raise _Interrupted

    def _elapsed(self, start: float) -> float:
        return max(0.0, self._clock.monotonic() - start)

    def _cancelled(
        self, token: CancellationToken, attempts: int, start: float
    ) -> LifecycleVerdict:
        return LifecycleVerdict.cancelled(
            attempts=attempts, elapsed=self._elapsed(start), reason=token.reason
        )


__all__ = ["AttemptCallback", "PollingCompletionDetector", "StatusQuery"]

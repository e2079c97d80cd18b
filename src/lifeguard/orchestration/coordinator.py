"""Concurrent teardown of independent resources."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass

from lifeguard.domain import LifecycleVerdict, ResourceRef, WaitBudget
from lifeguard.polling import CancellationToken, StatusQuery

from .lifecycle import LifecycleOrchestrator, Submitter


@dataclass(frozen=True, slots=True)
class TeardownJob:
    """Everything needed to tear down one resource."""

    ref: ResourceRef
    submit: Submitter
    status_query: StatusQuery
    budget: WaitBudget


class TeardownCoordinator:
    """Runs one confirmation loop per resource as independent asyncio tasks."""

    def __init__(
        self,
        orchestrator: LifecycleOrchestrator,
        *,
        max_concurrent: int | None = None,
    ) -> None:
        if max_concurrent is not None and max_concurrent < 1:
            raise ValueError("max_concurrent must be a positive integer")
        self._orchestrator = orchestrator
        self._max_concurrent = max_concurrent

    async def teardown_many(
        self,
        jobs: Sequence[TeardownJob],
        *,
        cancel_token: CancellationToken | None = None,
    ) -> dict[ResourceRef, LifecycleVerdict]:
        seen: set[ResourceRef] = set()
        for job in jobs:
            if job.ref in seen:
                msg = f"Resource {job.ref.display} appears more than once in one batch"
                raise ValueError(msg)
            seen.add(job.ref)

        semaphore = asyncio.Semaphore(self._max_concurrent) if self._max_concurrent else None

        async def _run(job: TeardownJob) -> LifecycleVerdict:
            if semaphore is None:
                return await self._teardown(job, cancel_token)
            async with semaphore:
                return await self._teardown(job, cancel_token)

        verdicts = await asyncio.gather(*(_run(job) for job in jobs))
        return {job.ref: verdict for job, verdict in zip(jobs, verdicts, strict=True)}

    async def _teardown(
        self, job: TeardownJob, cancel_token: CancellationToken | None
    ) -> LifecycleVerdict:
        return await self._orchestrator.teardown(
            job.ref,
            job.submit,
            job.status_query,
            job.budget,
            cancel_token=cancel_token,
        )


__all__ = ["TeardownCoordinator", "TeardownJob"]

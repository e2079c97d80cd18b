"""Lifecycle orchestration: submit once, then confirm through polling."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from uuid import uuid4

from lifeguard.diagnostics import DiagnosticSink, LoggingSink
from lifeguard.domain import (
    AttemptRecord,
    ErrorCategory,
    LifecycleVerdict,
    OperationKind,
    OperationOutcome,
    ResourceRef,
    TerminalCondition,
    VerdictRecord,
    WaitBudget,
)
from lifeguard.polling import (
    AttemptCallback,
    CancellationToken,
    PollingCompletionDetector,
    StatusQuery,
    resource_absent,
    resource_ready,
)

Submitter = Callable[[], Awaitable[None]]


class LifecycleOrchestrator:
    """Sequences a single submission with its confirmation loop.

    Submission is at-most-once per invocation; only the confirmation phase
    is retried. Every poll attempt and the final verdict are handed to the
    configured :class:`DiagnosticSink`; sink failures are logged and never
    replace the verdict.
    """

    def __init__(
        self,
        detector: PollingCompletionDetector,
        *,
        sink: DiagnosticSink | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._detector = detector
        self._logger = logger or logging.getLogger(__name__)
        self._sink = sink or LoggingSink(self._logger)

    @property
    def detector(self) -> PollingCompletionDetector:
        return self._detector

    @property
    def sink(self) -> DiagnosticSink:
        return self._sink

    async def teardown(
        self,
        ref: ResourceRef,
        submit: Submitter,
        status_query: StatusQuery,
        budget: WaitBudget,
        *,
        cancel_token: CancellationToken | None = None,
        operation_id: str | None = None,
    ) -> LifecycleVerdict:
        """Delete ``ref`` and wait until the control plane reports it gone."""

        op_id = operation_id or uuid4().hex
        if cancel_token is not None and cancel_token.cancelled:
            verdict = LifecycleVerdict.cancelled(
                attempts=0, elapsed=0.0, reason=cancel_token.reason
            )
            return await self._finish(op_id, ref, OperationKind.TEARDOWN, verdict)

        error = await self._submit(submit)
        category = self._detector.classifier.classify(error)
        if category is ErrorCategory.FATAL:
            verdict = LifecycleVerdict.failed(
                f"Delete request for {ref.display} was rejected: {error}", error
            )
            return await self._finish(op_id, ref, OperationKind.TEARDOWN, verdict)
        if category is ErrorCategory.OPERATION_IN_PROGRESS:
            self._logger.info("Delete of %s already underway; confirming", ref.display)
        elif category is ErrorCategory.NOT_FOUND:
            self._logger.info("Delete target %s not found at submission", ref.display)

        verdict = await self._detector.await_terminal(
            status_query,
            resource_absent,
            budget,
            condition=TerminalCondition.ABSENCE,
            cancel_token=cancel_token,
            on_attempt=self._attempt_recorder(op_id, ref),
        )
        return await self._finish(op_id, ref, OperationKind.TEARDOWN, verdict)

    async def provision(
        self,
        ref: ResourceRef,
        submit: Submitter,
        status_query: StatusQuery,
        budget: WaitBudget,
        *,
        cancel_token: CancellationToken | None = None,
        operation_id: str | None = None,
    ) -> LifecycleVerdict:
        """Create ``ref`` and wait until it is present and ready.

        A ``NOT_FOUND`` answer while confirming is read as "not visible yet";
        on submission it means the parent scope is missing and is fatal.
        """

        op_id = operation_id or uuid4().hex
        if cancel_token is not None and cancel_token.cancelled:
            verdict = LifecycleVerdict.cancelled(
                attempts=0, elapsed=0.0, reason=cancel_token.reason
            )
            return await self._finish(op_id, ref, OperationKind.PROVISION, verdict)

        error = await self._submit(submit)
        category = self._detector.classifier.classify(error)
        if category in (ErrorCategory.FATAL, ErrorCategory.NOT_FOUND):
            verdict = LifecycleVerdict.failed(
                f"Create request for {ref.display} was rejected: {error}", error
            )
            return await self._finish(op_id, ref, OperationKind.PROVISION, verdict)

        verdict = await self._detector.await_terminal(
            status_query,
            resource_ready,
            budget,
            condition=TerminalCondition.PRESENCE,
            cancel_token=cancel_token,
            on_attempt=self._attempt_recorder(op_id, ref),
        )
        return await self._finish(op_id, ref, OperationKind.PROVISION, verdict)

    async def _submit(self, submit: Submitter) -> BaseException | None:
        try:
            await submit()
        except Exception as exc:
            return exc
        return None

    def _attempt_recorder(self, operation_id: str, ref: ResourceRef) -> AttemptCallback:
        async def _record(attempt: int, elapsed: float, outcome: OperationOutcome) -> None:
            detail: str | None = None
            if outcome.raw_error is not None:
                detail = str(outcome.raw_error)
            elif outcome.report is not None:
                detail = outcome.report.state
            record = AttemptRecord(
                operation_id=operation_id,
                ref=ref,
                attempt=attempt,
                elapsed=elapsed,
                category=outcome.category,
                detail=detail,
                recorded_at=outcome.observed_at,
            )
            try:
                await self._sink.record_attempt(record)
            except Exception:
                self._logger.exception(
                    "Failed to record attempt %s of %s", attempt, operation_id
                )

        return _record

    async def _finish(
        self,
        operation_id: str,
        ref: ResourceRef,
        operation: OperationKind,
        verdict: LifecycleVerdict,
    ) -> LifecycleVerdict:
        record = VerdictRecord.from_verdict(operation_id, ref, operation, verdict)
        try:
            await self._sink.record_verdict(record)
        except Exception:
            self._logger.exception(
                "Failed to record %s verdict for %s", verdict.kind.value, operation_id
            )
        return verdict


__all__ = ["LifecycleOrchestrator", "Submitter"]

"""Immutable value types for resource lifecycle confirmation."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from lifeguard.utils import ensure_utc, utc_now

from .enums import ErrorCategory, OperationKind, VerdictKind

RESOURCE_GROUP_KIND = "Microsoft.Resources/resourceGroups"


class DomainModel(BaseModel):
    """Immutable domain model base with strict validation."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_assignment=True)


class ResourceRef(DomainModel):
    """Identifier of a remote resource, fixed at submission time."""

    name: str = Field(min_length=1)
    kind: str = Field(min_length=1)
    group: str | None = None

    @property
    def is_resource_group(self) -> bool:
        return self.kind.lower() == RESOURCE_GROUP_KIND.lower()

    @property
    def display(self) -> str:
        if self.group is None or self.is_resource_group:
            return f"{self.kind}/{self.name}"
        return f"{self.kind}/{self.group}/{self.name}"

    @classmethod
    def resource_group(cls, name: str) -> ResourceRef:
        return cls(name=name, kind=RESOURCE_GROUP_KIND)


class WaitBudget(DomainModel):
    """Total timeout and fixed polling interval, both in seconds."""

    timeout: float = Field(gt=0)
    interval: float = Field(gt=0)

    @classmethod
    def from_timedelta(cls, timeout: timedelta, interval: timedelta) -> WaitBudget:
        return cls(timeout=timeout.total_seconds(), interval=interval.total_seconds())


class StatusReport(DomainModel):
    """Successful answer from a status query."""

    present: bool
    ready: bool = True
    state: str | None = None


class OperationOutcome(DomainModel):
    """Classified result of one status-query attempt."""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    category: ErrorCategory
    raw_error: BaseException | None = None
    report: StatusReport | None = None
    observed_at: datetime = Field(default_factory=utc_now)


class LifecycleVerdict(DomainModel):
    """Terminal result handed back to the orchestrator's caller.

    ``FAILED`` verdicts carry a ``reason`` and the original ``raw_error``;
    ``CANCELLED`` verdicts carry the cancellation reason when one was given.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    kind: VerdictKind
    reason: str | None = None
    raw_error: BaseException | None = None
    attempts: int = Field(default=0, ge=0)
    elapsed: float = Field(default=0.0, ge=0)

    @property
    def succeeded(self) -> bool:
        return self.kind in (VerdictKind.COMPLETED, VerdictKind.ALREADY_ABSENT)

    @property
    def retryable(self) -> bool:
        """Whether the caller may resubmit with a fresh budget."""

        return self.kind in (VerdictKind.TIMED_OUT, VerdictKind.CANCELLED)

    @classmethod
    def completed(cls, *, attempts: int, elapsed: float) -> LifecycleVerdict:
        return cls(kind=VerdictKind.COMPLETED, attempts=attempts, elapsed=elapsed)

    @classmethod
    def already_absent(cls, *, attempts: int, elapsed: float) -> LifecycleVerdict:
        return cls(kind=VerdictKind.ALREADY_ABSENT, attempts=attempts, elapsed=elapsed)

    @classmethod
    def failed(
        cls,
        reason: str,
        raw_error: BaseException | None = None,
        *,
        attempts: int = 0,
        elapsed: float = 0.0,
    ) -> LifecycleVerdict:
        return cls(
            kind=VerdictKind.FAILED,
            reason=reason,
            raw_error=raw_error,
            attempts=attempts,
            elapsed=elapsed,
        )

    @classmethod
    def timed_out(cls, *, attempts: int, elapsed: float) -> LifecycleVerdict:
        return cls(kind=VerdictKind.TIMED_OUT, attempts=attempts, elapsed=elapsed)

    @classmethod
    def cancelled(
        cls, *, attempts: int, elapsed: float, reason: str | None = None
    ) -> LifecycleVerdict:
        return cls(
            kind=VerdictKind.CANCELLED, attempts=attempts, elapsed=elapsed, reason=reason
        )


class AttemptRecord(DomainModel):
    """Diagnostic record emitted for every poll attempt."""

    operation_id: str
    ref: ResourceRef
    attempt: int = Field(ge=1)
    elapsed: float = Field(ge=0)
    category: ErrorCategory
    detail: str | None = None
    recorded_at: datetime = Field(default_factory=utc_now)

    @field_validator("recorded_at", mode="before")
    @classmethod
    def ensure_timezone(cls, value: datetime | str) -> datetime:
        return _coerce_utc(value)


class VerdictRecord(DomainModel):
    """Diagnostic record emitted once per terminal verdict."""

    operation_id: str
    ref: ResourceRef
    operation: OperationKind
    verdict: VerdictKind
    attempts: int = Field(default=0, ge=0)
    elapsed: float = Field(default=0.0, ge=0)
    reason: str | None = None
    recorded_at: datetime = Field(default_factory=utc_now)

    @field_validator("recorded_at", mode="before")
    @classmethod
    def ensure_timezone(cls, value: datetime | str) -> datetime:
        return _coerce_utc(value)

    @classmethod
    def from_verdict(
        cls,
        operation_id: str,
        ref: ResourceRef,
        operation: OperationKind,
        verdict: LifecycleVerdict,
    ) -> VerdictRecord:
        return cls(
            operation_id=operation_id,
            ref=ref,
            operation=operation,
            verdict=verdict.kind,
            attempts=verdict.attempts,
            elapsed=verdict.elapsed,
            reason=verdict.reason,
        )

    def summary(self) -> dict[str, Any]:
        return {
            "operation_id": self.operation_id,
            "resource": self.ref.display,
            "operation": self.operation.value,
            "verdict": self.verdict.value,
            "attempts": self.attempts,
            "elapsed": round(self.elapsed, 3),
            "reason": self.reason,
        }


def _coerce_utc(value: datetime | str) -> datetime:
    if isinstance(value, str):
        # ISO strings come back from storage
        if value.endswith("Z"):
            value = value.replace("Z", "+00:00")
        value = datetime.fromisoformat(value)
    return ensure_utc(value)

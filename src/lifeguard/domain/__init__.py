"""Domain layer exports."""

from .enums import ErrorCategory, OperationKind, TerminalCondition, VerdictKind
from .models import (
    RESOURCE_GROUP_KIND,
    AttemptRecord,
    DomainModel,
    LifecycleVerdict,
    OperationOutcome,
    ResourceRef,
    StatusReport,
    VerdictRecord,
    WaitBudget,
)

__all__ = [
    "RESOURCE_GROUP_KIND",
    "AttemptRecord",
    "DomainModel",
    "ErrorCategory",
    "LifecycleVerdict",
    "OperationKind",
    "OperationOutcome",
    "ResourceRef",
    "StatusReport",
    "TerminalCondition",
    "VerdictKind",
    "VerdictRecord",
    "WaitBudget",
]

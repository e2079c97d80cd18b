"""Polling loop exports."""

from .clock import CancellationToken, Clock, SystemClock
from .detector import AttemptCallback, PollingCompletionDetector, StatusQuery
from .predicates import StatusPredicate, resource_absent, resource_ready

__all__ = [
    "AttemptCallback",
    "CancellationToken",
    "Clock",
    "PollingCompletionDetector",
    "StatusPredicate",
    "StatusQuery",
    "SystemClock",
    "resource_absent",
    "resource_ready",
]

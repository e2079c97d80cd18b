"""Terminal predicates over status reports."""

from __future__ import annotations

from collections.abc import Callable

from lifeguard.domain import StatusReport

StatusPredicate = Callable[[StatusReport], bool]


def resource_absent(report: StatusReport) -> bool:
    return not report.present


def resource_ready(report: StatusReport) -> bool:
    return report.present and report.ready


__all__ = ["StatusPredicate", "resource_absent", "resource_ready"]

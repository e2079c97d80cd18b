"""Orchestration layer exports."""

from .coordinator import TeardownCoordinator, TeardownJob
from .lifecycle import LifecycleOrchestrator, Submitter

__all__ = ["LifecycleOrchestrator", "Submitter", "TeardownCoordinator", "TeardownJob"]

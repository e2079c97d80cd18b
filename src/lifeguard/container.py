"""Service container wiring application components."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from lifeguard.classification import ClassificationRules, CodeMatchingClassifier, ErrorClassifier
from lifeguard.clients import ArmClientConfig, HttpResourceClient
from lifeguard.config import AppSettings
from lifeguard.diagnostics import CompositeSink, LoggingSink
from lifeguard.errors import ConfigurationError
from lifeguard.orchestration import LifecycleOrchestrator, TeardownCoordinator
from lifeguard.persistence import TeardownJournal
from lifeguard.persistence.sqlite import create_sqlite_journal
from lifeguard.polling import Clock, PollingCompletionDetector

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ServiceContainer:
    """Aggregates services built from one set of settings."""

    settings: AppSettings
    classifier: ErrorClassifier
    journal: TeardownJournal
    detector: PollingCompletionDetector
    orchestrator: LifecycleOrchestrator
    coordinator: TeardownCoordinator

    def resource_client(self) -> HttpResourceClient:
        """Build an HTTP client for the configured control plane.

        The caller owns the returned client and must close it.
        """

        if not self.settings.subscription_id:
            raise ConfigurationError("AZURE_SUBSCRIPTION_ID is not configured")
        return HttpResourceClient(
            ArmClientConfig(
                subscription_id=self.settings.subscription_id,
                access_token=self.settings.access_token,
                endpoint=self.settings.control_plane_url,
                api_version=self.settings.api_version,
                request_timeout=self.settings.request_timeout_seconds,
            )
        )


def _ensure_sqlite_directory(database_url: str) -> None:
    if not database_url.startswith("sqlite"):
        return
    try:
        _, path = database_url.split(":///", maxsplit=1)
    except ValueError:
        return
    if not path or path == ":memory:":
        return
    Path(path).expanduser().parent.mkdir(parents=True, exist_ok=True)


def build_container(
    settings: AppSettings | None = None,
    *,
    journal: TeardownJournal | None = None,
    clock: Clock | None = None,
) -> ServiceContainer:
    """Construct the primary service container."""

    resolved_settings = settings or AppSettings.from_env()
    classifier = CodeMatchingClassifier(
        ClassificationRules(retry_transport_errors=resolved_settings.retry_transport_errors)
    )
    if journal is None:
        _ensure_sqlite_directory(resolved_settings.journal_url)
        journal = create_sqlite_journal(resolved_settings.journal_url)

    detector = PollingCompletionDetector(classifier, clock=clock, logger=logger)
    sink = CompositeSink([LoggingSink(), journal])
    orchestrator = LifecycleOrchestrator(detector, sink=sink, logger=logger)
    coordinator = TeardownCoordinator(
        orchestrator, max_concurrent=resolved_settings.max_concurrent
    )

    return ServiceContainer(
        settings=resolved_settings,
        classifier=classifier,
        journal=journal,
        detector=detector,
        orchestrator=orchestrator,
        coordinator=coordinator,
    )


__all__ = ["ServiceContainer", "build_container"]

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from support import FakeClock

from lifeguard.classification import CodeMatchingClassifier
from lifeguard.clients import ArmClientConfig, HttpResourceClient
from lifeguard.domain import ErrorCategory, ResourceRef, VerdictKind, WaitBudget
from lifeguard.errors import ConfigurationError, RemoteCallError
from lifeguard.orchestration import LifecycleOrchestrator
from lifeguard.persistence import InMemoryJournal
from lifeguard.polling import PollingCompletionDetector

CONFIG = ArmClientConfig(
    subscription_id="sub-123",
    access_token="token-abc",
    endpoint="https://management.example.test",
    api_version="2021-04-01",
)
GROUP = ResourceRef.resource_group("t-rg-dev-psql")
SERVER = ResourceRef(name="psql-1", kind="Microsoft.DBforPostgreSQL/servers", group="t-rg-dev-psql")


def _arm_error(status: int, code: str, message: str) -> httpx.Response:
    return httpx.Response(status, json={"error": {"code": code, "message": message}})


def _client(handler) -> HttpResourceClient:
    return HttpResourceClient(CONFIG, transport=httpx.MockTransport(handler))


def test_resource_paths() -> None:
    client = _client(lambda request: httpx.Response(200))

    assert client.resource_path(GROUP) == "/subscriptions/sub-123/resourcegroups/t-rg-dev-psql"
    assert client.resource_path(SERVER) == (
        "/subscriptions/sub-123/resourceGroups/t-rg-dev-psql/providers/"
        "Microsoft.DBforPostgreSQL/servers/psql-1"
    )
    with pytest.raises(ConfigurationError):
        client.resource_path(ResourceRef(name="x", kind="Microsoft.Web/sites"))

    asyncio.run(client.aclose())


def test_missing_subscription_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        HttpResourceClient(ArmClientConfig(subscription_id=""))


def test_get_status_reports_provisioning_state() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={"name": "t-rg-dev-psql", "properties": {"provisioningState": "Deleting"}},
        )

    async def _run():
        async with _client(handler) as client:
            return await client.get_status(GROUP)

    report = asyncio.run(_run())

    assert report.present
    assert not report.ready
    assert report.state == "Deleting"
    assert seen[0].headers["Authorization"] == "Bearer token-abc"
    assert seen[0].url.params["api-version"] == "2021-04-01"


def test_get_status_raises_classifiable_error_when_missing() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return _arm_error(404, "ResourceGroupNotFound", "Resource group 't-rg-dev-psql' could not be found.")

    async def _run() -> None:
        async with _client(handler) as client:
            await client.get_status(GROUP)

    with pytest.raises(RemoteCallError) as excinfo:
        asyncio.run(_run())

    assert excinfo.value.code == "ResourceGroupNotFound"
    assert excinfo.value.status_code == 404
    assert CodeMatchingClassifier().classify(excinfo.value) is ErrorCategory.NOT_FOUND


def test_begin_delete_accepts_async_response_and_reports_conflicts() -> None:
    responses = iter(
        [
            httpx.Response(202),
            _arm_error(409, "AnotherOperationInProgress", "Another operation is in progress"),
        ]
    )
    methods: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        methods.append(request.method)
        return next(responses)

    async def _run() -> RemoteCallError | None:
        async with _client(handler) as client:
            await client.begin_delete(GROUP)
            try:
                await client.begin_delete(GROUP)
            except RemoteCallError as exc:
                return exc
        return None

    error = asyncio.run(_run())

    assert methods == ["DELETE", "DELETE"]
    assert error is not None
    assert CodeMatchingClassifier().classify(error) is ErrorCategory.OPERATION_IN_PROGRESS


def test_begin_create_sends_body() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "PUT"
        bodies.append(json.loads(request.content))
        return httpx.Response(201, json={"properties": {"provisioningState": "Succeeded"}})

    async def _run() -> None:
        async with _client(handler) as client:
            await client.begin_create(GROUP, {"location": "westus2"})

    asyncio.run(_run())

    assert bodies == [{"location": "westus2"}]


def test_teardown_against_control_plane() -> None:
    calls: list[str] = []
    status_responses = iter(
        [
            httpx.Response(200, json={"properties": {"provisioningState": "Deleting"}}),
            httpx.Response(200, json={"properties": {"provisioningState": "Deleting"}}),
            _arm_error(404, "ResourceGroupNotFound", "not found"),
        ]
    )

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.method)
        if request.method == "DELETE":
            return httpx.Response(202)
        return next(status_responses)

    clock = FakeClock()
    detector = PollingCompletionDetector(CodeMatchingClassifier(), clock=clock)
    orchestrator = LifecycleOrchestrator(detector, sink=InMemoryJournal())

    async def _run():
        async with _client(handler) as client:
            return await orchestrator.teardown(
                GROUP,
                client.delete_submitter_for(GROUP),
                client.status_query_for(GROUP),
                WaitBudget(timeout=1200, interval=3),
            )

    verdict = asyncio.run(_run())

    assert verdict.kind is VerdictKind.ALREADY_ABSENT
    assert verdict.attempts == 3
    assert calls == ["DELETE", "GET", "GET", "GET"]
    assert clock.now == 6


def test_teardown_in_wrong_subscription_fails() -> None:
    methods: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        methods.append(request.method)
        return _arm_error(404, "SubscriptionNotFound", "The subscription 'sub-123' could not be found.")

    detector = PollingCompletionDetector(CodeMatchingClassifier(), clock=FakeClock())
    orchestrator = LifecycleOrchestrator(detector, sink=InMemoryJournal())

    async def _run():
        async with _client(handler) as client:
            return await orchestrator.teardown(
                GROUP,
                client.delete_submitter_for(GROUP),
                client.status_query_for(GROUP),
                WaitBudget(timeout=1200, interval=3),
            )

    verdict = asyncio.run(_run())

    assert verdict.kind is VerdictKind.FAILED
    assert not verdict.succeeded
    assert "SubscriptionNotFound" in (verdict.reason or "")
    assert methods == ["DELETE"]

"""ARM-style REST control plane adapter backed by httpx."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from types import TracebackType
from typing import Any
from urllib.parse import quote

import httpx

from lifeguard.classification import parse_arm_error
from lifeguard.domain import ResourceRef, StatusReport
from lifeguard.errors import ConfigurationError, RemoteCallError

_READY_STATES = frozenset({"succeeded"})
_DELETE_ACCEPTED = frozenset({200, 202, 204})
_CREATE_ACCEPTED = frozenset({200, 201, 202})


@dataclass(slots=True)
class ArmClientConfig:
    """Connection settings for an ARM-compatible control plane."""

    subscription_id: str
    access_token: str | None = None
    endpoint: str = field(default="https://management.azure.com")
    api_version: str = field(default="2021-04-01")
    request_timeout: float = field(default=30.0)


class HttpResourceClient:
    """Status queries and delete/create submissions over HTTP.

    One instance wraps a single :class:`httpx.AsyncClient` that may be shared
    by any number of concurrent confirmation loops.
    """

    def __init__(
        self,
        config: ArmClientConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not config.subscription_id:
            raise ConfigurationError("HttpResourceClient requires a subscription id")
        self._config = config
        headers = {"Accept": "application/json"}
        if config.access_token:
            headers["Authorization"] = f"Bearer {config.access_token}"
        self._client = httpx.AsyncClient(
            base_url=config.endpoint.rstrip("/"),
            timeout=config.request_timeout,
            headers=headers,
            transport=transport,
        )

    async def __aenter__(self) -> HttpResourceClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def resource_path(self, ref: ResourceRef) -> str:
        subscription = quote(self._config.subscription_id, safe="")
        name = quote(ref.name, safe="")
        if ref.is_resource_group:
            return f"/subscriptions/{subscription}/resourcegroups/{name}"
        if not ref.group:
            msg = f"Resource {ref.display} needs a resource group"
            raise ConfigurationError(msg)
        group = quote(ref.group, safe="")
        kind = ref.kind.strip("/")
        return f"/subscriptions/{subscription}/resourceGroups/{group}/providers/{kind}/{name}"

    async def get_status(self, ref: ResourceRef) -> StatusReport:
        response = await self._client.get(
            self.resource_path(ref), params={"api-version": self._config.api_version}
        )
        if response.status_code != 200:
            raise _remote_error(response, f"Status query for {ref.display} failed")
        payload = _json_or_empty(response)
        state = _provisioning_state(payload)
        ready = state is None or state.lower() in _READY_STATES
        return StatusReport(present=True, ready=ready, state=state)

    async def begin_delete(self, ref: ResourceRef) -> None:
        response = await self._client.delete(
            self.resource_path(ref), params={"api-version": self._config.api_version}
        )
        if response.status_code not in _DELETE_ACCEPTED:
            raise _remote_error(response, f"Delete of {ref.display} failed")

    async def begin_create(self, ref: ResourceRef, body: Mapping[str, Any]) -> None:
        response = await self._client.put(
            self.resource_path(ref),
            params={"api-version": self._config.api_version},
            json=dict(body),
        )
        if response.status_code not in _CREATE_ACCEPTED:
            raise _remote_error(response, f"Create of {ref.display} failed")

    def status_query_for(self, ref: ResourceRef) -> Callable[[], Awaitable[StatusReport]]:
        async def _query() -> StatusReport:
            return await self.get_status(ref)

        return _query

    def delete_submitter_for(self, ref: ResourceRef) -> Callable[[], Awaitable[None]]:
        async def _submit() -> None:
            await self.begin_delete(ref)

        return _submit

    def create_submitter_for(
        self, ref: ResourceRef, body: Mapping[str, Any]
    ) -> Callable[[], Awaitable[None]]:
        async def _submit() -> None:
            await self.begin_create(ref, body)

        return _submit


def _remote_error(response: httpx.Response, prefix: str) -> RemoteCallError:
    code, message = parse_arm_error(response)
    detail = message or response.reason_phrase or "no detail"
    return RemoteCallError(
        f"{prefix}: {detail}",
        code=code,
        status_code=response.status_code,
    )


def _json_or_empty(response: httpx.Response) -> Mapping[str, Any]:
    if not response.content:
        return {}
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


def _provisioning_state(payload: Mapping[str, Any]) -> str | None:
    properties = payload.get("properties")
    if not isinstance(properties, Mapping):
        return None
    state = properties.get("provisioningState")
    return str(state) if state is not None else None


__all__ = ["ArmClientConfig", "HttpResourceClient"]

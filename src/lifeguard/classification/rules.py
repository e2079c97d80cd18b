"""Code and status matching classifier for ARM-style control planes."""

from __future__ import annotations

from dataclasses import dataclass

import httpx
from pydantic import Field

from lifeguard.domain import DomainModel, ErrorCategory
from lifeguard.errors import RemoteCallError

from .interfaces import ErrorClassifier


class ClassificationRules(DomainModel):
    """Matching rules consulted by :class:`CodeMatchingClassifier`.

    Codes are compared case-insensitively. Status codes only apply when the
    error carries no code at all; an unlisted code is fatal whatever the
    HTTP status.
    """

    not_found_codes: frozenset[str] = Field(
        default=frozenset(
            {
                "ResourceNotFound",
                "ResourceGroupNotFound",
                "NotFound",
                "ParentResourceNotFound",
            }
        )
    )
    in_progress_codes: frozenset[str] = Field(
        default=frozenset(
            {
                "AsyncOpIncomplete",
                "AsynchronousOperationNotComplete",
                "OperationNotComplete",
                "AnotherOperationInProgress",
            }
        )
    )
    in_progress_messages: tuple[str, ...] = ("asynchronous operation has not completed",)
    not_found_statuses: frozenset[int] = frozenset({404})
    in_progress_statuses: frozenset[int] = frozenset({202})
    retry_transport_errors: bool = False


@dataclass(frozen=True, slots=True)
class ErrorDescription:
    """Normalized view over the many shapes a remote error can take."""

    message: str
    code: str | None = None
    status_code: int | None = None


def describe_error(error: BaseException) -> ErrorDescription:
    """Extract code, HTTP status and message from a raised error."""

    if isinstance(error, RemoteCallError):
        return ErrorDescription(
            message=error.message, code=error.code, status_code=error.status_code
        )
    if isinstance(error, httpx.HTTPStatusError):
        response = error.response
        code, message = parse_arm_error(response)
        return ErrorDescription(
            message=message or str(error),
            code=code,
            status_code=response.status_code,
        )

    code = getattr(error, "code", None)
    status_code = getattr(error, "status_code", None)
    return ErrorDescription(
        message=str(error),
        code=str(code) if code is not None else None,
        status_code=status_code if isinstance(status_code, int) else None,
    )


def parse_arm_error(response: httpx.Response) -> tuple[str | None, str | None]:
    """Pull ``error.code`` and ``error.message`` out of an ARM error body."""

    try:
        payload = response.json()
    except ValueError:
        return None, response.text or None
    if not isinstance(payload, dict):
        return None, None
    error = payload.get("error", payload)
    if not isinstance(error, dict):
        return None, None
    code = error.get("code")
    message = error.get("message")
    return (
        str(code) if code is not None else None,
        str(message) if message is not None else None,
    )


class CodeMatchingClassifier(ErrorClassifier):
    """Classify errors by matching error codes, messages and HTTP statuses."""

    def __init__(self, rules: ClassificationRules | None = None) -> None:
        self._rules = rules or ClassificationRules()
        self._not_found = {code.lower() for code in self._rules.not_found_codes}
        self._in_progress = {code.lower() for code in self._rules.in_progress_codes}
        self._in_progress_messages = tuple(
            fragment.lower() for fragment in self._rules.in_progress_messages
        )

    @property
    def rules(self) -> ClassificationRules:
        return self._rules

    def classify(self, error: BaseException | None) -> ErrorCategory:
        if error is None:
            return ErrorCategory.NONE
        if isinstance(error, httpx.TransportError):
            if self._rules.retry_transport_errors:
                return ErrorCategory.OPERATION_IN_PROGRESS
            return ErrorCategory.FATAL

        description = describe_error(error)
        if description.code is not None:
            code = description.code.lower()
            if code in self._not_found:
                return ErrorCategory.NOT_FOUND
            if code in self._in_progress:
                return ErrorCategory.OPERATION_IN_PROGRESS

        message = description.message.lower()
        if any(fragment in message for fragment in self._in_progress_messages):
            return ErrorCategory.OPERATION_IN_PROGRESS

        if description.code is not None:
            return ErrorCategory.FATAL
        if description.status_code is not None:
            if description.status_code in self._rules.not_found_statuses:
                return ErrorCategory.NOT_FOUND
            if description.status_code in self._rules.in_progress_statuses:
                return ErrorCategory.OPERATION_IN_PROGRESS
        return ErrorCategory.FATAL


__all__ = [
    "ClassificationRules",
    "CodeMatchingClassifier",
    "ErrorDescription",
    "describe_error",
    "parse_arm_error",
]

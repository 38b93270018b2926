# errors.py
"""Error types for release publishing."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional


class ReleaseError(Exception):
    """Error surfaced to the release host.

    ``code`` is a stable machine-readable identifier (``EINVALIDPROJECTID`` etc.)
    and ``details`` an optional human hint.
    """

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details

    def __str__(self) -> str:
        if self.code:
            return f"{self.code}: {self.message}"
        return self.message


class JiraApiError(Exception):
    """Non-2xx response from the Jira REST API."""

    def __init__(self, status_code: int, body: str = "", url: Optional[str] = None):
        super().__init__(f"Jira responded {status_code} for {url or 'request'}: {body}")
        self.status_code = status_code
        self.body = body
        self.url = url


@dataclass(frozen=True)
class FailureDescriptor:
    status_code: Optional[int]
    payload: Any = None


def describe_failure(exc: BaseException) -> FailureDescriptor:
    """Normalize a failed tracker call into a status code, if one can be found.

    Handles errors carrying ``status_code`` directly, ``requests`` errors with an
    attached response, and errors whose only argument is a JSON string with a
    ``statusCode`` key. Anything else yields ``status_code=None``.
    """

    status_code = _as_int(getattr(exc, "status_code", None))
    if status_code is None:
        response = getattr(exc, "response", None)
        status_code = _as_int(getattr(response, "status_code", None))

    payload: Any = exc.args[0] if len(exc.args) == 1 else None
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except ValueError:
            # not json
            return FailureDescriptor(status_code, payload)
        if status_code is None and isinstance(payload, dict):
            status_code = _as_int(payload.get("statusCode"))

    return FailureDescriptor(status_code, payload)


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    return None

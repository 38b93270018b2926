# jira_client.py
"""Jira API client helpers for release publishing."""

from __future__ import annotations

import logging
import time
from typing import Any, Optional, cast

import requests  # type: ignore[import-untyped]

from errors import JiraApiError, ReleaseError
from models import ReleaseContext, VersionRecord
from settings import PluginConfig, resolve_jira_auth, resolve_jira_host

API_PREFIX = "/rest/api/2"

logger = logging.getLogger(__name__)


class JiraClient:
    def __init__(
        self,
        host: str,
        auth: str,
        *,
        timeout: float = 10,
        max_retries: int = 3,
        backoff: float = 2.0,
    ) -> None:
        host = host.rstrip("/")
        if not host.startswith(("http://", "https://")):
            host = f"https://{host}"
        self.base_url = f"{host}{API_PREFIX}"
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff = backoff
        self.headers: dict[str, str] = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "Authorization": f"Basic {auth}",
        }

    def get_project(self, project_id_or_key: str) -> dict[str, Any]:
        return cast(dict[str, Any], self._request("GET", f"/project/{project_id_or_key}"))

    def get_versions(self, project_id_or_key: str) -> list[VersionRecord]:
        payload = self._request("GET", f"/project/{project_id_or_key}/versions")
        if not isinstance(payload, list):
            logger.error(
                "jira_versions_unexpected_format",
                extra={"body_type": type(payload).__name__},
            )
            raise ValueError("Unexpected response format from Jira versions listing.")
        return [VersionRecord.from_api(item) for item in payload if isinstance(item, dict)]

    def create_version(self, name: str, project_id: Any) -> VersionRecord:
        payload = self._request("POST", "/version", json={"name": name, "projectId": project_id})
        if not isinstance(payload, dict):
            raise ValueError("Unexpected response format from Jira version creation.")
        logger.info(
            "jira_version_created",
            extra={"version_id": payload.get("id"), "version_name": name},
        )
        return VersionRecord.from_api(payload)

    def edit_issue(self, issue_key: str, update: dict[str, Any]) -> None:
        self._request("PUT", f"/issue/{issue_key}", json={"update": update})

    def _request(self, method: str, path: str, *, json: Optional[Any] = None) -> Any:
        url = f"{self.base_url}{path}"
        response = self._send_with_retries(method, url, json=json)
        if not 200 <= response.status_code < 300:
            logger.error(
                "jira_error_response",
                extra={"status": response.status_code, "url": url, "body": response.text},
            )
            raise JiraApiError(response.status_code, response.text, url=url)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            logger.error("jira_invalid_json", extra={"url": url, "error": str(exc)})
            raise

    def _send_with_retries(
        self, method: str, url: str, *, json: Optional[Any]
    ) -> requests.Response:
        delay = self.backoff
        for attempt in range(1, self.max_retries + 1):
            response = requests.request(
                method,
                url,
                json=json,
                headers=self.headers,
                timeout=self.timeout,
            )
            if response.status_code != 429 or attempt == self.max_retries:
                return response

            logger.warning(
                "jira_rate_limited",
                extra={"attempt": attempt, "retry_in_seconds": delay, "url": url},
            )
            time.sleep(delay)
            delay *= 2
        raise AssertionError("max_retries must be at least 1")


def make_client(config: PluginConfig, context: ReleaseContext) -> JiraClient:
    host = resolve_jira_host(config)
    if not host:
        raise ReleaseError("jiraHost must be configured.", "EINVALIDJIRAHOST")
    auth = resolve_jira_auth(context.env)
    if not auth:
        raise ReleaseError(
            "JIRA_AUTH must be set in the environment.",
            "ENOJIRAAUTH",
            "Set JIRA_AUTH to the base64 encoding of 'user:api_token'.",
        )
    return JiraClient(host, auth)

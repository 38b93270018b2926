# verify_conditions.py
"""Pre-release validation of the plugin configuration and Jira access."""

from __future__ import annotations

import logging
import re
from string import Template
from typing import Optional

from errors import ReleaseError
from jira_client import make_client
from models import ReleaseContext
from publish import TrackerClient
from settings import PluginConfig, resolve_jira_auth, resolve_jira_host

logger = logging.getLogger(__name__)


def verify_conditions(
    config: PluginConfig,
    context: ReleaseContext,
    jira: Optional[TrackerClient] = None,
) -> None:
    """Raise ``ReleaseError`` if a release could not be published with ``config``."""

    if config.ticket_regex is not None:
        try:
            re.compile(config.ticket_regex)
        except re.error as exc:
            raise ReleaseError(
                f"ticketRegex is not a valid regular expression: {exc}",
                "EINVALIDTICKETREGEX",
            ) from exc
    elif not config.ticket_prefixes:
        raise ReleaseError(
            "ticketPrefixes must be a non-empty list of strings, or ticketRegex must be set.",
            "EINVALIDTICKETPREFIX",
        )
    elif any(not prefix.strip() for prefix in config.ticket_prefixes):
        raise ReleaseError("ticketPrefixes must not contain empty strings.", "EINVALIDTICKETPREFIX")

    if not config.project_id:
        raise ReleaseError("projectId must be a non-empty string.", "EINVALIDPROJECTID")

    if not resolve_jira_host(config):
        raise ReleaseError("jiraHost must be a non-empty string.", "EINVALIDJIRAHOST")

    template = config.release_name_template
    if template is not None and not _has_version_placeholder(template):
        raise ReleaseError(
            "releaseNameTemplate must contain a ${version} or $version placeholder.",
            "EINVALIDRELEASENAMETEMPLATE",
        )

    if not resolve_jira_auth(context.env):
        raise ReleaseError(
            "JIRA_AUTH must be set in the environment.",
            "ENOJIRAAUTH",
            "Set JIRA_AUTH to the base64 encoding of 'user:api_token'.",
        )

    if jira is None:
        jira = make_client(config, context)

    try:
        jira.get_project(config.project_id)
    except Exception as exc:
        logger.error(
            "project_lookup_failed",
            extra={"project_id": config.project_id, "error": str(exc)},
        )
        raise ReleaseError(f"Invalid projectId {config.project_id}", "EINVALIDPROJECTID") from exc

    logger.info("conditions_verified", extra={"project_id": config.project_id})


def _has_version_placeholder(template: str) -> bool:
    return any(
        (match.group("named") or match.group("braced")) == "version"
        for match in Template.pattern.finditer(template)
    )

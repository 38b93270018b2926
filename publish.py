# publish.py
"""Attach a Jira fix-version to every ticket referenced by a release."""

from __future__ import annotations

import logging
from string import Template
from typing import Any, Optional, Protocol

from errors import ReleaseError, describe_failure
from jira_client import make_client
from models import NextRelease, PublishResult, ReleaseContext, VersionRecord
from settings import DEFAULT_RELEASE_NAME_TEMPLATE, PluginConfig
from tickets import get_tickets

DRY_RUN_VERSION_ID = "dry_run_id"
ALLOWED_STATUS_CODES = frozenset({400, 404})

logger = logging.getLogger(__name__)


class TrackerClient(Protocol):
    def get_project(self, project_id_or_key: str) -> dict[str, Any]: ...

    def get_versions(self, project_id_or_key: str) -> list[VersionRecord]: ...

    def create_version(self, name: str, project_id: Any) -> VersionRecord: ...

    def edit_issue(self, issue_key: str, update: dict[str, Any]) -> None: ...


def render_release_name(template: Optional[str], next_release: NextRelease) -> str:
    """Render the release name, e.g. ``v${version}`` -> ``v1.2.3``.

    Unknown placeholders raise ``KeyError``; malformed ones ``ValueError``.
    """

    return Template(template or DEFAULT_RELEASE_NAME_TEMPLATE).substitute(
        version=next_release.version
    )


def find_or_create_version(
    config: PluginConfig,
    context: ReleaseContext,
    jira: TrackerClient,
    project_id: Any,
    name: str,
) -> VersionRecord:
    # Jira does not enforce unique version names; the first one listed wins.
    remote_versions = jira.get_versions(project_id)
    context.logger.info(f"Looking for version with name '{name}'")
    existing = next((version for version in remote_versions if version.name == name), None)
    if existing is not None:
        context.logger.info(f"Found existing release '{existing.id}'")
        return existing

    context.logger.info("No existing release found, creating new")
    if config.dry_run:
        context.logger.info("dry-run: making a fake release")
        new_version = VersionRecord(id=DRY_RUN_VERSION_ID, name=name)
    else:
        new_version = jira.create_version(name, project_id)

    context.logger.info(f"Made new release '{new_version.id}'")
    return new_version


def add_fix_version(
    config: PluginConfig,
    context: ReleaseContext,
    jira: TrackerClient,
    issue_key: str,
    version: VersionRecord,
) -> bool:
    """Add ``version`` to the fix-versions of ``issue_key``.

    Returns ``False`` when Jira rejects the ticket as malformed or unknown
    (400/404); any other failure is re-raised.
    """

    try:
        context.logger.info(f"Adding issue {issue_key} to '{version.name}'")
        if not config.dry_run:
            jira.edit_issue(issue_key, {"fixVersions": [{"add": {"id": version.id}}]})
    except Exception as exc:
        failure = describe_failure(exc)
        if failure.status_code not in ALLOWED_STATUS_CODES:
            raise
        context.logger.error(
            f"Unable to update issue {issue_key} statusCode: {failure.status_code}"
        )
        logger.warning(
            "issue_update_skipped",
            extra={"issue_key": issue_key, "status": failure.status_code},
        )
        return False
    return True


def publish(
    config: PluginConfig,
    context: ReleaseContext,
    jira: Optional[TrackerClient] = None,
) -> PublishResult:
    tickets = get_tickets(config, context.commits, context.logger)
    context.logger.info(f"Found ticket {', '.join(tickets)}")

    version_name = render_release_name(config.release_name_template, context.next_release)
    context.logger.info(f"Using jira release '{version_name}' in project {config.project_id}")

    if jira is None:
        jira = make_client(config, context)

    try:
        project = jira.get_project(str(config.project_id))
    except Exception as exc:
        logger.error(
            "project_lookup_failed",
            extra={"project_id": config.project_id, "error": str(exc)},
        )
        raise ReleaseError(f"Invalid projectId {config.project_id}", "EINVALIDPROJECTID") from exc

    try:
        release_version = find_or_create_version(
            config, context, jira, project["id"], version_name
        )
    except Exception as exc:
        logger.error(
            "version_reconciliation_failed",
            extra={
                "project_id": config.project_id,
                "version_name": version_name,
                "error": str(exc),
            },
        )
        raise ReleaseError(
            f"Could not create release projectId {config.project_id}", "ECREATERELEASE"
        ) from exc

    updated = 0
    for issue_key in tickets:
        if add_fix_version(config, context, jira, issue_key, release_version):
            updated += 1

    logger.info(
        "release_published",
        extra={
            "version_name": version_name,
            "release_id": release_version.id,
            "tickets": len(tickets),
            "updated": updated,
            "dry_run": config.dry_run,
        },
    )
    return PublishResult.from_version(release_version)

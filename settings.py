# settings.py
"""Centralized configuration using Pydantic settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings

load_dotenv()

DEFAULT_RELEASE_NAME_TEMPLATE = "v${version}"


class PluginConfig(BaseModel):
    """Plugin options as supplied by the release host (camelCase keys)."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    ticket_regex: Optional[str] = Field(alias="ticketRegex", default=None)
    ticket_prefixes: Optional[list[str]] = Field(alias="ticketPrefixes", default=None)
    release_name_template: Optional[str] = Field(alias="releaseNameTemplate", default=None)
    project_id: Optional[str] = Field(alias="projectId", default=None)
    jira_host: Optional[str] = Field(alias="jiraHost", default=None)
    dry_run: bool = Field(alias="dryRun", default=False)

    @field_validator("project_id", mode="before")
    @classmethod
    def _stringify_project_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> PluginConfig:
        return cls.model_validate(dict(data))


class JiraSettings(BaseSettings):
    auth: Optional[str] = Field(alias="JIRA_AUTH", default=None)
    host: Optional[str] = Field(alias="JIRA_HOST", default=None)


class LoggingSettings(BaseSettings):
    level: str = Field(alias="RELEASE_LOG_LEVEL", default="INFO")
    json_enabled: bool = Field(alias="RELEASE_LOG_JSON", default=False)


class ReleaseSettings(BaseSettings):
    jira: JiraSettings
    logging: LoggingSettings

    @classmethod
    def load(cls) -> ReleaseSettings:
        try:
            return cls(
                jira=JiraSettings(),  # type: ignore[call-arg]
                logging=LoggingSettings(),  # type: ignore[call-arg]
            )
        except ValidationError as exc:  # pragma: no cover - surfaced on startup
            invalid = [str(error["loc"][0]) for error in exc.errors() if error.get("loc")]
            msg = "Invalid configuration values: " + ", ".join(sorted(set(invalid)))
            raise RuntimeError(msg) from exc


@lru_cache(maxsize=1)
def get_settings() -> ReleaseSettings:
    return ReleaseSettings.load()


def resolve_jira_auth(env: Mapping[str, str]) -> Optional[str]:
    """Return ``JIRA_AUTH`` from the host environment, else from process settings."""

    return env.get("JIRA_AUTH") or get_settings().jira.auth


def resolve_jira_host(config: PluginConfig) -> Optional[str]:
    return config.jira_host or get_settings().jira.host

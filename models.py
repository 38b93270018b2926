# models.py
"""Value types shared by ticket extraction and release publishing."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Protocol, Sequence


class HostLogger(Protocol):
    def info(self, msg: str) -> Any: ...

    def error(self, msg: str) -> Any: ...


@dataclass(frozen=True)
class Commit:
    message: str
    short_hash: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Commit:
        """Build a commit from either ``{message, commit: {short}}`` or ``{message, shortHash}``."""

        commit_ref = data.get("commit")
        if isinstance(commit_ref, Mapping):
            short_hash = commit_ref.get("short") or ""
        else:
            short_hash = data.get("shortHash") or data.get("short_hash") or ""
        return cls(message=data.get("message") or "", short_hash=str(short_hash))


@dataclass(frozen=True)
class NextRelease:
    version: str


@dataclass
class ReleaseContext:
    commits: Sequence[Commit]
    next_release: NextRelease
    logger: HostLogger = field(default_factory=lambda: logging.getLogger("release"))
    env: Mapping[str, str] = field(default_factory=dict)


@dataclass
class VersionRecord:
    id: Optional[str]
    name: Optional[str]
    self_url: Optional[str] = None
    released: Optional[bool] = None
    archived: Optional[bool] = None
    project_id: Optional[Any] = None

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> VersionRecord:
        return cls(
            id=payload.get("id"),
            name=payload.get("name"),
            self_url=payload.get("self"),
            released=payload.get("released"),
            archived=payload.get("archived"),
            project_id=payload.get("projectId"),
        )


@dataclass(frozen=True)
class PublishResult:
    url: Optional[str]
    name: Optional[str]
    release_id: Optional[str]
    released: Optional[bool]
    project_id: Optional[Any]
    archived: Optional[bool]

    @classmethod
    def from_version(cls, version: VersionRecord) -> PublishResult:
        return cls(
            url=version.self_url,
            name=version.name,
            release_id=version.id,
            released=version.released,
            project_id=version.project_id,
            archived=version.archived,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "name": self.name,
            "releaseId": self.release_id,
            "released": self.released,
            "projectId": self.project_id,
            "archived": self.archived,
        }

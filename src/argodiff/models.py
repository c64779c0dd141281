"""Domain models for argodiff."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SyncStatus(StrEnum):
    """Whether an application's live state matches its source."""

    SYNCED = "Synced"
    OUT_OF_SYNC = "OutOfSync"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: str | None) -> SyncStatus:
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


class AppSource(BaseModel):
    """Where an application's manifests live in git."""

    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    repo_url: str = Field(default="", alias="repoURL")
    path: str = ""
    target_revision: str = Field(default="", alias="targetRevision")

    @property
    def tracks_primary_branch(self) -> bool:
        """True when the source follows the default branch rather than a pin."""
        return self.target_revision in ("", "main", "master", "HEAD")


class Application(BaseModel):
    """An ArgoCD application as returned by /api/v1/applications."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    source: AppSource = Field(default_factory=AppSource)
    sync_status: SyncStatus = SyncStatus.UNKNOWN

    @classmethod
    def from_api(cls, record: dict[str, Any]) -> Application:
        """Build an Application from one entry of the server's `items` array.

        Multi-source applications use their first source carrying a path.
        """
        metadata: dict[str, Any] = record.get("metadata") or {}
        spec: dict[str, Any] = record.get("spec") or {}

        source: dict[str, Any] | None = spec.get("source")
        if not source:
            source = next(
                (s for s in spec.get("sources") or [] if s.get("path")),
                {},
            )

        sync: dict[str, Any] = (record.get("status") or {}).get("sync") or {}

        return cls(
            name=metadata.get("name", ""),
            source=AppSource.model_validate(
                {k: v for k, v in source.items() if v is not None}
            ),
            sync_status=SyncStatus.parse(sync.get("status")),
        )

    def __repr__(self) -> str:
        return f"Application(name={self.name}, path={self.source.path}, sync={self.sync_status})"


class ApplicationList(BaseModel):
    """Response body of GET /api/v1/applications."""

    items: list[Application] = Field(default_factory=list)

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> ApplicationList:
        # The server answers `"items": null` when there are no applications.
        records: list[dict[str, Any]] = payload.get("items") or []
        return cls(items=[Application.from_api(r) for r in records])


@dataclass(frozen=True)
class DiffFound:
    """The CLI reported differences between desired and live state."""

    text: str


@dataclass(frozen=True)
class NoDiff:
    """Desired and live state already match."""


@dataclass(frozen=True)
class DiffFailed:
    """The diff could not be computed."""

    stderr: str
    command: str = ""


DiffOutcome = DiffFound | NoDiff | DiffFailed


@dataclass
class AppDiff:
    """Filtered diff, or the error, produced for one application."""

    app: Application
    diff: str = ""
    error: DiffFailed | None = None

    @property
    def has_content(self) -> bool:
        return bool(self.diff.strip()) or self.error is not None

"""
orchestra_console.deployments.draft

Deployment draft model.

Responsibilities:
- Model the in-progress deployment configuration, with the source as a closed variant.
- Collapse per-scope environment-variable edit buffers into mappings.
- Assemble the outbound `/applications` payload.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any


class SourceKind(enum.StrEnum):
    # Values are the backend's `source_type` wire values.
    git = "git"
    manual_path = "manual"
    docker_image = "docker_image"


class EnvScope(enum.StrEnum):
    production = "production"
    preview = "preview"


@dataclass(frozen=True, slots=True)
class GitSource:
    repo_url: str = ""
    branch: str = "main"

    @property
    def kind(self) -> SourceKind:
        return SourceKind.git


@dataclass(frozen=True, slots=True)
class ManualPathSource:
    path: str = ""

    @property
    def kind(self) -> SourceKind:
        return SourceKind.manual_path


@dataclass(frozen=True, slots=True)
class DockerImageSource:
    image_ref: str = ""

    @property
    def kind(self) -> SourceKind:
        return SourceKind.docker_image


Source = GitSource | ManualPathSource | DockerImageSource


def empty_source(kind: SourceKind, *, default_branch: str = "main") -> Source:
    if kind is SourceKind.git:
        return GitSource(branch=default_branch)
    if kind is SourceKind.manual_path:
        return ManualPathSource()
    if kind is SourceKind.docker_image:
        return DockerImageSource()
    raise ValueError(f"unknown source kind: {kind!r}")


@dataclass(slots=True)
class EnvVarRow:
    key: str = ""
    value: str = ""


def _default_env() -> dict[EnvScope, list[EnvVarRow]]:
    # One blank row per scope so the editor has a row to attach to.
    return {scope: [EnvVarRow()] for scope in EnvScope}


@dataclass(slots=True)
class DeploymentDraft:
    name: str = ""
    cluster_id: int | None = None
    source: Source = field(default_factory=GitSource)

    app_type: str = "web_service"
    framework_id: str | None = None
    build_command: str = ""
    start_command: str = ""

    port: int | None = None
    domain: str = ""

    env: dict[EnvScope, list[EnvVarRow]] = field(default_factory=_default_env)

    @property
    def source_kind(self) -> SourceKind:
        return self.source.kind

    @property
    def uses_build_step(self) -> bool:
        return not isinstance(self.source, DockerImageSource)


def collapse_env_rows(rows: Iterable[EnvVarRow]) -> dict[str, str]:
    """
    Rows with an empty key are dropped; a later duplicate key overwrites an earlier one.
    """

    out: dict[str, str] = {}
    for row in rows:
        if row.key:
            out[row.key] = row.value
    return out


def source_fields(source: Source) -> dict[str, Any]:
    """Wire fields of the active source variant only."""

    if isinstance(source, GitSource):
        return {"repo_url": source.repo_url, "branch": source.branch}
    if isinstance(source, ManualPathSource):
        return {"manual_path": source.path}
    if isinstance(source, DockerImageSource):
        return {"docker_image": source.image_ref}
    raise TypeError(f"unsupported source variant: {type(source).__name__}")


def build_payload(
    draft: DeploymentDraft,
    *,
    cluster_id: int,
    docker_build_type: str = "docker",
) -> dict[str, Any]:
    # The framework only means something when there is a build step.
    framework_id = draft.framework_id if draft.uses_build_step else None

    payload: dict[str, Any] = {
        "name": draft.name,
        "cluster_id": cluster_id,
        "namespace": "default",
        "build_type": framework_id or docker_build_type,
        "build_cmd": draft.build_command,
        "start_cmd": draft.start_command,
        "port": draft.port or 0,
        "domain": draft.domain or "",
        "env_vars": {
            scope.value: collapse_env_rows(draft.env.get(scope, [])) for scope in EnvScope
        },
        "source_type": draft.source_kind.value,
    }
    payload.update(source_fields(draft.source))
    return payload


# --- Module Notes -----------------------------------------------------------
# Inactive source variants have no representation at all in `DeploymentDraft`, so
# there is no stale field that could leak into `build_payload`.

"""
orchestra_console.deployments.catalog

Read-only reference data used by the deployment wizard.

Responsibilities:
- Parse the framework catalog (`/metadata/frameworks`) grouped by app type.
- Parse the cluster picker list (`/clusters`).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class Framework(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str
    description: str = ""
    default_build_command: str = Field(default="", alias="default_build")
    default_start_command: str = Field(default="", alias="default_start")


class AppType(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    frameworks: list[Framework] = Field(default_factory=list)


class ClusterRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    status: str = ""


_APP_TYPES = TypeAdapter(list[AppType])
_CLUSTERS = TypeAdapter(list[ClusterRef])


def parse_app_types(payload: Any) -> list[AppType]:
    # Any malformed shape surfaces as pydantic.ValidationError.
    return _APP_TYPES.validate_python(payload or [])


def parse_clusters(payload: Any) -> list[ClusterRef]:
    # `/clusters` wraps the list: {"clusters": [...], "count": n}
    items = payload.get("clusters") if isinstance(payload, dict) else payload
    return _CLUSTERS.validate_python(items or [])


def find_framework(app_types: list[AppType], framework_id: str) -> Framework | None:
    for app_type in app_types:
        for fw in app_type.frameworks:
            if fw.id == framework_id:
                return fw
    return None

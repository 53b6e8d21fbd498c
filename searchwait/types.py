"""Search deployment snapshot types.

A snapshot is the deployment as reported by one status query. Snapshots
are immutable; each poll produces a fresh one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict

__all__ = [
    "ResourceSnapshot",
    "SearchDeploymentResponse",
    "SearchNodeSpec",
]


class SearchNodeSpecResponse(TypedDict):
    instanceSize: str
    nodeCount: int


class SearchDeploymentResponse(TypedDict):
    """Raw JSON body of the search deployment endpoint."""

    groupId: NotRequired[str]
    id: NotRequired[str]
    specs: NotRequired[list[SearchNodeSpecResponse]]
    stateName: NotRequired[str | None]


@dataclass(frozen=True, slots=True)
class SearchNodeSpec:
    instance_size: str
    node_count: int


@dataclass(frozen=True, slots=True)
class ResourceSnapshot:
    """Search deployment state at one point in time.

    ``state_name`` keeps the difference between a missing field (``None``)
    and an empty label (``""``). Both are treated as an unknown state.
    """

    project_id: str | None
    deployment_id: str | None
    state_name: str | None
    specs: tuple[SearchNodeSpec, ...] = ()

    @classmethod
    def from_api(cls, data: SearchDeploymentResponse | dict[str, Any]) -> ResourceSnapshot:
        specs = tuple(
            SearchNodeSpec(instance_size=s["instanceSize"], node_count=s["nodeCount"])
            for s in data.get("specs") or ()
        )
        return cls(
            project_id=data.get("groupId"),
            deployment_id=data.get("id"),
            state_name=data.get("stateName"),
            specs=specs,
        )

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class WorkItem:
    id: str
    dependency_ids: List[str] = field(default_factory=list)
    passes: bool = False
    priority: int = 0  # lower = more urgent
    effort: Optional[str] = None
    title: str = ""


class ReadinessStatus(str, Enum):
    """Derived execution eligibility of a work item. Never stored."""

    PENDING = "pending"
    READY = "ready"
    BLOCKED = "blocked"
    RUNNING = "running"
    DONE = "done"


STATUS_LABELS: Dict[ReadinessStatus, str] = {
    ReadinessStatus.PENDING: "Pending",
    ReadinessStatus.READY: "Ready",
    ReadinessStatus.BLOCKED: "Blocked",
    ReadinessStatus.RUNNING: "Running",
    ReadinessStatus.DONE: "Done",
}


class UnresolvedDependencyPolicy(str, Enum):
    BLOCK = "block"
    IGNORE = "ignore"
    PENDING = "pending"


def parse_unresolved_policy(value: str | UnresolvedDependencyPolicy | None) -> UnresolvedDependencyPolicy:
    if isinstance(value, UnresolvedDependencyPolicy):
        return value
    s = str(value or "").strip().lower()
    if not s:
        return UnresolvedDependencyPolicy.BLOCK
    try:
        return UnresolvedDependencyPolicy(s)
    except ValueError:
        raise ValueError(
            f"Unknown unresolved dependency policy: {value!r}. "
            "Valid values are: 'block', 'ignore', 'pending'."
        ) from None


@dataclass(frozen=True)
class DependencyGraph:
    """
    Adjacency view over one list of work items.

    - dependencies: item id -> resolved dependency ids (reverse adjacency)
    - dependents:   dependency id -> ids of items that depend on it (forward adjacency)
    - unresolved:   item id -> dependency ids that match no item
    """
    order: Tuple[str, ...]
    items: Dict[str, WorkItem]
    dependencies: Dict[str, List[str]]
    dependents: Dict[str, List[str]]
    unresolved: Dict[str, List[str]]

    def __contains__(self, item_id: object) -> bool:
        return item_id in self.items

    def __len__(self) -> int:
        return len(self.order)

    def dependencies_of(self, item_id: str) -> List[str]:
        return self.dependencies.get(item_id, [])

    def dependents_of(self, item_id: str) -> List[str]:
        return self.dependents.get(item_id, [])

    def unresolved_of(self, item_id: str) -> List[str]:
        return self.unresolved.get(item_id, [])

    def has_edge(self, dependent_id: str, dependency_id: str) -> bool:
        return dependency_id in self.dependencies.get(dependent_id, [])

    def edges(self) -> List[Tuple[str, str]]:
        """All (dependency, dependent) pairs, in input order of the dependent."""
        return [(dep, item_id) for item_id in self.order for dep in self.dependencies_of(item_id)]

    def edge_count(self) -> int:
        return sum(len(v) for v in self.dependencies.values())


@dataclass(frozen=True)
class Layer:
    index: int
    items: Tuple[WorkItem, ...]
    overflow: bool = False  # holds items left over because of a cycle

    @property
    def ids(self) -> List[str]:
        return [wi.id for wi in self.items]


@dataclass(frozen=True)
class GraphStats:
    total_nodes: int
    total_dependencies: int
    max_depth: int
    root_ids: Tuple[str, ...]
    leaf_ids: Tuple[str, ...]

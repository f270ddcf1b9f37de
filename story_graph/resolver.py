# story_graph/resolver.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import AbstractSet, Dict, Iterable, List, Optional

import config
from story_graph.cycles import detect_cycle
from story_graph.graph import build_graph
from story_graph.layering import assign_layers
from story_graph.models import (
    STATUS_LABELS,
    DependencyGraph,
    GraphStats,
    Layer,
    ReadinessStatus,
    UnresolvedDependencyPolicy,
    WorkItem,
    parse_unresolved_policy,
)
from story_graph.readiness import blocked_by, classify


@dataclass
class ResolverPolicy:
    unresolved: UnresolvedDependencyPolicy = field(
        default_factory=lambda: parse_unresolved_policy(
            getattr(config, "UNRESOLVED_DEPENDENCY_POLICY", "block")
        )
    )
    trace: bool = field(default_factory=lambda: bool(getattr(config, "RESOLVER_TRACE", False)))


@dataclass(frozen=True)
class Resolution:
    graph: DependencyGraph
    cycle: Optional[List[str]]
    layers: List[Layer]
    statuses: Dict[str, ReadinessStatus]
    blocked_by: Dict[str, List[str]]
    blocks: Dict[str, List[str]]

    @property
    def has_cycle(self) -> bool:
        return self.cycle is not None

    def ids_with_status(self, status: ReadinessStatus) -> List[str]:
        return [item_id for item_id in self.graph.order if self.statuses[item_id] == status]

    def ready_queue(self) -> List[WorkItem]:
        """Ready items, most urgent first (lower priority value), then input order."""
        ready = [self.graph.items[i] for i in self.ids_with_status(ReadinessStatus.READY)]
        return sorted(ready, key=lambda wi: wi.priority)

    def layer_of(self, item_id: str) -> int:
        for layer in self.layers:
            if item_id in layer.ids:
                return layer.index
        raise KeyError(f"Unknown work item: {item_id!r}")

    @property
    def stats(self) -> GraphStats:
        graph = self.graph
        acyclic = [layer for layer in self.layers if not layer.overflow]
        return GraphStats(
            total_nodes=len(graph),
            total_dependencies=graph.edge_count(),
            max_depth=acyclic[-1].index if acyclic else 0,
            root_ids=tuple(i for i in graph.order if not graph.dependencies_of(i)),
            leaf_ids=tuple(i for i in graph.order if not graph.dependents_of(i)),
        )


class StoryDependencyResolver:
    """
    Stateless: graph -> cycle check -> layers -> per-item status.
    Safe to call on every change of the story list or the running set.
    """

    def __init__(self, policy: Optional[ResolverPolicy] = None) -> None:
        self.policy = policy or ResolverPolicy()

    def resolve(
        self,
        items: Iterable[WorkItem],
        running_ids: Optional[AbstractSet[str]] = None,
    ) -> Resolution:
        running = frozenset(running_ids or ())
        policy = self.policy.unresolved

        graph = build_graph(items)
        cycle = detect_cycle(graph)
        layers = assign_layers(graph)

        statuses: Dict[str, ReadinessStatus] = {}
        holding: Dict[str, List[str]] = {}
        for item_id in graph.order:
            wi = graph.items[item_id]
            statuses[item_id] = classify(wi, graph, running, policy)
            holding[item_id] = blocked_by(wi, graph, policy)

        if self.policy.trace:
            print(f"[GRAPH] items={len(graph)} edges={graph.edge_count()} policy={policy.value}")
            for layer in layers:
                tag = " (overflow)" if layer.overflow else ""
                print(f"[GRAPH] layer {layer.index}{tag}: {layer.ids}")
            if cycle:
                print(f"[GRAPH] cycle: {' -> '.join(cycle + [cycle[0]])}")
            if graph.unresolved:
                print(f"[GRAPH] unresolved dependencies: {graph.unresolved}")

        return Resolution(
            graph=graph,
            cycle=cycle,
            layers=layers,
            statuses=statuses,
            blocked_by=holding,
            blocks={item_id: list(graph.dependents_of(item_id)) for item_id in graph.order},
        )


def resolve(
    items: Iterable[WorkItem],
    running_ids: Optional[AbstractSet[str]] = None,
    *,
    policy: Optional[ResolverPolicy] = None,
) -> Resolution:
    return StoryDependencyResolver(policy).resolve(items, running_ids)


def describe_resolution(resolution: Resolution) -> str:
    """
    Human-friendly view of the story graph (for the REPL / logs).
    """
    graph = resolution.graph
    stats = resolution.stats

    lines: List[str] = []
    lines.append("Story graph:")
    lines.append(f"- Stories: {stats.total_nodes}  Dependencies: {stats.total_dependencies}  Max depth: {stats.max_depth}")

    counts = {status: len(resolution.ids_with_status(status)) for status in ReadinessStatus}
    lines.append("- " + "  ".join(f"{STATUS_LABELS[s]}: {n}" for s, n in counts.items()))

    if resolution.cycle:
        lines.append(f"- WARNING cycle: {' -> '.join(resolution.cycle + [resolution.cycle[0]])}")

    for layer in resolution.layers:
        title = f"Layer {layer.index}" + (" (unordered, cycle)" if layer.overflow else "")
        lines.append(f"- {title}:")
        for wi in layer.items:
            status = resolution.statuses[wi.id]
            extra = ""
            if status == ReadinessStatus.BLOCKED:
                extra = f" blocked_by={resolution.blocked_by[wi.id]}"
            missing = graph.unresolved_of(wi.id)
            if missing:
                extra += f" unknown_deps={missing}"
            effort = f" {wi.effort}" if wi.effort else ""
            label = f" {wi.title}" if wi.title else ""
            lines.append(f"  - [{STATUS_LABELS[status]}] {wi.id}{label} (P{wi.priority}{effort}){extra}")

    queue = resolution.ready_queue()
    if queue:
        lines.append(f"- Next up: {queue[0].id}")

    return "\n".join(lines)

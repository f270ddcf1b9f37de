from __future__ import annotations

from .graph import build_graph, would_create_cycle
from .models import (
    DependencyGraph,
    GraphStats,
    Layer,
    ReadinessStatus,
    UnresolvedDependencyPolicy,
    WorkItem,
)
from .resolver import Resolution, ResolverPolicy, StoryDependencyResolver, describe_resolution, resolve

__all__ = [
    "DependencyGraph",
    "GraphStats",
    "Layer",
    "ReadinessStatus",
    "Resolution",
    "ResolverPolicy",
    "StoryDependencyResolver",
    "UnresolvedDependencyPolicy",
    "WorkItem",
    "build_graph",
    "describe_resolution",
    "resolve",
    "would_create_cycle",
]

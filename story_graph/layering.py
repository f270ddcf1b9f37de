from __future__ import annotations

from typing import Dict, List, Set

from story_graph.models import DependencyGraph, Layer


def assign_layers(graph: DependencyGraph) -> List[Layer]:
    """
    Kahn's algorithm, peeled one layer at a time.

    Layer k holds the items whose longest resolved dependency chain has length k.
    Items inside a layer keep input order. Whatever is never released (cycle
    members and everything downstream of them) goes into one final overflow
    layer, so every item lands in exactly one layer.
    """
    position: Dict[str, int] = {item_id: i for i, item_id in enumerate(graph.order)}
    in_degree: Dict[str, int] = {item_id: len(graph.dependencies_of(item_id)) for item_id in graph.order}

    layers: List[Layer] = []
    placed: Set[str] = set()
    current = [item_id for item_id in graph.order if in_degree[item_id] == 0]

    while current:
        layers.append(
            Layer(index=len(layers), items=tuple(graph.items[i] for i in current))
        )
        placed.update(current)

        released: List[str] = []
        for item_id in current:
            for dependent in graph.dependents_of(item_id):
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0 and dependent not in placed:
                    released.append(dependent)

        current = sorted(released, key=lambda i: position[i])

    remaining = [item_id for item_id in graph.order if item_id not in placed]
    if remaining:
        layers.append(
            Layer(
                index=len(layers),
                items=tuple(graph.items[i] for i in remaining),
                overflow=True,
            )
        )

    return layers

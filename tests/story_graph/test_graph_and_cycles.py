from __future__ import annotations

from story_graph.cycles import detect_cycle
from story_graph.graph import build_graph, would_create_cycle
from story_graph.layering import assign_layers
from story_graph.models import WorkItem


def test_build_graph_keeps_unresolved_ids_aside_and_collapses_repeats():
    graph = build_graph(
        [
            WorkItem(id="A"),
            WorkItem(id="B", dependency_ids=["A", "A", "ghost"]),
        ]
    )

    assert graph.dependencies_of("B") == ["A"]
    assert graph.dependents_of("A") == ["B"]
    assert graph.unresolved_of("B") == ["ghost"]
    assert graph.edge_count() == 1
    assert graph.has_edge("B", "A")
    assert not graph.has_edge("A", "B")
    assert "ghost" not in graph
    assert len(graph) == 2


def test_cycle_path_follows_dependency_edges():
    graph = build_graph(
        [
            WorkItem(id="start", dependency_ids=["x"]),
            WorkItem(id="x", dependency_ids=["y"]),
            WorkItem(id="y", dependency_ids=["z"]),
            WorkItem(id="z", dependency_ids=["x"]),
        ]
    )

    cycle = detect_cycle(graph)

    assert cycle == ["x", "y", "z"]
    closed = cycle + [cycle[0]]
    for a, b in zip(closed, closed[1:]):
        assert graph.has_edge(a, b)


def test_self_dependency_is_a_cycle_of_one():
    graph = build_graph([WorkItem(id="solo", dependency_ids=["solo"])])

    assert detect_cycle(graph) == ["solo"]
    layers = assign_layers(graph)
    assert len(layers) == 1 and layers[0].overflow


def test_cycle_detection_is_deterministic_across_calls():
    items = [
        WorkItem(id="a", dependency_ids=["b"]),
        WorkItem(id="b", dependency_ids=["a"]),
        WorkItem(id="c", dependency_ids=["d"]),
        WorkItem(id="d", dependency_ids=["c"]),
    ]

    first = detect_cycle(build_graph(items))

    assert first == ["a", "b"]
    assert all(detect_cycle(build_graph(items)) == first for _ in range(5))


def test_acyclic_graph_has_no_cycle_and_no_overflow_layer():
    graph = build_graph(
        [WorkItem(id=f"s{i}", dependency_ids=[f"s{i - 1}"] if i else []) for i in range(50)]
    )

    assert detect_cycle(graph) is None
    layers = assign_layers(graph)
    assert len(layers) == 50
    assert not any(layer.overflow for layer in layers)


def test_long_chain_does_not_hit_recursion_limit():
    n = 5000
    items = [WorkItem(id=f"n{i}", dependency_ids=[f"n{i + 1}"]) for i in range(n - 1)]
    items.append(WorkItem(id=f"n{n - 1}", dependency_ids=["n0"]))

    cycle = detect_cycle(build_graph(items))

    assert cycle is not None
    assert len(cycle) == n


def test_downstream_of_cycle_lands_in_overflow_layer():
    graph = build_graph(
        [
            WorkItem(id="free"),
            WorkItem(id="a", dependency_ids=["b"]),
            WorkItem(id="b", dependency_ids=["a"]),
            WorkItem(id="after", dependency_ids=["a", "free"]),
        ]
    )

    layers = assign_layers(graph)

    assert layers[0].ids == ["free"]
    assert layers[-1].overflow
    assert layers[-1].ids == ["a", "b", "after"]


def test_would_create_cycle():
    graph = build_graph(
        [
            WorkItem(id="A"),
            WorkItem(id="B", dependency_ids=["A"]),
            WorkItem(id="C", dependency_ids=["B"]),
        ]
    )

    assert would_create_cycle(graph, "A", "C")
    assert would_create_cycle(graph, "A", "A")
    assert not would_create_cycle(graph, "C", "A")
    assert not would_create_cycle(graph, "A", "unknown")

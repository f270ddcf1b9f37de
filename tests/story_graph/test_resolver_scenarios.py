from __future__ import annotations

import pytest

from story_graph.models import ReadinessStatus, WorkItem
from story_graph.resolver import ResolverPolicy, StoryDependencyResolver, describe_resolution, resolve


def _items():
    return [
        WorkItem(id="A", passes=True),
        WorkItem(id="B", dependency_ids=["A"]),
        WorkItem(id="C", dependency_ids=["A", "B"]),
    ]


def test_chain_with_one_done_story():
    res = resolve(_items())

    assert res.statuses == {
        "A": ReadinessStatus.DONE,
        "B": ReadinessStatus.READY,
        "C": ReadinessStatus.BLOCKED,
    }
    assert [layer.ids for layer in res.layers] == [["A"], ["B"], ["C"]]
    assert res.cycle is None
    assert res.blocked_by["C"] == ["B"]
    assert res.blocks["A"] == ["B", "C"]


def test_two_story_cycle_is_reported_and_still_layered():
    items = [WorkItem(id="A", dependency_ids=["B"]), WorkItem(id="B", dependency_ids=["A"])]

    res = resolve(items)

    assert res.has_cycle
    assert set(res.cycle) == {"A", "B"}
    assert len(res.layers) == 1
    assert res.layers[0].overflow
    assert res.layers[0].ids == ["A", "B"]


def test_running_wins_over_blocked_and_done_wins_over_running():
    items = [
        WorkItem(id="A"),
        WorkItem(id="B", dependency_ids=["A"]),
        WorkItem(id="C", passes=True, dependency_ids=["A"]),
    ]

    res = resolve(items, running_ids={"B", "C"})

    assert res.statuses["B"] == ReadinessStatus.RUNNING
    assert res.statuses["C"] == ReadinessStatus.DONE
    assert res.statuses["A"] == ReadinessStatus.READY


def test_every_item_gets_exactly_one_status_and_one_layer():
    items = [
        WorkItem(id="a"),
        WorkItem(id="b", dependency_ids=["a"]),
        WorkItem(id="c", dependency_ids=["d"]),
        WorkItem(id="d", dependency_ids=["c"]),
        WorkItem(id="e", dependency_ids=["c", "a"]),
        WorkItem(id="f", dependency_ids=["nope"]),
    ]

    res = resolve(items)

    assert set(res.statuses) == {wi.id for wi in items}
    placed = [i for layer in res.layers for i in layer.ids]
    assert sorted(placed) == sorted(wi.id for wi in items)
    assert len(placed) == len(set(placed))


def test_layers_respect_edges_outside_cycles():
    items = [
        WorkItem(id="d", dependency_ids=["b", "c"]),
        WorkItem(id="b", dependency_ids=["a"]),
        WorkItem(id="c", dependency_ids=["a"]),
        WorkItem(id="a"),
    ]

    res = resolve(items)

    for dependency, dependent in res.graph.edges():
        assert res.layer_of(dependency) < res.layer_of(dependent)
    # input order inside a layer
    assert res.layers[1].ids == ["b", "c"]


def test_ready_queue_orders_by_priority_then_input_order():
    items = [
        WorkItem(id="x", priority=3),
        WorkItem(id="y", priority=1),
        WorkItem(id="z", priority=3),
        WorkItem(id="done", priority=0, passes=True),
    ]

    res = resolve(items)

    assert [wi.id for wi in res.ready_queue()] == ["y", "x", "z"]


def test_duplicate_ids_are_rejected():
    with pytest.raises(ValueError):
        resolve([WorkItem(id="A"), WorkItem(id="A")])


def test_empty_input_resolves_to_nothing():
    res = resolve([])

    assert res.statuses == {}
    assert res.layers == []
    assert res.cycle is None
    assert res.stats.max_depth == 0


def test_stats_counts_roots_leaves_and_depth():
    res = resolve(_items())
    stats = res.stats

    assert stats.total_nodes == 3
    assert stats.total_dependencies == 3
    assert stats.max_depth == 2
    assert stats.root_ids == ("A",)
    assert stats.leaf_ids == ("C",)


def test_layer_of_unknown_item_raises_keyerror():
    with pytest.raises(KeyError):
        resolve(_items()).layer_of("missing")


def test_resolver_trace_prints_graph_lines(capsys):
    items = [WorkItem(id="A", dependency_ids=["B"]), WorkItem(id="B", dependency_ids=["A"])]

    StoryDependencyResolver(ResolverPolicy(trace=True)).resolve(items)

    out = capsys.readouterr().out
    assert "[GRAPH] items=2 edges=2" in out
    assert "(overflow)" in out
    assert "[GRAPH] cycle:" in out


def test_describe_resolution_mentions_statuses_cycle_and_next_up():
    text = describe_resolution(resolve(_items()))

    assert "Stories: 3" in text
    assert "[Done] A" in text
    assert "[Blocked] C" in text
    assert "blocked_by=['B']" in text
    assert "Next up: B" in text

    cyclic = describe_resolution(
        resolve([WorkItem(id="A", dependency_ids=["B"]), WorkItem(id="B", dependency_ids=["A"])])
    )
    assert "WARNING cycle" in cyclic
    assert "(unordered, cycle)" in cyclic

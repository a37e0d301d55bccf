from __future__ import annotations

import random

from webanalytics.core.journeys import (
    build_sankey_from_paths,
    build_sankey_from_transitions,
    links_are_consistent,
    max_path_length,
)
from webanalytics.core.types import JourneyPath, JourneyTransition, SankeyData


def _transitions() -> list[JourneyTransition]:
    return [
        JourneyTransition(source="/", target="/pricing", source_depth=0, target_depth=1, value=10),
        JourneyTransition(source="/", target="/pricing", source_depth=0, target_depth=1, value=5),
        JourneyTransition(source="/", target="/blog", source_depth=0, target_depth=1, value=3),
        JourneyTransition(source="/pricing", target="/blog", source_depth=1, target_depth=2, value=8),
    ]


def test_repeated_pairs_are_summed_into_one_link() -> None:
    data = build_sankey_from_transitions(_transitions())

    assert [node.id for node in data.nodes] == ["/_0", "/pricing_1", "/blog_1", "/blog_2"]
    assert [(link.source, link.target, link.value) for link in data.links] == [
        (0, 1, 15),
        (0, 2, 3),
        (1, 3, 8),
    ]
    assert links_are_consistent(data)


def test_same_url_at_different_depths_are_distinct_nodes() -> None:
    data = build_sankey_from_transitions(_transitions())

    blog_nodes = [node for node in data.nodes if node.name == "/blog"]
    assert [node.depth for node in blog_nodes] == [1, 2]


def test_entry_nodes_use_outgoing_traffic_and_others_incoming() -> None:
    data = build_sankey_from_transitions(_transitions())

    traffic = {node.id: node.total_traffic for node in data.nodes}
    assert traffic == {"/_0": 18, "/pricing_1": 15, "/blog_1": 3, "/blog_2": 8}
    assert data.max_traffic == 18
    assert [node.percentage_of_max for node in data.nodes] == [100, 83, 17, 44]


def test_output_does_not_depend_on_input_order() -> None:
    rows = _transitions()
    expected = build_sankey_from_transitions(rows)

    shuffled = list(rows)
    random.Random(7).shuffle(shuffled)

    assert build_sankey_from_transitions(shuffled) == expected
    assert build_sankey_from_transitions(list(reversed(rows))) == expected


def test_transitions_deeper_than_max_steps_are_dropped() -> None:
    data = build_sankey_from_transitions(_transitions(), max_steps=1)

    assert [node.id for node in data.nodes] == ["/_0", "/pricing_1", "/blog_1"]
    assert all(node.depth <= 1 for node in data.nodes)


def test_empty_input_gives_empty_data() -> None:
    data = build_sankey_from_transitions([])

    assert data == SankeyData()
    assert data.is_empty
    assert data.max_traffic == 0


def test_max_path_length_keeps_at_least_one_hop() -> None:
    assert max_path_length(0) == 2
    assert max_path_length(3) == 4


def test_paths_are_ranked_limited_and_truncated() -> None:
    paths = [
        JourneyPath(urls=["/", "/pricing", "/signup"], count=5),
        JourneyPath(urls=["/", "/pricing"], count=3),
        JourneyPath(urls=["/only"], count=9),
        JourneyPath(urls=["/", "/docs"], count=1),
    ]

    data = build_sankey_from_paths(paths, max_steps=1, limit=2)

    assert [node.id for node in data.nodes] == ["/_0", "/pricing_1"]
    assert [(link.source, link.target, link.value) for link in data.links] == [(0, 1, 8)]


def test_paths_build_one_link_per_hop() -> None:
    data = build_sankey_from_paths([JourneyPath(urls=["/", "/a", "/b", "/c"], count=4)], max_steps=3)

    assert [node.id for node in data.nodes] == ["/_0", "/a_1", "/b_2", "/c_3"]
    assert [link.value for link in data.links] == [4, 4, 4]
    assert links_are_consistent(data)

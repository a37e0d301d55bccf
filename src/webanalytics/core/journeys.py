"""Build Sankey diagram data from user journey transitions or paths."""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from collections.abc import Iterable, Sequence

from .types import JourneyPath, JourneyTransition, NodeKey, SankeyData, SankeyLink, SankeyNode

logger = logging.getLogger(__name__)


def max_path_length(max_steps: int) -> int:
    """Convert a hop count into the number of nodes a path may hold.

    At least two nodes are always requested so a single transition exists.
    """

    return max(2, max_steps + 1)


def build_sankey_from_paths(
    paths: Iterable[JourneyPath], *, max_steps: int = 3, limit: int = 50
) -> SankeyData:
    """Build Sankey data from ranked sequential paths.

    Only the ``limit`` most frequent paths are kept and each one is truncated
    to ``max_steps`` hops before its consecutive pairs become transitions.
    """

    ranked = sorted(
        (path for path in paths if len(path.urls) >= 2 and path.count > 0),
        key=lambda path: (-path.count, path.urls),
    )[: max(limit, 0)]
    length = max_path_length(max_steps)

    transitions = [
        JourneyTransition(
            source=source,
            target=target,
            source_depth=depth,
            target_depth=depth + 1,
            value=path.count,
        )
        for path in ranked
        for depth, (source, target) in enumerate(zip(path.urls[:length], path.urls[1:length]))
    ]
    return build_sankey_from_transitions(transitions)


def build_sankey_from_transitions(
    transitions: Iterable[JourneyTransition], *, max_steps: int | None = None
) -> SankeyData:
    """Build Sankey data from aggregated transitions.

    Nodes are keyed on ``(url, depth)``.  Rows repeating a ``(source, target)``
    pair are summed into one link.  Input is put in a canonical order first, so
    the same set of rows always yields the same nodes and links.
    """

    rows = sorted(transitions, key=_transition_sort_key)
    if max_steps is not None:
        kept = [row for row in rows if row.target_depth <= max_steps]
        if len(kept) != len(rows):
            logger.debug("Dropped %d transitions deeper than %d steps", len(rows) - len(kept), max_steps)
        rows = kept

    node_index: dict[NodeKey, int] = {}
    link_values: dict[tuple[int, int], int] = {}
    incoming: defaultdict[int, int] = defaultdict(int)
    outgoing: defaultdict[int, int] = defaultdict(int)

    for row in rows:
        source_index = _node_index(node_index, NodeKey(row.source, row.source_depth))
        target_index = _node_index(node_index, NodeKey(row.target, row.target_depth))

        pair = (source_index, target_index)
        link_values[pair] = link_values.get(pair, 0) + row.value
        outgoing[source_index] += row.value
        incoming[target_index] += row.value

    if not node_index:
        return SankeyData()

    traffic = {
        index: outgoing[index] if key.depth == 0 else incoming[index]
        for key, index in node_index.items()
    }
    max_traffic = max(traffic.values())

    nodes = tuple(
        SankeyNode(
            id=key.node_id,
            name=key.url,
            depth=key.depth,
            total_traffic=traffic[index],
            percentage_of_max=_percentage_of_max(traffic[index], max_traffic),
        )
        for key, index in node_index.items()
    )
    links = tuple(
        SankeyLink(source=source, target=target, value=value)
        for (source, target), value in link_values.items()
    )
    return SankeyData(nodes=nodes, links=links, max_traffic=max_traffic)


def _transition_sort_key(row: JourneyTransition) -> tuple:
    return (row.source_depth, row.source, row.target_depth, row.target)


def _node_index(node_index: dict[NodeKey, int], key: NodeKey) -> int:
    index = node_index.get(key)
    if index is None:
        index = len(node_index)
        node_index[key] = index
    return index


def _percentage_of_max(traffic: int, max_traffic: int) -> int:
    percentage = math.floor(100 * traffic / max(max_traffic, 1) + 0.5)
    return min(max(percentage, 0), 100)


def links_are_consistent(data: SankeyData) -> bool:
    """Return ``True`` when every link points at existing nodes and pairs are unique."""

    node_count = len(data.nodes)
    pairs: Sequence[tuple[int, int]] = [(link.source, link.target) for link in data.links]
    in_range = all(0 <= source < node_count and 0 <= target < node_count for source, target in pairs)
    return in_range and len(set(pairs)) == len(pairs)

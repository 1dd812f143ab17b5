"""Compromise-aware weighted shortest path (Dijkstra)."""

from __future__ import annotations

import heapq
import itertools

from snt.models import Graph, PathResult, UNREACHABLE


def shortest_path(graph: Graph, source_id: str, target_id: str) -> PathResult:
    """Cheapest route from source to target over the undirected edge set.

    Compromised nodes are never used as intermediate hops: relaxation skips
    any compromised neighbor other than the target. The source is always
    expanded. Ties between equally distant frontier nodes resolve in the
    order they were pushed, so repeated queries on an unchanged graph
    return the same path.

    Args:
        graph: Network to route over (read only).
        source_id: Origin node id.
        target_id: Destination node id.

    Returns:
        PathResult; ``path`` is empty when the target is unreachable.

    Raises:
        NodeNotFoundError: If either id is absent from the graph.
    """
    graph.node(source_id)
    graph.node(target_id)

    distances: dict[str, float] = {node_id: UNREACHABLE for node_id in graph.node_ids}
    previous: dict[str, str | None] = {node_id: None for node_id in graph.node_ids}
    distances[source_id] = 0.0

    visited: set[str] = set()
    visit_order: list[str] = []
    counter = itertools.count()
    frontier: list[tuple[float, int, str]] = [(0.0, next(counter), source_id)]

    while frontier:
        dist, _, current = heapq.heappop(frontier)
        if current in visited or dist > distances[current]:
            continue  # stale heap entry
        visited.add(current)
        visit_order.append(current)
        if current == target_id:
            break

        for edge in graph.incident_edges(current):
            neighbor = edge.other(current)
            if neighbor in visited:
                continue
            if neighbor != target_id and graph.node(neighbor).compromised:
                continue
            candidate = dist + edge.weight
            if candidate < distances[neighbor]:
                distances[neighbor] = candidate
                previous[neighbor] = current
                heapq.heappush(frontier, (candidate, next(counter), neighbor))

    return PathResult(
        source=source_id,
        target=target_id,
        distances=distances,
        previous=previous,
        visit_order=visit_order,
        path=_reconstruct(previous, source_id, target_id, target_id in visited),
    )


def _reconstruct(
    previous: dict[str, str | None],
    source_id: str,
    target_id: str,
    reached: bool,
) -> list[str]:
    if not reached:
        return []
    path = [target_id]
    while path[-1] != source_id:
        prev = previous[path[-1]]
        if prev is None:
            return []
        path.append(prev)
    path.reverse()
    return path


def path_cost(graph: Graph, path: list[str]) -> float:
    """Sum of the cheapest edge weights between consecutive path nodes."""
    total = 0.0
    for a, b in zip(path, path[1:]):
        weights = [e.weight for e in graph.incident_edges(a) if e.connects(a, b)]
        if not weights:
            raise ValueError(f"No edge between {a!r} and {b!r}")
        total += min(weights)
    return total

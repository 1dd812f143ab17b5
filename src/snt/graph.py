"""Network graph generation, edge weighting, and connectivity analysis."""

from __future__ import annotations

import logging
import math
import random
from collections.abc import Iterable

import numpy as np
from scipy import sparse
from scipy.sparse import csgraph

from snt.models import Edge, EdgeType, Graph, Node, NodeType, UNREACHABLE

logger = logging.getLogger(__name__)

LATENCY_RANGE = (1, 10)
ENCRYPTION_OVERHEAD_RANGE = (1, 5)
SECURITY_RISK_RANGE = (1, 10)


def calculate_weight(
    latency: float,
    encryption_overhead: float,
    security_risk: float,
) -> float:
    """Routing cost of a link; security risk counts double."""
    return latency + encryption_overhead + 2 * security_risk


def circular_layout(
    n: int,
    radius: float = 200.0,
    margin: float = 50.0,
) -> list[tuple[float, float]]:
    """Evenly spaced positions on a circle, starting at angle 0."""
    angles = np.arange(n) * (2 * np.pi / n)
    xs = radius * np.cos(angles) + radius + margin
    ys = radius * np.sin(angles) + radius + margin
    return [(float(x), float(y)) for x, y in zip(xs, ys, strict=True)]


def _random_edge(rng: random.Random, i: int, j: int, nodes: list[Node]) -> Edge:
    return Edge(
        id=f"edge-{i}-{j}",
        source=nodes[i].id,
        target=nodes[j].id,
        type=rng.choice(list(EdgeType)),
        latency=rng.randint(*LATENCY_RANGE),
        encryption_overhead=rng.randint(*ENCRYPTION_OVERHEAD_RANGE),
        security_risk=rng.randint(*SECURITY_RISK_RANGE),
    )


def generate_random_graph(
    node_count: int = 8,
    edge_density: float = 0.3,
    radius: float = 200.0,
    ensure_connected: bool = False,
    seed: int | None = None,
    rng: random.Random | None = None,
) -> Graph:
    """Random device network laid out on a circle.

    Node 0 is the sender and node ``node_count // 2`` the receiver. Each
    node attempts ``floor(2 + r * 3 * edge_density)`` links to distinct,
    not yet adjacent nodes; isolated nodes are then linked to their
    successor. That only rules out isolated nodes, so the graph may still
    be disconnected unless ``ensure_connected`` is set.

    Args:
        node_count: Number of devices (>= 2).
        edge_density: Scales the number of link attempts, in [0, 1].
        radius: Layout circle radius.
        ensure_connected: Bridge disconnected components after generation.
        seed: RNG seed for reproducibility (ignored if ``rng`` is given).
        rng: Random source to draw from.

    Returns:
        A Graph with exactly one sender and one receiver.
    """
    if node_count < 2:
        raise ValueError(f"node_count must be >= 2, got {node_count}")
    if not 0.0 <= edge_density <= 1.0:
        raise ValueError(f"edge_density must be in [0, 1], got {edge_density}")

    rng = rng if rng is not None else random.Random(seed)
    receiver_index = node_count // 2

    nodes: list[Node] = []
    for i, position in enumerate(circular_layout(node_count, radius)):
        node_type = rng.choice(list(NodeType))
        nodes.append(
            Node(
                id=f"node-{i}",
                label=f"{node_type.label} {i + 1}",
                type=node_type,
                is_sender=i == 0,
                is_receiver=i == receiver_index,
                position=position,
            )
        )

    edges: list[Edge] = []
    adjacent: list[set[int]] = [set() for _ in range(node_count)]

    for i in range(node_count):
        connections = math.floor(2 + rng.random() * 3 * edge_density)
        for _ in range(connections):
            candidates = [
                j for j in range(node_count) if j != i and j not in adjacent[i]
            ]
            if not candidates:
                break
            j = rng.choice(candidates)
            edges.append(_random_edge(rng, i, j, nodes))
            adjacent[i].add(j)
            adjacent[j].add(i)

    for i in range(node_count):
        if not adjacent[i]:
            j = (i + 1) % node_count
            edges.append(_random_edge(rng, i, j, nodes))
            adjacent[i].add(j)
            adjacent[j].add(i)

    graph = Graph(nodes=nodes, edges=edges)

    if ensure_connected:
        components = connected_components(graph)
        index = {node.id: k for k, node in enumerate(nodes)}
        for prev, comp in zip(components, components[1:]):
            i, j = index[prev[0]], index[comp[0]]
            edges.append(_random_edge(rng, i, j, nodes))
        if len(components) > 1:
            logger.debug("Bridged %d disconnected components", len(components))
            graph = Graph(nodes=nodes, edges=edges)

    if not is_reachable(graph, nodes[0].id, nodes[receiver_index].id):
        logger.warning(
            "Generated graph has no route from %s to %s",
            nodes[0].id,
            nodes[receiver_index].id,
        )

    return graph


def adjacency_matrix(
    graph: Graph,
    avoid_compromised: bool = False,
    keep: Iterable[str] = (),
) -> sparse.csr_matrix:
    """Symmetric weighted adjacency matrix in ``graph.nodes`` order.

    With ``avoid_compromised``, every edge touching a compromised node is
    dropped unless that node is listed in ``keep``.
    """
    index = {node_id: k for k, node_id in enumerate(graph.node_ids)}
    blocked = graph.compromised_ids() - set(keep) if avoid_compromised else set()

    # Parallel edges collapse to the cheapest one.
    best: dict[tuple[int, int], float] = {}
    for edge in graph.edges:
        if edge.source in blocked or edge.target in blocked:
            continue
        u, v = sorted((index[edge.source], index[edge.target]))
        best[(u, v)] = min(best.get((u, v), math.inf), edge.weight)

    rows = [u for u, _ in best] + [v for _, v in best]
    cols = [v for _, v in best] + [u for u, _ in best]
    weights = np.asarray(list(best.values()) * 2, dtype=float)
    # Zero-weight links still count as connections.
    weights[weights == 0] = np.finfo(float).tiny

    n = len(index)
    return sparse.csr_matrix((weights, (rows, cols)), shape=(n, n))


def connected_components(graph: Graph) -> list[list[str]]:
    """Node id groups, each in graph order, ordered by their first node."""
    ids = graph.node_ids
    if not ids:
        return []
    _, labels = csgraph.connected_components(adjacency_matrix(graph), directed=False)
    groups: dict[int, list[str]] = {}
    for node_id, label in zip(ids, labels, strict=True):
        groups.setdefault(int(label), []).append(node_id)
    return list(groups.values())


def is_connected(graph: Graph) -> bool:
    return len(connected_components(graph)) <= 1


def is_reachable(
    graph: Graph,
    source_id: str,
    target_id: str,
    avoid_compromised: bool = True,
) -> bool:
    """Whether a route exists, using the path finder's compromise rules.

    Compromised nodes other than the two endpoints cannot be used as hops.
    """
    graph.node(source_id)
    graph.node(target_id)
    if source_id == target_id:
        return True
    matrix = adjacency_matrix(
        graph, avoid_compromised=avoid_compromised, keep=(source_id, target_id)
    )
    _, labels = csgraph.connected_components(matrix, directed=False)
    ids = graph.node_ids
    return bool(labels[ids.index(source_id)] == labels[ids.index(target_id)])


def reference_distances(graph: Graph, source_id: str) -> dict[str, float]:
    """Shortest distances from ``source_id`` ignoring compromise (scipy)."""
    graph.node(source_id)
    ids = graph.node_ids
    dist = csgraph.dijkstra(
        adjacency_matrix(graph), directed=False, indices=ids.index(source_id)
    )
    return {
        node_id: float(d) if np.isfinite(d) else UNREACHABLE
        for node_id, d in zip(ids, dist, strict=True)
    }

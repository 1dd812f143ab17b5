"""Data models for the simulated network and routing results."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum

from snt.errors import NodeNotFoundError


class NodeType(Enum):
    SERVER = "server"
    COMPUTER = "computer"
    IOT = "iot"
    ROUTER = "router"

    @property
    def label(self) -> str:
        return _NODE_TYPE_LABELS[self]


_NODE_TYPE_LABELS = {
    NodeType.SERVER: "Server",
    NodeType.COMPUTER: "Computer",
    NodeType.IOT: "IoT Device",
    NodeType.ROUTER: "Router",
}


class EdgeType(Enum):
    WIFI = "wifi"
    ETHERNET = "ethernet"
    FIVE_G = "5g"
    FIBER = "fiber"


# Sentinel distance for nodes the path finder could not reach.
UNREACHABLE = math.inf


@dataclass
class Node:
    """A simulated network device.

    Only ``compromised`` may change after construction; identity, role
    flags and position are fixed.

    Attributes:
        id: Unique node identifier.
        label: Human-readable name.
        type: Device category.
        compromised: Whether an intrusion has taken over this node.
        is_sender: Node originates transmissions.
        is_receiver: Node terminates transmissions.
        position: Layout coordinates, used only for rendering.
    """

    id: str
    label: str
    type: NodeType
    compromised: bool = False
    is_sender: bool = False
    is_receiver: bool = False
    position: tuple[float, float] = (0.0, 0.0)

    def __post_init__(self) -> None:
        if self.is_sender and self.is_receiver:
            raise ValueError(f"Node {self.id!r} cannot be both sender and receiver")

    def __setattr__(self, name: str, value: object) -> None:
        if name != "compromised" and name in self.__dict__:
            raise AttributeError(f"Node.{name} is immutable")
        super().__setattr__(name, value)


@dataclass(frozen=True)
class Edge:
    """An undirected link between two nodes.

    ``weight`` is derived once from the cost components as
    ``latency + encryption_overhead + 2 * security_risk``.
    """

    id: str
    source: str
    target: str
    type: EdgeType
    latency: float
    encryption_overhead: float
    security_risk: float
    weight: float = field(init=False)

    def __post_init__(self) -> None:
        if self.source == self.target:
            raise ValueError(f"Edge {self.id!r} is a self-loop on {self.source!r}")
        for name in ("latency", "encryption_overhead", "security_risk"):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")
        weight = self.latency + self.encryption_overhead + 2 * self.security_risk
        object.__setattr__(self, "weight", weight)

    def other(self, node_id: str) -> str:
        """Endpoint opposite ``node_id``."""
        if node_id == self.source:
            return self.target
        if node_id == self.target:
            return self.source
        raise ValueError(f"Node {node_id!r} is not an endpoint of edge {self.id!r}")

    def connects(self, a: str, b: str) -> bool:
        return {self.source, self.target} == {a, b}


@dataclass
class Graph:
    """Network of devices and links.

    The node list keeps its construction order; edges are fixed once the
    graph is built. Node compromise flags are the only mutable state.

    Attributes:
        nodes: Ordered list of nodes with unique ids.
        edges: Undirected edges between existing nodes.
    """

    nodes: list[Node]
    edges: list[Edge] = field(default_factory=list)
    _index: dict[str, Node] = field(init=False, repr=False, compare=False)
    _incident: dict[str, list[Edge]] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._index = {}
        for node in self.nodes:
            if node.id in self._index:
                raise ValueError(f"Duplicate node id {node.id!r}")
            self._index[node.id] = node

        senders = [n.id for n in self.nodes if n.is_sender]
        receivers = [n.id for n in self.nodes if n.is_receiver]
        if len(senders) > 1:
            raise ValueError(f"At most one sender allowed, got {senders}")
        if len(receivers) > 1:
            raise ValueError(f"At most one receiver allowed, got {receivers}")

        self._incident = {node.id: [] for node in self.nodes}
        edge_ids: set[str] = set()
        for edge in self.edges:
            if edge.id in edge_ids:
                raise ValueError(f"Duplicate edge id {edge.id!r}")
            edge_ids.add(edge.id)
            for endpoint in (edge.source, edge.target):
                if endpoint not in self._index:
                    raise ValueError(
                        f"Edge {edge.id!r} references unknown node {endpoint!r}"
                    )
            self._incident[edge.source].append(edge)
            self._incident[edge.target].append(edge)

    @property
    def node_ids(self) -> list[str]:
        return [node.id for node in self.nodes]

    @property
    def sender(self) -> Node | None:
        return next((n for n in self.nodes if n.is_sender), None)

    @property
    def receiver(self) -> Node | None:
        return next((n for n in self.nodes if n.is_receiver), None)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._index

    def node(self, node_id: str) -> Node:
        """Look up a node, raising NodeNotFoundError if absent."""
        try:
            return self._index[node_id]
        except KeyError:
            raise NodeNotFoundError(node_id) from None

    def incident_edges(self, node_id: str) -> list[Edge]:
        self.node(node_id)
        return list(self._incident[node_id])

    def neighbors(self, node_id: str) -> list[str]:
        return [edge.other(node_id) for edge in self.incident_edges(node_id)]

    def compromised_ids(self) -> set[str]:
        return {node.id for node in self.nodes if node.compromised}


@dataclass(frozen=True)
class PathResult:
    """Outcome of a single shortest-path query.

    Attributes:
        source: Query origin.
        target: Query destination.
        distances: Node id -> cost from source (UNREACHABLE if not reached).
        previous: Node id -> predecessor on the best known route, or None.
        visit_order: Node ids in the order they were finalized.
        path: Source-to-target node ids; empty when unreachable.
    """

    source: str
    target: str
    distances: dict[str, float]
    previous: dict[str, str | None]
    visit_order: list[str]
    path: list[str]

    @property
    def found(self) -> bool:
        return bool(self.path)

    @property
    def cost(self) -> float:
        return self.distances[self.target]

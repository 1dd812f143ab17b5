"""Shared test fixtures for the SNT test suite."""

from __future__ import annotations

import random

import pytest

from snt.models import Edge, EdgeType, Graph, Node, NodeType
from snt.simulation import SimulationCallbacks


def make_node(node_id: str, sender: bool = False, receiver: bool = False) -> Node:
    return Node(
        id=node_id,
        label=node_id,
        type=NodeType.ROUTER,
        is_sender=sender,
        is_receiver=receiver,
    )


def make_edge(a: str, b: str, weight: float) -> Edge:
    """Edge whose whole weight comes from latency."""
    return Edge(
        id=f"{a}-{b}",
        source=a,
        target=b,
        type=EdgeType.ETHERNET,
        latency=weight,
        encryption_overhead=0,
        security_risk=0,
    )


class FixedRandom(random.Random):
    """Random source whose ``random()`` always returns ``value``.

    ``choice``/``randint`` still draw from the seeded bit generator.
    """

    def __init__(self, value: float, seed: int = 0) -> None:
        super().__init__(seed)
        self.value = value

    def random(self) -> float:
        return self.value

    # Keeps integer sampling on getrandbits rather than random().
    def getrandbits(self, k: int) -> int:
        return super().getrandbits(k)


class Recorder:
    """Collects every collaborator notification in arrival order."""

    def __init__(self) -> None:
        self.events: list[tuple] = []

    def callbacks(self) -> SimulationCallbacks:
        return SimulationCallbacks(
            on_path_change=lambda path, bad: self.events.append(("path", path, bad)),
            on_node_visit=lambda node_id: self.events.append(("visit", node_id)),
            on_transmission_complete=lambda ok, digest: self.events.append(
                ("complete", ok, digest)
            ),
            on_ids_alert=lambda node_id, sev: self.events.append(("alert", node_id, sev)),
            on_phase_change=lambda phase: self.events.append(("phase", phase)),
            on_key_rotation=lambda keys: self.events.append(("keys", keys)),
        )

    def of(self, kind: str) -> list[tuple]:
        return [event[1:] for event in self.events if event[0] == kind]

    @property
    def visits(self) -> list[str]:
        return [node_id for (node_id,) in self.of("visit")]


@pytest.fixture
def abc_graph() -> Graph:
    """Triangle with a cheap detour through B.

    Topology:
        A(sender) --3-- B --4-- C(receiver)
        A --------100---------- C
    """
    return Graph(
        nodes=[make_node("A", sender=True), make_node("B"), make_node("C", receiver=True)],
        edges=[make_edge("A", "B", 3), make_edge("B", "C", 4), make_edge("A", "C", 100)],
    )


@pytest.fixture
def chain_graph() -> Graph:
    """A(sender) -- B -- C(receiver), no bypass."""
    return Graph(
        nodes=[make_node("A", sender=True), make_node("B"), make_node("C", receiver=True)],
        edges=[make_edge("A", "B", 2), make_edge("B", "C", 2)],
    )


@pytest.fixture
def diamond_graph() -> Graph:
    """Two routes of different cost plus an isolated node.

    Topology:
        S(sender) --1-- X --1-- R(receiver)
        S --------2---- Y --2-- R
        Z (no edges)
    """
    return Graph(
        nodes=[
            make_node("S", sender=True),
            make_node("X"),
            make_node("Y"),
            make_node("R", receiver=True),
            make_node("Z"),
        ],
        edges=[
            make_edge("S", "X", 1),
            make_edge("X", "R", 1),
            make_edge("S", "Y", 2),
            make_edge("Y", "R", 2),
        ],
    )


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()

"""Error taxonomy for the simulator."""

from __future__ import annotations


class SimulationError(Exception):
    """Base class for recoverable simulator errors."""


class NodeNotFoundError(SimulationError, KeyError):
    """A node id was not present in the graph."""

    def __init__(self, node_id: str) -> None:
        super().__init__(node_id)
        self.node_id = node_id

    def __str__(self) -> str:
        return f"Node not found: {self.node_id!r}"


class MissingEndpointError(SimulationError):
    """The graph has no sender or no receiver node."""

    def __init__(self, missing: tuple[str, ...]) -> None:
        super().__init__(f"Graph is missing endpoint(s): {', '.join(missing)}")
        self.missing = missing

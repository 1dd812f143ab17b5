"""Simulated intrusion detection: random node compromise and alerts."""

from __future__ import annotations

import logging
import random
import uuid
from collections.abc import Collection, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from snt.models import Node

logger = logging.getLogger(__name__)


class Severity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


ALERT_TYPES: tuple[tuple[Severity, str], ...] = (
    (Severity.LOW, "Unusual network traffic detected"),
    (Severity.MEDIUM, "Multiple failed authentication attempts"),
    (Severity.HIGH, "Potential data exfiltration detected"),
    (Severity.CRITICAL, "System compromise detected"),
)


@dataclass(frozen=True)
class Alert:
    """An intrusion detection alert raised for a node."""

    node_id: str
    severity: Severity
    message: str
    id: str = field(default_factory=lambda: f"alert-{uuid.uuid4().hex[:12]}")
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def compromise_random_node(
    nodes: Iterable[Node],
    exclude_ids: Collection[str] = (),
    rng: random.Random | None = None,
) -> Node | None:
    """Mark one uniformly chosen eligible node as compromised.

    A node is eligible if it is not already compromised and its id is not
    in ``exclude_ids``. The chosen node is mutated in place.

    Returns:
        The compromised node, or None if no node was eligible.
    """
    rng = rng if rng is not None else random.Random()
    excluded = set(exclude_ids)
    eligible = [n for n in nodes if not n.compromised and n.id not in excluded]
    if not eligible:
        logger.debug("No eligible node to compromise")
        return None

    node = rng.choice(eligible)
    node.compromised = True
    logger.warning("Node %s (%s) compromised", node.id, node.label)
    return node


def generate_alert(node_id: str, rng: random.Random | None = None) -> Alert:
    rng = rng if rng is not None else random.Random()
    severity, message = rng.choice(ALERT_TYPES)
    return Alert(node_id=node_id, severity=severity, message=message)


def is_path_compromised(path: Iterable[str], nodes: Iterable[Node]) -> bool:
    """True iff any node on ``path`` is currently compromised."""
    compromised = {n.id for n in nodes if n.compromised}
    return any(node_id in compromised for node_id in path)


def compromised_nodes(nodes: Iterable[Node]) -> list[Node]:
    return [n for n in nodes if n.compromised]

"""Staged transmission state machine with intrusion-driven rerouting.

A run moves through IDLE -> PATH_FOUND -> ROUTED -> TRANSMITTING ->
VERIFIED -> IDLE, either on explicit ``advance()`` calls (manual mode) or
on scheduler timers (auto mode). Intrusions may arrive at any point and
replace the current route without changing the phase.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, IntEnum

from snt.crypto import (
    simulate_aes_encryption,
    simulate_key_exchange,
    simulate_sha256_hash,
)
from snt.errors import MissingEndpointError, SimulationError
from snt.intrusion import (
    Alert,
    Severity,
    compromise_random_node,
    generate_alert,
    is_path_compromised,
)
from snt.models import Graph, PathResult
from snt.pathfinding import shortest_path
from snt.scheduler import Handle, Scheduler, VirtualScheduler

logger = logging.getLogger(__name__)


class Phase(IntEnum):
    IDLE = 0
    PATH_FOUND = 1
    ROUTED = 2
    TRANSMITTING = 3
    VERIFIED = 4


class Mode(Enum):
    AUTO = "auto"
    MANUAL = "manual"


@dataclass(frozen=True)
class SimulationConfig:
    """Pacing and behaviour knobs, in simulation time units.

    Attributes:
        payload: Data carried by each transmission.
        path_found_delay: Auto-mode pause before PATH_FOUND -> ROUTED.
        routed_delay: Auto-mode pause before ROUTED -> TRANSMITTING.
        hop_interval: Time between node visits while transmitting.
        intrusion_probability: Chance of an intrusion after each verification.
        intrusion_delay: Delay between verification and that intrusion.
        auto_reset_delay: Auto-mode pause before VERIFIED -> IDLE; None
            waits for ``advance()``.
    """

    payload: str = "Secure transmission data"
    path_found_delay: float = 3.0
    routed_delay: float = 1.0
    hop_interval: float = 1.0
    intrusion_probability: float = 0.3
    intrusion_delay: float = 2.0
    auto_reset_delay: float | None = None

    def __post_init__(self) -> None:
        delays = ("path_found_delay", "routed_delay", "hop_interval", "intrusion_delay")
        for name in delays:
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")
        if not 0.0 <= self.intrusion_probability <= 1.0:
            raise ValueError(
                "intrusion_probability must be in [0, 1], "
                f"got {self.intrusion_probability}"
            )
        if self.auto_reset_delay is not None and self.auto_reset_delay < 0:
            raise ValueError(
                f"auto_reset_delay must be non-negative, got {self.auto_reset_delay}"
            )


@dataclass
class SimulationCallbacks:
    """Hooks for renderers and loggers. Unset hooks are skipped."""

    on_path_change: Callable[[list[str], bool], None] | None = None
    on_node_visit: Callable[[str], None] | None = None
    on_transmission_complete: Callable[[bool, str], None] | None = None
    on_ids_alert: Callable[[str, Severity], None] | None = None
    on_phase_change: Callable[[Phase], None] | None = None
    on_key_rotation: Callable[[dict[str, str]], None] | None = None


@dataclass
class SimulationState:
    """Progress of the current run.

    Attributes:
        phase: Current lifecycle phase.
        path: Current sender-to-receiver route (may be empty).
        mode: Auto or manual progression.
        step: Count of phase transitions so far; never decreases.
        packet_position: Number of path nodes visited in this transmission.
        encrypted_payload: Payload as sent in the current transmission.
        session_keys: Node id -> key issued for the transmission.
        last_success: Outcome of the most recent verification.
        last_hash: Digest reported by the most recent verification.
    """

    phase: Phase = Phase.IDLE
    path: list[str] = field(default_factory=list)
    mode: Mode = Mode.AUTO
    step: int = 0
    packet_position: int = 0
    encrypted_payload: str | None = None
    session_keys: dict[str, str] = field(default_factory=dict)
    last_success: bool | None = None
    last_hash: str | None = None


class SimulationDriver:
    """Sequences route discovery, transmission and verification.

    The driver owns phase and path; the graph owns compromise flags and is
    re-read on every route computation. Timers carry the pacing token and
    epoch current when they were scheduled and do nothing once either has
    moved on, so a reset or reroute silences everything queued before it.

    Args:
        graph: Network to route over.
        callbacks: Collaborator hooks.
        config: Pacing and behaviour settings.
        scheduler: Timer facility (defaults to a VirtualScheduler).
        hash_function: Digest applied to the payload on verification.
        mode: Initial progression mode.
        seed: RNG seed for reproducibility (ignored if ``rng`` is given).
        rng: Random source for intrusions, alerts, keys and the
            post-verification roll.
    """

    def __init__(
        self,
        graph: Graph,
        callbacks: SimulationCallbacks | None = None,
        config: SimulationConfig | None = None,
        scheduler: Scheduler | None = None,
        hash_function: Callable[[str], str] = simulate_sha256_hash,
        mode: Mode = Mode.AUTO,
        seed: int | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.graph = graph
        self.callbacks = callbacks if callbacks is not None else SimulationCallbacks()
        self.config = config if config is not None else SimulationConfig()
        self.scheduler = scheduler if scheduler is not None else VirtualScheduler()
        self.hash_function = hash_function
        self.rng = rng if rng is not None else random.Random(seed)
        self.state = SimulationState(mode=mode)
        self._epoch = 0
        self._pacing = 0
        self._handles: list[Handle] = []
        self._pacing_handles: list[Handle] = []

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def path(self) -> list[str]:
        return list(self.state.path)

    @property
    def mode(self) -> Mode:
        return self.state.mode

    @property
    def is_simulating(self) -> bool:
        return self.state.phase is not Phase.IDLE

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start(self) -> PathResult:
        """Compute the route and enter PATH_FOUND.

        Raises:
            MissingEndpointError: If the graph has no sender or receiver;
                the driver stays IDLE.
            SimulationError: If a run is already in progress.
        """
        if self.state.phase is not Phase.IDLE:
            raise SimulationError(f"Cannot start while {self.state.phase.name}")
        self._require_endpoints()

        self._new_epoch()
        result = self.reroute()
        assert result is not None
        logger.info(
            "Run started: %d-node path, cost %s", len(result.path), result.cost
        )
        self._set_phase(Phase.PATH_FOUND)
        self._schedule_current_phase()
        return result

    def advance(self) -> None:
        """Move to the next phase (starting a run from IDLE)."""
        phase = self.state.phase
        if phase is Phase.IDLE:
            self.start()
        elif phase is Phase.PATH_FOUND:
            self._enter_routed()
        elif phase is Phase.ROUTED:
            self._begin_transmission()
        elif phase is Phase.TRANSMITTING:
            self._complete_transmission()
        elif phase is Phase.VERIFIED:
            self._finish()

    def reset(self) -> None:
        """Abandon the current run and cancel everything it scheduled.

        Compromised nodes stay compromised.
        """
        self._new_epoch()
        self._clear_progress()
        if self.state.phase is not Phase.IDLE:
            self._set_phase(Phase.IDLE)
        logger.info("Simulation reset")

    def set_mode(self, mode: Mode) -> None:
        if mode is self.state.mode:
            return
        self.state.mode = mode
        self._new_pacing()
        logger.debug("Mode set to %s", mode.value)
        self._schedule_current_phase()

    def toggle_mode(self) -> Mode:
        self.set_mode(Mode.MANUAL if self.state.mode is Mode.AUTO else Mode.AUTO)
        return self.state.mode

    def trigger_intrusion(self) -> Alert | None:
        """Compromise a random node (never sender or receiver) and reroute.

        Returns:
            The alert raised, or None if no node could be compromised.
        """
        endpoints = [
            n.id for n in (self.graph.sender, self.graph.receiver) if n is not None
        ]
        node = compromise_random_node(self.graph.nodes, endpoints, rng=self.rng)
        if node is None:
            return None

        alert = generate_alert(node.id, rng=self.rng)
        logger.warning(
            "IDS alert [%s] on %s: %s", alert.severity.value, node.id, alert.message
        )
        self._emit("on_ids_alert", node.id, alert.severity)

        if self.state.phase >= Phase.TRANSMITTING:
            self.state.session_keys = simulate_key_exchange(
                self.graph.node_ids, rng=self.rng
            )
            logger.info("Emergency key rotation for %d nodes", len(self.graph.nodes))
            self._emit("on_key_rotation", dict(self.state.session_keys))

        self.reroute()
        return alert

    def reroute(self) -> PathResult | None:
        """Recompute the sender-to-receiver route from current graph state.

        The new route replaces the stored one. A transmission in flight
        restarts over the new route.

        Returns:
            The path query result, or None if an endpoint is missing.
        """
        sender, receiver = self.graph.sender, self.graph.receiver
        if sender is None or receiver is None:
            return None

        result = shortest_path(self.graph, sender.id, receiver.id)
        self.state.path = list(result.path)
        compromised = is_path_compromised(result.path, self.graph.nodes)
        if not result.found:
            logger.warning("No route from %s to %s", sender.id, receiver.id)
        self._emit("on_path_change", list(result.path), compromised)

        if self.state.phase is Phase.TRANSMITTING:
            self._new_pacing()
            self.state.packet_position = 0
            self._schedule_current_phase()
        return result

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _enter_routed(self) -> None:
        self._set_phase(Phase.ROUTED)
        self._schedule_current_phase()

    def _begin_transmission(self) -> None:
        self.state.packet_position = 0
        self.state.encrypted_payload = simulate_aes_encryption(self.config.payload)
        self.state.session_keys = simulate_key_exchange(self.state.path, rng=self.rng)
        self._set_phase(Phase.TRANSMITTING)
        self._schedule_current_phase()

    def _visit_next_hop(self) -> None:
        position = self.state.packet_position
        if position >= len(self.state.path):
            return
        node_id = self.state.path[position]
        self.state.packet_position = position + 1
        self._emit("on_node_visit", node_id)

    def _complete_transmission(self) -> None:
        while self.state.packet_position < len(self.state.path):
            self._visit_next_hop()

        path = self.state.path
        success = bool(path) and not is_path_compromised(path, self.graph.nodes)
        digest = self.hash_function(self.config.payload)
        self.state.last_success = success
        self.state.last_hash = digest
        self._set_phase(Phase.VERIFIED)
        logger.info("Transmission %s", "verified" if success else "failed verification")
        self._emit("on_transmission_complete", success, digest)

        if self.rng.random() < self.config.intrusion_probability:
            logger.debug("Intrusion scheduled in %s", self.config.intrusion_delay)
            self._schedule(self.config.intrusion_delay, self.trigger_intrusion)
        self._schedule_current_phase()

    def _finish(self) -> None:
        self._clear_progress()
        self._set_phase(Phase.IDLE)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_endpoints(self) -> None:
        roles = (("sender", self.graph.sender), ("receiver", self.graph.receiver))
        missing = tuple(role for role, node in roles if node is None)
        if missing:
            logger.warning("Cannot start: missing %s", ", ".join(missing))
            raise MissingEndpointError(missing)

    def _clear_progress(self) -> None:
        self.state.path = []
        self.state.packet_position = 0
        self.state.encrypted_payload = None

    def _set_phase(self, phase: Phase) -> None:
        logger.debug("Phase %s -> %s", self.state.phase.name, phase.name)
        self.state.phase = phase
        self.state.step += 1
        self._emit("on_phase_change", phase)

    def _schedule_current_phase(self) -> None:
        """Queue the auto-mode timers for the phase the driver is in."""
        if self.state.mode is not Mode.AUTO:
            return
        phase = self.state.phase
        config = self.config
        if phase is Phase.PATH_FOUND:
            self._schedule(config.path_found_delay, self._enter_routed, phase)
        elif phase is Phase.ROUTED:
            self._schedule(config.routed_delay, self._begin_transmission, phase)
        elif phase is Phase.TRANSMITTING:
            remaining = len(self.state.path) - self.state.packet_position
            for k in range(remaining):
                self._schedule(k * config.hop_interval, self._visit_next_hop, phase)
            self._schedule(
                remaining * config.hop_interval, self._complete_transmission, phase
            )
        elif phase is Phase.VERIFIED and config.auto_reset_delay is not None:
            self._schedule(config.auto_reset_delay, self._finish, phase)

    def _schedule(
        self,
        delay: float,
        action: Callable[[], object],
        phase: Phase | None = None,
    ) -> None:
        """Schedule ``action``; with ``phase`` it is an auto-mode pacing timer.

        Every timer is dropped after a reset. Pacing timers are also dropped
        once the phase, mode or route they were scheduled for has changed.
        """
        epoch, pacing = self._epoch, self._pacing
        handle: Handle | None = None

        def fire() -> None:
            self._forget(handle)
            if epoch != self._epoch:
                return
            if phase is not None and (
                pacing != self._pacing
                or self.state.phase is not phase
                or self.state.mode is not Mode.AUTO
            ):
                return
            action()

        handle = self.scheduler.call_later(delay, fire)
        self._handles.append(handle)
        if phase is not None:
            self._pacing_handles.append(handle)

    def _new_epoch(self) -> None:
        """Start a fresh run context; every outstanding timer is cancelled."""
        self._epoch += 1
        self._pacing += 1
        for handle in self._handles:
            handle.cancel()
        self._handles.clear()
        self._pacing_handles.clear()

    def _new_pacing(self) -> None:
        """Supersede the auto-mode pacing timers; run-level timers stay."""
        self._pacing += 1
        for handle in self._pacing_handles:
            handle.cancel()
            self._handles.remove(handle)
        self._pacing_handles.clear()

    def _forget(self, handle: Handle | None) -> None:
        if handle in self._handles:
            self._handles.remove(handle)
        if handle in self._pacing_handles:
            self._pacing_handles.remove(handle)

    def _emit(self, hook: str, *args: object) -> None:
        callback = getattr(self.callbacks, hook)
        if callback is not None:
            callback(*args)

#!/usr/bin/env python3
"""Quick start example: route, transmit, and reroute around an intrusion.

Demonstrates the core workflow:
  1. Generate a random device network
  2. Step a transmission through every phase manually
  3. Compromise a node and watch the route change
  4. Run a second transmission over the new route
"""

import logging

from snt.graph import generate_random_graph, is_connected
from snt.pathfinding import shortest_path
from snt.simulation import Mode, SimulationCallbacks, SimulationDriver

logging.basicConfig(level=logging.INFO, format="%(levelname)-7s %(name)s: %(message)s")

# --- 1. Generate the network ---
graph = generate_random_graph(node_count=8, edge_density=0.4, seed=42)
sender, receiver = graph.sender, graph.receiver
assert sender is not None and receiver is not None

print(f"Sender: {sender.label}, Receiver: {receiver.label}")
print(f"Connected: {is_connected(graph)}")
for edge in graph.edges:
    print(f"  {edge.source} <-> {edge.target}  {edge.type.value:<8} weight={edge.weight}")

# --- 2. Manual transmission ---
callbacks = SimulationCallbacks(
    on_path_change=lambda path, bad: print(
        f"Route: {' -> '.join(path) or '(none)'}{'  [COMPROMISED]' if bad else ''}"
    ),
    on_node_visit=lambda node_id: print(f"  packet at {graph.node(node_id).label}"),
    on_transmission_complete=lambda ok, digest: print(
        f"{'Verified' if ok else 'FAILED'}: hash {digest[:16]}..."
    ),
    on_ids_alert=lambda node_id, severity: print(
        f"IDS [{severity.value}] {graph.node(node_id).label} compromised"
    ),
)
driver = SimulationDriver(graph, callbacks=callbacks, mode=Mode.MANUAL, seed=7)

print("\n--- First transmission ---")
for _ in range(4):
    driver.advance()
    print(f"phase={driver.phase.name}")
driver.advance()

# --- 3. Intrusion ---
print("\n--- Intrusion ---")
before = shortest_path(graph, sender.id, receiver.id)
alert = driver.trigger_intrusion()
if alert is not None:
    print(f"Alert: {alert.message}")
after = shortest_path(graph, sender.id, receiver.id)
print(f"Cost before: {before.cost}, after: {after.cost}")

# --- 4. Second transmission ---
print("\n--- Second transmission ---")
for _ in range(4):
    driver.advance()
print(f"Success: {driver.state.last_success}")

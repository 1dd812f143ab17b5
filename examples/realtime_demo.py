#!/usr/bin/env python3
"""Real-time demo: auto mode paced by an asyncio event loop.

Runs several transmissions back to back with the default 30% chance of an
intrusion after each verification. One simulation time unit is 0.2 s.
"""

import asyncio
import logging

from snt.graph import generate_random_graph
from snt.intrusion import compromised_nodes
from snt.scheduler import LoopScheduler
from snt.simulation import Phase, SimulationCallbacks, SimulationConfig, SimulationDriver

RUNS = 5

logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s: %(message)s")


async def main() -> None:
    graph = generate_random_graph(node_count=10, edge_density=0.5, ensure_connected=True)
    idle = asyncio.Event()

    def on_phase_change(phase: Phase) -> None:
        if phase is Phase.IDLE:
            idle.set()

    driver = SimulationDriver(
        graph,
        callbacks=SimulationCallbacks(
            on_node_visit=lambda node_id: print(f"  -> {node_id}"),
            on_transmission_complete=lambda ok, _: print("  OK" if ok else "  TAMPERED"),
            on_phase_change=on_phase_change,
        ),
        config=SimulationConfig(auto_reset_delay=4.0),
        scheduler=LoopScheduler(time_unit=0.2),
    )

    for run in range(1, RUNS + 1):
        idle.clear()
        print(f"Run {run}")
        driver.start()
        await idle.wait()

    print(f"Compromised: {[n.label for n in compromised_nodes(graph.nodes)]}")


if __name__ == "__main__":
    asyncio.run(main())

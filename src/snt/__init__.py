"""Secure Network Transmission simulator (SNT).

An educational model of routing a packet across a network of devices:
weighted shortest-path routing that avoids compromised nodes, a staged
transmission state machine, and simulated intrusions that force rerouting.
"""

__version__ = "0.1.0"

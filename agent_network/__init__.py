"""Agent network visualization engine.

Computes spatial layouts for the fixed catalog of cooperating health agents,
tracks interactive node dragging with persisted results, and drives the
simulated data-flow animation along the agent connections.
"""

__version__ = "0.1.0"

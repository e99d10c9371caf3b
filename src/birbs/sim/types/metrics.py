from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class TickMetrics:
    tick: int
    population: int
    neighbor_checks: int
    unindexed: int
    max_bucket: int
    tree_depth: int
    average_speed: float
    tick_duration_ms: float = 0.0

from __future__ import annotations

from typing import Sequence

from ..core.boid import Boid
from ..core.ntree import RegionTree
from ..types.metrics import TickMetrics


def create_metrics(
    tick: int,
    boids: Sequence[Boid],
    index: RegionTree,
    neighbor_checks: int,
    unindexed: int,
    duration_ms: float,
) -> TickMetrics:
    population = len(boids)
    speed_sum = sum(boid.speed for boid in boids)
    max_bucket = max(index.leaf_sizes(), default=0)
    tree_depth = index.depth()
    return TickMetrics(
        tick=tick,
        population=population,
        neighbor_checks=neighbor_checks,
        unindexed=unindexed,
        max_bucket=max_bucket,
        tree_depth=tree_depth,
        average_speed=0.0 if population == 0 else speed_sum / population,
        tick_duration_ms=duration_ms,
    )

from __future__ import annotations

import logging
from array import array
from time import perf_counter
from typing import Any, Dict, List, Optional, Sequence

from pygame.math import Vector2

from .boid import Boid
from .config import SimulationConfig
from .ntree import RegionTree
from .region import Region
from .rng import DeterministicRng, derive_stream_seed
from ..systems import metrics as metrics_system, steering
from ..types.metrics import TickMetrics
from ..types.snapshot import Snapshot, SnapshotMetadata, SnapshotWorld

logger = logging.getLogger(__name__)

_APPEARANCE_RNG_SALT = 0xA51E0EA7E9CA2311


class FlockManager:
    """Owns the population and runs one flocking pass per tick.

    Each pass reads the previous tick's index and writes every updated boid
    into a brand new one, so no boid sees a neighbour that has already moved
    in the same pass.
    """

    def __init__(self, config: SimulationConfig):
        self._config = config
        self._world = Region.world(config.width, config.height)
        self._rng = DeterministicRng(config.seed)
        self._appearance_rng = DeterministicRng(derive_stream_seed(config.seed, _APPEARANCE_RNG_SALT))
        self._boids: List[Boid] = []
        self._index = self._new_index()
        self._buffer = array("d")
        self._tick = 0
        self._metrics: TickMetrics | None = None
        self._bootstrap_population()

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def world(self) -> Region:
        return self._world

    @property
    def boids(self) -> tuple[Boid, ...]:
        return tuple(self._boids)

    @property
    def index(self) -> RegionTree:
        return self._index

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    @property
    def tick(self) -> int:
        return self._tick

    def reset(self) -> None:
        self._rng.reset()
        self._appearance_rng.reset()
        self._boids.clear()
        self._index = self._new_index()
        self._tick = 0
        self._metrics = None
        self._bootstrap_population()

    def flock(self, tick: Optional[int] = None) -> TickMetrics:
        start = perf_counter()
        if tick is None:
            tick = self._tick
        config = self._config
        width = config.width
        height = config.height
        flock_config = config.flock
        previous = self._boids
        index = self._index
        next_index = self._new_index()
        next_boids: List[Boid] = []
        neighbor_checks = 0
        unindexed = 0

        for boid in previous:
            neighbours = self._neighbours_of(boid, previous, index)
            neighbor_checks += len(neighbours)
            updated = steering.flock(boid, neighbours, width, height, flock_config)
            if not next_index.insert(updated):
                unindexed += 1
                logger.warning(
                    "Boid left the world at (%.3f, %.3f); flocking it without neighbours",
                    updated.position.x,
                    updated.position.y,
                )
            next_boids.append(updated)

        self._boids = next_boids
        self._index = next_index
        self._fill_buffer()
        self._tick = tick + 1
        duration_ms = (perf_counter() - start) * 1000.0
        self._metrics = metrics_system.create_metrics(
            tick, next_boids, next_index, neighbor_checks, unindexed, duration_ms
        )
        logger.debug(
            "tick %d: %d boids, %d neighbour checks, depth %d",
            tick,
            len(next_boids),
            neighbor_checks,
            self._metrics.tree_depth,
        )
        return self._metrics

    step = flock

    def items(self) -> array:
        """Flat ``x, y, vx, vy`` buffer, four entries per boid."""
        return self._buffer

    def length(self) -> int:
        return len(self._boids) * 4

    def range_query(self, region: Region) -> List[Boid]:
        return self._index.range_query(region)

    def snapshot(self, tick: Optional[int] = None) -> Snapshot:
        tick = self._tick if tick is None else tick
        metrics = self._metrics
        if metrics is None:
            metrics = metrics_system.create_metrics(tick, self._boids, self._index, 0, 0, 0.0)
        metadata = SnapshotMetadata(
            population=len(self._boids),
            bucket_size=self._config.bucket_size,
            use_spatial_index=self._config.use_spatial_index,
            seed=self._config.seed,
            config_version=self._config.config_version,
        )
        return Snapshot(
            tick=tick,
            metrics=metrics,
            boids=[self._boid_snapshot(i, boid) for i, boid in enumerate(self._boids)],
            world=SnapshotWorld(width=self._config.width, height=self._config.height),
            metadata=metadata,
        )

    def _neighbours_of(self, boid: Boid, population: Sequence[Boid], index: RegionTree) -> Sequence[Boid]:
        if not self._config.use_spatial_index:
            return [other for other in population if other is not boid]
        bucket = index.nearby(boid)
        return () if bucket is None else bucket

    def _new_index(self) -> RegionTree:
        return RegionTree(self._world, self._config.bucket_size, self._config.max_depth)

    def _bootstrap_population(self) -> None:
        spawn = self._config.spawn
        for i in range(self._config.population):
            if spawn.mode == "random":
                position = Vector2(
                    self._rng.next_range(0.0, self._config.width),
                    self._rng.next_range(0.0, self._config.height),
                )
                velocity = self._rng.next_unit_circle() * spawn.speed
            else:
                position = Vector2(spawn.origin[0] + i * spawn.spacing, spawn.origin[1])
                velocity = Vector2(spawn.velocity)
            boid = Boid(position=position, velocity=velocity, color=self._appearance_rng.sample_choice(spawn.palette))
            if not self._index.insert(boid):
                logger.warning("Spawned boid %d outside the world at (%.3f, %.3f)", i, position.x, position.y)
            self._boids.append(boid)
        self._fill_buffer()
        logger.info(
            "Seeded %d boids (%s spawn) in a %gx%g world",
            len(self._boids),
            spawn.mode,
            self._config.width,
            self._config.height,
        )

    def _fill_buffer(self) -> None:
        buffer = array("d")
        for boid in self._boids:
            buffer.extend(boid.as_row())
        self._buffer = buffer

    @staticmethod
    def _boid_snapshot(boid_id: int, boid: Boid) -> Dict[str, Any]:
        return {
            "id": boid_id,
            "x": boid.position.x,
            "y": boid.position.y,
            "vx": boid.velocity.x,
            "vy": boid.velocity.y,
            "speed": boid.speed,
            "color": boid.color,
        }

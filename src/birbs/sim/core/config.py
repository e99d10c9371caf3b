from __future__ import annotations

import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml

SPAWN_MODES = ("line", "random")


@dataclass
class FlockConfig:
    max_speed: float = 4.0
    max_steer_force: float = 0.5
    # Compared against squared distances.
    desired_separation: float = 500.0
    # Plain distance; None keeps whatever neighbours the caller hands in.
    neighbour_distance: Optional[float] = None
    wall_weight: float = 25.0
    min_wall_distance_sq: float = 1e-6


@dataclass
class SpawnConfig:
    mode: str = "line"
    origin: tuple[float, float] = (100.0, 100.0)
    spacing: float = 0.1
    velocity: tuple[float, float] = (0.0, 0.0)
    speed: float = 1.0
    palette: List[str] = field(default_factory=list)


@dataclass
class SimulationConfig:
    width: float = 1910.0
    height: float = 1080.0
    bucket_size: int = 50
    max_depth: int = 12
    population: int = 5000
    seed: int = 42
    use_spatial_index: bool = True
    config_version: str = "v1"
    flock: FlockConfig = field(default_factory=FlockConfig)
    spawn: SpawnConfig = field(default_factory=SpawnConfig)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"World size must be positive, got {self.width}x{self.height}")
        if self.bucket_size < 1:
            raise ValueError(f"bucket_size must be at least 1, got {self.bucket_size}")
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be at least 1, got {self.max_depth}")
        if self.population < 0:
            raise ValueError(f"population must not be negative, got {self.population}")
        if self.flock.max_speed < 0 or self.flock.max_steer_force < 0:
            raise ValueError("max_speed and max_steer_force must not be negative")
        if self.flock.neighbour_distance is not None and self.flock.neighbour_distance < 0:
            raise ValueError("neighbour_distance must not be negative")
        if self.flock.min_wall_distance_sq <= 0:
            raise ValueError("min_wall_distance_sq must be positive")
        if self.spawn.mode not in SPAWN_MODES:
            raise ValueError(f"Unknown spawn mode: {self.spawn.mode}")

    @staticmethod
    def from_yaml(path: Path, base: Optional["SimulationConfig"] = None) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_config(data, base=base)


PRESETS = {
    "wasm": SimulationConfig(),
    "canvas": SimulationConfig(
        width=1000.0,
        height=700.0,
        population=1000,
        use_spatial_index=False,
        flock=FlockConfig(max_speed=2.0, max_steer_force=0.02),
        spawn=SpawnConfig(origin=(400.0, 300.0), velocity=(0.1, 0.2)),
    ),
}


def preset(name: str) -> SimulationConfig:
    try:
        return copy.deepcopy(PRESETS[name])
    except KeyError:
        raise ValueError(f"Unknown preset: {name}") from None


def load_config(raw: dict, base: Optional[SimulationConfig] = None) -> SimulationConfig:
    """Build a config from a parsed YAML mapping.

    Keys missing from ``raw`` fall back to ``base`` (a preset) or to the
    dataclass defaults. A ``preset`` key picks the base when none is given.
    """

    if base is None:
        base = preset(raw["preset"]) if "preset" in raw else SimulationConfig()

    def _pair(value: tuple[float, float] | list[float] | None, default: tuple[float, float]) -> tuple[float, float]:
        if isinstance(value, (tuple, list)) and len(value) == 2:
            return (float(value[0]), float(value[1]))
        return default

    flock_values = {**vars(base.flock), **(raw.get("flock") or {})}
    flock = FlockConfig(**flock_values)

    spawn_raw = dict(raw.get("spawn") or {})
    spawn_values = {**vars(base.spawn), **spawn_raw}
    spawn_values["origin"] = _pair(spawn_raw.get("origin"), base.spawn.origin)
    spawn_values["velocity"] = _pair(spawn_raw.get("velocity"), base.spawn.velocity)
    spawn_values["palette"] = list(spawn_values.get("palette") or [])
    spawn = SpawnConfig(**spawn_values)

    sim_values = {k: v for k, v in vars(base).items() if k not in {"flock", "spawn"}}
    sim_values.update({k: v for k, v in raw.items() if k not in {"flock", "spawn", "preset"}})
    return SimulationConfig(flock=flock, spawn=spawn, **sim_values)

from __future__ import annotations

import argparse
import csv
import json
import logging
import math
from dataclasses import replace
from pathlib import Path
from typing import Optional

from ..sim.core.config import PRESETS, SimulationConfig, preset
from ..sim.core.manager import FlockManager
from ..sim.types.metrics import TickMetrics

logger = logging.getLogger(__name__)

_BASIC_HEADER = [
    "tick",
    "population",
    "neighbor_checks",
    "unindexed",
    "tick_ms",
]

_DETAILED_HEADER = [
    "tick",
    "population",
    "neighbor_checks",
    "unindexed",
    "tick_ms",
    "neighbor_checks_per_boid",
    "tick_ms_per_boid",
    "avg_speed",
    "max_speed",
    "max_bucket",
    "avg_bucket",
    "occupied_leaves",
    "tree_depth",
    "centroid_x",
    "centroid_y",
    "spread",
]


def _format_basic_row(metrics: TickMetrics, tick_ms: float) -> list[object]:
    return [
        metrics.tick,
        metrics.population,
        metrics.neighbor_checks,
        metrics.unindexed,
        f"{tick_ms:.3f}",
    ]


def _format_detailed_row(manager: FlockManager, metrics: TickMetrics, tick_ms: float) -> list[object]:
    population = metrics.population
    boids = manager.boids
    occupied = [size for size in manager.index.leaf_sizes() if size > 0]
    if population <= 0:
        neighbor_checks_per_boid = 0.0
        tick_ms_per_boid = 0.0
        max_speed = 0.0
        centroid_x = 0.0
        centroid_y = 0.0
        spread = 0.0
    else:
        neighbor_checks_per_boid = metrics.neighbor_checks / population
        tick_ms_per_boid = tick_ms / population
        max_speed = max(boid.speed for boid in boids)
        centroid_x = sum(boid.position.x for boid in boids) / population
        centroid_y = sum(boid.position.y for boid in boids) / population
        spread = math.sqrt(
            sum(
                (boid.position.x - centroid_x) ** 2 + (boid.position.y - centroid_y) ** 2
                for boid in boids
            )
            / population
        )
    avg_bucket = sum(occupied) / len(occupied) if occupied else 0.0

    return [
        metrics.tick,
        population,
        metrics.neighbor_checks,
        metrics.unindexed,
        f"{tick_ms:.3f}",
        f"{neighbor_checks_per_boid:.4f}",
        f"{tick_ms_per_boid:.4f}",
        f"{metrics.average_speed:.4f}",
        f"{max_speed:.4f}",
        metrics.max_bucket,
        f"{avg_bucket:.4f}",
        len(occupied),
        metrics.tree_depth,
        f"{centroid_x:.4f}",
        f"{centroid_y:.4f}",
        f"{spread:.4f}",
    ]


def _percentile(sorted_values: list[float], percentile: float) -> float:
    if not sorted_values:
        return 0.0
    if len(sorted_values) == 1:
        return float(sorted_values[0])
    pos = (len(sorted_values) - 1) * percentile
    low = int(math.floor(pos))
    high = int(math.ceil(pos))
    if low == high:
        return float(sorted_values[low])
    weight = pos - low
    return float(sorted_values[low] + (sorted_values[high] - sorted_values[low]) * weight)


def _summary_stats(values: list[float]) -> dict[str, float]:
    if not values:
        return {"min": 0.0, "max": 0.0, "avg": 0.0, "p50": 0.0, "p90": 0.0, "p99": 0.0}
    sorted_values = sorted(values)
    return {
        "min": float(sorted_values[0]),
        "max": float(sorted_values[-1]),
        "avg": float(sum(values) / len(values)),
        "p50": _percentile(sorted_values, 0.50),
        "p90": _percentile(sorted_values, 0.90),
        "p99": _percentile(sorted_values, 0.99),
    }


def build_config(
    preset_name: Optional[str] = None,
    config_path: Optional[Path] = None,
    seed: Optional[int] = None,
    population: Optional[int] = None,
) -> SimulationConfig:
    base = preset(preset_name) if preset_name else None
    if config_path:
        config = SimulationConfig.from_yaml(config_path, base=base)
    else:
        config = base if base is not None else SimulationConfig()
    if seed is not None:
        config = replace(config, seed=seed)
    if population is not None:
        config.population = population
    config.validate()
    return config


def run_headless(
    steps: int,
    seed: Optional[int] = None,
    log_path: Optional[Path] = None,
    deterministic_log: bool = False,
    log_format: str = "detailed",
    summary_path: Optional[Path] = None,
    summary_window: int = 500,
    config: Optional[SimulationConfig] = None,
) -> FlockManager:
    log_mode = log_format.lower().strip()
    if log_mode not in {"basic", "detailed"}:
        raise ValueError(f"Unknown log format: {log_format}")

    if config is None:
        config = SimulationConfig()
    if seed is not None:
        config.seed = seed
    manager = FlockManager(config)

    writer = None
    csv_file = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        writer.writerow(_DETAILED_HEADER if log_mode == "detailed" else _BASIC_HEADER)

    tick_ms_series: list[float] = []
    neighbor_checks_series: list[float] = []
    speed_series: list[float] = []
    unindexed_total = 0

    try:
        for tick in range(steps):
            metrics = manager.flock(tick)
            tick_ms = 0.0 if deterministic_log else metrics.tick_duration_ms
            tick_ms_series.append(tick_ms)
            neighbor_checks_series.append(float(metrics.neighbor_checks))
            speed_series.append(metrics.average_speed)
            unindexed_total += metrics.unindexed
            if writer:
                if log_mode == "detailed":
                    writer.writerow(_format_detailed_row(manager, metrics, tick_ms))
                else:
                    writer.writerow(_format_basic_row(metrics, tick_ms))
    finally:
        if csv_file:
            csv_file.close()

    logger.info(
        "Ran %d ticks over %d boids (avg %.3f ms/tick)",
        steps,
        len(manager.boids),
        sum(tick_ms_series) / len(tick_ms_series) if tick_ms_series else 0.0,
    )

    if summary_path:
        window = max(1, int(summary_window))
        tail_slice = slice(max(0, len(tick_ms_series) - window), len(tick_ms_series))
        summary = {
            "steps": steps,
            "seed": config.seed,
            "population": len(manager.boids),
            "use_spatial_index": config.use_spatial_index,
            "log_format": log_mode,
            "deterministic_log": deterministic_log,
            "unindexed_total": unindexed_total,
            "tick_ms": _summary_stats(tick_ms_series),
            "neighbor_checks": _summary_stats(neighbor_checks_series),
            "average_speed": _summary_stats(speed_series),
            "tail_window": {
                "window": window,
                "tick_ms": _summary_stats(tick_ms_series[tail_slice]),
                "neighbor_checks": _summary_stats(neighbor_checks_series[tail_slice]),
                "average_speed": _summary_stats(speed_series[tail_slice]),
            },
        }
        Path(summary_path).write_text(json.dumps(summary, indent=2))

    return manager


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Headless boids simulation")
    parser.add_argument("--steps", type=int, default=600)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--population", type=int, default=None, help="Override the number of boids")
    parser.add_argument("--preset", choices=sorted(PRESETS), default=None)
    parser.add_argument("--config", type=Path, default=None, help="YAML file with simulation settings")
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write metrics")
    parser.add_argument(
        "--log-format",
        choices=["basic", "detailed"],
        default="detailed",
        help="CSV format to write when --log is provided.",
    )
    parser.add_argument(
        "--summary",
        type=Path,
        default=None,
        help="Optional JSON file to write summary stats for the run.",
    )
    parser.add_argument(
        "--summary-window",
        type=int,
        default=500,
        help="Tail window size (ticks) for summary stats.",
    )
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    config = build_config(args.preset, args.config, args.seed, args.population)
    run_headless(
        args.steps,
        log_path=args.log,
        deterministic_log=args.deterministic_log,
        log_format=args.log_format,
        summary_path=args.summary,
        summary_window=args.summary_window,
        config=config,
    )


if __name__ == "__main__":
    main()

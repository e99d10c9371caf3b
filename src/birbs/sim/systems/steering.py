from __future__ import annotations

import math
from typing import Sequence

from pygame.math import Vector2

from ..core.boid import Boid
from ..core.config import FlockConfig
from ..utils.math2d import _clamp_length_xy, _distance_sq_xy

_DEFAULT_CONFIG = FlockConfig()


def flock(
    current: Boid,
    neighbours: Sequence[Boid] | None,
    width: float,
    height: float,
    config: FlockConfig = _DEFAULT_CONFIG,
) -> Boid:
    """Advance ``current`` by one tick and return the new boid.

    The acceleration is the plain sum of wall avoidance, alignment,
    separation and cohesion. Velocity is capped at ``config.max_speed``
    before it is added to the position. ``current`` is left untouched.
    """

    if not neighbours:
        neighbours = ()
    elif config.neighbour_distance is not None:
        neighbours = within_distance(current, neighbours, config.neighbour_distance)

    avoid = avoid_walls(current.position, width, height, config)
    align = alignment(neighbours, config)
    separate = separation(current, neighbours, config)
    cohede = cohesion(current, neighbours, config)

    accel_x = avoid.x + align.x + separate.x + cohede.x
    accel_y = avoid.y + align.y + separate.y + cohede.y
    velocity = _clamp_length_xy(
        current.velocity.x + accel_x,
        current.velocity.y + accel_y,
        config.max_speed,
    )
    position = Vector2(current.position.x + velocity.x, current.position.y + velocity.y)
    return Boid(position=position, velocity=velocity, color=current.color)


step = flock


def within_distance(current: Boid, neighbours: Sequence[Boid], radius: float) -> list[Boid]:
    radius_sq = radius * radius
    px = current.position.x
    py = current.position.y
    return [
        other
        for other in neighbours
        if _distance_sq_xy(other.position.x, other.position.y, px, py) <= radius_sq
    ]


def _repel(offset: float, normal: float, floor: float) -> float:
    # Inward normal even for a boid on or past the wall.
    return normal / max(abs(offset), floor)


def avoid_walls(position: Vector2, width: float, height: float, config: FlockConfig = _DEFAULT_CONFIG) -> Vector2:
    """Inverse-square push away from the four world edges.

    Each wall contributes ``wall_weight / distance`` along its inward
    normal, with the distance floored at ``sqrt(min_wall_distance_sq)``.
    """
    px = position.x
    py = position.y
    floor = math.sqrt(config.min_wall_distance_sq)
    push_x = _repel(px, 1.0, floor) + _repel(px - width, -1.0, floor)
    push_y = _repel(py, 1.0, floor) + _repel(py - height, -1.0, floor)
    return Vector2(push_x * config.wall_weight, push_y * config.wall_weight)


def alignment(neighbours: Sequence[Boid], config: FlockConfig = _DEFAULT_CONFIG) -> Vector2:
    count = len(neighbours)
    if count == 0:
        return Vector2()
    sum_x = 0.0
    sum_y = 0.0
    for other in neighbours:
        sum_x += other.velocity.x
        sum_y += other.velocity.y
    # Divides by count / max_steer_force rather than averaging.
    scale = count / config.max_steer_force if config.max_steer_force > 0 else math.inf
    return Vector2(sum_x / scale, sum_y / scale)


def separation(current: Boid, neighbours: Sequence[Boid], config: FlockConfig = _DEFAULT_CONFIG) -> Vector2:
    accum_x = 0.0
    accum_y = 0.0
    px = current.position.x
    py = current.position.y
    for other in neighbours:
        dist_sq = _distance_sq_xy(other.position.x, other.position.y, px, py)
        if dist_sq <= 0.0 or dist_sq > config.desired_separation:
            continue
        inv_len = 1.0 / math.sqrt(dist_sq)
        accum_x += (px - other.position.x) * inv_len / dist_sq
        accum_y += (py - other.position.y) * inv_len / dist_sq
    return Vector2(accum_x, accum_y)


def cohesion(current: Boid, neighbours: Sequence[Boid], config: FlockConfig = _DEFAULT_CONFIG) -> Vector2:
    count = len(neighbours)
    if count == 0:
        return Vector2()
    sum_x = 0.0
    sum_y = 0.0
    for other in neighbours:
        sum_x += other.position.x
        sum_y += other.position.y
    steer_x = sum_x / count - current.position.x
    steer_y = sum_y / count - current.position.y
    return _clamp_length_xy(steer_x, steer_y, config.max_steer_force)

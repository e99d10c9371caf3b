from __future__ import annotations

import math

from pygame.math import Vector2


def _clamp_length_xy(x: float, y: float, max_length: float) -> Vector2:
    if max_length <= 0:
        return Vector2()
    magnitude_sq = x * x + y * y
    if magnitude_sq <= max_length * max_length:
        return Vector2(x, y)
    inv = max_length / math.sqrt(magnitude_sq)
    return Vector2(x * inv, y * inv)


def _distance_sq_xy(ax: float, ay: float, bx: float, by: float) -> float:
    dx = ax - bx
    dy = ay - by
    return dx * dx + dy * dy

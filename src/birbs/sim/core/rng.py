from __future__ import annotations

import math
import random
from typing import Optional, Sequence, TypeVar

from pygame.math import Vector2

T = TypeVar("T")


def derive_stream_seed(seed: int, salt: int) -> int:
    return (int(seed) ^ int(salt)) & 0xFFFFFFFFFFFFFFFF


class DeterministicRng:
    """Seeded ``random.Random`` that can be rewound to its first draw."""

    def __init__(self, seed: int):
        self._seed = seed
        self._random = random.Random(seed)

    @property
    def seed(self) -> int:
        return self._seed

    def reset(self) -> None:
        self._random.seed(self._seed)

    def next_range(self, low: float, high: float) -> float:
        return self._random.uniform(low, high)

    def next_unit_circle(self) -> Vector2:
        angle = self._random.uniform(0.0, 2.0 * math.pi)
        return Vector2(math.cos(angle), math.sin(angle))

    def sample_choice(self, items: Sequence[T]) -> Optional[T]:
        if not items:
            return None
        return self._random.choice(items)

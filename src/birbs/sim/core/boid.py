from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from pygame.math import Vector2


@dataclass(frozen=True, slots=True)
class Boid:
    """A single flocking agent.

    Boids are values: every tick replaces them with new instances, so the
    vectors held here must not be mutated in place once the boid is built.
    ``color`` is carried through untouched for whoever draws the flock.
    """

    position: Vector2
    velocity: Vector2 = field(default_factory=Vector2)
    color: Optional[str] = None

    @property
    def speed(self) -> float:
        return self.velocity.length()

    def as_row(self) -> tuple[float, float, float, float]:
        return (self.position.x, self.position.y, self.velocity.x, self.velocity.y)


def make_boid(x: float, y: float, vx: float = 0.0, vy: float = 0.0, color: Optional[str] = None) -> Boid:
    return Boid(position=Vector2(x, y), velocity=Vector2(vx, vy), color=color)

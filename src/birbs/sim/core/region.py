from __future__ import annotations

from dataclasses import dataclass
from typing import List

from .boid import Boid


@dataclass(frozen=True, slots=True)
class Region:
    """Axis-aligned rectangle used both as world bounds and as a tree cell.

    All predicates treat the rectangle as closed: points on an edge are
    inside.
    """

    x: float
    y: float
    width: float
    height: float

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(f"Region extent must not be negative, got {self.width}x{self.height}")

    @classmethod
    def square(cls, x: float, y: float, size: float) -> "Region":
        return cls(x, y, size, size)

    @classmethod
    def world(cls, width: float, height: float) -> "Region":
        return cls(0.0, 0.0, width, height)

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def top(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    def corners(self) -> tuple[tuple[float, float], ...]:
        return (
            (self.x, self.y),
            (self.right, self.y),
            (self.x, self.top),
            (self.right, self.top),
        )

    def contains_point(self, x: float, y: float) -> bool:
        return self.x <= x <= self.right and self.y <= y <= self.top

    def contains(self, boid: Boid) -> bool:
        return self.contains_point(boid.position.x, boid.position.y)

    def split(self) -> List["Region"]:
        """Quarter the region: bottom-left, top-left, bottom-right, top-right."""
        half_w = self.width / 2.0
        half_h = self.height / 2.0
        return [
            Region(self.x, self.y, half_w, half_h),
            Region(self.x, self.y + half_h, half_w, half_h),
            Region(self.x + half_w, self.y, half_w, half_h),
            Region(self.x + half_w, self.y + half_h, half_w, half_h),
        ]

    def overlaps(self, other: "Region") -> bool:
        # Corner containment only: two rectangles crossing like a plus sign
        # share no corner and are reported as disjoint.
        return any(other.contains_point(cx, cy) for cx, cy in self.corners())


def contains(region: Region, boid: Boid) -> bool:
    return region.contains(boid)


def split(region: Region) -> List[Region]:
    return region.split()


def overlaps(region_a: Region, region_b: Region) -> bool:
    return region_a.overlaps(region_b)

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from .boid import Boid
from .region import Region


@dataclass(slots=True)
class _Node:
    region: Region
    depth: int
    points: List[Boid] = field(default_factory=list)
    children: Optional[List["_Node"]] = None


class RegionTree:
    """Quadtree of boid buckets over a fixed root region.

    Leaves hold at most ``bucket_size`` boids. Inserting into a full leaf
    splits its region into quadrants and pushes the existing boids down.
    Leaves at ``max_depth`` stop splitting and simply grow, so any number of
    coincident boids can be stored.

    A boid on a shared edge belongs to the first quadrant (in split order)
    that contains it.
    """

    def __init__(self, region: Region, bucket_size: int, max_depth: int = 12):
        if bucket_size < 1:
            raise ValueError(f"bucket_size must be at least 1, got {bucket_size}")
        self._region = region
        self._bucket_size = bucket_size
        self._max_depth = max(1, max_depth)
        self._root = _Node(region, 0)
        self._split(self._root)
        self._size = 0

    @property
    def region(self) -> Region:
        return self._region

    @property
    def bucket_size(self) -> int:
        return self._bucket_size

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[Boid]:
        for leaf in self._leaves():
            yield from leaf.points

    def contains(self, boid: Boid) -> bool:
        return self._region.contains(boid)

    def insert(self, boid: Boid) -> bool:
        if not self._region.contains(boid):
            return False
        self._insert(self._root, boid)
        self._size += 1
        return True

    def nearby(self, boid: Boid) -> Optional[tuple[Boid, ...]]:
        """Boids sharing the finest leaf that contains ``boid``.

        ``boid`` itself is left out when it is stored in that leaf. Returns
        None when the position lies outside the root region.
        """

        if not self._region.contains(boid):
            return None
        node = self._root
        while node.children is not None:
            node = self._child_for(node, boid)
        return tuple(other for other in node.points if other is not boid)

    def range_query(self, query: Region) -> List[Boid]:
        found: List[Boid] = []
        stack = [self._root]
        while stack:
            node = stack.pop()
            if node.children is None:
                found.extend(boid for boid in node.points if query.contains(boid))
                continue
            # Children are pushed in reverse so results come out in tree order.
            for child in reversed(node.children):
                if child.region.overlaps(query) or query.overlaps(child.region):
                    stack.append(child)
        return found

    def depth(self) -> int:
        return max(leaf.depth for leaf in self._leaves())

    def leaf_sizes(self) -> List[int]:
        return [len(leaf.points) for leaf in self._leaves()]

    def _insert(self, node: _Node, boid: Boid) -> None:
        while True:
            if node.children is None:
                if len(node.points) < self._bucket_size or node.depth >= self._max_depth:
                    node.points.append(boid)
                    return
                self._split(node)
            node = self._child_for(node, boid)

    def _split(self, node: _Node) -> None:
        displaced = node.points
        node.points = []
        node.children = [_Node(region, node.depth + 1) for region in node.region.split()]
        for boid in displaced:
            self._insert(self._child_for(node, boid), boid)

    @staticmethod
    def _child_for(node: _Node, boid: Boid) -> _Node:
        for child in node.children:
            if child.region.contains(boid):
                return child
        # Rounding in split() can leave a sliver on the far edge; the last
        # quadrant owns it.
        return node.children[-1]

    def _leaves(self) -> Iterator[_Node]:
        stack = [self._root]
        while stack:
            node = stack.pop()
            if node.children is None:
                yield node
            else:
                stack.extend(reversed(node.children))

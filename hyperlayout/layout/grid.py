"""Euclidean bucket grid over disk coordinates.

Used by the relaxation pass as a locality filter: buckets are square cells
of side ``cell_size`` in disk coordinates. Near the disk centre a bucket
neighbourhood is a good proxy for a hyperbolic neighbourhood; towards the
boundary hyperbolic balls shrink in Euclidean terms, so a neighbourhood
query returns a superset that callers filter by true distance.
"""

import math
from collections import defaultdict
from collections.abc import Hashable, Iterable


class SpatialGrid:
    """Hash grid mapping integer cells to the keys inserted there."""

    def __init__(self, cell_size: float = 0.1) -> None:
        if not cell_size > 0:
            raise ValueError(f"cell_size must be positive, got {cell_size}")
        self.cell_size = cell_size
        self._cells: dict[tuple[int, int], list] = defaultdict(list)
        self._count = 0

    @classmethod
    def from_positions(cls, keys: Iterable[Hashable], positions, cell_size: float = 0.1) -> "SpatialGrid":
        """Build a grid from parallel sequences of keys and (x, y) positions."""
        grid = cls(cell_size)
        for key, position in zip(keys, positions):
            grid.insert(key, position)
        return grid

    def cell_of(self, position) -> tuple[int, int]:
        """Integer cell containing ``position``."""
        return (math.floor(float(position[0]) / self.cell_size), math.floor(float(position[1]) / self.cell_size))

    def insert(self, key: Hashable, position) -> None:
        """Add ``key`` at ``position``; non-finite positions are skipped."""
        if not (math.isfinite(float(position[0])) and math.isfinite(float(position[1]))):
            return
        self._cells[self.cell_of(position)].append(key)
        self._count += 1

    def neighbors(self, position, rings: int = 1) -> list:
        """Keys in the ``(2·rings + 1)²`` cells around ``position``."""
        cx, cy = self.cell_of(position)
        found = []
        for dx in range(-rings, rings + 1):
            for dy in range(-rings, rings + 1):
                found.extend(self._cells.get((cx + dx, cy + dy), ()))
        return found

    def rings_for(self, radius: float) -> int:
        """Number of rings whose cells cover a Euclidean ``radius`` around any point."""
        return max(1, math.ceil(radius / self.cell_size))

    def clear(self) -> None:
        self._cells.clear()
        self._count = 0

    def __len__(self) -> int:
        return self._count

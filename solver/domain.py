# solver/domain.py
from typing import FrozenSet, Iterable, List, Optional, Sequence

from models import Coordinate, manhattan
from config import CFG

MIN_GRID_SIZE = 3


def is_boundary_cell(c: Coordinate, grid_size: int, margin: int = 1) -> bool:
    """True when ``c`` lies within ``margin`` cells of any wall."""
    return (
        c.x < margin
        or c.y < margin
        or c.x > grid_size - 1 - margin
        or c.y > grid_size - 1 - margin
    )


def is_spawn_cell(c: Coordinate, grid_size: int, spawn_size: int = 2) -> bool:
    # top-left block; grid_size is part of the predicate signature only
    return c.x < spawn_size and c.y < spawn_size


class DomainModel:
    """Static usable-cell lookup for one grid.

    The forbidden set is computed once here and never changes afterwards.
    Candidate domains are produced in row-major order (ascending x, then y)
    so repeated solves walk the same tree.
    """

    def __init__(
        self,
        grid_size: int,
        *,
        boundary_margin: Optional[int] = None,
        spawn_size: Optional[int] = None,
        min_separation: Optional[int] = None,
    ):
        if isinstance(grid_size, bool) or not isinstance(grid_size, int):
            raise ValueError(f"grid_size must be an integer, got {grid_size!r}")
        if grid_size < MIN_GRID_SIZE:
            raise ValueError(f"grid_size must be >= {MIN_GRID_SIZE}, got {grid_size}")

        self.grid_size = grid_size
        self.boundary_margin = int(CFG.BOUNDARY_MARGIN if boundary_margin is None else boundary_margin)
        self.spawn_size = int(CFG.SPAWN_SIZE if spawn_size is None else spawn_size)
        self.min_separation = int(CFG.MIN_SEPARATION if min_separation is None else min_separation)

        forbidden = set()
        free: List[Coordinate] = []
        for x in range(grid_size):
            for y in range(grid_size):
                c = Coordinate(x, y)
                if (is_boundary_cell(c, grid_size, self.boundary_margin)
                        or is_spawn_cell(c, grid_size, self.spawn_size)):
                    forbidden.add(c)
                else:
                    free.append(c)
        self._forbidden: FrozenSet[Coordinate] = frozenset(forbidden)
        self._free: tuple = tuple(free)

    @property
    def forbidden(self) -> FrozenSet[Coordinate]:
        return self._forbidden

    def free_cells(self) -> List[Coordinate]:
        return list(self._free)

    def is_forbidden(self, c: Coordinate) -> bool:
        return c in self._forbidden

    def domain_for(self, partial: Iterable[Coordinate]) -> List[Coordinate]:
        used = set(partial)
        return [c for c in self._free if c not in used]

    def conflicts(self, a: Coordinate, b: Coordinate) -> bool:
        return manhattan(a, b) < self.min_separation

    def is_consistent(self, candidate: Coordinate, placed: Sequence[Coordinate]) -> bool:
        """Check ``candidate`` against every previously committed position."""
        for other in placed:
            if self.conflicts(candidate, other):
                return False
        return True

    def __repr__(self):
        return (f"DomainModel(grid={self.grid_size}, free={len(self._free)}, "
                f"forbidden={len(self._forbidden)}, separation={self.min_separation})")

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# outcome tags carried by SolveResult
SOLVED = "solved"
SEARCH_EXHAUSTED = "search_exhausted"
CUTOFF = "cutoff"
CONFIGURATION_INVALID = "configuration_invalid"


@dataclass(frozen=True, order=True)
class Coordinate:
    x: int
    y: int

    def as_tuple(self):
        return (self.x, self.y)

    def __str__(self) -> str:
        return f"({self.x}, {self.y})"


def manhattan(a: Coordinate, b: Coordinate) -> int:
    return abs(a.x - b.x) + abs(a.y - b.y)


@dataclass
class SearchStats:
    nodes_explored: int = 0
    backtrack_count: int = 0
    elapsed_seconds: float = 0.0
    forward_check_prunes: int = 0
    limit_hit: bool = False
    timed_out: bool = False

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed_seconds * 1000.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes_explored": self.nodes_explored,
            "backtrack_count": self.backtrack_count,
            "elapsed_seconds": round(self.elapsed_seconds, 6),
            "forward_check_prunes": self.forward_check_prunes,
            "limit_hit": self.limit_hit,
            "timed_out": self.timed_out,
        }


@dataclass
class SolveResult:
    """Tagged outcome of one solve.

    ``assignment`` holds one Coordinate per item (item ``i`` at index ``i``)
    when ``outcome`` is ``solved`` and is empty for every other outcome.
    """

    outcome: str
    assignment: List[Coordinate] = field(default_factory=list)
    stats: SearchStats = field(default_factory=SearchStats)
    reason: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.outcome == SOLVED

    def coords(self):
        return [c.as_tuple() for c in self.assignment]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "outcome": self.outcome,
            "assignment": [list(t) for t in self.coords()],
            "stats": self.stats.to_dict(),
            "reason": self.reason,
            "meta": dict(self.meta),
        }

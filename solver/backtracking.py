# solver/backtracking.py
from __future__ import annotations

import sys
import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from models import (
    Coordinate, SearchStats, SolveResult,
    SOLVED, SEARCH_EXHAUSTED, CUTOFF,
)
from config import CFG
from solver.domain import DomainModel
from solver.heuristics import (
    VARIABLE_ORDERINGS, VALUE_ORDERINGS, forward_check, restore,
)


@dataclass(frozen=True)
class SolverOptions:
    variable_ordering: str = "fixed"
    value_ordering: str = "domain"
    forward_checking: bool = False
    node_limit: int = 0        # 0 disables
    time_limit: float = 0.0    # seconds, 0 disables

    def __post_init__(self):
        if self.variable_ordering not in VARIABLE_ORDERINGS:
            raise ValueError(
                f"Unknown variable ordering {self.variable_ordering!r} "
                f"(expected one of {sorted(VARIABLE_ORDERINGS)})"
            )
        if self.value_ordering not in VALUE_ORDERINGS:
            raise ValueError(
                f"Unknown value ordering {self.value_ordering!r} "
                f"(expected one of {sorted(VALUE_ORDERINGS)})"
            )
        if isinstance(self.node_limit, bool) or not isinstance(self.node_limit, int) or self.node_limit < 0:
            raise ValueError(f"node_limit must be a non-negative integer, got {self.node_limit!r}")
        if (isinstance(self.time_limit, bool) or not isinstance(self.time_limit, (int, float))
                or self.time_limit < 0):
            raise ValueError(f"time_limit must be a non-negative number, got {self.time_limit!r}")

    @classmethod
    def from_config(cls, **overrides) -> "SolverOptions":
        values = {
            "variable_ordering": str(getattr(CFG, "VARIABLE_ORDERING", "fixed")),
            "value_ordering": str(getattr(CFG, "VALUE_ORDERING", "domain")),
            "forward_checking": bool(getattr(CFG, "FORWARD_CHECKING", False)),
            "node_limit": int(getattr(CFG, "NODE_LIMIT", 0) or 0),
            "time_limit": float(getattr(CFG, "TIME_LIMIT", 0.0) or 0.0),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    @property
    def is_baseline(self) -> bool:
        return (self.variable_ordering == "fixed"
                and self.value_ordering == "domain"
                and not self.forward_checking)

    def to_dict(self) -> Dict[str, object]:
        return {
            "variable_ordering": self.variable_ordering,
            "value_ordering": self.value_ordering,
            "forward_checking": self.forward_checking,
            "node_limit": self.node_limit,
            "time_limit": self.time_limit,
        }


class BacktrackingSolver:
    """Depth-first placement search over a DomainModel.

    With default options this is the plain fixed-order search: every entry
    into the recursion counts one node, every candidate undone at a level
    counts one backtrack, and domains are walked in row-major order.  The
    MRV / LCV / forward-checking strategies plug in behind the same
    ``solve`` call.
    """

    def __init__(self, domain: DomainModel, options: Optional[SolverOptions] = None):
        self.domain = domain
        self.options = options or SolverOptions()
        self.stats = SearchStats()
        self.num_items = 0
        self._partial: List[Coordinate] = []
        self._positions: List[Optional[Coordinate]] = []
        self._unplaced: Set[int] = set()
        self._live: Optional[Dict[int, List[Coordinate]]] = None
        self._deadline: Optional[float] = None
        self._stopped = False

        self._select = VARIABLE_ORDERINGS[self.options.variable_ordering]
        self._order = VALUE_ORDERINGS[self.options.value_ordering]

    # ---------- entry point ----------

    def solve(self, num_items: int) -> SolveResult:
        if isinstance(num_items, bool) or not isinstance(num_items, int) or num_items < 0:
            raise ValueError(f"num_items must be a non-negative integer, got {num_items!r}")

        self._reset(num_items)

        needed = num_items + 100
        if sys.getrecursionlimit() < needed:
            sys.setrecursionlimit(needed)

        t0 = time.time()
        if self.options.time_limit and self.options.time_limit > 0:
            self._deadline = t0 + float(self.options.time_limit)
        found = self._search()
        self.stats.elapsed_seconds = time.time() - t0

        meta = {
            "options": self.options.to_dict(),
            "grid_size": self.domain.grid_size,
            "num_items": num_items,
        }
        if found:
            assignment = [p for p in self._positions if p is not None]
            return SolveResult(SOLVED, assignment, self.stats, None, meta)

        self._partial.clear()
        if self.stats.timed_out:
            return SolveResult(CUTOFF, [], self.stats, "time_limit", meta)
        if self.stats.limit_hit:
            return SolveResult(CUTOFF, [], self.stats, "node_limit", meta)
        return SolveResult(
            SEARCH_EXHAUSTED, [], self.stats,
            "No valid placement exists (search exhausted)", meta,
        )

    def _reset(self, num_items: int) -> None:
        self.num_items = num_items
        self.stats = SearchStats()
        self._partial = []
        self._positions = [None] * num_items
        self._unplaced = set(range(num_items))
        self._deadline = None
        self._stopped = False
        if self.options.forward_checking:
            free = self.domain.free_cells()
            self._live = {item: list(free) for item in range(num_items)}
        else:
            self._live = None

    # ---------- guards ----------

    def _guard_tripped(self) -> bool:
        if self._stopped:
            return True
        limit = self.options.node_limit
        if limit and limit > 0 and self.stats.nodes_explored >= limit:
            self.stats.limit_hit = True
            self._stopped = True
            return True
        if self._deadline is not None and time.time() >= self._deadline:
            self.stats.timed_out = True
            self._stopped = True
            return True
        return False

    # ---------- domains ----------

    def _candidates(self, item: int) -> List[Coordinate]:
        if self._live is not None:
            return list(self._live[item])
        return self.domain.domain_for(self._partial)

    def _legal_values(self, item: int) -> List[Coordinate]:
        if self._live is not None:
            return self._live[item]
        return [c for c in self.domain.domain_for(self._partial)
                if self.domain.is_consistent(c, self._partial)]

    # ---------- search ----------

    def _search(self) -> bool:
        # the root node is always counted; terminal nodes are never cut off
        if self._unplaced and self.stats.nodes_explored and self._guard_tripped():
            return False
        self.stats.nodes_explored += 1

        if not self._unplaced:
            return True

        item = self._select(self._unplaced, self._legal_values)
        candidates = self._candidates(item)
        if self.options.value_ordering != "domain":
            others = [self._legal_values(j) for j in sorted(self._unplaced) if j != item]
            candidates = self._order(candidates, others, self.domain.conflicts)

        for candidate in candidates:
            self._partial.append(candidate)
            if self.domain.is_consistent(candidate, self._partial[:-1]):
                self._positions[item] = candidate
                self._unplaced.discard(item)

                saved: Dict[int, List[Coordinate]] = {}
                ok = True
                if self._live is not None:
                    ok, saved = forward_check(
                        item, candidate, self._live, self._unplaced, self.domain.conflicts
                    )
                    if not ok:
                        self.stats.forward_check_prunes += 1

                if ok and self._search():
                    return True

                if saved:
                    restore(self._live, saved)
                self._unplaced.add(item)
                self._positions[item] = None

            self._partial.pop()
            self.stats.backtrack_count += 1
            if self._stopped:
                return False

        return False

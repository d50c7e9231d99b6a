# solver/cp_sat.py
import time
from typing import Dict, List, Optional, Tuple

from ortools.sat.python import cp_model as _cp

from models import (
    Coordinate, SearchStats, SolveResult,
    SOLVED, SEARCH_EXHAUSTED, CUTOFF, CONFIGURATION_INVALID,
)
from config import CFG
from solver.domain import DomainModel

# ---------------- helpers ----------------

def _conflict_pairs(domain: DomainModel, cells: List[Coordinate]) -> List[Tuple[int, int]]:
    """Index pairs of free cells closer than the separation distance."""
    pairs: List[Tuple[int, int]] = []
    for i, a in enumerate(cells):
        for j in range(i + 1, len(cells)):
            if domain.conflicts(a, cells[j]):
                pairs.append((i, j))
    return pairs


def _build_model(domain: DomainModel):
    m = _cp.CpModel()
    cells = domain.free_cells()
    x = [m.NewBoolVar(f"x_{c.x}_{c.y}") for c in cells]
    for i, j in _conflict_pairs(domain, cells):
        m.AddBoolOr([x[i].Not(), x[j].Not()])
    return m, cells, x


def _make_solver(seconds: float) -> _cp.CpSolver:
    solver = _cp.CpSolver()
    solver.parameters.max_time_in_seconds = float(seconds)
    solver.parameters.num_search_workers = int(getattr(CFG, "WORKERS", 1))
    solver.parameters.log_search_progress = False
    solver.parameters.random_seed = 0
    return solver


def _stats_from(solver: _cp.CpSolver, elapsed: float) -> SearchStats:
    stats = SearchStats()
    stats.nodes_explored = max(1, int(solver.NumBranches()))
    stats.backtrack_count = int(solver.NumConflicts())
    stats.elapsed_seconds = elapsed
    return stats


# ---------------- public API ----------------

def solve_with_cp_sat(
    domain: DomainModel,
    num_items: int,
    max_seconds: Optional[float] = None,
) -> SolveResult:
    """Place ``num_items`` separated items with CP-SAT instead of backtracking.

    The returned assignment is sorted row-major, so item ``i`` is the i-th
    chosen cell in the same order the backtracking domains use.
    """
    seconds = float(CFG.CP_SAT_SECONDS if max_seconds is None else max_seconds)
    meta: Dict[str, object] = {
        "engine": "cp_sat",
        "grid_size": domain.grid_size,
        "num_items": num_items,
        "max_seconds": seconds,
    }

    if num_items < 0:
        return SolveResult(CONFIGURATION_INVALID, [], SearchStats(),
                           "num_items must be non-negative", meta)

    t0 = time.time()
    m, cells, x = _build_model(domain)
    if not x:
        stats = SearchStats(nodes_explored=1, elapsed_seconds=time.time() - t0)
        if num_items == 0:
            return SolveResult(SOLVED, [], stats, None, meta)
        return SolveResult(SEARCH_EXHAUSTED, [], stats, "No usable cells on this grid", meta)
    m.Add(sum(x) == int(num_items))

    solver = _make_solver(seconds)
    res = solver.Solve(m)
    stats = _stats_from(solver, time.time() - t0)
    meta["status"] = solver.StatusName(res)

    if res in (_cp.OPTIMAL, _cp.FEASIBLE):
        chosen = [c for c, var in zip(cells, x) if solver.BooleanValue(var)]
        return SolveResult(SOLVED, sorted(chosen), stats, None, meta)
    if res == _cp.INFEASIBLE:
        return SolveResult(SEARCH_EXHAUSTED, [], stats,
                           "Proven infeasible under current constraints", meta)
    if res == _cp.MODEL_INVALID:
        return SolveResult(CONFIGURATION_INVALID, [], stats,
                           "Model invalid (configuration error)", meta)
    stats.timed_out = True
    return SolveResult(CUTOFF, [], stats, "time_limit", meta)


def max_separable_items(domain: DomainModel, max_seconds: Optional[float] = None) -> Optional[int]:
    """Largest item count the grid admits, or None if not proven in time."""
    seconds = float(CFG.CP_SAT_SECONDS if max_seconds is None else max_seconds)
    m, _cells, x = _build_model(domain)
    if not x:
        return 0
    m.Maximize(sum(x))
    solver = _make_solver(seconds)
    res = solver.Solve(m)
    if res == _cp.OPTIMAL:
        return int(round(solver.ObjectiveValue()))
    return None


__all__ = ["solve_with_cp_sat", "max_separable_items"]

# Orchestrator: host-facing entry points (validate → build domain → solve → publish)
from __future__ import annotations

import time
from typing import Any, Dict, List, Optional, Tuple, Union

from models import (
    Coordinate, SearchStats, SolveResult,
    CONFIGURATION_INVALID,
)
from config import CFG
from progress import (
    reset as progress_reset, start_timer, set_status, set_engine, set_grid,
    set_requested, set_counters, set_elapsed, set_outcome, set_done,
    log_attempt_detail,
)
from solver.domain import DomainModel, MIN_GRID_SIZE
from solver.backtracking import BacktrackingSolver, SolverOptions

ENGINES = ("backtracking", "cp_sat")


# ---------- helpers ----------

def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_configuration(grid_size: Any, num_items: Any, *, check_capacity: bool = True) -> Optional[str]:
    """Return a reason string when the run cannot succeed, else None.

    Only structural problems are reported here; an instance whose items merely
    cannot be separated is left to the search to discover.
    """
    if not _is_int(grid_size):
        return f"grid_size must be an integer (got {grid_size!r})"
    if grid_size < MIN_GRID_SIZE:
        return f"grid_size must be at least {MIN_GRID_SIZE} (got {grid_size})"
    max_size = int(getattr(CFG, "MAX_GRID_SIZE", 0) or 0)
    if max_size and grid_size > max_size:
        return f"grid_size must be at most {max_size} (got {grid_size})"
    if not _is_int(num_items):
        return f"num_items must be an integer (got {num_items!r})"
    if num_items < 0:
        return f"num_items must be non-negative (got {num_items})"
    if not check_capacity:
        return None
    free = len(DomainModel(grid_size).free_cells())
    if num_items > free:
        return f"num_items ({num_items}) exceeds the {free} usable cells of a {grid_size}×{grid_size} grid"
    return None


def _resolve_engine(engine: Optional[str]) -> str:
    name = (engine or getattr(CFG, "ENGINE", "backtracking") or "backtracking").strip().lower()
    if name not in ENGINES:
        raise ValueError(f"Unknown engine {name!r} (expected one of {list(ENGINES)})")
    return name


def _run_engine(engine: str, domain: DomainModel, num_items: int, options: SolverOptions) -> SolveResult:
    if engine == "cp_sat":
        # ortools is imported lazily so the backtracking path never needs it
        from solver.cp_sat import solve_with_cp_sat
        return solve_with_cp_sat(domain, num_items, max_seconds=float(CFG.CP_SAT_SECONDS))
    solver = BacktrackingSolver(domain, options)
    result = solver.solve(num_items)
    result.meta.setdefault("engine", "backtracking")
    return result


# ---------- entry points ----------

def initialize_and_solve(
    grid_size: Optional[int] = None,
    num_items: Optional[int] = None,
    options: Optional[SolverOptions] = None,
    engine: Optional[str] = None,
) -> SolveResult:
    """Build the domain for ``grid_size`` and place ``num_items`` items.

    Every call is a fresh run: counters, assignment and progress state start
    from zero, so a "solve again" request never sees stale data.
    """
    grid_size = CFG.GRID_SIZE if grid_size is None else grid_size
    num_items = CFG.NUM_ITEMS if num_items is None else num_items
    options = options or SolverOptions.from_config()
    engine_name = _resolve_engine(engine)

    progress_reset()
    start_timer()
    set_status("Solving")
    set_engine(engine_name)
    set_grid(grid_size)
    set_requested(num_items)
    log_attempt_detail(
        "Solve started",
        grid_size=grid_size,
        num_items=num_items,
        engine=engine_name,
        variable_ordering=options.variable_ordering,
        value_ordering=options.value_ordering,
        forward_checking=int(options.forward_checking),
    )

    reason = validate_configuration(
        grid_size, num_items, check_capacity=bool(getattr(CFG, "VALIDATE_CONFIG", True))
    )
    if reason is not None:
        result = SolveResult(
            CONFIGURATION_INVALID, [], SearchStats(), reason,
            {"engine": engine_name, "grid_size": grid_size, "num_items": num_items},
        )
        _publish(result)
        return result

    domain = DomainModel(grid_size)
    result = _run_engine(engine_name, domain, num_items, options)
    _publish(result)
    return result


def _publish(result: SolveResult) -> None:
    stats = result.stats
    set_counters(nodes=stats.nodes_explored, backtracks=stats.backtrack_count,
                 placed=len(result.assignment))
    set_elapsed(stats.elapsed_seconds)
    set_outcome(result.outcome)
    log_attempt_detail(
        "Solve finished",
        outcome=result.outcome,
        placed=len(result.assignment),
        nodes=stats.nodes_explored,
        backtracks=stats.backtrack_count,
        prunes=stats.forward_check_prunes or None,
        elapsed_ms=f"{stats.elapsed_ms:.2f}",
        reason=result.reason,
    )
    if result.ok:
        set_done(True, reason=f"Placed {len(result.assignment)} items")
    else:
        set_done(False, reason=result.reason or result.outcome)


def render_metrics(
    result_or_stats: Union[SolveResult, SearchStats],
    grid_size: Optional[int] = None,
    num_items: Optional[int] = None,
) -> List[str]:
    """Text lines for the host's metrics panel."""
    if isinstance(result_or_stats, SolveResult):
        stats = result_or_stats.stats
        assignment: List[Coordinate] = list(result_or_stats.assignment)
        if grid_size is None:
            grid_size = result_or_stats.meta.get("grid_size")
        if num_items is None:
            num_items = result_or_stats.meta.get("num_items")
    else:
        stats = result_or_stats
        assignment = []
    grid_size = CFG.GRID_SIZE if grid_size is None else grid_size
    num_items = CFG.NUM_ITEMS if num_items is None else num_items

    lines = [
        "=== CSP Performance Metrics ===",
        f"Grid Size: {grid_size}x{grid_size}",
        f"Items Placed: {len(assignment)}/{num_items}",
        f"Total Nodes Explored: {stats.nodes_explored}",
        f"Backtracks: {stats.backtrack_count}",
        f"Time: {stats.elapsed_ms:.2f}ms",
    ]
    if stats.forward_check_prunes:
        lines.append(f"Forward-check prunes: {stats.forward_check_prunes}")
    if isinstance(result_or_stats, SolveResult) and not result_or_stats.ok:
        lines.append(f"Outcome: {result_or_stats.outcome} ({result_or_stats.reason})")
    lines.append(f"Solution: {', '.join(str(c) for c in assignment)}")
    return lines


def solve_orchestrator(*args, **kwargs) -> Tuple[bool, List[Tuple[int, int]], str, Optional[str], Dict[str, Any]]:
    """
    Returns: (ok, assignment, outcome, reason, meta)
    Accepts positional (grid_size, num_items) or keywords, plus optional
    ``variable_ordering``, ``value_ordering``, ``forward_checking``,
    ``node_limit``, ``time_limit`` and ``engine``.
    """
    t0 = time.time()
    grid_size = args[0] if len(args) > 0 else kwargs.get("grid_size")
    num_items = args[1] if len(args) > 1 else kwargs.get("num_items")

    options = SolverOptions.from_config(
        variable_ordering=kwargs.get("variable_ordering"),
        value_ordering=kwargs.get("value_ordering"),
        forward_checking=kwargs.get("forward_checking"),
        node_limit=kwargs.get("node_limit"),
        time_limit=kwargs.get("time_limit"),
    )
    result = initialize_and_solve(grid_size, num_items, options=options, engine=kwargs.get("engine"))

    meta = dict(result.meta)
    meta["stats"] = result.stats.to_dict()
    meta["metrics"] = render_metrics(result)
    meta["wall_seconds"] = round(time.time() - t0, 6)
    return result.ok, result.coords(), result.outcome, result.reason, meta

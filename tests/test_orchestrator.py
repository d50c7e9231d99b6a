import pytest

from config import CFG
from models import Coordinate, SearchStats, CONFIGURATION_INVALID, SEARCH_EXHAUSTED, SOLVED
from progress import snapshot
from solver.backtracking import SolverOptions
from solver import orchestrator
from solver.orchestrator import (
    initialize_and_solve, render_metrics, solve_orchestrator, validate_configuration,
)


@pytest.fixture(autouse=True)
def _pin_config(monkeypatch):
    monkeypatch.setattr(CFG, "GRID_SIZE", 8, raising=False)
    monkeypatch.setattr(CFG, "NUM_ITEMS", 5, raising=False)
    monkeypatch.setattr(CFG, "BOUNDARY_MARGIN", 1, raising=False)
    monkeypatch.setattr(CFG, "SPAWN_SIZE", 2, raising=False)
    monkeypatch.setattr(CFG, "MIN_SEPARATION", 2, raising=False)
    monkeypatch.setattr(CFG, "MAX_GRID_SIZE", 64, raising=False)
    monkeypatch.setattr(CFG, "VARIABLE_ORDERING", "fixed", raising=False)
    monkeypatch.setattr(CFG, "VALUE_ORDERING", "domain", raising=False)
    monkeypatch.setattr(CFG, "FORWARD_CHECKING", False, raising=False)
    monkeypatch.setattr(CFG, "NODE_LIMIT", 0, raising=False)
    monkeypatch.setattr(CFG, "TIME_LIMIT", 0.0, raising=False)
    monkeypatch.setattr(CFG, "VALIDATE_CONFIG", True, raising=False)
    monkeypatch.setattr(CFG, "ENGINE", "backtracking", raising=False)


def test_defaults_solve_the_reference_scenario():
    result = initialize_and_solve()

    assert result.outcome == SOLVED
    assert result.coords() == [(1, 2), (1, 4), (1, 6), (2, 1), (2, 3)]
    assert result.stats.nodes_explored == 6
    assert result.stats.backtrack_count == 8
    assert result.meta.get("engine") == "backtracking"


def test_progress_reflects_finished_run():
    before = snapshot()["run_id"]
    initialize_and_solve(8, 5)
    snap = snapshot()

    assert snap["run_id"] == before + 1
    assert snap["status"] == "Solved"
    assert snap["done"] is True
    assert snap["ok"] is True
    assert snap["nodes"] == 6
    assert snap["backtracks"] == 8
    assert snap["placed"] == 5
    assert snap["requested"] == 5
    assert snap["grid"] == "8 × 8"
    assert snap["outcome"] == SOLVED


def test_solve_again_does_not_reuse_stale_counters():
    first = initialize_and_solve(4, 3)
    second = initialize_and_solve(8, 5)
    third = initialize_and_solve(4, 3)

    assert second.ok
    assert (first.stats.nodes_explored, first.stats.backtrack_count) == (6, 11)
    assert (third.stats.nodes_explored, third.stats.backtrack_count) == (6, 11)
    assert snapshot()["status"] == "Error"


@pytest.mark.parametrize(
    "grid_size,num_items,fragment",
    [
        (2, 1, "at least 3"),
        ("8", 1, "grid_size must be an integer"),
        (8, -1, "non-negative"),
        (8, 2.5, "num_items must be an integer"),
        (4, 4, "exceeds the 3 usable cells"),
        (65, 1, "at most 64"),
    ],
)
def test_invalid_configuration_is_reported_before_search(grid_size, num_items, fragment):
    reason = validate_configuration(grid_size, num_items)
    assert reason is not None and fragment in reason

    result = initialize_and_solve(grid_size, num_items)
    assert result.outcome == CONFIGURATION_INVALID
    assert result.assignment == []
    assert result.stats.nodes_explored == 0
    assert fragment in result.reason


def test_valid_configurations_pass_validation():
    assert validate_configuration(3, 0) is None
    assert validate_configuration(4, 3) is None
    assert validate_configuration(8, 35) is None


def test_capacity_check_can_be_disabled(monkeypatch):
    monkeypatch.setattr(CFG, "VALIDATE_CONFIG", False, raising=False)
    result = initialize_and_solve(4, 4)
    assert result.outcome == SEARCH_EXHAUSTED
    assert result.stats.nodes_explored >= 1

    # structural problems are still caught
    assert initialize_and_solve(2, 1).outcome == CONFIGURATION_INVALID


def test_grid3_zero_items():
    result = initialize_and_solve(3, 0)
    assert result.ok
    assert result.assignment == []
    assert result.stats.nodes_explored == 1
    assert result.stats.backtrack_count == 0


def test_options_flow_through_to_solver():
    opts = SolverOptions(variable_ordering="mrv", value_ordering="lcv", forward_checking=True)
    result = initialize_and_solve(8, 5, options=opts)
    assert result.ok
    assert result.meta["options"]["variable_ordering"] == "mrv"
    assert result.meta["options"]["forward_checking"] is True


def test_unknown_engine_is_rejected():
    with pytest.raises(ValueError):
        initialize_and_solve(8, 5, engine="annealing")


def test_cp_sat_engine_selected_by_config(monkeypatch):
    pytest.importorskip("ortools")
    monkeypatch.setattr(CFG, "ENGINE", "cp_sat", raising=False)
    monkeypatch.setattr(CFG, "CP_SAT_SECONDS", 5.0, raising=False)
    result = initialize_and_solve(8, 5)
    assert result.ok
    assert result.meta.get("engine") == "cp_sat"
    assert len(result.assignment) == 5


def test_render_metrics_lines():
    result = initialize_and_solve(8, 5)
    lines = render_metrics(result)

    assert lines[0] == "=== CSP Performance Metrics ==="
    assert "Grid Size: 8x8" in lines
    assert "Items Placed: 5/5" in lines
    assert "Total Nodes Explored: 6" in lines
    assert "Backtracks: 8" in lines
    assert any(line.startswith("Time: ") and line.endswith("ms") for line in lines)
    assert lines[-1] == "Solution: (1, 2), (1, 4), (1, 6), (2, 1), (2, 3)"


def test_render_metrics_accepts_bare_stats():
    stats = SearchStats(nodes_explored=6, backtrack_count=11, elapsed_seconds=0.002)
    lines = render_metrics(stats, grid_size=4, num_items=3)
    assert "Grid Size: 4x4" in lines
    assert "Items Placed: 0/3" in lines
    assert "Time: 2.00ms" in lines


def test_render_metrics_mentions_failure():
    result = initialize_and_solve(4, 3)
    lines = render_metrics(result)
    assert "Items Placed: 0/3" in lines
    assert any(line.startswith("Outcome: search_exhausted") for line in lines)


def test_solve_orchestrator_forgiving_entry():
    ok, assignment, outcome, reason, meta = solve_orchestrator(8, 5)
    assert ok
    assert assignment == [(1, 2), (1, 4), (1, 6), (2, 1), (2, 3)]
    assert outcome == SOLVED
    assert reason is None
    assert meta["stats"]["nodes_explored"] == 6
    assert meta["metrics"][0] == "=== CSP Performance Metrics ==="

    ok, assignment, outcome, reason, meta = solve_orchestrator(grid_size=4, num_items=3, node_limit=3)
    assert not ok
    assert assignment == []
    assert outcome == "cutoff"
    assert reason == "node_limit"


def test_solve_orchestrator_uses_config_when_arguments_missing():
    ok, assignment, outcome, _reason, _meta = solve_orchestrator()
    assert ok
    assert len(assignment) == CFG.NUM_ITEMS
    assert orchestrator.ENGINES == ("backtracking", "cp_sat")
    assert all(isinstance(Coordinate(*c), Coordinate) for c in assignment)


def test_render_metrics_reports_requested_count_of_the_run():
    assert CFG.NUM_ITEMS == 5
    result = initialize_and_solve(8, 3)
    assert result.meta["num_items"] == 3

    lines = render_metrics(result)
    assert "Items Placed: 3/3" in lines

    invalid = initialize_and_solve(4, 4)
    assert "Items Placed: 0/4" in render_metrics(invalid)

    _ok, _assignment, _outcome, _reason, meta = solve_orchestrator(6, 2)
    assert "Items Placed: 2/2" in meta["metrics"]


def test_grid_ceiling_can_be_disabled(monkeypatch):
    monkeypatch.setattr(CFG, "MAX_GRID_SIZE", 0, raising=False)
    assert validate_configuration(65, 1) is None

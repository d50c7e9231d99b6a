import logging

from progress import (
    reset, set_status, set_done, set_counters, set_grid, set_requested,
    set_elapsed, set_outcome, start_timer, snapshot, log_attempt_detail,
)


def test_set_done_no_args_defaults_to_solved():
    reset()
    set_done()
    snap = snapshot()
    assert snap["status"] == "Solved"
    assert snap["done"] is True
    assert snap["ok"] is True
    assert snap["message"] == ""


def test_set_done_failure_records_reason():
    reset()
    set_status("Solving")
    set_done(False, reason="No valid placement exists (search exhausted)")
    snap = snapshot()
    assert snap["status"] == "Error"
    assert snap["message"] == "No valid placement exists (search exhausted)"
    assert snap["done"] is True
    assert snap["ok"] is False


def test_set_done_without_flag_keeps_existing_status():
    reset()
    set_status("Error")
    set_done()
    assert snapshot()["ok"] is False


def test_reset_increments_run_identifier():
    reset()
    first = snapshot()["run_id"]
    reset()
    second = snapshot()["run_id"]
    assert isinstance(first, int)
    assert second == first + 1


def test_reset_clears_counters():
    reset()
    set_counters(nodes=6, backtracks=8, placed=5)
    set_outcome("solved")
    reset()
    snap = snapshot()
    assert (snap["nodes"], snap["backtracks"], snap["placed"]) == (0, 0, 0)
    assert snap["outcome"] == ""
    assert snap["status"] == "Idle"


def test_setters_are_tolerant():
    reset()
    set_counters(nodes="12", backtracks=-3, placed=None)
    set_grid("abc")
    set_requested(None)
    set_elapsed("not a number")
    snap = snapshot()
    assert snap["nodes"] == 12
    assert snap["backtracks"] == 0
    assert snap["placed"] == 0
    assert snap["grid"] == ""
    assert snap["requested"] == 0
    assert snap["elapsed"] == 0.0


def test_snapshot_formats_elapsed():
    reset()
    set_grid(8)
    set_elapsed(0.0042)
    set_done(True)
    snap = snapshot()
    assert snap["grid"] == "8 × 8"
    assert snap["elapsed_str"] == "4.20ms"


def test_elapsed_ticks_while_running(monkeypatch):
    import progress as progress_module

    clock = iter([100.0, 102.5])
    monkeypatch.setattr(progress_module, "_now", lambda: next(clock))
    reset()
    start_timer()
    snap = snapshot()
    assert snap["elapsed"] == 2.5
    assert snap["elapsed_str"] == "2.50s"


def test_attempt_log_lines(caplog):
    logger = logging.getLogger("solver.attempt_log")
    if not logger.handlers:
        return
    logger.propagate = True
    try:
        with caplog.at_level(logging.INFO, logger="solver.attempt_log"):
            log_attempt_detail("Solve started", grid_size=8, num_items=5, reason=None)
    finally:
        logger.propagate = False
    assert "Solve started | grid_size=8 num_items=5" in caplog.text

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Any, Dict, Optional

from config import CFG

# ------------------------------
# Thread-safe global progress state
# ------------------------------

PROGRESS_LOCK = threading.Lock()


def _log_file_path() -> Path:
    configured = CFG.ATTEMPT_LOG
    if configured:
        return Path(configured)
    return Path(__file__).resolve().parent / "logs" / "solver_attempts.log"


def _init_logger() -> logging.Logger:
    logger = logging.getLogger("solver.attempt_log")
    if logger.handlers:
        return logger

    log_path = _log_file_path()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, encoding="utf-8")
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False
    except OSError:
        # A read-only checkout still solves; it just runs without the log file.
        logger.handlers.clear()
    return logger


ATTEMPT_LOGGER = _init_logger()


def _log_enabled() -> bool:
    return bool(ATTEMPT_LOGGER.handlers)


def _fmt_seconds(seconds: Optional[float]) -> Optional[str]:
    if seconds is None:
        return None
    try:
        return f"{float(seconds):.3f}s"
    except (TypeError, ValueError):
        return None


def _emit_log(event: str, **fields: Any) -> None:
    if not _log_enabled():
        return
    extras = [
        f"{key}={value}"
        for key, value in fields.items()
        if value is not None and value != ""
    ]
    if extras:
        ATTEMPT_LOGGER.info("%s | %s", event, " ".join(extras))
    else:
        ATTEMPT_LOGGER.info("%s", event)


def log_attempt_detail(event: str, **fields: Any) -> None:
    """Write a free-form detail line to the attempt log."""
    with PROGRESS_LOCK:
        _emit_log(event, **fields)


LOG_STATE: Dict[str, Any] = {
    "run_start": None,
}

# Single source of truth for the host's metrics panel
PROGRESS: Dict[str, Any] = {
    "status": "Idle",          # Idle | Solving | Solved | Error
    "engine": "",              # backtracking | cp_sat
    "grid": "",                # e.g. "8 × 8"
    "requested": 0,            # items asked for
    "placed": 0,               # items in the returned assignment
    "nodes": 0,                # nodes explored
    "backtracks": 0,           # backtrack count
    "elapsed_start": None,     # t0 (float) when solving started
    "elapsed": 0.0,            # seconds snapshot
    "outcome": "",             # solved | search_exhausted | cutoff | configuration_invalid
    "message": "",             # optional note
    "done": False,             # run completed
    "ok": None,                # success flag if known
    "run_id": 0,               # monotonically increasing identifier
}

# ------------------------------
# Helpers
# ------------------------------

def _now() -> float:
    return time.time()

def _fmt_elapsed(seconds: float) -> str:
    seconds = max(0.0, float(seconds))
    if seconds < 1:
        return f"{seconds * 1000:.2f}ms"
    if seconds < 60:
        return f"{seconds:.2f}s"
    m, s = divmod(int(seconds), 60)
    return f"{m}m {s}s"

def reset() -> None:
    with PROGRESS_LOCK:
        try:
            current_run_id = int(PROGRESS.get("run_id", 0))
        except (TypeError, ValueError):
            current_run_id = 0
        PROGRESS.update({
            "status": "Idle",
            "engine": "",
            "grid": "",
            "requested": 0,
            "placed": 0,
            "nodes": 0,
            "backtracks": 0,
            "elapsed_start": None,
            "elapsed": 0.0,
            "outcome": "",
            "message": "",
            "done": False,
            "ok": None,
            "run_id": current_run_id + 1,
        })
        LOG_STATE["run_start"] = None
        _emit_log("Progress reset", run_id=PROGRESS["run_id"])

def start_timer() -> None:
    with PROGRESS_LOCK:
        now = _now()
        PROGRESS["elapsed_start"] = now
        PROGRESS["elapsed"] = 0.0
        LOG_STATE["run_start"] = now

def _touch_elapsed_locked() -> None:
    t0 = PROGRESS.get("elapsed_start")
    if t0 is not None and not PROGRESS.get("done"):
        PROGRESS["elapsed"] = _now() - float(t0)

# ------------------------------
# Setters (tolerant)
# ------------------------------

def _as_count(n: Any) -> int:
    try:
        return max(0, int(n))
    except (TypeError, ValueError):
        return 0

def set_status(v: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS["status"] = str(v)

def set_engine(v: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS["engine"] = "" if v is None else str(v)

def set_grid(size: Any) -> None:
    try:
        n = int(size)
        label = f"{n} × {n}"
    except (TypeError, ValueError):
        label = ""
    with PROGRESS_LOCK:
        PROGRESS["grid"] = label

def set_requested(n: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS["requested"] = _as_count(n)

def set_counters(nodes: Any = None, backtracks: Any = None, placed: Any = None) -> None:
    with PROGRESS_LOCK:
        if nodes is not None:
            PROGRESS["nodes"] = _as_count(nodes)
        if backtracks is not None:
            PROGRESS["backtracks"] = _as_count(backtracks)
        if placed is not None:
            PROGRESS["placed"] = _as_count(placed)
        _touch_elapsed_locked()

def set_elapsed(seconds: Any) -> None:
    try:
        f = float(seconds)
    except (TypeError, ValueError):
        f = 0.0
    with PROGRESS_LOCK:
        PROGRESS["elapsed"] = max(0.0, f)

def set_outcome(v: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS["outcome"] = "" if v is None else str(v)

def set_done(ok: Any = None, *, reason: Any = None, message: Any = None) -> None:
    """Mark the run complete.

    ``ok`` decides the final status when given; otherwise an idle run is
    reported as solved.  ``reason``/``message`` end up in ``message``.
    """

    final_message = message if message is not None else reason

    with PROGRESS_LOCK:
        now = _now()
        if ok is not None:
            ok_flag = bool(ok)
            PROGRESS["status"] = "Solved" if ok_flag else "Error"
        elif PROGRESS.get("status") in ("", "Idle", None):
            PROGRESS["status"] = "Solved"
            ok_flag = True
        else:
            ok_flag = PROGRESS.get("status") == "Solved"
        if final_message is not None:
            PROGRESS["message"] = str(final_message)
        PROGRESS["done"] = True
        PROGRESS["ok"] = ok_flag

        run_start = LOG_STATE.get("run_start")
        total = max(0.0, now - float(run_start)) if isinstance(run_start, (int, float)) else None
        LOG_STATE["run_start"] = None
        _emit_log(
            "Run finished",
            status=PROGRESS.get("status"),
            ok=PROGRESS.get("ok"),
            outcome=PROGRESS.get("outcome"),
            nodes=PROGRESS.get("nodes"),
            backtracks=PROGRESS.get("backtracks"),
            duration=_fmt_seconds(total),
            message=PROGRESS.get("message"),
        )

# ------------------------------
# Snapshots for the host
# ------------------------------

def snapshot() -> Dict[str, Any]:
    with PROGRESS_LOCK:
        _touch_elapsed_locked()
        return {
            "status": PROGRESS["status"],
            "engine": PROGRESS["engine"],
            "grid": PROGRESS["grid"],
            "requested": PROGRESS["requested"],
            "placed": PROGRESS["placed"],
            "nodes": PROGRESS["nodes"],
            "backtracks": PROGRESS["backtracks"],
            "elapsed": PROGRESS["elapsed"],
            "elapsed_str": _fmt_elapsed(PROGRESS["elapsed"]),
            "outcome": PROGRESS["outcome"],
            "message": PROGRESS["message"],
            "done": PROGRESS["done"],
            "ok": PROGRESS["ok"],
            "run_id": PROGRESS["run_id"],
        }

def as_json() -> Dict[str, Any]:
    # Alias used by /progress
    return snapshot()

# app.py: hosting surface that solves on demand and exposes metrics and progress
from __future__ import annotations
import time
from typing import Any, Dict, List, Optional

from flask import Flask, request, jsonify

from solver.orchestrator import solve_orchestrator
from config import CFG

from progress import (
    as_json as progress_json,
    set_status, set_done,
)

LAST_RESULT: Dict[str, Any] = {
    "ok": False,
    "outcome": "",
    "reason": "Not solved yet",
    "grid_size": CFG.GRID_SIZE,
    "num_items": CFG.NUM_ITEMS,
    "assignment": [],
    "stats": {},
    "metrics": [],
    "elapsed_str": "0s",
}

app = Flask(__name__)


@app.after_request
def _no_cache_progress(resp):
    if request.path in ("/progress", "/metrics"):
        resp.headers["Cache-Control"] = "no-store, max-age=0"
        resp.headers["Pragma"] = "no-cache"
        resp.headers["Expires"] = "0"
    return resp


def _fmt_elapsed(seconds: float) -> str:
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    m, s = divmod(int(seconds), 60)
    if m == 0:
        return f"{s}s"
    return f"{m}m {s}s"


def _merge_like_mapping() -> Dict[str, Any]:
    merged: Dict[str, Any] = {}
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        merged.update(payload)
    for source in (request.form, request.args):
        for k, v in source.to_dict(flat=True).items():
            merged.setdefault(k, v)
    return merged


def _to_int(value: Any) -> Any:
    """Parse an integer field; unparseable input is returned unchanged for validation."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return value


def _to_flag(value: Any) -> Optional[bool]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _solve_kwargs(like: Dict[str, Any]) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {
        "grid_size": _to_int(like.get("grid_size")),
        "num_items": _to_int(like.get("num_items")),
        "forward_checking": _to_flag(like.get("forward_checking")),
        "node_limit": _to_int(like.get("node_limit")),
    }
    for key in ("variable_ordering", "value_ordering", "engine"):
        val = like.get(key)
        if isinstance(val, str) and val.strip():
            kwargs[key] = val.strip().lower()
    return kwargs


def _finalize_error(reason: str) -> None:
    """Write a terminal error status for failures outside the solver."""

    set_status("Error")
    set_done(False, reason=reason)


@app.route("/")
def index():
    return jsonify(LAST_RESULT)


@app.route("/solve", methods=["POST"])
def solve():
    t0 = time.time()
    like = _merge_like_mapping()
    kwargs = _solve_kwargs(like)

    try:
        ok, assignment, outcome, reason, meta = solve_orchestrator(**kwargs)
    except ValueError as e:
        reason = f"Bad request: {e}"
        _finalize_error(reason)
        LAST_RESULT.update({
            "ok": False,
            "outcome": "error",
            "reason": reason,
            "assignment": [],
            "stats": {},
            "metrics": [],
            "elapsed_str": _fmt_elapsed(time.time() - t0),
        })
        return jsonify(LAST_RESULT), 400

    LAST_RESULT.update({
        "ok": ok,
        "outcome": outcome,
        "reason": reason,
        "grid_size": kwargs["grid_size"] if kwargs["grid_size"] is not None else CFG.GRID_SIZE,
        "num_items": kwargs["num_items"] if kwargs["num_items"] is not None else CFG.NUM_ITEMS,
        "assignment": [list(c) for c in assignment],
        "stats": meta.get("stats", {}),
        "metrics": list(meta.get("metrics") or []),
        "elapsed_str": _fmt_elapsed(time.time() - t0),
    })
    return jsonify(LAST_RESULT)


@app.route("/metrics")
def metrics():
    lines: List[str] = list(LAST_RESULT.get("metrics") or []) if CFG.SHOW_METRICS else []
    return jsonify({"show": bool(CFG.SHOW_METRICS), "lines": lines})


@app.route("/progress")
def progress():
    return jsonify(progress_json())


if __name__ == "__main__":
    app.run(debug=False)

import os

# ======= Grid / placement =======
GRID_SIZE       = int(os.getenv("TP_GRID_SIZE", "8"))
NUM_ITEMS       = int(os.getenv("TP_NUM_ITEMS", "5"))
BOUNDARY_MARGIN = int(os.getenv("TP_BOUNDARY_MARGIN", "1"))   # ring width excluded along every wall
SPAWN_SIZE      = int(os.getenv("TP_SPAWN_SIZE", "2"))        # top-left spawn block side
MIN_SEPARATION  = int(os.getenv("TP_MIN_SEPARATION", "2"))    # Manhattan distance between items
MAX_GRID_SIZE   = int(os.getenv("TP_MAX_GRID_SIZE", "64"))   # 0 disables the ceiling

# ======= Solver heuristics =======
# variable ordering: fixed | mrv ; value ordering: domain | lcv
VARIABLE_ORDERING = os.getenv("TP_VARIABLE_ORDERING", "fixed").strip().lower()
VALUE_ORDERING    = os.getenv("TP_VALUE_ORDERING", "domain").strip().lower()
FORWARD_CHECKING  = int(os.getenv("TP_FORWARD_CHECKING", "0")) != 0

# ======= Search guards =======
# Zero disables the guard; the baseline search runs to completion.
NODE_LIMIT = int(os.getenv("TP_NODE_LIMIT", "0"))
TIME_LIMIT = float(os.getenv("TP_TIME_LIMIT", "0"))
VALIDATE_CONFIG = int(os.getenv("TP_VALIDATE_CONFIG", "1")) != 0

# ======= Engine selection =======
ENGINE         = os.getenv("TP_ENGINE", "backtracking").strip().lower()   # backtracking | cp_sat
CP_SAT_SECONDS = float(os.getenv("TP_CP_SAT_SECONDS", "10"))
WORKERS        = int(os.getenv("TP_WORKERS", "1"))

# ======= Host / metrics =======
SHOW_METRICS = int(os.getenv("TP_SHOW_METRICS", "1")) != 0
ATTEMPT_LOG  = os.getenv("TP_ATTEMPT_LOG", "")

class CFG:
    GRID_SIZE       = GRID_SIZE
    NUM_ITEMS       = NUM_ITEMS
    BOUNDARY_MARGIN = BOUNDARY_MARGIN
    SPAWN_SIZE      = SPAWN_SIZE
    MIN_SEPARATION  = MIN_SEPARATION
    MAX_GRID_SIZE   = MAX_GRID_SIZE

    VARIABLE_ORDERING = VARIABLE_ORDERING
    VALUE_ORDERING    = VALUE_ORDERING
    FORWARD_CHECKING  = FORWARD_CHECKING

    NODE_LIMIT      = NODE_LIMIT
    TIME_LIMIT      = TIME_LIMIT
    VALIDATE_CONFIG = VALIDATE_CONFIG

    ENGINE         = ENGINE
    CP_SAT_SECONDS = CP_SAT_SECONDS
    WORKERS        = WORKERS

    SHOW_METRICS = SHOW_METRICS
    ATTEMPT_LOG  = ATTEMPT_LOG

__all__ = ["CFG"]

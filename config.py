# config.py
import os

# ======= Capacity limits =======
MAX_COMPONENTS   = int(os.getenv("LS_MAX_COMPONENTS", "20"))
MAX_CONSTRAINTS  = int(os.getenv("LS_MAX_CONSTRAINTS", "50"))
MAX_TILE_SIZE    = int(os.getenv("LS_MAX_TILE_SIZE", "20"))    # cells per side
MAX_GRID_SIZE    = int(os.getenv("LS_MAX_GRID_SIZE", "200"))   # cells per axis

# ======= Search fuses =======
# Hitting any of these aborts the run; they never truncate a layout.
MAX_ITERATIONS      = int(os.getenv("LS_MAX_ITERATIONS", "10000"))
MAX_SNAPSHOT_DEPTH  = int(os.getenv("LS_MAX_SNAPSHOT_DEPTH", "80"))
MAX_TREE_NODES      = int(os.getenv("LS_MAX_TREE_NODES", "20000"))
MAX_OPTIONS         = int(os.getenv("LS_MAX_OPTIONS", "200"))
FAILED_CACHE_SIZE   = int(os.getenv("LS_FAILED_CACHE_SIZE", "200"))

# ======= Conflict repair =======
MAX_SLIDE_DISTANCE = int(os.getenv("LS_MAX_SLIDE_DISTANCE", "10"))
SLIDE_MARGIN       = int(os.getenv("LS_SLIDE_MARGIN", "1"))
RELOCATE_RADIUS    = int(os.getenv("LS_RELOCATE_RADIUS", "6"))

# ======= Root / seed placement =======
ROOT_X   = int(os.getenv("LS_ROOT_X", "0"))
ROOT_Y   = int(os.getenv("LS_ROOT_Y", "0"))
SEED_GAP = int(os.getenv("LS_SEED_GAP", "2"))

# ======= CP-SAT rescue =======
CP_SAT_RESCUE   = int(os.getenv("LS_CP_SAT_RESCUE", "1")) != 0
CP_SAT_ON_UNSAT = int(os.getenv("LS_CP_SAT_ON_UNSAT", "0")) != 0
CP_SAT_SECONDS  = float(os.getenv("LS_CP_SAT_SECONDS", "10"))
WORKERS         = int(os.getenv("LS_WORKERS", "1"))

# ======= Output names =======
LAYOUT_OUT  = os.getenv("LS_LAYOUT_OUT", "layout.txt")
LAYOUT_HTML = os.getenv("LS_LAYOUT_HTML", "layout_view.html")
CELL_PX     = int(os.getenv("LS_CELL_PX", "14"))

class CFG:
    MAX_COMPONENTS  = MAX_COMPONENTS
    MAX_CONSTRAINTS = MAX_CONSTRAINTS
    MAX_TILE_SIZE   = MAX_TILE_SIZE
    MAX_GRID_SIZE   = MAX_GRID_SIZE

    MAX_ITERATIONS     = MAX_ITERATIONS
    MAX_SNAPSHOT_DEPTH = MAX_SNAPSHOT_DEPTH
    MAX_TREE_NODES     = MAX_TREE_NODES
    MAX_OPTIONS        = MAX_OPTIONS
    FAILED_CACHE_SIZE  = FAILED_CACHE_SIZE

    MAX_SLIDE_DISTANCE = MAX_SLIDE_DISTANCE
    SLIDE_MARGIN       = SLIDE_MARGIN
    RELOCATE_RADIUS    = RELOCATE_RADIUS

    ROOT_X   = ROOT_X
    ROOT_Y   = ROOT_Y
    SEED_GAP = SEED_GAP

    CP_SAT_RESCUE   = CP_SAT_RESCUE
    CP_SAT_ON_UNSAT = CP_SAT_ON_UNSAT
    CP_SAT_SECONDS  = CP_SAT_SECONDS
    WORKERS         = WORKERS

    LAYOUT_OUT  = LAYOUT_OUT
    LAYOUT_HTML = LAYOUT_HTML
    CELL_PX     = CELL_PX

__all__ = ["CFG"]

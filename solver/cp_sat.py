# solver/cp_sat.py
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from ortools.sat.python import cp_model as _cp

from config import CFG
from models import SIDES, Component, Constraint


def _add_touching(m, side, ax, ay, a: Component, bx, by, b: Component, lit) -> None:
    """Post "a is flush on ``side`` of b with positive overlap", enforced by ``lit``."""
    if side in ("n", "s"):
        if side == "n":
            m.Add(ay + a.height == by).OnlyEnforceIf(lit)
        else:
            m.Add(by + b.height == ay).OnlyEnforceIf(lit)
        m.Add(ax <= bx + b.width - 1).OnlyEnforceIf(lit)
        m.Add(ax + a.width >= bx + 1).OnlyEnforceIf(lit)
    else:
        if side == "e":
            m.Add(bx + b.width == ax).OnlyEnforceIf(lit)
        else:
            m.Add(ax + a.width == bx).OnlyEnforceIf(lit)
        m.Add(ay <= by + b.height - 1).OnlyEnforceIf(lit)
        m.Add(ay + a.height >= by + 1).OnlyEnforceIf(lit)


def solve_with_cp_sat(
    components: Iterable[Component],
    constraints: Iterable[Constraint],
    max_seconds: float = 10.0,
    *,
    extent: Optional[int] = None,
) -> Tuple[bool, Dict[str, Tuple[int, int]], Optional[str]]:
    """Exact adjacency model over bounding boxes.

    Components are kept pairwise disjoint as rectangles, which is stricter
    than the character-level rule, so any layout found here is also valid
    for the tree search.  Returns ``(ok, {name: (x, y)}, reason)``.
    """
    comps: List[Component] = list(components)
    cons: List[Constraint] = list(constraints)
    bound = int(extent if extent is not None else CFG.MAX_GRID_SIZE)

    meta: Dict[str, object] = {
        "components": len(comps),
        "constraints": len(cons),
        "extent": bound,
        "status": None,
    }
    solve_with_cp_sat.last_meta = meta

    if not comps:
        meta["status"] = "empty"
        return True, {}, None

    for comp in comps:
        if comp.width > bound or comp.height > bound:
            meta["status"] = "oversized"
            return False, {}, f"Bad input: {comp.name} does not fit a {bound}x{bound} board"

    m = _cp.CpModel()
    xs: Dict[str, object] = {}
    ys: Dict[str, object] = {}
    x_iv = []
    y_iv = []
    for i, comp in enumerate(comps):
        x = m.NewIntVar(0, bound - comp.width, f"x_{i}")
        y = m.NewIntVar(0, bound - comp.height, f"y_{i}")
        xs[comp.name] = x
        ys[comp.name] = y
        x_iv.append(m.NewFixedSizeIntervalVar(x, comp.width, f"xi_{i}"))
        y_iv.append(m.NewFixedSizeIntervalVar(y, comp.height, f"yi_{i}"))
    m.AddNoOverlap2D(x_iv, y_iv)

    by_name = {c.name: c for c in comps}
    for k, con in enumerate(cons):
        a = by_name.get(con.a)
        b = by_name.get(con.b)
        if a is None or b is None:
            meta["status"] = "unknown_component"
            return False, {}, f"Bad constraint: {con.label} references an unknown component"
        sides = SIDES if con.direction == "a" else (con.direction,)
        lits = []
        for side in sides:
            lit = m.NewBoolVar(f"adj_{k}_{side}")
            _add_touching(m, side, xs[a.name], ys[a.name], a, xs[b.name], ys[b.name], b, lit)
            lits.append(lit)
        m.AddBoolOr(lits)

    solver = _cp.CpSolver()
    solver.parameters.max_time_in_seconds = float(max_seconds)
    solver.parameters.num_search_workers = int(getattr(CFG, "WORKERS", 1))
    solver.parameters.log_search_progress = False

    status = solver.Solve(m)
    meta["status"] = solver.StatusName(status)
    meta["wall_time"] = solver.WallTime()

    if status in (_cp.OPTIMAL, _cp.FEASIBLE):
        positions = {
            name: (int(solver.Value(xs[name])), int(solver.Value(ys[name])))
            for name in xs
        }
        return True, positions, None
    if status == _cp.INFEASIBLE:
        return False, {}, "Proven infeasible under rectangle model"
    if status == _cp.MODEL_INVALID:
        return False, {}, "CP-SAT model invalid"
    return False, {}, "Stopped before solution (timebox)"


solve_with_cp_sat.last_meta = None

__all__ = ["solve_with_cp_sat"]

# Orchestrator: tree search first, CP-SAT rescue when the search gives up
from __future__ import annotations

import time
from typing import Any, Dict, List, Optional, Tuple

from config import CFG
from models import CapacityError, Placed
from progress import (
    TraceSink,
    log_attempt_detail,
    set_attempt,
    set_counts,
    set_layout,
    set_message,
    set_phase,
    set_phase_total,
    set_progress_pct,
    set_status,
    set_strategy,
)
from solver.cp_sat import solve_with_cp_sat
from solver.layout import STATUS_ABORTED, STATUS_UNSATISFIABLE, LayoutSolver
from tiles import load_payload, load_specification

Result = Tuple[bool, List[Placed], int, int, str, Optional[str], Dict[str, Any]]


def _coerce_solver(maybe: Any) -> Tuple[Optional[LayoutSolver], List[str]]:
    """
    Build a solver from any supported inbound shape:
      - an already populated LayoutSolver
      - markdown specification text
      - {"spec": text} or {"components": ..., "constraints": ...}
    """
    if isinstance(maybe, LayoutSolver):
        return maybe, []

    if isinstance(maybe, dict) and isinstance(maybe.get("spec"), str):
        maybe = maybe["spec"]

    solver = LayoutSolver()
    if isinstance(maybe, str):
        _n, _k, messages = load_specification(maybe, solver)
        return solver, messages
    if isinstance(maybe, dict) and "components" in maybe:
        _n, _k, messages = load_payload(maybe, solver)
        return solver, messages
    return None, ["nothing parsed from request"]


def _progress_listener(total: int):
    """Map placement depth onto the progress bar without ever moving backwards."""
    best = {"pct": 0.0}

    def _listener(event) -> None:
        if event.kind != "placed" or total <= 0:
            return
        pct = min(95.0, 100.0 * (event.depth + 1) / total)
        if pct > best["pct"] + 0.5:
            best["pct"] = pct
            set_progress_pct(pct)

    return _listener


def _finish_ok(solver: LayoutSolver, strategy: str, t0: float, meta: Dict[str, Any]) -> Result:
    placed = solver.placements()
    W, H = solver.bounds()
    set_layout(W, H)
    set_counts(placed_count=len(placed))
    meta["elapsed_sec"] = time.time() - t0
    log_attempt_detail(
        "Layout found",
        strategy=strategy,
        placed=len(placed),
        W=W,
        H=H,
        elapsed=f"{meta['elapsed_sec']:.2f}s",
    )
    return True, placed, W, H, strategy, None, meta


def _run_cp_sat_rescue(solver: LayoutSolver, meta: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    set_phase("cp-sat")
    set_strategy("cp-sat")
    set_attempt("CP-SAT rectangle model")
    try:
        ok, positions, reason = solve_with_cp_sat(
            list(solver.registry),
            list(solver.constraints),
            max_seconds=float(CFG.CP_SAT_SECONDS),
            extent=solver.grid.max_extent,
        )
    except Exception as exc:
        meta["cp_sat"] = {"error": f"{type(exc).__name__}: {exc}"}
        return False, f"cp-sat exception: {type(exc).__name__}: {exc}"
    meta["cp_sat"] = dict(getattr(solve_with_cp_sat, "last_meta", None) or {})
    log_attempt_detail("CP-SAT finished", ok=ok, reason=reason, status=meta["cp_sat"].get("status"))
    if not ok:
        return False, reason
    if not solver.apply_positions(positions, source="cp-sat"):
        return False, "CP-SAT layout rejected by validator"
    return True, None


# ---------- public entrypoint ----------

def solve_orchestrator(*args, **kwargs) -> Result:
    """
    Returns: (ok, placed, W, H, strategy, reason, meta)
    ``strategy`` is ``tree``, ``cp-sat`` or ``error``; W/H are in cells.
    """
    t0 = time.time()

    log_attempt_detail(
        "Solver configuration",
        LS_MAX_ITERATIONS=CFG.MAX_ITERATIONS,
        LS_MAX_TREE_NODES=CFG.MAX_TREE_NODES,
        LS_MAX_SLIDE_DISTANCE=CFG.MAX_SLIDE_DISTANCE,
        LS_RELOCATE_RADIUS=CFG.RELOCATE_RADIUS,
        LS_CP_SAT_RESCUE=1 if CFG.CP_SAT_RESCUE else 0,
    )

    inbound = None
    if args:
        inbound = args[0]
    else:
        for key in ("solver", "spec", "payload"):
            if key in kwargs:
                inbound = kwargs[key]
                break

    try:
        solver, messages = _coerce_solver(inbound)
    except CapacityError as exc:
        set_status("Error")
        return (False, [], 0, 0, "error", f"Capacity exceeded: {exc}", {})

    meta: Dict[str, Any] = {"messages": messages}
    if solver is None or len(solver.registry) == 0:
        set_status("Error")
        detail = "; ".join(messages) or "no components"
        return (False, [], 0, 0, "error", f"Bad specification: {detail}", meta)

    n_components = len(solver.registry)
    n_constraints = len(solver.constraints)
    for msg in messages:
        log_attempt_detail("Specification note", note=msg)
    meta["components"] = n_components
    meta["constraints"] = n_constraints
    log_attempt_detail("Run setup", components=n_components, constraints=n_constraints)

    set_status("Solving")
    set_phase("tree")
    set_phase_total(2 if CFG.CP_SAT_RESCUE else 1)
    set_strategy("tree")
    set_progress_pct(0.0)
    set_counts(component_count=n_components, constraint_count=n_constraints, placed_count=0)

    sink = TraceSink()
    progress_listener = _progress_listener(n_components)
    solver.subscribe(sink)
    solver.subscribe(progress_listener)
    try:
        ok = solver.solve()
    finally:
        solver.unsubscribe(sink)
        solver.unsubscribe(progress_listener)

    stats = solver.stats
    meta.update({
        "status": solver.status,
        "iterations": stats.iterations,
        "nodes": stats.nodes,
        "backtracks": stats.backtracks,
        "slides": stats.slides,
        "relocations": stats.relocations,
        "cache_hits": stats.cache_hits,
        "max_depth": stats.max_depth,
        "search_path": solver.search_path,
    })
    set_counts(nodes=stats.nodes, backtracks=stats.backtracks)

    if ok:
        return _finish_ok(solver, "tree", t0, meta)

    reason = solver.reason or "no solution"
    log_attempt_detail("Tree search stopped", status=solver.status, reason=reason)

    wants_rescue = CFG.CP_SAT_RESCUE and (
        solver.status == STATUS_ABORTED
        or (solver.status == STATUS_UNSATISFIABLE and CFG.CP_SAT_ON_UNSAT)
    )
    if wants_rescue:
        rescued, rescue_reason = _run_cp_sat_rescue(solver, meta)
        if rescued:
            return _finish_ok(solver, "cp-sat", t0, meta)
        reason = f"{reason}; CP-SAT: {rescue_reason}"

    if solver.status == STATUS_UNSATISFIABLE and not wants_rescue:
        reason = f"Proven unsatisfiable: {reason}"
    set_status("Error")
    set_message(reason)
    meta["elapsed_sec"] = time.time() - t0
    return (False, [], 0, 0, "error", reason, meta)


__all__ = ["solve_orchestrator"]

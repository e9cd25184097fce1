# LayoutSolver: public entry point wrapping registry, constraints and search
from __future__ import annotations

from typing import Callable, Dict, List, Optional, Tuple

from models import BLANK, CapacityError, ComponentState, Placed, Rect, SolverEvent
from solver.constraints import ConstraintStore
from solver.engine import SearchEngine, SearchStats, normalize_layout
from solver.grid import Grid
from solver.registry import ComponentRegistry
from solver.validator import PlacementValidator

STATUS_IDLE = "idle"
STATUS_SOLVED = "solved"
STATUS_UNSATISFIABLE = "unsatisfiable"
STATUS_ABORTED = "aborted"


class LayoutSolver:
    """Place ASCII components so every adjacency constraint holds.

    Typical use::

        solver = LayoutSolver()
        solver.add_component("Hall", block)
        solver.add_component("Porch", other)
        solver.add_constraint("Porch", "Hall", "n")
        if solver.solve():
            print(solver.render_ascii())

    ``solve()`` returns a plain bool.  ``status`` tells a proven
    ``"unsatisfiable"`` result apart from an ``"aborted"`` run that hit a
    capacity limit; ``reason`` carries the limit's message.
    """

    def __init__(self, *, max_components=None, max_constraints=None, max_tile_size=None, max_grid_size=None):
        self.registry = ComponentRegistry(max_components, max_tile_size)
        self.constraints = ConstraintStore(self.registry, max_constraints)
        self.grid = Grid(max_grid_size)
        self.status = STATUS_IDLE
        self.reason: Optional[str] = None
        self.stats = SearchStats()
        self.search_path = ""
        self._listeners: List[Callable[[SolverEvent], None]] = []

    # ---------- setup ----------

    def add_component(self, name: str, ascii_block: str) -> bool:
        ok = self.registry.add(name, ascii_block)
        if ok:
            self._invalidate()
        return ok

    def add_constraint(self, component_a: str, component_b: str, direction: str) -> bool:
        ok = self.constraints.add(component_a, component_b, direction)
        if ok:
            self._invalidate()
        return ok

    def add_constraint_line(self, line: str) -> bool:
        ok = self.constraints.add_line(line)
        if ok:
            self._invalidate()
        return ok

    def subscribe(self, listener: Callable[[SolverEvent], None]) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[SolverEvent], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _invalidate(self) -> None:
        if self.status != STATUS_IDLE:
            self._clear_layout()
            self.status = STATUS_IDLE
            self.reason = None

    def _clear_layout(self) -> None:
        for comp in self.registry:
            comp.placed = False
        self.grid.clear()

    # ---------- solving ----------

    def solve(self) -> bool:
        engine = SearchEngine(self.registry, self.constraints, self.grid, self._listeners)
        self.stats = engine.stats
        try:
            ok = engine.run()
        except CapacityError as exc:
            summary = engine.tree_summary()
            self.search_path = summary["path"]
            self._clear_layout()
            self.status = STATUS_ABORTED
            self.reason = str(exc)
            engine.emit("aborted", reason=self.reason, iterations=engine.stats.iterations, **summary)
            return False
        self.search_path = engine.format_path(engine.solution_path())
        if ok:
            self.status = STATUS_SOLVED
            self.reason = None
        else:
            self.status = STATUS_UNSATISFIABLE
            self.reason = "search exhausted every placement option"
        return ok

    def apply_positions(self, positions: Dict[str, Tuple[int, int]], *, source: str = "external") -> bool:
        """Install a complete layout computed elsewhere (e.g. CP-SAT).

        The layout is only accepted when it is overlap-free and satisfies
        every constraint; otherwise the solver is left cleared.
        """
        if set(positions) != set(self.registry.names()):
            return False
        self.registry.update_mobility(self.constraints)
        self._clear_layout()
        validator = PlacementValidator(self.grid, self.registry)
        try:
            for name, (x, y) in positions.items():
                comp = self.registry.get(name)
                if not validator.is_valid(comp, x, y):
                    self._clear_layout()
                    return False
                validator.place(comp, x, y)
        except CapacityError:
            self._clear_layout()
            return False
        if not all(self.constraints.is_satisfied(c) for c in self.constraints):
            self._clear_layout()
            return False
        normalize_layout(self.registry, validator)
        self.status = STATUS_SOLVED
        self.reason = source
        return True

    # ---------- queries ----------

    def get_cell(self, x: int, y: int) -> str:
        return self.grid.get(x, y)

    def get_placement(self, name: str) -> Optional[ComponentState]:
        comp = self.registry.get(name)
        if comp is None:
            return None
        return ComponentState(
            name=comp.name,
            placed=comp.placed,
            x=comp.x if comp.placed else None,
            y=comp.y if comp.placed else None,
            width=comp.width,
            height=comp.height,
            constraint_count=comp.constraint_count,
            mobility_score=comp.mobility_score,
        )

    def constraint_satisfied(self, index: int) -> Optional[bool]:
        constraint = self.constraints.get(index)
        if constraint is None:
            return None
        return self.constraints.is_satisfied(constraint)

    def placements(self) -> List[Placed]:
        return [
            Placed(c.x, c.y, Rect(c.width, c.height, c.name), c.rows)
            for c in self.registry.placed()
        ]

    def bounds(self) -> Tuple[int, int]:
        placed = self.registry.placed()
        if not placed:
            return 0, 0
        x0 = min(c.x for c in placed)
        y0 = min(c.y for c in placed)
        x1 = max(c.x + c.width for c in placed)
        y1 = max(c.y + c.height for c in placed)
        return x1 - x0, y1 - y0

    def render_ascii(self) -> str:
        lines = [line.rstrip(BLANK) for line in self.grid.lines()]
        return "\n".join(lines)


__all__ = [
    "LayoutSolver",
    "STATUS_IDLE",
    "STATUS_SOLVED",
    "STATUS_UNSATISFIABLE",
    "STATUS_ABORTED",
]

# Search tree engine: depth-first placement with snapshot backtracking
from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from config import CFG
from models import CapacityError, Component, PlacementOption, SolverEvent, TreeNode
from solver.conflicts import ConflictAnalyzer
from solver.grid import Grid
from solver.options import OptionGenerator
from solver.sliding import SlidingResolver
from solver.validator import PlacementValidator

Listener = Callable[[SolverEvent], None]


@dataclass
class Snapshot:
    positions: Dict[str, Optional[Tuple[int, int]]]
    grid: Grid
    depths: Dict[str, int]
    node: Optional[int] = None


@dataclass
class Frame:
    """One level of the explicit search stack.

    ``snapshot`` is the state every option of this frame starts from;
    ``cursor`` is the index of the next option to try.
    """

    component: str
    constraint: Optional[int]
    options: List[PlacementOption]
    snapshot: Snapshot
    parent: Optional[int]
    depth: int
    cursor: int = 0


@dataclass
class SearchStats:
    iterations: int = 0
    nodes: int = 0
    backtracks: int = 0
    slides: int = 0
    relocations: int = 0
    cache_hits: int = 0
    max_depth: int = 0
    suggested_depths: List[int] = field(default_factory=list)


class SearchEngine:
    """Owns one solve: grid, resolvers, node arena and the frame stack."""

    def __init__(self, registry, constraints, grid: Grid, listeners: Optional[List[Listener]] = None):
        self.registry = registry
        self.constraints = constraints
        self.grid = grid
        self.listeners: List[Listener] = list(listeners or [])

        self.depths: Dict[str, int] = {}
        self.validator = PlacementValidator(grid, registry)
        self.analyzer = ConflictAnalyzer(registry, self.validator, lambda name: self.depths.get(name, 0))
        self.generator = OptionGenerator(registry, self.analyzer, CFG.MAX_OPTIONS)
        self.resolver = SlidingResolver(
            registry,
            constraints,
            self.validator,
            CFG.MAX_SLIDE_DISTANCE,
            CFG.SLIDE_MARGIN,
            CFG.RELOCATE_RADIUS,
        )

        self.nodes: List[TreeNode] = []
        self.frames: List[Frame] = []
        self.failed: Dict[str, "OrderedDict[tuple, None]"] = {}
        self.last_node: Optional[int] = None
        self.stats = SearchStats()

        self.max_iterations = int(CFG.MAX_ITERATIONS)
        self.max_depth = int(CFG.MAX_SNAPSHOT_DEPTH)
        self.max_nodes = int(CFG.MAX_TREE_NODES)
        self.cache_size = int(CFG.FAILED_CACHE_SIZE)

    # ---------- events ----------

    def emit(self, kind: str, component: Optional[str] = None, x=None, y=None, depth: int = 0, **detail) -> None:
        event = SolverEvent(kind, component, x, y, depth, detail)
        for listener in self.listeners:
            listener(event)

    # ---------- snapshots ----------

    def save(self, node: Optional[int] = None) -> Snapshot:
        positions = {
            c.name: ((c.x, c.y) if c.placed else None)
            for c in self.registry
        }
        return Snapshot(positions, self.grid.copy(), dict(self.depths), node)

    def restore(self, snap: Snapshot) -> None:
        for comp in self.registry:
            pos = snap.positions.get(comp.name)
            if pos is None:
                comp.placed = False
            else:
                comp.x, comp.y = pos
                comp.placed = True
        self.grid.restore(snap.grid)
        self.depths = dict(snap.depths)

    # ---------- tree ----------

    def new_node(self, frame: Frame, option: PlacementOption) -> TreeNode:
        if len(self.nodes) >= self.max_nodes:
            raise CapacityError(f"search tree node limit {self.max_nodes} reached")
        node = TreeNode(
            index=len(self.nodes),
            component=frame.component,
            constraint=frame.constraint,
            x=option.x,
            y=option.y,
            parent=frame.parent,
            depth=frame.depth,
        )
        self.nodes.append(node)
        if frame.parent is not None:
            self.nodes[frame.parent].children.append(node.index)
        self.stats.nodes = len(self.nodes)
        return node

    def solution_path(self, node: Optional[int] = None) -> List[TreeNode]:
        """Nodes from the root down to ``node`` (default: the last placement).

        Coordinates are the search-time ones, before normalisation.
        """
        index = self.last_node if node is None else node
        path: List[TreeNode] = []
        while index is not None:
            current = self.nodes[index]
            path.append(current)
            index = current.parent
        path.reverse()
        return path

    def tree_depth(self) -> int:
        return max((n.depth for n in self.nodes), default=-1) + 1

    @staticmethod
    def format_path(path: List[TreeNode]) -> str:
        return " > ".join(f"{n.component}@({n.x},{n.y})" for n in path)

    def tree_summary(self) -> Dict[str, object]:
        return {
            "nodes": self.stats.nodes,
            "tree_depth": self.tree_depth(),
            "path": self.format_path(self.solution_path()),
        }

    def push(self, component: str, constraint: Optional[int], options: List[PlacementOption], parent: Optional[int]) -> Frame:
        if len(self.frames) >= self.max_depth:
            raise CapacityError(f"snapshot stack limit {self.max_depth} reached")
        frame = Frame(
            component=component,
            constraint=constraint,
            options=options,
            snapshot=self.save(parent),
            parent=parent,
            depth=len(self.frames),
        )
        self.frames.append(frame)
        self.stats.max_depth = max(self.stats.max_depth, len(self.frames))
        return frame

    # ---------- selection ----------

    def select_root(self) -> Optional[Component]:
        """Most constrained unplaced component; registration order breaks ties."""
        best: Optional[Component] = None
        for comp in self.registry.unplaced():
            if best is None or comp.constraint_count > best.constraint_count:
                best = comp
        return best

    def next_constraint(self) -> Tuple[str, Optional[int]]:
        """Return ("open", idx), ("violated", idx) or ("clear", None)."""
        for idx, c in enumerate(self.constraints):
            a = self.registry.get(c.a)
            b = self.registry.get(c.b)
            if a.placed and b.placed:
                if not self.constraints.is_satisfied(c):
                    return "violated", idx
                continue
            if a.placed or b.placed:
                return "open", idx
        return "clear", None

    def seed_position(self, comp: Component) -> Tuple[int, int]:
        placed = self.registry.placed()
        if not placed:
            return CFG.ROOT_X, CFG.ROOT_Y
        max_x = max(c.x + c.width for c in placed)
        min_y = min(c.y for c in placed)
        return max_x + CFG.SEED_GAP, min_y

    # ---------- failed-position cache ----------

    def scene_key(self, comp: Component) -> tuple:
        return tuple(
            (c.name, c.x, c.y) for c in self.registry.placed() if c is not comp
        )

    def remember_failure(self, name: str, key: tuple) -> None:
        cache = self.failed.setdefault(name, OrderedDict())
        cache[key] = None
        while len(cache) > self.cache_size:
            cache.popitem(last=False)

    # ---------- main loop ----------

    def tick(self) -> None:
        self.stats.iterations += 1
        if self.stats.iterations > self.max_iterations:
            raise CapacityError(f"iteration limit {self.max_iterations} reached")

    def run(self) -> bool:
        self.registry.update_mobility(self.constraints)
        for comp in self.registry:
            comp.placed = False
        self.grid.clear()
        initial = self.save()

        root = self.select_root()
        if root is None:
            self.emit("solved", placed=0)
            return True
        self.emit("root", root.name, CFG.ROOT_X, CFG.ROOT_Y, degree=root.constraint_count)
        self.push(root.name, None, [PlacementOption(CFG.ROOT_X, CFG.ROOT_Y, 100)], None)

        while self.frames:
            self.tick()
            frame = self.frames[-1]
            if frame.cursor >= len(frame.options):
                self.frames.pop()
                self.stats.backtracks += 1
                self.emit("backtrack", frame.component, depth=frame.depth, tried=len(frame.options))
                continue

            option = frame.options[frame.cursor]
            frame.cursor += 1
            self.restore(frame.snapshot)
            node = self.new_node(frame, option)
            if not self.try_option(frame, option):
                continue
            self.last_node = node.index

            status, idx = self.next_constraint()
            if status == "violated":
                self.emit("conflict", frame.component, option.x, option.y, frame.depth,
                          constraint=self.constraints.get(idx).label, reason="violated")
                continue
            if status == "open":
                self.open_constraint(idx, node.index)
                continue

            seed = self.select_root()
            if seed is None:
                self.finish()
                return True
            sx, sy = self.seed_position(seed)
            self.emit("seed", seed.name, sx, sy, len(self.frames))
            self.push(seed.name, None, [PlacementOption(sx, sy, 100)], node.index)

        self.restore(initial)
        self.emit("failed", iterations=self.stats.iterations, backtracks=self.stats.backtracks,
                  **self.tree_summary())
        return False

    def open_constraint(self, idx: int, parent: int) -> None:
        constraint = self.constraints.get(idx)
        a = self.registry.get(constraint.a)
        unplaced = constraint.b if a.placed else constraint.a
        self.emit("constraint", unplaced, depth=len(self.frames), constraint=constraint.label)
        options = self.generator.generate(constraint, unplaced)
        suggested = self.analyzer.suggest_backtrack_depth(options)
        if suggested is not None:
            self.stats.suggested_depths.append(suggested)
        self.emit(
            "options", unplaced, depth=len(self.frames),
            count=len(options),
            conflict_free=sum(1 for o in options if not o.has_conflict),
            best=options[0].score if options else None,
            suggested_depth=suggested,
        )
        self.push(unplaced, idx, options, parent)

    def try_option(self, frame: Frame, option: PlacementOption) -> bool:
        comp = self.registry.get(frame.component)
        x, y = option.x, option.y
        key = (x, y, self.scene_key(comp))
        cache = self.failed.get(comp.name)
        if cache is not None and key in cache:
            self.stats.cache_hits += 1
            self.emit("attempt", comp.name, x, y, frame.depth, score=option.score, cached=True)
            return False
        self.emit("attempt", comp.name, x, y, frame.depth, score=option.score)

        if self.validator.is_valid(comp, x, y):
            self.place(comp, x, y, frame.depth)
            return True

        conflicts = self.analyzer.detect(comp, x, y)
        self.emit("conflict", comp.name, x, y, frame.depth,
                  blockers=",".join(c.blocker for c in conflicts))

        moves = self.resolver.slide(comp, x, y, conflicts)
        if moves:
            self.stats.slides += len(moves)
            for m in moves:
                self.emit("slide", m.component, m.to_x, m.to_y, frame.depth,
                          direction=m.direction, target=comp.name)
        elif len({c.blocker for c in conflicts}) == 1:
            move = self.resolver.relocate(comp, x, y, conflicts[0].blocker)
            if move is not None:
                moves = [move]
                self.stats.relocations += 1
                self.emit("relocate", move.component, move.to_x, move.to_y, frame.depth,
                          target=comp.name)

        if moves and self.validator.is_valid(comp, x, y):
            self.place(comp, x, y, frame.depth)
            return True

        self.remember_failure(comp.name, key)
        return False

    def place(self, comp: Component, x: int, y: int, depth: int) -> None:
        self.validator.place(comp, x, y)
        self.depths[comp.name] = depth
        self.emit("placed", comp.name, x, y, depth)

    def finish(self) -> None:
        self.normalize()
        self.emit(
            "solved",
            placed=len(self.registry.placed()),
            iterations=self.stats.iterations,
            backtracks=self.stats.backtracks,
            **self.tree_summary(),
        )

    def normalize(self) -> None:
        normalize_layout(self.registry, self.validator)


def normalize_layout(registry, validator) -> None:
    """Shift every placement so the layout's top-left corner is (0, 0)."""
    placed = registry.placed()
    if not placed:
        return
    dx = -min(c.x for c in placed)
    dy = -min(c.y for c in placed)
    validator.grid.clear()
    for comp in placed:
        comp.placed = False
    for comp in placed:
        validator.place(comp, comp.x + dx, comp.y + dy)


__all__ = ["SearchEngine", "Snapshot", "Frame", "SearchStats", "normalize_layout"]

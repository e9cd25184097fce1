# Sliding resolver: single-hop displacement of blockers plus direct relocation
from __future__ import annotations

from typing import Dict, Iterator, List, Optional, Tuple

from config import CFG
from models import SIDES, Component, Conflict, SlideMove

_STEP = {"n": (0, -1), "s": (0, 1), "e": (1, 0), "w": (-1, 0)}


def clearing_distances(blocker_box, target_box) -> Dict[str, int]:
    """Cells the blocker must travel in each direction to leave ``target_box``."""
    bx0, by0, bx1, by1 = blocker_box
    tx0, ty0, tx1, ty1 = target_box
    return {
        "n": by1 - ty0,
        "s": ty1 - by0,
        "e": tx1 - bx0,
        "w": bx1 - tx0,
    }


def ring_offsets(radius: int) -> Iterator[Tuple[int, int]]:
    """Offsets at Chebyshev distance 1..radius, nearest ring first."""
    for r in range(1, radius + 1):
        for dy in range(-r, r + 1):
            for dx in range(-r, r + 1):
                if max(abs(dx), abs(dy)) == r:
                    yield dx, dy


class SlidingResolver:
    """Moves blocking components out of a pending placement's way.

    Every move is checked before it is applied: the moved component must not
    overlap any other placed component or the pending footprint, and every
    constraint it has with a placed peer must still hold.  Displacement is a
    single hop per blocker; blockers are never pushed into each other.
    """

    def __init__(
        self,
        registry,
        constraints,
        validator,
        max_distance: Optional[int] = None,
        margin: Optional[int] = None,
        relocate_radius: Optional[int] = None,
    ):
        self.registry = registry
        self.constraints = constraints
        self.validator = validator
        self.max_distance = int(max_distance if max_distance is not None else CFG.MAX_SLIDE_DISTANCE)
        self.margin = int(margin if margin is not None else CFG.SLIDE_MARGIN)
        self.relocate_radius = int(relocate_radius if relocate_radius is not None else CFG.RELOCATE_RADIUS)

    # ---------- checks ----------

    def fits(self, blocker: Component, nx: int, ny: int, target: Component, tx: int, ty: int) -> bool:
        if self.validator.overlaps(blocker, nx, ny, target, other_at=(tx, ty)):
            return False
        for other in self.registry.placed():
            if other is blocker or other is target:
                continue
            if self.validator.overlaps(blocker, nx, ny, other):
                return False
        return self.constraints.placed_peers_satisfied(blocker.name, {blocker.name: (nx, ny)})

    def smart_directions(self, blocker: Component, target_box) -> List[Tuple[str, int]]:
        dist = clearing_distances(blocker.box(), target_box)
        smart = [(d, dist[d]) for d in SIDES if 0 < dist[d] <= self.max_distance]
        if not smart:
            return [(d, dist[d]) for d in SIDES]
        return sorted(smart, key=lambda item: item[1])

    # ---------- strategies ----------

    def slide(self, target: Component, x: int, y: int, conflicts: List[Conflict]) -> Optional[List[SlideMove]]:
        """Try to clear every blocker; undo all moves if any one fails."""
        target_box = target.box(x, y)
        moves: List[SlideMove] = []
        seen = set()
        for conflict in conflicts:
            if conflict.blocker in seen:
                continue
            seen.add(conflict.blocker)
            blocker = self.registry.get(conflict.blocker)
            if blocker is None or not blocker.placed:
                continue
            move = self._slide_one(blocker, target, x, y, target_box)
            if move is None:
                self.undo(moves)
                return None
            moves.append(move)
        return moves

    def _slide_one(self, blocker: Component, target: Component, x: int, y: int, target_box) -> Optional[SlideMove]:
        for direction, needed in self.smart_directions(blocker, target_box):
            distance = min(max(needed, 0) + self.margin, self.max_distance)
            if distance <= 0:
                continue
            sx, sy = _STEP[direction]
            nx = blocker.x + sx * distance
            ny = blocker.y + sy * distance
            if self.fits(blocker, nx, ny, target, x, y):
                move = SlideMove(blocker.name, blocker.x, blocker.y, nx, ny, direction)
                self.validator.move(blocker, nx, ny)
                return move
        return None

    def relocate(self, target: Component, x: int, y: int, blocker_name: str) -> Optional[SlideMove]:
        """Move a single blocker to the nearest offset that clears everything."""
        blocker = self.registry.get(blocker_name)
        if blocker is None or not blocker.placed:
            return None
        for dx, dy in ring_offsets(self.relocate_radius):
            nx, ny = blocker.x + dx, blocker.y + dy
            if self.fits(blocker, nx, ny, target, x, y):
                move = SlideMove(blocker.name, blocker.x, blocker.y, nx, ny, "relocate")
                self.validator.move(blocker, nx, ny)
                return move
        return None

    def undo(self, moves: List[SlideMove]) -> None:
        for move in reversed(moves):
            comp = self.registry.get(move.component)
            self.validator.move(comp, move.from_x, move.from_y)


__all__ = ["SlidingResolver", "clearing_distances", "ring_offsets"]

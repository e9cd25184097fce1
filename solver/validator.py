# Placement validator: overlap legality and grid mutation
from __future__ import annotations

from typing import Optional

from models import BLANK, Component


def boxes_intersect(a, b) -> bool:
    return a[0] < b[2] and b[0] < a[2] and a[1] < b[3] and b[1] < a[3]


class PlacementValidator:
    def __init__(self, grid, registry):
        self.grid = grid
        self.registry = registry

    def overlaps(
        self,
        comp: Component,
        x: int,
        y: int,
        other: Component,
        other_at: Optional[tuple] = None,
    ) -> bool:
        """Character-level overlap of ``comp`` at (x, y) with ``other``.

        Only non-blank cells count; blank cells are transparent.
        """
        ox, oy = other_at if other_at is not None else (other.x, other.y)
        if not boxes_intersect(comp.box(x, y), other.box(ox, oy)):
            return False
        return not comp.footprint(x, y).isdisjoint(other.footprint(ox, oy))

    def is_valid(self, comp: Component, x: int, y: int) -> bool:
        self.grid.expand(comp, x, y)
        for other in self.registry.placed():
            if other is comp:
                continue
            if self.overlaps(comp, x, y, other):
                return False
        return True

    def place(self, comp: Component, x: int, y: int) -> None:
        if comp.placed:
            self.remove(comp)
        self.grid.expand(comp, x, y)
        for dx, dy, ch in comp.cells:
            self.grid.set(x + dx, y + dy, ch)
        comp.x, comp.y = x, y
        comp.placed = True

    def remove(self, comp: Component) -> None:
        if not comp.placed:
            return
        for dx, dy, _ch in comp.cells:
            self.grid.set(comp.x + dx, comp.y + dy, BLANK)
        comp.placed = False

    def move(self, comp: Component, x: int, y: int) -> None:
        self.remove(comp)
        self.place(comp, x, y)


__all__ = ["PlacementValidator", "boxes_intersect"]

# Grid: origin-relative character canvas that grows on demand
from __future__ import annotations

from typing import Iterable, List, Optional

from config import CFG
from models import BLANK, CapacityError, Component


class Grid:
    """Character canvas addressed in world coordinates.

    Cell ``(x, y)`` lives at ``rows[y - min_y][x - min_x]``; the backing
    store is re-allocated whenever a footprint falls outside the current
    bounds and existing content is translated into the new frame.
    """

    def __init__(self, max_extent: Optional[int] = None):
        self.max_extent = int(max_extent if max_extent is not None else CFG.MAX_GRID_SIZE)
        self.min_x = 0
        self.min_y = 0
        self.width = 0
        self.height = 0
        self.rows: List[List[str]] = []

    # ---------- bounds ----------

    def contains(self, x: int, y: int) -> bool:
        return (
            self.min_x <= x < self.min_x + self.width
            and self.min_y <= y < self.min_y + self.height
        )

    def ensure(self, x: int, y: int, w: int, h: int) -> bool:
        """Grow so the box ``(x, y, w, h)`` fits; return True if re-allocated."""
        if w <= 0 or h <= 0:
            return False
        if self.width and self.height:
            if self.contains(x, y) and self.contains(x + w - 1, y + h - 1):
                return False
            nx0 = min(self.min_x, x)
            ny0 = min(self.min_y, y)
            nx1 = max(self.min_x + self.width, x + w)
            ny1 = max(self.min_y + self.height, y + h)
        else:
            nx0, ny0, nx1, ny1 = x, y, x + w, y + h

        new_w = nx1 - nx0
        new_h = ny1 - ny0
        if new_w > self.max_extent or new_h > self.max_extent:
            raise CapacityError(
                f"grid extent {new_w}x{new_h} exceeds maximum {self.max_extent}"
            )

        rows = [[BLANK] * new_w for _ in range(new_h)]
        ox = self.min_x - nx0
        oy = self.min_y - ny0
        for r, row in enumerate(self.rows):
            rows[r + oy][ox:ox + self.width] = row
        self.rows = rows
        self.min_x, self.min_y = nx0, ny0
        self.width, self.height = new_w, new_h
        return True

    def expand(self, component: Component, x: int, y: int) -> bool:
        return self.ensure(x, y, component.width, component.height)

    # ---------- cells ----------

    def get(self, x: int, y: int) -> str:
        if not self.contains(x, y):
            return BLANK
        return self.rows[y - self.min_y][x - self.min_x]

    def set(self, x: int, y: int, ch: str) -> None:
        if not self.contains(x, y):
            self.ensure(x, y, 1, 1)
        self.rows[y - self.min_y][x - self.min_x] = ch

    def clear(self) -> None:
        self.min_x = self.min_y = 0
        self.width = self.height = 0
        self.rows = []

    def copy(self) -> "Grid":
        other = Grid(self.max_extent)
        other.min_x, other.min_y = self.min_x, self.min_y
        other.width, other.height = self.width, self.height
        other.rows = [row[:] for row in self.rows]
        return other

    def restore(self, other: "Grid") -> None:
        """Overwrite this grid in place with a copy of ``other``."""
        self.min_x, self.min_y = other.min_x, other.min_y
        self.width, self.height = other.width, other.height
        self.rows = [row[:] for row in other.rows]

    def lines(self) -> List[str]:
        return ["".join(row) for row in self.rows]

    def occupied(self) -> Iterable[tuple]:
        for r, row in enumerate(self.rows):
            for c, ch in enumerate(row):
                if ch != BLANK:
                    yield (self.min_x + c, self.min_y + r, ch)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return (
            self.min_x == other.min_x
            and self.min_y == other.min_y
            and self.width == other.width
            and self.height == other.height
            and self.rows == other.rows
        )

    def __repr__(self) -> str:
        return f"Grid(min=({self.min_x},{self.min_y}), size={self.width}x{self.height})"


__all__ = ["Grid"]

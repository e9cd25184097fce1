# Constraint store: pairwise adjacency relations between named components
from __future__ import annotations

import re
from typing import Dict, Iterator, List, Optional, Tuple

from config import CFG
from models import SIDES, CapacityError, Component, Constraint, parse_direction

_ADJACENT_RE = re.compile(
    r"^\s*ADJACENT\s*\(\s*([^,()]+?)\s*,\s*([^,()]+?)\s*,\s*([^,()]+?)\s*\)\s*$",
    re.IGNORECASE,
)

Box = Tuple[int, int, int, int]


def parse_adjacent(line: str) -> Optional[Tuple[str, str, str]]:
    """Split ``ADJACENT(a, b, d)`` into its raw parts, or return None."""
    m = _ADJACENT_RE.match(line or "")
    if not m:
        return None
    return m.group(1), m.group(2), m.group(3)


def touches(a: Box, b: Box, side: str) -> bool:
    """True when box ``a`` sits flush on ``side`` of box ``b`` with overlap."""
    ax0, ay0, ax1, ay1 = a
    bx0, by0, bx1, by1 = b
    if side in ("n", "s"):
        if min(ax1, bx1) - max(ax0, bx0) <= 0:
            return False
        return ay1 == by0 if side == "n" else by1 == ay0
    if side in ("e", "w"):
        if min(ay1, by1) - max(ay0, by0) <= 0:
            return False
        return bx1 == ax0 if side == "e" else ax1 == bx0
    return False


def adjacent(a: Box, b: Box, direction: str) -> bool:
    if direction == "a":
        return any(touches(a, b, side) for side in SIDES)
    return touches(a, b, direction)


class ConstraintStore:
    def __init__(self, registry, max_constraints: Optional[int] = None):
        self.registry = registry
        self.max_constraints = int(max_constraints if max_constraints is not None else CFG.MAX_CONSTRAINTS)
        self._items: List[Constraint] = []

    def add(self, a: str, b: str, direction: str) -> bool:
        if not isinstance(a, str) or not isinstance(b, str):
            return False
        a = a.strip()
        b = b.strip()
        d = parse_direction(direction)
        if d is None or a == b:
            return False
        if a not in self.registry or b not in self.registry:
            return False
        if len(self._items) >= self.max_constraints:
            raise CapacityError(f"constraint limit {self.max_constraints} reached")
        self._items.append(Constraint(a, b, d))
        return True

    def add_line(self, line: str) -> bool:
        parts = parse_adjacent(line)
        if parts is None:
            return False
        return self.add(*parts)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Constraint]:
        return iter(self._items)

    def get(self, index: int) -> Optional[Constraint]:
        if isinstance(index, bool) or not isinstance(index, int):
            return None
        if 0 <= index < len(self._items):
            return self._items[index]
        return None

    def involving(self, name: str) -> List[Constraint]:
        return [c for c in self._items if c.involves(name)]

    def is_satisfied(
        self,
        constraint: Constraint,
        positions: Optional[Dict[str, Tuple[int, int]]] = None,
    ) -> bool:
        """Check ``constraint`` against current placements.

        ``positions`` overrides coordinates for trial moves; a component that
        is neither placed nor overridden fails the check.
        """
        boxes = []
        for name in (constraint.a, constraint.b):
            comp: Component = self.registry.get(name)
            if comp is None:
                return False
            if positions and name in positions:
                boxes.append(comp.box(*positions[name]))
            elif comp.placed:
                boxes.append(comp.box())
            else:
                return False
        return adjacent(boxes[0], boxes[1], constraint.direction)

    def placed_peers_satisfied(
        self,
        name: str,
        positions: Optional[Dict[str, Tuple[int, int]]] = None,
    ) -> bool:
        """All constraints between ``name`` and placed peers hold."""
        for c in self.involving(name):
            peer = self.registry.get(c.other(name))
            if peer is None or not peer.placed:
                continue
            if not self.is_satisfied(c, positions):
                return False
        return True


__all__ = ["ConstraintStore", "adjacent", "touches", "parse_adjacent"]

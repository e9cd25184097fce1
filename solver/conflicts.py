# Conflict analyzer: which placed peers a target footprint collides with
from __future__ import annotations

from typing import Callable, Iterable, List, Optional

from models import Component, Conflict, PlacementOption


class ConflictAnalyzer:
    def __init__(self, registry, validator, depth_of: Callable[[str], int]):
        self.registry = registry
        self.validator = validator
        self.depth_of = depth_of

    def detect(self, comp: Component, x: int, y: int) -> List[Conflict]:
        found: List[Conflict] = []
        for other in self.registry.placed():
            if other is comp:
                continue
            if self.validator.overlaps(comp, x, y, other):
                found.append(Conflict(other.name, self.depth_of(other.name)))
        return found

    @staticmethod
    def suggest_backtrack_depth(options: Iterable[PlacementOption]) -> Optional[int]:
        """Shallowest depth that unblocks every conflicting option.

        For each option the deepest blocker bounds how far a jump would have
        to go; the answer is the minimum of those bounds.  Returns None when
        any option is conflict-free.  Reported for diagnostics; the engine
        still backtracks chronologically.
        """
        best: Optional[int] = None
        for option in options:
            if not option.conflicts:
                return None
            deepest = max(c.depth for c in option.conflicts)
            if best is None or deepest < best:
                best = deepest
        return best


__all__ = ["ConflictAnalyzer"]

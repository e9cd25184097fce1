# Option generator & scorer: flush positions around a placed peer
from __future__ import annotations

from typing import List, Optional, Tuple

from config import CFG
from models import OPPOSITE, SIDES, CapacityError, Component, Constraint, PlacementOption

SCORE_EDGE_ALIGNED = 100
SCORE_CENTERED = 90
SCORE_OVERLAP_CAP = 89
SCORE_OVERLAP_FLOOR = 50
SCORE_DETACHED_BASE = 49


def score_alignment(lo: int, ext: int, plo: int, pext: int) -> int:
    """Preference score on the axis perpendicular to the shared edge.

    ``lo``/``ext`` describe the candidate's span, ``plo``/``pext`` the peer's.
    Edge alignment beats exact centering, which beats a partial overlap,
    which beats a span that does not overlap the peer at all.
    """
    hi = lo + ext
    phi = plo + pext
    if lo == plo or hi == phi:
        return SCORE_EDGE_ALIGNED
    # centering is only exact when both extents have the same parity
    if ext % 2 == pext % 2 and lo + ext // 2 == plo + pext // 2:
        return SCORE_CENTERED
    overlap = min(hi, phi) - max(lo, plo)
    if overlap > 0:
        edge = min(abs(lo - plo), abs(hi - phi))
        raw = SCORE_OVERLAP_FLOOR + 2 * overlap + (10 - edge)
        return max(SCORE_OVERLAP_FLOOR, min(SCORE_OVERLAP_CAP, raw))
    gap = max(lo, plo) - min(hi, phi)
    return max(1, SCORE_DETACHED_BASE - gap)


def score_option(comp: Component, x: int, y: int, peer: Component, side: str) -> int:
    if side in ("n", "s"):
        return score_alignment(x, comp.width, peer.x, peer.width)
    return score_alignment(y, comp.height, peer.y, peer.height)


def sides_for(constraint: Constraint, unplaced: str) -> Tuple[str, ...]:
    """Sides of the placed peer the unplaced component may occupy."""
    if constraint.direction == "a":
        return SIDES
    if unplaced == constraint.a:
        return (constraint.direction,)
    return (OPPOSITE[constraint.direction],)


def flush_positions(comp: Component, peer: Component, side: str) -> List[Tuple[int, int]]:
    """Every position flush on ``side`` of ``peer`` keeping at least one cell
    of perpendicular overlap."""
    if side == "n":
        y = peer.y - comp.height
        return [(x, y) for x in range(peer.x - comp.width + 1, peer.x + peer.width)]
    if side == "s":
        y = peer.y + peer.height
        return [(x, y) for x in range(peer.x - comp.width + 1, peer.x + peer.width)]
    if side == "e":
        x = peer.x + peer.width
        return [(x, y) for y in range(peer.y - comp.height + 1, peer.y + peer.height)]
    if side == "w":
        x = peer.x - comp.width
        return [(x, y) for y in range(peer.y - comp.height + 1, peer.y + peer.height)]
    return []


def order_options(options: List[PlacementOption]) -> List[PlacementOption]:
    # sorted() is stable, so ties keep discovery order
    return sorted(options, key=lambda o: (o.has_conflict, -o.score))


class OptionGenerator:
    def __init__(self, registry, analyzer, max_options: Optional[int] = None):
        self.registry = registry
        self.analyzer = analyzer
        self.max_options = int(max_options if max_options is not None else CFG.MAX_OPTIONS)

    def generate(self, constraint: Constraint, unplaced: str) -> List[PlacementOption]:
        comp = self.registry.get(unplaced)
        peer = self.registry.get(constraint.other(unplaced))
        options: List[PlacementOption] = []
        for side in sides_for(constraint, unplaced):
            for x, y in flush_positions(comp, peer, side):
                if len(options) >= self.max_options:
                    raise CapacityError(
                        f"more than {self.max_options} options for {unplaced}"
                    )
                conflicts = self.analyzer.detect(comp, x, y)
                options.append(PlacementOption(
                    x=x,
                    y=y,
                    score=score_option(comp, x, y, peer, side),
                    side=side,
                    has_conflict=bool(conflicts),
                    conflicts=conflicts,
                ))
        return order_options(options)


__all__ = [
    "OptionGenerator",
    "flush_positions",
    "order_options",
    "score_alignment",
    "score_option",
    "sides_for",
]

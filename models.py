from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

BLANK = " "

# Sides a component can occupy relative to a peer.  "a" (any) is only valid
# in a constraint; options are always generated for a concrete side.
SIDES = ("n", "s", "e", "w")
OPPOSITE = {"n": "s", "s": "n", "e": "w", "w": "e", "a": "a"}

_DIRECTION_ALIASES = {
    "n": "n", "north": "n",
    "s": "s", "south": "s",
    "e": "e", "east": "e",
    "w": "w", "west": "w",
    "a": "a", "any": "a", "*": "a",
}


def parse_direction(token: Any) -> Optional[str]:
    """Return the canonical one-letter direction for ``token`` or ``None``."""
    if token is None:
        return None
    return _DIRECTION_ALIASES.get(str(token).strip().lower())


class SolverError(Exception):
    """Base class for errors that unwind out of the layout solver."""


class CapacityError(SolverError):
    """A configured limit was exceeded; the run cannot continue."""


@dataclass
class Component:
    name: str
    rows: Tuple[str, ...]
    width: int
    height: int
    # non-blank cells as (dx, dy, char) offsets from the top-left corner
    cells: Tuple[Tuple[int, int, str], ...] = ()
    x: int = 0
    y: int = 0
    placed: bool = False
    constraint_count: int = 0
    mobility_score: int = 0

    @classmethod
    def from_ascii(cls, name: str, block: str) -> "Component":
        lines = [line.rstrip("\r") for line in block.strip("\r\n").split("\n")]
        width = max((len(line) for line in lines), default=0)
        rows = tuple(line.ljust(width, BLANK) for line in lines)
        cells = tuple(
            (dx, dy, ch)
            for dy, row in enumerate(rows)
            for dx, ch in enumerate(row)
            if ch != BLANK
        )
        return cls(name=name, rows=rows, width=width, height=len(rows), cells=cells)

    def box(self, x: Optional[int] = None, y: Optional[int] = None) -> Tuple[int, int, int, int]:
        """Bounding box ``(x0, y0, x1, y1)`` with exclusive far edges."""
        x0 = self.x if x is None else x
        y0 = self.y if y is None else y
        return x0, y0, x0 + self.width, y0 + self.height

    def footprint(self, x: Optional[int] = None, y: Optional[int] = None) -> set:
        x0 = self.x if x is None else x
        y0 = self.y if y is None else y
        return {(x0 + dx, y0 + dy) for dx, dy, _ch in self.cells}


@dataclass(frozen=True)
class Constraint:
    """``a`` lies on side ``direction`` of ``b`` (or any side for ``"a"``)."""

    a: str
    b: str
    direction: str

    def involves(self, name: str) -> bool:
        return name == self.a or name == self.b

    def other(self, name: str) -> str:
        return self.b if name == self.a else self.a

    @property
    def label(self) -> str:
        return f"ADJACENT({self.a}, {self.b}, {self.direction})"


@dataclass(frozen=True)
class Conflict:
    blocker: str
    depth: int


@dataclass
class PlacementOption:
    x: int
    y: int
    score: int
    side: Optional[str] = None
    has_conflict: bool = False
    conflicts: List[Conflict] = field(default_factory=list)


@dataclass(frozen=True)
class SlideMove:
    component: str
    from_x: int
    from_y: int
    to_x: int
    to_y: int
    direction: str


@dataclass
class TreeNode:
    index: int
    component: str
    constraint: Optional[int]
    x: int
    y: int
    parent: Optional[int]
    depth: int
    children: List[int] = field(default_factory=list)


@dataclass(frozen=True)
class ComponentState:
    name: str
    placed: bool
    x: Optional[int]
    y: Optional[int]
    width: int
    height: int
    constraint_count: int
    mobility_score: int


@dataclass
class SolverEvent:
    kind: str
    component: Optional[str] = None
    x: Optional[int] = None
    y: Optional[int] = None
    depth: int = 0
    detail: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Rect:
    w: int
    h: int
    name: str


@dataclass
class Placed:
    x: int
    y: int
    rect: Rect
    rows: Tuple[str, ...] = ()

# Component registry: named ASCII tiles and their placement state
from __future__ import annotations

import re
from typing import Dict, Iterator, List, Optional

from config import CFG
from models import CapacityError, Component

# Names must survive a round trip through "ADJACENT(a, b, d)".
_NAME_RE = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.\-]*$")


def valid_name(name: object) -> bool:
    return isinstance(name, str) and bool(_NAME_RE.match(name))


class ComponentRegistry:
    def __init__(self, max_components: Optional[int] = None, max_tile_size: Optional[int] = None):
        self.max_components = int(max_components if max_components is not None else CFG.MAX_COMPONENTS)
        self.max_tile_size = int(max_tile_size if max_tile_size is not None else CFG.MAX_TILE_SIZE)
        self._components: Dict[str, Component] = {}

    def add(self, name: str, block: str) -> bool:
        """Register a tile.  Returns False for malformed input.

        Raises ``CapacityError`` when the registry is full or the tile is
        larger than the configured maximum on either side.
        """
        name = (name or "").strip() if isinstance(name, str) else name
        if not valid_name(name) or name in self._components:
            return False
        if not isinstance(block, str):
            return False
        component = Component.from_ascii(name, block)
        if not component.cells:
            return False
        if len(self._components) >= self.max_components:
            raise CapacityError(f"component limit {self.max_components} reached")
        if component.width > self.max_tile_size or component.height > self.max_tile_size:
            raise CapacityError(
                f"tile {name} is {component.width}x{component.height}; "
                f"maximum side is {self.max_tile_size}"
            )
        self._components[name] = component
        return True

    def get(self, name: str) -> Optional[Component]:
        return self._components.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._components

    def __iter__(self) -> Iterator[Component]:
        return iter(self._components.values())

    def __len__(self) -> int:
        return len(self._components)

    def names(self) -> List[str]:
        return list(self._components.keys())

    def placed(self) -> List[Component]:
        return [c for c in self._components.values() if c.placed]

    def unplaced(self) -> List[Component]:
        return [c for c in self._components.values() if not c.placed]

    def update_mobility(self, constraints) -> None:
        """Recompute degree and mobility from the current constraint set.

        Mobility is the constraint degree plus the number of distinct peers,
        so hubs wired to many neighbours score as harder to move.
        """
        for comp in self._components.values():
            related = constraints.involving(comp.name)
            peers = {c.other(comp.name) for c in related}
            comp.constraint_count = len(related)
            comp.mobility_score = len(related) + len(peers)


__all__ = ["ComponentRegistry", "valid_name"]

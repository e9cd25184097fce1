# tiles.py — markdown layout specification reader
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


SECTION_NONE = ""
SECTION_COMPONENTS = "components"
SECTION_CONSTRAINTS = "constraints"
SECTION_TILES = "tiles"

_BOLD_NAME_RE = re.compile(r"\*\*\s*([^*:]+?)\s*:?\s*\*\*")
_NUMBERED_RE = re.compile(r"^\d+\.\s+([^\-–:]+)")
_PLAIN_NAME_RE = re.compile(r"^([A-Za-z0-9_][\w.\-]*)\s*:\s*$")
_CALL_RE = re.compile(r"^([A-Za-z_]+)\s*\(")
_FENCE = "```"


@dataclass
class ParsedSpec:
    declared: List[str] = field(default_factory=list)
    tiles: List[Tuple[str, str]] = field(default_factory=list)
    constraints: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def _section_for(line: str) -> Optional[str]:
    if not line.startswith("#"):
        return None
    title = line.lstrip("#").strip().lower()
    if title.startswith("component tiles") or title.startswith("tiles"):
        return SECTION_TILES
    if title.startswith("components"):
        return SECTION_COMPONENTS
    if title.startswith("constraints"):
        return SECTION_CONSTRAINTS
    return SECTION_NONE


def _strip_bullet(line: str) -> str:
    if line[:1] in ("-", "*") and not line.startswith("**"):
        return line[1:].strip()
    return line


def parse_specification(text: str) -> ParsedSpec:
    """Split a markdown layout spec into declared names, tiles and constraints.

    Sections are ``## Components`` (``**Name** - description`` or
    ``1. Name``), ``## Constraints`` (one call per line, bullets allowed)
    and ``## Component Tiles`` (``**Name:**`` followed by a fenced block).
    Tile lines keep their leading blanks; everything else is trimmed.
    """
    spec = ParsedSpec()
    section = SECTION_NONE
    current: Optional[str] = None
    block: Optional[List[str]] = None

    for raw in (text or "").splitlines():
        stripped = raw.strip()

        if block is not None:
            if stripped.startswith(_FENCE):
                if current:
                    spec.tiles.append((current, "\n".join(block)))
                else:
                    spec.warnings.append("tile block without a component name")
                block = None
                current = None
            else:
                block.append(raw.rstrip())
            continue

        if not stripped:
            continue

        new_section = _section_for(stripped)
        if new_section is not None:
            section = new_section
            current = None
            continue

        if section == SECTION_COMPONENTS:
            m = _BOLD_NAME_RE.search(stripped) or _NUMBERED_RE.match(stripped)
            if m:
                name = m.group(1).strip()
                if name and name not in spec.declared:
                    spec.declared.append(name)
        elif section == SECTION_CONSTRAINTS:
            line = _strip_bullet(stripped)
            if "(" in line:
                spec.constraints.append(line)
        elif section == SECTION_TILES:
            if stripped.startswith(_FENCE):
                block = []
                continue
            m = _BOLD_NAME_RE.search(stripped) or _PLAIN_NAME_RE.match(stripped)
            if m:
                current = m.group(1).strip()

    if block is not None:
        spec.warnings.append(f"unterminated tile block for {current or 'unnamed component'}")

    tiled = {name for name, _ in spec.tiles}
    for name in spec.declared:
        if name not in tiled:
            spec.warnings.append(f"component {name} has no tile")
    return spec


def load_specification(text: str, solver: Any) -> Tuple[int, int, List[str]]:
    """Feed a markdown spec into ``solver``; components first, then constraints.

    Returns ``(components_added, constraints_added, messages)``.  Constraint
    kinds other than ADJACENT are reported and skipped.  A capacity error
    from the solver propagates to the caller.
    """
    spec = parse_specification(text)
    messages = list(spec.warnings)
    n_components = 0
    n_constraints = 0

    for name, block in spec.tiles:
        if solver.add_component(name, block):
            n_components += 1
        else:
            messages.append(f"rejected component {name}")

    for line in spec.constraints:
        m = _CALL_RE.match(line)
        kind = m.group(1).upper() if m else ""
        if kind != "ADJACENT":
            messages.append(f"skipped unsupported constraint: {line}")
            continue
        if solver.add_constraint_line(line):
            n_constraints += 1
        else:
            messages.append(f"rejected constraint: {line}")

    return n_components, n_constraints, messages


def load_payload(payload: Dict[str, Any], solver: Any) -> Tuple[int, int, List[str]]:
    """Structured variant: ``{"components": {name: block}, "constraints": [...]}``.

    Constraints may be DSL strings or ``[a, b, direction]`` triples.
    """
    messages: List[str] = []
    n_components = 0
    n_constraints = 0
    comps = payload.get("components") or {}
    if isinstance(comps, list):
        items = []
        for entry in comps:
            if isinstance(entry, dict):
                items.append((entry.get("name"), entry.get("tile") or entry.get("ascii")))
        comps = dict(items)
    for name, block in comps.items():
        if solver.add_component(name, block):
            n_components += 1
        else:
            messages.append(f"rejected component {name}")
    for item in payload.get("constraints") or []:
        if isinstance(item, str):
            ok = solver.add_constraint_line(item)
        elif isinstance(item, (list, tuple)) and len(item) == 3:
            ok = solver.add_constraint(*item)
        elif isinstance(item, dict):
            ok = solver.add_constraint(item.get("a"), item.get("b"), item.get("direction"))
        else:
            ok = False
        if ok:
            n_constraints += 1
        else:
            messages.append(f"rejected constraint: {item}")
    return n_components, n_constraints, messages


__all__ = [
    "ParsedSpec",
    "load_payload",
    "load_specification",
    "parse_specification",
]

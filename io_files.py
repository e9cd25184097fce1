"""Helpers for writing solver outputs to disk."""

from __future__ import annotations

import os
from html import escape
from typing import List, Optional

from config import CFG
from models import Placed


def _resolve_output_path(base_dir: str, configured_name: str, fallback: str) -> str:
    """Return the absolute path where an output artifact should be written."""

    name = (configured_name or "").strip() or fallback
    if os.path.isabs(name):
        return name
    return os.path.join(base_dir, name)


def write_layout(placed: List[Placed], ascii_art: str, base_dir: str) -> str:
    """Write the ASCII layout followed by one coordinate line per component."""

    path = _resolve_output_path(base_dir, CFG.LAYOUT_OUT, "layout.txt")
    os.makedirs(os.path.dirname(path), exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        if not placed:
            f.write("No solution\n")
            return path
        f.write(ascii_art.rstrip("\n") + "\n\n")
        for p in sorted(placed, key=lambda q: (q.y, q.x, q.rect.name)):
            f.write(f"{p.rect.name} @ ({p.x},{p.y}) size ({p.rect.w}×{p.rect.h})\n")
    return path


def write_layout_view_html(
    svg: str,
    legend_html: str,
    base_dir: str,
    *,
    ascii_art: Optional[str] = None,
    grid_label: Optional[str] = None,
) -> str:
    """Write the rendered SVG/legend preview to the configured HTML file."""

    path = _resolve_output_path(base_dir, CFG.LAYOUT_HTML, "layout_view.html")
    os.makedirs(os.path.dirname(path), exist_ok=True)

    label = f"<p class='muted'>{grid_label}</p>" if grid_label else ""
    art = ""
    if ascii_art:
        art = f"<section class='card'><h3>ASCII</h3><pre>{escape(ascii_art)}</pre></section>"

    with open(path, "w", encoding="utf-8") as vf:
        vf.write(
            f"""<!doctype html>
<html><head><meta charset='utf-8'><title>Layout View</title>
<link rel='stylesheet' href='/styles.css'></head>
<body class='container'>
<h1>Layout View</h1>{label}
<section class='card'><div class='gridwrap'>{svg}</div></section>
<section class='card'><h3>Legend</h3><ul>{legend_html}</ul></section>
{art}
</body></html>"""
        )
    return path


__all__ = ["write_layout", "write_layout_view_html"]

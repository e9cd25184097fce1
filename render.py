
import html
import random
from typing import Dict, List

from config import CFG
from models import Placed

def _color(name: str) -> str:
    random.seed(hash(name) & 0xFFFFFFFF)
    r = random.randint(90, 230)
    g = random.randint(90, 230)
    b = random.randint(90, 230)
    return f"rgb({r},{g},{b})"

def render_result(placed: List[Placed], Wc: int, Hc: int, cell_px: int = 0):
    """Return ``(svg, legend_html)`` for a solved layout.

    Each component is drawn as a tinted rectangle with its ASCII cells
    overlaid in a monospace font, one glyph per grid cell.
    """
    scale = int(cell_px or CFG.CELL_PX)
    palette: Dict[str, str] = {}
    for p in placed:
        palette.setdefault(p.rect.name, _color(p.rect.name))

    svg_w = Wc * scale + 2
    svg_h = Hc * scale + 2

    parts = []
    for p in placed:
        x = p.x * scale + 1
        y = p.y * scale + 1
        w = p.rect.w * scale
        h = p.rect.h * scale
        name = html.escape(p.rect.name)
        parts.append(
            f'<rect x="{x}" y="{y}" width="{w}" height="{h}" fill="{palette[p.rect.name]}" '
            f'fill-opacity="0.45" stroke="black" stroke-width="1"><title>{name}</title></rect>'
        )
        for dy, row in enumerate(p.rows):
            if not row.strip():
                continue
            parts.append(
                f'<text x="{x}" y="{y + (dy + 1) * scale - 3}" font-family="monospace" '
                f'font-size="{scale}" textLength="{len(row) * scale}" xml:space="preserve">'
                f'{html.escape(row)}</text>'
            )
    frame = f'<rect x="1" y="1" width="{svg_w-2}" height="{svg_h-2}" fill="none" stroke="black" stroke-width="2"/>'
    svg = (
        f'<svg class="layout-svg" xmlns="http://www.w3.org/2000/svg" '
        f'width="{svg_w}" height="{svg_h}" '
        f'viewBox="0 0 {svg_w} {svg_h}" preserveAspectRatio="xMinYMin meet">'
        f'{frame}{"".join(parts)}</svg>'
    )

    legend = "".join(
        f"<li><span class='swatch' style='background:{c}'></span>{html.escape(n)}</li>"
        for n, c in palette.items()
    )
    return svg, legend

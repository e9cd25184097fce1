# app.py — layout spec form, solve endpoint, progress polling
from __future__ import annotations
import os
import time
from typing import Any, Dict, List, Optional, Tuple

from flask import Flask, request, render_template, send_from_directory, jsonify, url_for

from solver.orchestrator import solve_orchestrator
from config import CFG
from io_files import write_layout, write_layout_view_html
from render import render_result
from models import Placed

from progress import (
    reset as progress_reset,
    as_json as progress_json,
    start_timer as progress_start,
    set_status, set_phase, set_attempt, set_elapsed, set_progress_pct,
    set_done, set_result_url,
)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))


def _resolve_output_paths(configured: str, fallback: str) -> Tuple[str, str, str]:
    name = (configured or "").strip() or fallback
    if os.path.isabs(name):
        full_path = name
    else:
        full_path = os.path.abspath(os.path.join(BASE_DIR, name))
    directory = os.path.dirname(full_path) or BASE_DIR
    filename = os.path.basename(full_path) or fallback
    return full_path, directory, filename


_LAYOUT_TXT_FULL_PATH, LAYOUT_TXT_DIR, LAYOUT_TXT_FILENAME = _resolve_output_paths(
    CFG.LAYOUT_OUT, "layout.txt"
)
_LAYOUT_FULL_PATH, LAYOUT_DIR, LAYOUT_FILENAME = _resolve_output_paths(
    CFG.LAYOUT_HTML, "layout_view.html"
)

LAST_RESULT: Dict[str, Any] = {
    "ok": False,
    "strategy": "error",
    "reason": "",
    "W": 0,
    "H": 0,
    "placed_count": 0,
    "component_count": 0,
    "constraint_count": 0,
    "elapsed_str": "0s",
    "svg": "",
    "legend": "",
    "ascii": "",
    "messages": [],
    "layout_txt_filename": LAYOUT_TXT_FILENAME,
    "layout_filename": LAYOUT_FILENAME,
}

app = Flask(__name__, static_folder=".", template_folder="templates")


@app.after_request
def _no_cache_progress(resp):
    if request.path == "/progress3":
        resp.headers["Cache-Control"] = "no-store, max-age=0"
        resp.headers["Pragma"] = "no-cache"
        resp.headers["Expires"] = "0"
    return resp


@app.route("/")
def index():
    return render_template("layout_form.html")


@app.route("/result/latest")
def result_latest():
    return render_template("result.html", **LAST_RESULT)


def _fmt_elapsed(seconds: float) -> str:
    if seconds < 1:
        return "0s"
    m, s = divmod(int(seconds), 60)
    if m == 0:
        return f"{s}s"
    h, m = divmod(m, 60)
    if h == 0:
        return f"{m}m {s}s"
    return f"{h}h {m}m {s}s"


def _extract_inbound() -> Optional[Any]:
    """Pull the layout request out of JSON, form or query data."""
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        if isinstance(payload.get("spec"), str) and payload["spec"].strip():
            return payload["spec"]
        if "components" in payload:
            return payload
    for source in (request.form, request.args):
        text = source.get("spec")
        if text and text.strip():
            return text
    return None


def _normalize_result(result: Any) -> Dict[str, Any]:
    if isinstance(result, dict):
        out = dict(result)
        out.setdefault("ok", bool(out.get("placements")))
        return out

    if isinstance(result, (tuple, list)) and len(result) == 7:
        ok, placed, W, H, strategy, reason, meta = result
        placements: List[Placed] = [p for p in (placed or []) if isinstance(p, Placed)]
        return {
            "ok": bool(ok),
            "placements": placements,
            "W": int(W or 0),
            "H": int(H or 0),
            "strategy": strategy or ("tree" if ok else "error"),
            "reason": reason or "",
            "meta": meta if isinstance(meta, dict) else {},
        }

    return {"ok": False, "strategy": "error", "reason": f"unexpected result from orchestrator: {type(result).__name__}"}


def _ascii_from_placements(placements: List[Placed], W: int, H: int) -> str:
    canvas = [[" "] * W for _ in range(H)]
    for p in placements:
        for dy, row in enumerate(p.rows):
            for dx, ch in enumerate(row):
                if ch != " " and 0 <= p.y + dy < H and 0 <= p.x + dx < W:
                    canvas[p.y + dy][p.x + dx] = ch
    return "\n".join("".join(r).rstrip() for r in canvas)


def _finalize_solver_progress(ok_flag: bool, text: str) -> None:
    """Write the terminal solver status without clobbering failure states."""

    set_status("Solved" if ok_flag else "Error")
    set_done(ok_flag, reason=text)


def _render_failure(reason: str, t0: float, messages: Optional[List[str]] = None):
    set_status("Error")
    set_done(False, reason=reason)
    LAST_RESULT.update({
        "ok": False,
        "strategy": "error",
        "reason": reason,
        "W": 0, "H": 0,
        "placed_count": 0,
        "component_count": 0,
        "constraint_count": 0,
        "elapsed_str": _fmt_elapsed(time.time() - t0),
        "svg": "",
        "legend": "",
        "ascii": "",
        "messages": list(messages or []),
    })
    set_result_url(url_for("result_latest"))
    return render_template("result.html", **LAST_RESULT)


@app.route("/solve", methods=["POST"])
def solve():
    progress_reset()
    progress_start()

    set_status("Solving")
    set_phase("parse")
    set_attempt("")
    set_progress_pct(0)

    t0 = time.time()
    inbound = _extract_inbound()
    if inbound is None:
        return _render_failure("Bad specification: nothing parsed from request", t0)

    try:
        result_raw: Any = solve_orchestrator(inbound)
    except Exception as e:
        return _render_failure(f"orchestrator exception: {type(e).__name__}: {e}", t0)

    result = _normalize_result(result_raw)
    ok_flag = bool(result.get("ok"))
    meta = result.get("meta") or {}
    messages = list(meta.get("messages") or [])
    if not ok_flag:
        return _render_failure(result.get("reason") or "No solution (unspecified).", t0, messages)

    W = int(result.get("W") or 0)
    H = int(result.get("H") or 0)
    placements = list(result.get("placements") or [])
    strategy_text = str(result.get("strategy") or "tree")
    _finalize_solver_progress(True, strategy_text)
    set_elapsed(time.time() - t0)

    ascii_art = _ascii_from_placements(placements, W, H)
    svg_markup, legend_html = render_result(placements, W, H)
    layout_txt_name = LAYOUT_TXT_FILENAME
    layout_name = LAYOUT_FILENAME
    try:
        layout_txt_name = os.path.basename(write_layout(placements, ascii_art, BASE_DIR)) or LAYOUT_TXT_FILENAME
    except OSError as exc:
        messages.append(f"could not write layout text: {exc}")
    try:
        layout_path = write_layout_view_html(
            svg_markup, legend_html, BASE_DIR,
            ascii_art=ascii_art, grid_label=f"{W} × {H} cells",
        )
        layout_name = os.path.basename(layout_path) or LAYOUT_FILENAME
    except OSError as exc:
        messages.append(f"could not write layout view: {exc}")

    LAST_RESULT.update({
        "ok": True,
        "strategy": strategy_text,
        "reason": "",
        "W": W,
        "H": H,
        "placed_count": len(placements),
        "component_count": int(meta.get("components", len(placements)) or 0),
        "constraint_count": int(meta.get("constraints", 0) or 0),
        "elapsed_str": _fmt_elapsed(time.time() - t0),
        "svg": svg_markup,
        "legend": legend_html,
        "ascii": ascii_art,
        "messages": messages,
        "layout_txt_filename": layout_txt_name,
        "layout_filename": layout_name,
    })
    set_result_url(url_for("result_latest"))
    return render_template("result.html", **LAST_RESULT)


@app.route("/download/layout")
def download_layout():
    return send_from_directory(LAYOUT_TXT_DIR, LAYOUT_TXT_FILENAME, as_attachment=True)


@app.route("/download/html")
def download_html():
    return send_from_directory(LAYOUT_DIR, LAYOUT_FILENAME, as_attachment=True)


@app.route("/progress3")
def progress3():
    return jsonify(progress_json())


if __name__ == "__main__":
    progress_start()
    app.run(debug=False)

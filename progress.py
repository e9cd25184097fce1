from __future__ import annotations

import json
import logging
import os
import threading
import time
from pathlib import Path
from typing import Any, Dict, Optional

# ------------------------------
# Shared state (one solve at a time, polled by /progress3)
# ------------------------------

PROGRESS_LOCK = threading.Lock()


def _state_file_path() -> Path:
    configured = os.environ.get("PROGRESS_STATE_FILE")
    if configured:
        return Path(configured)
    return Path(__file__).resolve().parent / "logs" / "progress_state.json"


STATE_FILE = _state_file_path()
STATE_FILE_TMP = STATE_FILE.with_name(STATE_FILE.name + ".tmp")
_LAST_STATE_MTIME: float = 0.0

_DEFAULTS: Dict[str, Any] = {
    "status": "Idle",          # Idle | Solving | Solved | Error
    "phase": "",               # tree | cp-sat
    "phase_total": "",         # number of phases this run may use
    "attempt": "",             # e.g. "Courtyard via ADJACENT(Gatehouse, Courtyard, n)"
    "layout": "",              # e.g. "27 × 17 cells"
    "strategy": "",            # tree | cp-sat
    "percent": 0.0,            # 0..100
    "placed_count": 0,         # components placed in the current branch
    "component_count": 0,
    "constraint_count": 0,
    "nodes": 0,                # search-tree nodes created
    "backtracks": 0,
    "elapsed_start": None,     # wall clock when the run started
    "elapsed": 0.0,
    "message": "",
    "done": False,
    "ok": None,
    "result_url": "",
    "run_id": 0,
}

PROGRESS: Dict[str, Any] = dict(_DEFAULTS)

COUNTER_KEYS = ("placed_count", "component_count", "constraint_count", "nodes", "backtracks")

# ------------------------------
# Attempt log: logs/solver_attempts.log
# ------------------------------


def _init_logger() -> logging.Logger:
    logger = logging.getLogger("solver.attempt_log")
    if logger.handlers:
        return logger

    log_path = Path(__file__).resolve().parent / "logs" / "solver_attempts.log"
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, encoding="utf-8")
    except OSError:
        # read-only checkout: progress still works, lines are dropped
        return logger
    handler.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    return logger


ATTEMPT_LOGGER = _init_logger()


def _fmt_seconds(seconds: Optional[float]) -> Optional[str]:
    if seconds is None:
        return None
    return f"{float(seconds):.2f}s"


def _emit_log(event: str, level: int = logging.INFO, **fields: Any) -> None:
    if not ATTEMPT_LOGGER.handlers:
        return
    extras = " ".join(
        f"{key}={value}" for key, value in fields.items() if value is not None and value != ""
    )
    if extras:
        ATTEMPT_LOGGER.log(level, "%s | %s", event, extras)
    else:
        ATTEMPT_LOGGER.log(level, "%s", event)


def log_attempt_detail(event: str, **fields: Any) -> None:
    """Write one free-form milestone line to the attempt log."""
    _emit_log(event, **fields)


class _RunClock:
    """Times the run, the current phase and the current attempt for the log."""

    def __init__(self) -> None:
        self.run_start: Optional[float] = None
        self.phase = ""
        self.phase_start: Optional[float] = None
        self.attempt = ""
        self.attempt_start: Optional[float] = None

    def clear(self) -> None:
        self.__init__()

    def end_attempt(self, reason: str) -> None:
        if not self.attempt:
            return
        took = None if self.attempt_start is None else max(0.0, time.time() - self.attempt_start)
        _emit_log("Attempt finished", phase=self.phase, attempt=self.attempt,
                  duration=_fmt_seconds(took), reason=reason)
        self.attempt = ""
        self.attempt_start = None

    def switch_attempt(self, attempt: str) -> None:
        if attempt == self.attempt:
            return
        self.end_attempt("switch")
        if attempt:
            self.attempt = attempt
            self.attempt_start = time.time()
            _emit_log("Attempt started", phase=self.phase, attempt=attempt)

    def switch_phase(self, phase: str) -> None:
        if phase == self.phase:
            return
        self.end_attempt("phase_change")
        if self.phase and self.phase_start is not None:
            _emit_log("Phase finished", phase=self.phase,
                      duration=_fmt_seconds(time.time() - self.phase_start))
        self.phase = phase
        self.phase_start = time.time()
        if phase:
            _emit_log("Phase started", phase=phase)

    def total(self) -> Optional[float]:
        if self.run_start is None:
            return None
        return max(0.0, time.time() - self.run_start)


CLOCK = _RunClock()

# ------------------------------
# Persistence so worker processes and the web process agree
# ------------------------------


def _persist_locked() -> None:
    global _LAST_STATE_MTIME
    try:
        STATE_FILE.parent.mkdir(parents=True, exist_ok=True)
        with STATE_FILE_TMP.open("w", encoding="utf-8") as fh:
            json.dump(PROGRESS, fh, ensure_ascii=False, separators=(",", ":"))
        STATE_FILE_TMP.replace(STATE_FILE)
        _LAST_STATE_MTIME = STATE_FILE.stat().st_mtime
    except OSError as exc:
        _emit_log("Progress not persisted", logging.WARNING, error=exc)


def _load_persisted_locked(force: bool = False) -> None:
    global _LAST_STATE_MTIME
    try:
        mtime = STATE_FILE.stat().st_mtime
    except OSError:
        return
    if not force and mtime <= _LAST_STATE_MTIME:
        return
    try:
        data = json.loads(STATE_FILE.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return
    if isinstance(data, dict):
        PROGRESS.update({k: v for k, v in data.items() if k in _DEFAULTS})
    _LAST_STATE_MTIME = mtime


def _touch_elapsed_locked() -> None:
    t0 = PROGRESS.get("elapsed_start")
    if t0 is not None:
        PROGRESS["elapsed"] = time.time() - float(t0)


def _update(**fields: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS.update(fields)
        _persist_locked()


def _text(v: Any) -> str:
    return "" if v is None else str(v)


def _as_count(n: Any) -> int:
    try:
        return max(0, int(n))
    except (TypeError, ValueError):
        return 0


def _fmt_elapsed(seconds: float) -> str:
    seconds = max(0.0, float(seconds))
    if seconds < 60:
        return f"{int(seconds)}s"
    m, s = divmod(int(seconds), 60)
    if m < 60:
        return f"{m}m {s}s"
    h, m = divmod(m, 60)
    return f"{h}h {m}m"

# ------------------------------
# Run lifecycle
# ------------------------------


def reset() -> None:
    with PROGRESS_LOCK:
        CLOCK.end_attempt("reset")
        CLOCK.clear()
        run_id = _as_count(PROGRESS.get("run_id")) + 1
        PROGRESS.clear()
        PROGRESS.update(_DEFAULTS)
        PROGRESS["run_id"] = run_id
        _emit_log("Progress reset", run_id=run_id)
        _persist_locked()


def start_timer() -> None:
    with PROGRESS_LOCK:
        now = time.time()
        PROGRESS["elapsed_start"] = now
        PROGRESS["elapsed"] = 0.0
        CLOCK.run_start = now
        _emit_log("Run timer started")
        _persist_locked()


def set_done(ok: Any = None, *, reason: Any = None, message: Any = None) -> None:
    """Mark the run complete.

    ``ok`` decides the final status when given; otherwise an idle status is
    promoted to ``"Solved"``.  ``message`` wins over ``reason`` for the note.
    """
    note = message if message is not None else reason
    with PROGRESS_LOCK:
        _touch_elapsed_locked()
        if ok is not None:
            PROGRESS["ok"] = bool(ok)
            PROGRESS["status"] = "Solved" if ok else "Error"
        elif PROGRESS.get("status") in ("", "Idle", None):
            PROGRESS["ok"] = True
            PROGRESS["status"] = "Solved"
        PROGRESS["percent"] = 100.0
        PROGRESS["done"] = True
        if note is not None:
            PROGRESS["message"] = str(note)
        CLOCK.end_attempt("run_complete")
        _emit_log(
            "Run finished",
            status=PROGRESS["status"],
            ok=PROGRESS["ok"],
            duration=_fmt_seconds(CLOCK.total()),
            placed=PROGRESS["placed_count"],
            components=PROGRESS["component_count"],
            nodes=PROGRESS["nodes"],
            backtracks=PROGRESS["backtracks"],
            message=PROGRESS["message"],
        )
        CLOCK.run_start = None
        _persist_locked()

# ------------------------------
# Setters
# ------------------------------


def set_status(v: Any) -> None:
    _update(status=str(v))


def set_phase(v: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS["phase"] = _text(v)
        CLOCK.switch_phase(PROGRESS["phase"])
        _persist_locked()


def set_phase_total(v: Any) -> None:
    _update(phase_total=_text(v))


def set_attempt(v: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS["attempt"] = _text(v)
        CLOCK.switch_attempt(PROGRESS["attempt"])
        _persist_locked()


def set_layout(w: Any, h: Any) -> None:
    try:
        label = f"{int(w)} × {int(h)} cells"
    except (TypeError, ValueError):
        label = ""
    with PROGRESS_LOCK:
        if label and PROGRESS.get("layout") != label:
            _emit_log("Layout updated", layout=label)
        PROGRESS["layout"] = label
        _persist_locked()


def set_strategy(v: Any) -> None:
    _update(strategy=_text(v))


def set_progress_pct(pct: Any) -> None:
    try:
        value = float(pct)
    except (TypeError, ValueError):
        value = 0.0
    with PROGRESS_LOCK:
        PROGRESS["percent"] = max(0.0, min(100.0, value))
        _touch_elapsed_locked()
        _persist_locked()


def set_counts(**counts: Any) -> None:
    """Update any of the integer counters in one write; unknown keys are ignored."""
    with PROGRESS_LOCK:
        for key in COUNTER_KEYS:
            if key in counts:
                PROGRESS[key] = _as_count(counts[key])
        _touch_elapsed_locked()
        _persist_locked()


def set_elapsed(seconds: Any) -> None:
    try:
        value = float(seconds)
    except (TypeError, ValueError):
        value = 0.0
    _update(elapsed=max(0.0, value))


def set_message(msg: Any) -> None:
    _update(message=_text(msg))


def set_result_url(url: Any) -> None:
    _update(result_url=_text(url))

# ------------------------------
# Solver event sink
# ------------------------------


class TraceSink:
    """Listener for :class:`solver.layout.LayoutSolver` events.

    Writes one attempt-log line per event and keeps the modal's counters
    current.  Per-option events are frequent, so ``verbose=False`` logs only
    structural events (root, constraint, backtrack, repairs, outcome) and
    throttles progress writes.
    """

    QUIET_KINDS = frozenset({"attempt", "placed", "options"})

    def __init__(self, verbose: bool = False, publish_every: int = 25):
        self.verbose = verbose
        self.publish_every = max(1, int(publish_every))
        self.events = 0
        self.placed = set()
        self.backtracks = 0
        self.counts: Dict[str, int] = {}

    def __call__(self, event: Any) -> None:
        kind = event.kind
        name = event.component
        detail = dict(event.detail or {})
        self.events += 1
        self.counts[kind] = self.counts.get(kind, 0) + 1
        if kind == "placed" and name:
            self.placed.add(name)
        elif kind == "backtrack":
            self.backtracks += 1
            self.placed.discard(name)

        if self.verbose or kind not in self.QUIET_KINDS:
            level = logging.WARNING if kind in ("aborted", "failed") else logging.INFO
            at = f"({event.x},{event.y})" if event.x is not None and event.y is not None else None
            _emit_log(f"Solver {kind}", level, component=name, at=at, depth=event.depth, **detail)

        if kind == "constraint":
            label = detail.get("constraint")
            set_attempt(f"{name} via {label}" if label else name)
        if kind == "solved":
            set_counts(placed_count=detail.get("placed", len(self.placed)), backtracks=self.backtracks)
        elif kind in ("failed", "aborted"):
            set_counts(placed_count=0, backtracks=self.backtracks)
        elif self.events % self.publish_every == 0:
            set_counts(placed_count=len(self.placed), backtracks=self.backtracks)

# ------------------------------
# Snapshots for the UI
# ------------------------------


def snapshot() -> Dict[str, Any]:
    with PROGRESS_LOCK:
        _load_persisted_locked()
        _touch_elapsed_locked()
        out = dict(PROGRESS)
    out.pop("elapsed_start", None)
    out["elapsed_str"] = _fmt_elapsed(out["elapsed"])
    return out


def as_json() -> Dict[str, Any]:
    # alias used by /progress3
    return snapshot()


with PROGRESS_LOCK:
    _load_persisted_locked(force=True)

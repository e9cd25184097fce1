import pytest

import solver.orchestrator as orchestrator
from config import CFG
from models import Placed
from solver.layout import LayoutSolver
from solver.orchestrator import solve_orchestrator
from tests.data import BIG_A, BIG_B, CASTLE_SPEC, ROOM_A, ROOM_B

TWO_ROOMS = {
    "components": {"RoomA": ROOM_A, "RoomB": ROOM_B},
    "constraints": ["ADJACENT(RoomB, RoomA, n)"],
}


def _contradiction():
    solver = LayoutSolver()
    solver.add_component("A", BIG_A)
    solver.add_component("B", BIG_B)
    solver.add_constraint("A", "B", "n")
    solver.add_constraint("A", "B", "s")
    return solver


def test_castle_text_is_solved_by_tree_search():
    ok, placed, W, H, strategy, reason, meta = solve_orchestrator(CASTLE_SPEC)
    assert ok is True
    assert strategy == "tree"
    assert reason is None
    assert len(placed) == 3
    assert all(isinstance(p, Placed) for p in placed)
    assert W >= 11 and H >= 11
    assert meta["components"] == 3
    assert meta["constraints"] == 1
    assert meta["status"] == "solved"
    assert any("CONNECTED" in m for m in meta["messages"])


def test_structured_payload_via_keyword():
    ok, placed, W, H, strategy, _reason, _meta = solve_orchestrator(payload=TWO_ROOMS)
    assert ok and strategy == "tree"
    assert (W, H) == (8, 8)
    assert {p.rect.name for p in placed} == {"RoomA", "RoomB"}


def test_empty_request_is_a_bad_specification():
    ok, placed, _W, _H, strategy, reason, _meta = solve_orchestrator("")
    assert ok is False and placed == []
    assert strategy == "error"
    assert reason.startswith("Bad specification")

    ok, *_rest, reason, _meta = solve_orchestrator(12345)
    assert ok is False
    assert "nothing parsed" in reason


def test_unsatisfiable_is_reported_without_rescue(monkeypatch):
    monkeypatch.setattr(CFG, "CP_SAT_ON_UNSAT", False)
    called = []
    monkeypatch.setattr(orchestrator, "solve_with_cp_sat", lambda *a, **k: called.append(1))
    ok, _placed, _W, _H, strategy, reason, meta = solve_orchestrator(_contradiction())
    assert ok is False
    assert strategy == "error"
    assert reason.startswith("Proven unsatisfiable")
    assert meta["status"] == "unsatisfiable"
    assert called == []


def test_aborted_search_falls_back_to_cp_sat(monkeypatch):
    monkeypatch.setattr(CFG, "MAX_ITERATIONS", 1)
    monkeypatch.setattr(CFG, "CP_SAT_RESCUE", True)

    def fake_cp_sat(components, constraints, max_seconds=10.0, *, extent=None):
        assert {c.name for c in components} == {"RoomA", "RoomB"}
        return True, {"RoomA": (0, 3), "RoomB": (2, 0)}, None

    monkeypatch.setattr(orchestrator, "solve_with_cp_sat", fake_cp_sat)
    ok, placed, W, H, strategy, reason, meta = solve_orchestrator(TWO_ROOMS)
    assert ok is True
    assert strategy == "cp-sat"
    assert meta["status"] == "aborted"
    assert (W, H) == (8, 8)
    assert {(p.rect.name, p.x, p.y) for p in placed} == {("RoomA", 0, 3), ("RoomB", 2, 0)}


def test_rescue_layout_is_still_validated(monkeypatch):
    monkeypatch.setattr(CFG, "MAX_ITERATIONS", 1)
    monkeypatch.setattr(CFG, "CP_SAT_RESCUE", True)
    monkeypatch.setattr(
        orchestrator,
        "solve_with_cp_sat",
        lambda *a, **k: (True, {"RoomA": (0, 0), "RoomB": (1, 1)}, None),
    )
    ok, _placed, _W, _H, strategy, reason, _meta = solve_orchestrator(TWO_ROOMS)
    assert ok is False
    assert strategy == "error"
    assert "rejected by validator" in reason


def test_abort_without_rescue_reports_the_limit(monkeypatch):
    monkeypatch.setattr(CFG, "MAX_ITERATIONS", 1)
    monkeypatch.setattr(CFG, "CP_SAT_RESCUE", False)
    ok, _placed, _W, _H, _strategy, reason, meta = solve_orchestrator(TWO_ROOMS)
    assert ok is False
    assert "iteration limit" in reason
    assert meta["status"] == "aborted"


def test_registration_capacity_is_reported(monkeypatch):
    monkeypatch.setattr(CFG, "MAX_COMPONENTS", 1)
    ok, *_rest, reason, _meta = solve_orchestrator(TWO_ROOMS)
    assert ok is False
    assert reason.startswith("Capacity exceeded")


def test_cp_sat_exception_is_contained(monkeypatch):
    monkeypatch.setattr(CFG, "MAX_ITERATIONS", 1)
    monkeypatch.setattr(CFG, "CP_SAT_RESCUE", True)

    def boom(*_a, **_k):
        raise RuntimeError("no solver")

    monkeypatch.setattr(orchestrator, "solve_with_cp_sat", boom)
    ok, *_rest, reason, meta = solve_orchestrator(TWO_ROOMS)
    assert ok is False
    assert "RuntimeError" in reason
    assert "error" in meta["cp_sat"]


@pytest.mark.parametrize("inbound", [{"spec": CASTLE_SPEC}, CASTLE_SPEC])
def test_spec_wrappers_are_equivalent(inbound):
    ok, placed, *_rest = solve_orchestrator(inbound)
    assert ok and len(placed) == 3

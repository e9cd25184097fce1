import importlib

import pytest

pytest.importorskip("flask")

from models import Placed, Rect
from tests.data import CASTLE_SPEC


@pytest.fixture
def app_module(tmp_path, monkeypatch):
    from config import CFG

    monkeypatch.setattr(CFG, "LAYOUT_OUT", str(tmp_path / "layout.txt"))
    monkeypatch.setattr(CFG, "LAYOUT_HTML", str(tmp_path / "layout_view.html"))
    module = importlib.reload(importlib.import_module("app"))
    module.app.config["TESTING"] = True
    return module


def test_finalize_solver_progress_respects_ok_flag(app_module, monkeypatch):
    calls = {"status": [], "done": []}

    monkeypatch.setattr(app_module, "set_status", lambda value: calls["status"].append(value))
    monkeypatch.setattr(
        app_module,
        "set_done",
        lambda ok=None, *, reason=None, message=None: calls["done"].append((ok, reason, message)),
    )

    app_module._finalize_solver_progress(False, "no luck")
    app_module._finalize_solver_progress(True, "tree")

    assert calls["status"] == ["Error", "Solved"]
    assert calls["done"] == [(False, "no luck", None), (True, "tree", None)]


def test_normalize_result_handles_tuples_and_garbage(app_module):
    placed = [Placed(0, 0, Rect(2, 1, "A"), ("ab",)), "junk"]
    out = app_module._normalize_result((True, placed, 2, 1, "", None, None))
    assert out["ok"] is True
    assert out["strategy"] == "tree"
    assert len(out["placements"]) == 1
    assert out["meta"] == {}

    bad = app_module._normalize_result(object())
    assert bad["ok"] is False
    assert "unexpected result" in bad["reason"]


def test_ascii_from_placements_and_elapsed(app_module):
    placed = [
        Placed(0, 0, Rect(3, 2, "A"), ("aaa", "a a")),
        Placed(3, 1, Rect(1, 1, "B"), ("b",)),
    ]
    assert app_module._ascii_from_placements(placed, 4, 2) == "aaa\na ab"
    assert app_module._fmt_elapsed(0.2) == "0s"
    assert app_module._fmt_elapsed(75) == "1m 15s"
    assert app_module._fmt_elapsed(3725) == "1h 2m 5s"


def test_solve_endpoint_renders_and_writes_outputs(app_module, tmp_path):
    client = app_module.app.test_client()
    resp = client.post("/solve", data={"spec": CASTLE_SPEC})
    assert resp.status_code == 200
    body = resp.get_data(as_text=True)
    assert "Layout solved" in body
    assert "Gatehouse" in body
    assert (tmp_path / "layout.txt").exists()
    assert (tmp_path / "layout_view.html").exists()
    assert app_module.LAST_RESULT["component_count"] == 3
    assert app_module.LAST_RESULT["constraint_count"] == 1

    progress = client.get("/progress3").get_json()
    assert progress["done"] is True
    assert progress["ok"] is True
    assert progress["result_url"] == "/result/latest"


def test_solve_endpoint_reports_empty_requests(app_module):
    client = app_module.app.test_client()
    resp = client.post("/solve", data={})
    assert resp.status_code == 200
    assert "nothing parsed" in resp.get_data(as_text=True)
    assert app_module.LAST_RESULT["ok"] is False


def test_json_payload_is_accepted(app_module):
    client = app_module.app.test_client()
    resp = client.post("/solve", json={"spec": CASTLE_SPEC})
    assert resp.status_code == 200
    assert app_module.LAST_RESULT["ok"] is True

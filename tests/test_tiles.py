from solver.layout import LayoutSolver
from tests.data import CASTLE_SPEC, COURTYARD, GATEHOUSE, ROOM_A, ROOM_B
from tiles import load_payload, load_specification, parse_specification


def test_castle_sections_are_split():
    spec = parse_specification(CASTLE_SPEC)
    assert spec.declared == ["Gatehouse", "Courtyard", "Keep"]
    assert [name for name, _ in spec.tiles] == ["Gatehouse", "Courtyard", "Keep"]
    assert spec.tiles[0][1] == GATEHOUSE
    assert spec.tiles[1][1] == COURTYARD
    assert spec.constraints[0] == "ADJACENT(Gatehouse, Courtyard, n)"
    assert len(spec.constraints) == 3
    assert spec.warnings == []


def test_missing_tile_and_unterminated_block_warn():
    text = "## Components\n**Hall** - big\n**Attic** - small\n## Component Tiles\n**Hall:**\n```\n###\n"
    spec = parse_specification(text)
    assert spec.tiles == []
    assert any("unterminated" in w for w in spec.warnings)
    assert "component Attic has no tile" in spec.warnings


def test_tile_lines_keep_leading_blanks():
    text = "## Component Tiles\nTower:\n```\n  ##\n ####\n```\n"
    spec = parse_specification(text)
    assert spec.tiles == [("Tower", "  ##\n ####")]


def test_load_specification_skips_unsupported_kinds():
    solver = LayoutSolver()
    n, k, messages = load_specification(CASTLE_SPEC, solver)
    assert (n, k) == (3, 1)
    assert "skipped unsupported constraint: CONNECTED(Courtyard, Keep, door, n)" in messages
    assert "skipped unsupported constraint: ACCESSIBLE_FROM(Gatehouse, ALL)" in messages


def test_castle_solves_with_the_keep_seeded_alongside():
    solver = LayoutSolver()
    load_specification(CASTLE_SPEC, solver)
    assert solver.solve()
    gate = solver.get_placement("Gatehouse")
    yard = solver.get_placement("Courtyard")
    keep = solver.get_placement("Keep")
    assert gate.y + gate.height == yard.y
    assert keep.placed
    assert solver.constraint_satisfied(0)


def test_rejected_entries_are_reported():
    text = (
        "## Constraints\nADJACENT(Hall, Ghost, n)\nADJACENT(Hall, Hall, n)\n"
        "## Component Tiles\n**Hall:**\n```\n###\n```\n**Hall:**\n```\n#\n```\n"
    )
    solver = LayoutSolver()
    n, k, messages = load_specification(text, solver)
    assert (n, k) == (1, 0)
    assert "rejected component Hall" in messages
    assert "rejected constraint: ADJACENT(Hall, Ghost, n)" in messages


def test_load_payload_accepts_every_constraint_shape():
    solver = LayoutSolver()
    payload = {
        "components": [{"name": "RoomA", "tile": ROOM_A}, {"name": "RoomB", "ascii": ROOM_B}],
        "constraints": [
            "ADJACENT(RoomB, RoomA, n)",
            ["RoomB", "RoomA", "a"],
            {"a": "RoomA", "b": "RoomB", "direction": "s"},
            42,
        ],
    }
    n, k, messages = load_payload(payload, solver)
    assert (n, k) == (2, 3)
    assert messages == ["rejected constraint: 42"]
    assert solver.solve()

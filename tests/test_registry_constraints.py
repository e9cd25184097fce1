import pytest

from models import CapacityError, Constraint, parse_direction
from solver.constraints import ConstraintStore, adjacent, parse_adjacent, touches
from solver.registry import ComponentRegistry
from tests.data import HALL, PORCH, ROOM_A, ROOM_B


def _registry(**kwargs):
    reg = ComponentRegistry(**kwargs)
    assert reg.add("RoomA", ROOM_A)
    assert reg.add("RoomB", ROOM_B)
    return reg


def test_component_dimensions_come_from_the_tile():
    reg = _registry()
    a = reg.get("RoomA")
    b = reg.get("RoomB")
    assert (a.width, a.height) == (8, 5)
    assert (b.width, b.height) == (4, 3)
    assert not a.placed


def test_short_rows_are_padded_to_the_widest_row():
    reg = ComponentRegistry()
    assert reg.add("Ragged", "####\n#\n##")
    comp = reg.get("Ragged")
    assert comp.width == 4
    assert all(len(row) == 4 for row in comp.rows)
    assert (3, 1, "#") not in comp.cells


@pytest.mark.parametrize(
    "name, block",
    [
        ("", "#"),
        ("two words", "#"),
        ("comma,name", "#"),
        (None, "#"),
        ("Blank", "   \n   "),
        ("NotText", 42),
    ],
)
def test_malformed_components_are_rejected(name, block):
    reg = ComponentRegistry()
    assert reg.add(name, block) is False
    assert len(reg) == 0


def test_duplicate_names_are_rejected():
    reg = _registry()
    assert reg.add("RoomA", ROOM_B) is False
    assert reg.get("RoomA").width == 8


def test_registry_capacity_and_tile_size_limits():
    reg = ComponentRegistry(max_components=1, max_tile_size=5)
    assert reg.add("Small", PORCH)
    with pytest.raises(CapacityError):
        reg.add("Other", PORCH)
    with pytest.raises(CapacityError):
        ComponentRegistry(max_tile_size=5).add("Hall", HALL)


@pytest.mark.parametrize(
    "token, expected",
    [("n", "n"), ("North", "n"), ("s", "s"), ("EAST", "e"), ("west", "w"), ("any", "a"), ("*", "a"), ("up", None), (None, None)],
)
def test_direction_aliases(token, expected):
    assert parse_direction(token) == expected


def test_constraint_store_validation():
    reg = _registry()
    store = ConstraintStore(reg)
    assert store.add("RoomB", "RoomA", "north")
    assert store.add("RoomB", "RoomA", "sideways") is False
    assert store.add("RoomA", "RoomA", "n") is False
    assert store.add("RoomA", "Ghost", "n") is False
    assert len(store) == 1
    assert store.get(0) == Constraint("RoomB", "RoomA", "n")
    assert store.get(1) is None
    assert store.get(-1) is None


def test_constraint_capacity_raises():
    reg = _registry()
    store = ConstraintStore(reg, max_constraints=1)
    assert store.add("RoomA", "RoomB", "a")
    with pytest.raises(CapacityError):
        store.add("RoomB", "RoomA", "s")


def test_parse_adjacent_lines():
    assert parse_adjacent("ADJACENT(Gatehouse, Courtyard, n)") == ("Gatehouse", "Courtyard", "n")
    assert parse_adjacent("  adjacent( A ,B,  any ) ") == ("A", "B", "any")
    assert parse_adjacent("CONNECTED(A, B, door, n)") is None
    assert parse_adjacent("ADJACENT(A, B)") is None

    reg = _registry()
    store = ConstraintStore(reg)
    assert store.add_line("ADJACENT(RoomB, RoomA, e)")
    assert store.add_line("ADJACENT(RoomB, RoomA)") is False
    assert store.involving("RoomA")[0].label == "ADJACENT(RoomB, RoomA, e)"


def test_touching_requires_flush_edges_and_positive_overlap():
    b = (0, 0, 8, 5)
    assert touches((0, -3, 4, 0), b, "n")
    assert touches((7, -3, 11, 0), b, "n")
    # corner contact only
    assert not touches((8, -3, 12, 0), b, "n")
    # one row of air between them
    assert not touches((0, -4, 4, -1), b, "n")
    assert touches((2, 5, 6, 8), b, "s")
    assert touches((8, 1, 12, 4), b, "e")
    assert touches((-4, 4, 0, 7), b, "w")
    assert not touches((-4, 5, 0, 8), b, "w")
    assert adjacent((8, 1, 12, 4), b, "a")
    assert not adjacent((9, 1, 13, 4), b, "a")


def test_is_satisfied_uses_placements_and_overrides():
    reg = _registry()
    store = ConstraintStore(reg)
    store.add("RoomB", "RoomA", "n")
    con = store.get(0)
    assert store.is_satisfied(con) is False

    a = reg.get("RoomA")
    a.x, a.y, a.placed = 0, 0, True
    assert store.is_satisfied(con, {"RoomB": (2, -3)})
    assert not store.is_satisfied(con, {"RoomB": (2, -2)})
    assert store.placed_peers_satisfied("RoomB", {"RoomB": (0, -3)})
    assert not store.placed_peers_satisfied("RoomB", {"RoomB": (9, -3)})


def test_update_mobility_counts_degree_and_peers():
    reg = _registry()
    reg.add("Hall", HALL)
    store = ConstraintStore(reg)
    store.add("RoomB", "RoomA", "n")
    store.add("RoomB", "RoomA", "a")
    store.add("Hall", "RoomA", "s")
    reg.update_mobility(store)
    a = reg.get("RoomA")
    b = reg.get("RoomB")
    hall = reg.get("Hall")
    assert (a.constraint_count, a.mobility_score) == (3, 5)
    assert (b.constraint_count, b.mobility_score) == (2, 3)
    assert (hall.constraint_count, hall.mobility_score) == (1, 2)


@pytest.mark.parametrize("a, b", [(["RoomA"], "RoomB"), ("RoomA", {"RoomB": 1}), (None, "RoomB"), ("RoomA", 7)])
def test_non_text_constraint_names_are_rejected(a, b):
    reg = _registry()
    store = ConstraintStore(reg)
    assert store.add(a, b, "n") is False
    assert len(store) == 0

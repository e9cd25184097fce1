from models import BLANK
from solver.grid import Grid
from solver.registry import ComponentRegistry
from solver.validator import PlacementValidator, boxes_intersect
from tests.data import DOT, HOLLOW, PORCH, ROOM_A, ROOM_B


def _setup(**tiles):
    reg = ComponentRegistry()
    for name, block in tiles.items():
        assert reg.add(name, block)
    grid = Grid(100)
    return reg, grid, PlacementValidator(grid, reg)


def _region(grid, x0=-10, y0=-10, x1=20, y1=20):
    return [[grid.get(x, y) for x in range(x0, x1)] for y in range(y0, y1)]


def test_boxes_intersect_is_exclusive_on_far_edges():
    assert boxes_intersect((0, 0, 4, 4), (3, 3, 6, 6))
    assert not boxes_intersect((0, 0, 4, 4), (4, 0, 8, 4))
    assert not boxes_intersect((0, 0, 4, 4), (0, 4, 4, 8))


def test_place_writes_every_non_blank_cell():
    reg, grid, val = _setup(RoomB=ROOM_B)
    room = reg.get("RoomB")
    val.place(room, 3, -2)
    assert room.placed and (room.x, room.y) == (3, -2)
    assert grid.get(3, -2) == "+"
    assert grid.get(4, -2) == "-"
    assert grid.get(3, -1) == "|"
    assert grid.get(4, -1) == BLANK


def test_blank_cells_are_transparent():
    reg, grid, val = _setup(Hollow=HOLLOW, Dot=DOT)
    hollow = reg.get("Hollow")
    dot = reg.get("Dot")
    val.place(hollow, 0, 0)
    assert val.is_valid(dot, 1, 1)
    assert not val.is_valid(dot, 0, 1)
    val.place(dot, 1, 1)
    assert grid.get(1, 1) == "."


def test_overlapping_placement_is_rejected():
    reg, _grid, val = _setup(RoomA=ROOM_A, RoomB=ROOM_B)
    val.place(reg.get("RoomA"), 0, 0)
    assert not val.is_valid(reg.get("RoomB"), 2, 2)
    assert val.is_valid(reg.get("RoomB"), 0, -3)
    assert val.is_valid(reg.get("RoomB"), 8, 0)


def test_place_then_remove_restores_the_grid():
    reg, grid, val = _setup(RoomA=ROOM_A, Porch=PORCH)
    val.place(reg.get("RoomA"), 0, 0)
    before = _region(grid)
    porch = reg.get("Porch")
    val.place(porch, 8, 1)
    assert _region(grid) != before
    val.remove(porch)
    assert _region(grid) == before
    assert not porch.placed


def test_remove_is_idempotent():
    reg, grid, val = _setup(RoomB=ROOM_B)
    room = reg.get("RoomB")
    val.place(room, 0, 0)
    val.remove(room)
    cleared = _region(grid)
    val.remove(room)
    assert _region(grid) == cleared


def test_placing_twice_moves_instead_of_duplicating():
    reg, grid, val = _setup(RoomB=ROOM_B)
    room = reg.get("RoomB")
    val.place(room, 0, 0)
    val.place(room, 10, 0)
    assert grid.get(0, 0) == BLANK
    assert grid.get(10, 0) == "+"
    assert len(list(grid.occupied())) == len(room.cells)

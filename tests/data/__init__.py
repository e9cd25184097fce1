"""Shared tiles and specifications for the test suite."""

GATEHOUSE = """\
XXXXXXX
X.....X
X..D..X
X.....X
XXXXXXX"""

COURTYARD = """\
...........
...........
...........
.....:.....
...........
..........."""

KEEP = """\
XXXXXXXXX
X.......X
X..$....X
X...a...X
X.......X
XXXXXXXXX"""

CASTLE_SPEC = f"""# Castle

## Components

**Gatehouse** - fortified entrance
**Courtyard** - open ground inside the walls
**Keep** - the lord's tower

## Constraints

- ADJACENT(Gatehouse, Courtyard, n)
- CONNECTED(Courtyard, Keep, door, n)
- ACCESSIBLE_FROM(Gatehouse, ALL)

## Component Tiles

**Gatehouse:**
```
{GATEHOUSE}
```

**Courtyard:**
```
{COURTYARD}
```

**Keep:**
```
{KEEP}
```
"""

ROOM_A = "+------+\n|      |\n|      |\n|      |\n+------+"
ROOM_B = "+--+\n|  |\n+--+"

# 7x5 and 4x3 solid blocks
HALL = "\n".join(["#######"] * 5)
PORCH = "\n".join(["pppp"] * 3)

# 6x3 solid blocks with distinct glyphs
WING_A = "\n".join(["aaaaaa"] * 3)
WING_B = "\n".join(["bbbbbb"] * 3)
WING_C = "\n".join(["cccccc"] * 3)

BIG_A = "\n".join(["A" * 10] * 10)
BIG_B = "\n".join(["B" * 10] * 10)

HOLLOW = "###\n# #\n###"
DOT = "."

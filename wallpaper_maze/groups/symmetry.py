"""
Symmetry rules for the wallpaper groups a maze can live on.

The fundamental domain is an n x n grid of cells. Moving off one side of the
grid re-enters it somewhere else, and the group element (voltage) attached to
that move says how the neighboring copy of the domain sits in the plane.

Supported groups:
- P1:  translations only, the boundary is a plain torus
- P2:  180° rotations about the midpoints of the four sides
- P3:  120° rotations about two corners, cells are rhombi in axial coordinates
- P4:  90° rotations about the same two corners, square cells
- PGG: perpendicular glide reflections

Cell (row, col) sits at (col + 1/2, row + 1/2) in group coordinates; x grows
east and y grows south. For P3 those coordinates are axial and are mapped
to the plane by a shear (see screen_transform).
"""

import math
import numpy as np
from typing import Dict, List, NamedTuple, Optional, Tuple, Union
from dataclasses import dataclass
from enum import Enum

from .matrix import GroupElement, IDENTITY, Basis
from ..exceptions import InvalidGroupError


class Group(Enum):
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"
    P4 = "P4"
    PGG = "PGG"

    @classmethod
    def parse(cls, tag: Union['Group', str]) -> 'Group':
        """Accept a member, a canonical name, or a request alias."""
        if isinstance(tag, Group):
            return tag
        if isinstance(tag, str):
            key = tag.strip().lower()
            if key in GROUP_ALIASES:
                return GROUP_ALIASES[key]
        raise InvalidGroupError(f"Unknown group: {tag!r}")


class LatticeType(Enum):
    SQUARE = "square"
    RECTANGULAR = "rectangular"
    HEXAGONAL = "hexagonal"


class Direction(Enum):
    N = "N"
    S = "S"
    E = "E"
    W = "W"

    @property
    def opposite(self) -> 'Direction':
        return _OPPOSITE[self]

    @property
    def step(self) -> Tuple[int, int]:
        """(drow, dcol) for one move in this direction."""
        return _STEPS[self]


# Fixed iteration order used by every builder and encoder
DIRECTIONS: Tuple[Direction, ...] = (Direction.N, Direction.S, Direction.E, Direction.W)

_OPPOSITE = {
    Direction.N: Direction.S,
    Direction.S: Direction.N,
    Direction.E: Direction.W,
    Direction.W: Direction.E,
}

_STEPS = {
    Direction.N: (-1, 0),
    Direction.S: (1, 0),
    Direction.E: (0, 1),
    Direction.W: (0, -1),
}


class Cell(NamedTuple):
    row: int
    col: int

    @property
    def key(self) -> str:
        return f"{self.row},{self.col}"

    @classmethod
    def from_key(cls, key: str) -> 'Cell':
        r, c = key.split(',')
        return cls(int(r), int(c))


@dataclass
class WallpaperGroup:
    """Properties of one supported symmetry family."""
    group: Group
    lattice_type: LatticeType
    rotation_order: int  # highest rotation order among the voltages
    has_glide: bool
    description: str


WALLPAPER_GROUPS: Dict[Group, WallpaperGroup] = {
    Group.P1: WallpaperGroup(Group.P1, LatticeType.SQUARE, 1, False,
                             "Translations only, the domain wraps as a torus"),
    Group.P2: WallpaperGroup(Group.P2, LatticeType.SQUARE, 2, False,
                             "180° rotation centers at the side midpoints"),
    Group.P3: WallpaperGroup(Group.P3, LatticeType.HEXAGONAL, 3, False,
                             "120° rotation centers at two opposite corners"),
    Group.P4: WallpaperGroup(Group.P4, LatticeType.SQUARE, 4, False,
                             "90° rotation centers at two opposite corners"),
    Group.PGG: WallpaperGroup(Group.PGG, LatticeType.RECTANGULAR, 2, True,
                              "Perpendicular glide reflections"),
}

GROUP_ALIASES: Dict[str, Group] = {
    'p1': Group.P1, 'plain': Group.P1,
    'p2': Group.P2, 'rot180': Group.P2,
    'p3': Group.P3, 'rot120': Group.P3,
    'p4': Group.P4, 'rot90': Group.P4,
    'pgg': Group.PGG, 'glide': Group.PGG,
}


# ----------------------------------------------------------------------
# Boundary voltages
# ----------------------------------------------------------------------

def boundary_voltage(group: Group, direction: Direction, n: int) -> GroupElement:
    """
    Voltage for leaving the domain through the given side.

    Maps the canonical position of the re-entry cell to the position one step
    beyond the source cell, i.e. to where the neighbor copy sits.
    """
    A = GroupElement.affine
    if group is Group.P1:
        table = {
            Direction.N: GroupElement.translation(0, -n),
            Direction.S: GroupElement.translation(0, n),
            Direction.E: GroupElement.translation(n, 0),
            Direction.W: GroupElement.translation(-n, 0),
        }
    elif group is Group.P2:
        # Half-turns about (n/2, 0), (n/2, n), (n, n/2), (0, n/2)
        table = {
            Direction.N: A(-1, 0, 0, -1, n, 0),
            Direction.S: A(-1, 0, 0, -1, n, 2 * n),
            Direction.E: A(-1, 0, 0, -1, 2 * n, n),
            Direction.W: A(-1, 0, 0, -1, 0, n),
        }
    elif group is Group.P3:
        # Axial coordinates; N and S turn 120° about (n, 0) and (0, n)
        table = {
            Direction.N: A(-1, -1, 1, 0, 2 * n, -n),
            Direction.S: A(-1, -1, 1, 0, n, n),
            Direction.E: A(0, 1, -1, -1, n, n),
            Direction.W: A(0, 1, -1, -1, -n, 2 * n),
        }
    elif group is Group.P4:
        # Quarter turns about (n, 0) and (0, n)
        table = {
            Direction.N: A(0, -1, 1, 0, n, -n),
            Direction.S: A(0, -1, 1, 0, n, n),
            Direction.E: A(0, 1, -1, 0, n, n),
            Direction.W: A(0, 1, -1, 0, -n, n),
        }
    elif group is Group.PGG:
        table = {
            Direction.N: A(-1, 0, 0, 1, n, -n),
            Direction.S: A(-1, 0, 0, 1, n, n),
            Direction.E: A(1, 0, 0, -1, n, n),
            Direction.W: A(1, 0, 0, -1, -n, n),
        }
    else:
        raise InvalidGroupError(f"Unknown group: {group!r}")
    return table[direction]


def _boundary_cell(group: Group, cell: Cell, direction: Direction, n: int) -> Cell:
    r, c = cell
    last = n - 1
    if group is Group.P1:
        dr, dc = direction.step
        return Cell((r + dr) % n, (c + dc) % n)
    if group is Group.P2:
        if direction is Direction.N:
            return Cell(0, last - c)
        if direction is Direction.S:
            return Cell(last, last - c)
        if direction is Direction.E:
            return Cell(last - r, last)
        return Cell(last - r, 0)
    if group in (Group.P3, Group.P4):
        if direction is Direction.N:
            return Cell(last - c, last)
        if direction is Direction.S:
            return Cell(last - c, 0)
        if direction is Direction.E:
            return Cell(0, last - r)
        return Cell(last, last - r)
    if group is Group.PGG:
        if direction is Direction.N:
            return Cell(last, last - c)
        if direction is Direction.S:
            return Cell(0, last - c)
        if direction is Direction.E:
            return Cell(last - r, 0)
        return Cell(last - r, last)
    raise InvalidGroupError(f"Unknown group: {group!r}")


def wrapped_neighbor(group: Union[Group, str], cell: Tuple[int, int],
                     direction: Direction, n: int) -> Tuple[Cell, GroupElement]:
    """
    Neighbor of a cell one step in the given direction, with its voltage.

    Interior moves carry the identity. Moves across the boundary re-enter
    the grid according to the group; the result can be the cell itself
    (a self-loop) and two cells can be joined by more than one direction.
    """
    group = Group.parse(group)
    cell = Cell(*cell)
    dr, dc = direction.step
    r, c = cell.row + dr, cell.col + dc
    if 0 <= r < n and 0 <= c < n:
        return Cell(r, c), IDENTITY
    return _boundary_cell(group, cell, direction, n), boundary_voltage(group, direction, n)


# ----------------------------------------------------------------------
# Per-group geometry
# ----------------------------------------------------------------------

def group_generators(group: Union[Group, str], n: int) -> List[GroupElement]:
    """A generating set of the group, taken from its boundary voltages."""
    group = Group.parse(group)
    if group is Group.P1:
        dirs = [Direction.E, Direction.S]
    elif group is Group.P2:
        dirs = list(DIRECTIONS)
    elif group is Group.PGG:
        dirs = [Direction.N, Direction.E]
    else:
        # E and W are the inverses of N and S
        dirs = [Direction.N, Direction.S]
    return [boundary_voltage(group, d, n) for d in dirs]


def lattice_basis(group: Union[Group, str], n: int) -> Basis:
    """Basis of a translation lattice contained in the group, normal in it."""
    group = Group.parse(group)
    if group is Group.P1:
        return ((n, 0), (0, n))
    if group is Group.P2:
        return ((n, n), (n, -n))
    if group is Group.P3:
        return ((2 * n, -n), (-n, 2 * n))
    # P4 and PGG
    return ((2 * n, 0), (0, 2 * n))


def screen_transform(group: Union[Group, str]) -> np.ndarray:
    """2x2 matrix taking group coordinates to Euclidean plane coordinates."""
    group = Group.parse(group)
    if group is Group.P3:
        return np.array([[1.0, 0.5], [0.0, math.sqrt(3) / 2]])
    return np.eye(2)


def canonical_position(cell: Tuple[int, int]) -> Tuple[float, float]:
    """Center of a cell in group coordinates."""
    row, col = cell
    return (col + 0.5, row + 0.5)


def domain_corners(group: Union[Group, str], n: int,
                   element: Optional[GroupElement] = None) -> np.ndarray:
    """Corners of the fundamental domain in plane coordinates, optionally placed by element."""
    corners = np.array([[0, 0], [n, 0], [n, n], [0, n]], dtype=np.float64)
    if element is not None:
        corners = element.apply_array(corners)
    return corners @ screen_transform(group).T

"""
Quotient graph (manifold) of an n x n fundamental domain.

Every cell has exactly one wrapped neighbor per cardinal direction, so each
cell is the end of exactly four half-edges. Two half-edges that undo each
other (same pair of cells, inverse voltages) form one undirected edge.
Self-loops and parallel edges are kept as separate edges.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, List, Optional, Tuple, Union

from ..groups.symmetry import Cell, Direction, DIRECTIONS, Group, wrapped_neighbor
from ..groups.matrix import GroupElement

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuotientEdge:
    """Undirected edge; `a` leaves through `dir_a`, `b` leaves through `dir_b`."""
    index: int
    a: Cell
    b: Cell
    dir_a: Direction
    dir_b: Direction

    @property
    def is_self_loop(self) -> bool:
        return self.a == self.b

    @property
    def crosses_boundary(self) -> bool:
        dr, dc = self.dir_a.step
        return (self.a.row + dr, self.a.col + dc) != tuple(self.b)

    def half_edges(self) -> List[Tuple[Cell, Direction]]:
        """Distinct (cell, direction) ends of this edge."""
        ends = [(self.a, self.dir_a)]
        if (self.b, self.dir_b) != (self.a, self.dir_a):
            ends.append((self.b, self.dir_b))
        return ends

    def other(self, cell: Cell) -> Cell:
        return self.b if cell == self.a else self.a

    @property
    def key(self) -> str:
        return f"{self.a.key}-{self.b.key}-{self.dir_a.value}{self.dir_b.value}"


class Manifold:
    """
    Immutable quotient graph for one (group, n).

    Built by build_manifold; use that function rather than the constructor so
    repeated requests share one instance.
    """

    def __init__(self, group: Group, n: int, edges: List[QuotientEdge],
                 neighbor_table: Dict[Tuple[Cell, Direction], Cell],
                 edge_table: Dict[Tuple[Cell, Direction], QuotientEdge]):
        self.group = group
        self.n = n
        self.cells: Tuple[Cell, ...] = tuple(Cell(r, c) for r in range(n) for c in range(n))
        self.edges: Tuple[QuotientEdge, ...] = tuple(edges)
        self._neighbor = neighbor_table
        self._edge = edge_table
        self._distinct: Dict[Cell, Tuple[Cell, ...]] = {}
        for cell in self.cells:
            seen: List[Cell] = []
            for d in DIRECTIONS:
                nb = neighbor_table[(cell, d)]
                if nb != cell and nb not in seen:
                    seen.append(nb)
            self._distinct[cell] = tuple(seen)

    @property
    def num_cells(self) -> int:
        return self.n * self.n

    def contains(self, cell: Tuple[int, int]) -> bool:
        r, c = cell
        return 0 <= r < self.n and 0 <= c < self.n

    def neighbor(self, cell: Tuple[int, int], direction: Direction) -> Cell:
        return self._neighbor[(Cell(*cell), direction)]

    def neighbors(self, cell: Tuple[int, int]) -> List[Cell]:
        """All four wrapped neighbors in N, S, E, W order, repeats included."""
        cell = Cell(*cell)
        return [self._neighbor[(cell, d)] for d in DIRECTIONS]

    def distinct_neighbors(self, cell: Tuple[int, int]) -> Tuple[Cell, ...]:
        """Neighbors without repeats or the cell itself, in first-seen order."""
        return self._distinct[Cell(*cell)]

    def edge_at(self, cell: Tuple[int, int], direction: Direction) -> QuotientEdge:
        return self._edge[(Cell(*cell), direction)]

    def incident_edges(self, cell: Tuple[int, int]) -> List[QuotientEdge]:
        """One entry per direction; a loop through two directions appears twice."""
        cell = Cell(*cell)
        return [self._edge[(cell, d)] for d in DIRECTIONS]

    def degree(self, cell: Tuple[int, int]) -> int:
        """Number of edge ends at the cell, one per direction."""
        cell = Cell(*cell)
        return sum(1 for e in self.edges for end, _ in e.half_edges() if end == cell)

    def edges_between(self, a: Tuple[int, int], b: Tuple[int, int]) -> List[QuotientEdge]:
        a, b = Cell(*a), Cell(*b)
        return [e for e in self.edges if {e.a, e.b} == {a, b}]

    def __repr__(self) -> str:
        return f"Manifold(group={self.group.value}, n={self.n}, edges={len(self.edges)})"


def _pair_half_edges(group: Group, n: int):
    """Walk every cell x direction and join each half-edge with its reverse."""
    half: Dict[Tuple[Cell, Direction], Tuple[Cell, GroupElement]] = {}
    for r in range(n):
        for c in range(n):
            cell = Cell(r, c)
            for d in DIRECTIONS:
                half[(cell, d)] = wrapped_neighbor(group, cell, d, n)

    edges: List[QuotientEdge] = []
    edge_table: Dict[Tuple[Cell, Direction], QuotientEdge] = {}
    for (cell, d), (nb, voltage) in half.items():
        if (cell, d) in edge_table:
            continue
        inverse = voltage.inverse()
        # Prefer the opposite direction so interior edges pair N<->S, E<->W
        candidates = [d.opposite] + [x for x in DIRECTIONS if x is not d.opposite]
        match: Optional[Direction] = None
        for d2 in candidates:
            if (nb, d2) in edge_table:
                continue
            nb2, v2 = half[(nb, d2)]
            if nb2 == cell and v2 == inverse:
                if (nb, d2) == (cell, d) and any(
                        (nb, x) not in edge_table and x is not d
                        and half[(nb, x)][0] == cell and half[(nb, x)][1] == inverse
                        for x in DIRECTIONS):
                    # Pair with a different direction before closing on itself
                    continue
                match = d2
                break
        if match is None:
            raise RuntimeError(
                f"No reverse half-edge for {cell.key} {d.value} in {group.value} n={n}")
        edge = QuotientEdge(len(edges), cell, nb, d, match)
        edges.append(edge)
        edge_table[(cell, d)] = edge
        edge_table[(nb, match)] = edge

    neighbor_table = {key: nb for key, (nb, _) in half.items()}
    return edges, neighbor_table, edge_table


@lru_cache(maxsize=64)
def _build_manifold(group: Group, n: int) -> Manifold:
    edges, neighbor_table, edge_table = _pair_half_edges(group, n)
    manifold = Manifold(group, n, edges, neighbor_table, edge_table)
    logger.debug("Built %r", manifold)
    return manifold


def build_manifold(group: Union[Group, str], n: int) -> Manifold:
    """Quotient graph of the n x n domain under the given group."""
    group = Group.parse(group)
    if n < 1:
        raise ValueError(f"Grid size must be >= 1, got {n}")
    return _build_manifold(group, int(n))

"""
Voltage graph (orbifold): the quotient graph with a group element on every
directed edge.

A walk in the lifted tiling that starts in copy M and follows the directed
edge (u -> v, voltage g) ends in copy M @ g.
"""

import logging
import numpy as np
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, List, Optional, Tuple, Union

from ..groups.matrix import GroupElement, Basis
from ..groups.symmetry import (
    Cell, Direction, DIRECTIONS, Group, wrapped_neighbor,
    group_generators, lattice_basis, screen_transform, canonical_position,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VoltageEdge:
    source: Cell
    target: Cell
    direction: Direction
    voltage: GroupElement


class Orbifold:
    """Immutable voltage graph with 4 directed edges per cell."""

    def __init__(self, group: Group, n: int, edges: List[VoltageEdge]):
        self.group = group
        self.n = n
        self.cells: Tuple[Cell, ...] = tuple(Cell(r, c) for r in range(n) for c in range(n))
        self.edges: Tuple[VoltageEdge, ...] = tuple(edges)
        self._by_dir: Dict[Tuple[Cell, Direction], VoltageEdge] = {
            (e.source, e.direction): e for e in edges
        }
        self.generators: Tuple[GroupElement, ...] = tuple(group_generators(group, n))
        self.lattice: Basis = lattice_basis(group, n)
        self.screen: np.ndarray = screen_transform(group)

    def edge(self, cell: Tuple[int, int], direction: Direction) -> VoltageEdge:
        return self._by_dir[(Cell(*cell), direction)]

    def edges_from(self, cell: Tuple[int, int]) -> List[VoltageEdge]:
        cell = Cell(*cell)
        return [self._by_dir[(cell, d)] for d in DIRECTIONS]

    def voltage_for(self, source: Tuple[int, int], target: Tuple[int, int],
                    direction: Optional[Direction] = None) -> GroupElement:
        """
        Voltage of the edge source -> target.

        With parallel edges the direction picks one; without it the first
        match in N, S, E, W order is used.
        """
        source, target = Cell(*source), Cell(*target)
        if direction is not None:
            edge = self._by_dir[(source, direction)]
            if edge.target != target:
                raise ValueError(
                    f"{source.key} {direction.value} leads to {edge.target.key}, not {target.key}")
            return edge.voltage
        for d in DIRECTIONS:
            edge = self._by_dir[(source, d)]
            if edge.target == target:
                return edge.voltage
        raise ValueError(f"{source.key} and {target.key} are not adjacent")

    def distinct_voltages(self) -> List[GroupElement]:
        """Non-identity voltages in edge order, without repeats."""
        seen: Dict[Tuple[int, ...], GroupElement] = {}
        for e in self.edges:
            if not e.voltage.is_identity() and e.voltage.key not in seen:
                seen[e.voltage.key] = e.voltage
        return list(seen.values())

    def group_position(self, cell: Tuple[int, int],
                       element: Optional[GroupElement] = None) -> Tuple[float, float]:
        x, y = canonical_position(cell)
        if element is not None:
            x, y = element.apply(x, y)
        return (x, y)

    def position(self, cell: Tuple[int, int],
                 element: Optional[GroupElement] = None) -> np.ndarray:
        """Plane position of a cell, optionally inside the copy `element`."""
        return self.screen @ np.array(self.group_position(cell, element))

    def __repr__(self) -> str:
        return f"Orbifold(group={self.group.value}, n={self.n}, edges={len(self.edges)})"


@lru_cache(maxsize=64)
def _build_orbifold(group: Group, n: int) -> Orbifold:
    edges: List[VoltageEdge] = []
    for r in range(n):
        for c in range(n):
            cell = Cell(r, c)
            for d in DIRECTIONS:
                nb, voltage = wrapped_neighbor(group, cell, d, n)
                edges.append(VoltageEdge(cell, nb, d, voltage))
    orbifold = Orbifold(group, n, edges)
    logger.debug("Built %r", orbifold)
    return orbifold


def build_orbifold(group: Union[Group, str], n: int) -> Orbifold:
    """Voltage graph of the n x n domain under the given group."""
    group = Group.parse(group)
    if n < 1:
        raise ValueError(f"Grid size must be >= 1, got {n}")
    return _build_orbifold(group, int(n))

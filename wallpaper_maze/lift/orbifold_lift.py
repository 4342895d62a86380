"""
Covering-space lift of a maze solved on the quotient.

Copies of the fundamental domain are discovered breadth-first from the
identity by right-multiplying with the voltages. Every tree edge of the
quotient maze is then drawn once per copy: its child end lives in the current
copy M and its parent end in copy M @ voltage.

With periodic=True copies are identified modulo the translation sublattice
multiplier * L of the group, so the lift is a finite torus of
multiplier x multiplier lattice cells; the search runs until no new copy
appears and every tree edge finds its target copy. With periodic=False the
search stops after multiplier rounds, the lift is a finite patch of the
plane, and edges leaving the patch are dropped.
"""

import logging
import numpy as np
from scipy.sparse import csr_matrix
from scipy.sparse.csgraph import connected_components
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..config import LiftConfig
from ..graphs.orbifold import Orbifold, build_orbifold
from ..graphs.submanifold import SubManifold
from ..groups.matrix import GroupElement, IDENTITY, Basis
from ..groups.symmetry import Cell

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Copy:
    """One placed copy of the fundamental domain."""
    index: int
    element: GroupElement
    depth: int  # BFS round in which it was discovered


@dataclass
class LiftedNode:
    id: str
    copy: int
    cell: Cell
    position: Tuple[float, float]
    root_index: int = -1


@dataclass
class LiftedEdge:
    source: str             # node id of the child end
    target: str             # node id of the parent end
    original: int           # index of the quotient edge
    end_position: Tuple[float, float]  # where the parent end sits next to the child
    wraps: bool = False     # target copy was identified modulo the lattice


@dataclass
class LiftedGraph:
    """Explicit lifted maze with lookup tables."""
    copies: List[Copy]
    nodes: List[LiftedNode]
    edges: List[LiftedEdge]
    node_by_id: Dict[str, LiftedNode] = field(default_factory=dict)
    nodes_by_cell: Dict[Cell, List[LiftedNode]] = field(default_factory=dict)
    edges_by_original: Dict[int, List[LiftedEdge]] = field(default_factory=dict)
    roots: List[str] = field(default_factory=list)

    def __post_init__(self):
        for node in self.nodes:
            self.node_by_id[node.id] = node
            self.nodes_by_cell.setdefault(node.cell, []).append(node)
        for edge in self.edges:
            self.edges_by_original.setdefault(edge.original, []).append(edge)

    def positions(self) -> np.ndarray:
        if not self.nodes:
            return np.zeros((0, 2))
        return np.array([n.position for n in self.nodes], dtype=np.float64)

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """(min_x, min_y, max_x, max_y) over node positions."""
        pts = self.positions()
        if len(pts) == 0:
            return (0.0, 0.0, 0.0, 0.0)
        (x0, y0), (x1, y1) = pts.min(axis=0), pts.max(axis=0)
        return (float(x0), float(y0), float(x1), float(y1))

    def root_indices(self) -> np.ndarray:
        return np.array([n.root_index for n in self.nodes], dtype=np.int64)

    def reached_fraction(self) -> float:
        if not self.nodes:
            return 0.0
        return float(np.mean(self.root_indices() >= 0))


def node_id(copy_index: int, cell: Cell) -> str:
    return f"{copy_index}:{cell.key}"


class OrbifoldLift:
    """Expands copies of an orbifold and lifts mazes onto them."""

    def __init__(self, orbifold: Orbifold, multiplier: int = 2, periodic: bool = True):
        if multiplier < 1:
            raise ValueError(f"multiplier must be >= 1, got {multiplier}")
        self.orbifold = orbifold
        self.multiplier = multiplier
        self.periodic = periodic
        (ax, ay), (bx, by) = orbifold.lattice
        self.period: Basis = ((multiplier * ax, multiplier * ay),
                              (multiplier * bx, multiplier * by))
        self._copies: Optional[List[Copy]] = None
        self._copy_index: Dict[Tuple[int, ...], int] = {}

    @classmethod
    def from_config(cls, orbifold: Orbifold, config: LiftConfig) -> 'OrbifoldLift':
        return cls(orbifold, config.multiplier, config.periodic)

    def canonical(self, element: GroupElement) -> GroupElement:
        """Representative of the copy that element places."""
        if self.periodic:
            return element.reduce_translation(self.period)
        return element

    def steps(self) -> List[GroupElement]:
        """Distinct voltages and their inverses, in discovery order."""
        seen: Dict[Tuple[int, ...], GroupElement] = {}
        for v in self.orbifold.distinct_voltages():
            for g in (v, v.inverse()):
                if not g.is_identity() and g.key not in seen:
                    seen[g.key] = g
        return list(seen.values())

    def expand_copies(self) -> List[Copy]:
        if self._copies is not None:
            return self._copies
        start = self.canonical(IDENTITY)
        copies = [Copy(0, start, 0)]
        index = {start.key: 0}
        frontier = [start]
        steps = self.steps()
        depth = 0
        # The periodic quotient is finite, so its search runs to closure
        while frontier and (self.periodic or depth < self.multiplier):
            depth += 1
            next_frontier = []
            for element in frontier:
                for g in steps:
                    candidate = self.canonical(element @ g)
                    if candidate.key not in index:
                        index[candidate.key] = len(copies)
                        copies.append(Copy(len(copies), candidate, depth))
                        next_frontier.append(candidate)
            frontier = next_frontier
        self._copies = copies
        self._copy_index = index
        logger.debug("%s n=%d: %d copies after %d rounds (periodic=%s)",
                     self.orbifold.group.value, self.orbifold.n, len(copies),
                     depth, self.periodic)
        return copies

    def copy_of(self, element: GroupElement) -> Optional[int]:
        """Index of the copy element lands in, or None if undiscovered."""
        self.expand_copies()
        return self._copy_index.get(self.canonical(element).key)

    def lift(self, submanifold: SubManifold) -> LiftedGraph:
        manifold = submanifold.manifold
        if manifold.group != self.orbifold.group or manifold.n != self.orbifold.n:
            raise ValueError(f"{manifold!r} does not match {self.orbifold!r}")
        copies = self.expand_copies()
        active = submanifold.active_cells()

        nodes = []
        for copy in copies:
            for cell in active:
                pos = self.orbifold.position(cell, copy.element)
                nodes.append(LiftedNode(node_id(copy.index, cell), copy.index, cell,
                                        (float(pos[0]), float(pos[1]))))

        edges = []
        dropped = 0
        for tree_edge in submanifold.tree_edges():
            voltage = self.orbifold.voltage_for(tree_edge.child, tree_edge.parent,
                                                tree_edge.direction)
            for copy in copies:
                placed = copy.element @ voltage
                target = self.copy_of(placed)
                if target is None:
                    dropped += 1
                    continue
                end = self.orbifold.position(tree_edge.parent, placed)
                edges.append(LiftedEdge(
                    source=node_id(copy.index, tree_edge.child),
                    target=node_id(target, tree_edge.parent),
                    original=tree_edge.edge.index,
                    end_position=(float(end[0]), float(end[1])),
                    wraps=self.canonical(placed) != placed,
                ))

        graph = LiftedGraph(copies, nodes, edges)
        graph.roots = [node_id(c.index, submanifold.root) for c in copies]
        assign_root_indices(graph)
        logger.debug("Lifted %d nodes, %d edges, %d dropped, %.0f%% reached",
                     len(nodes), len(edges), dropped, 100 * graph.reached_fraction())
        return graph


def assign_root_indices(graph: LiftedGraph):
    """
    Label every lifted node with the root that reaches it over lifted edges.

    Every non-root node has at most one parent edge and parent chains end at
    a root, so each connected component holds at most one root and the
    component label decides the root index. If roots ever share a
    component the one listed first wins. Nodes in a component without a
    root keep -1.
    """
    for node in graph.nodes:
        node.root_index = -1
    if not graph.nodes:
        return

    position = {node.id: i for i, node in enumerate(graph.nodes)}
    rows = [position[e.source] for e in graph.edges]
    cols = [position[e.target] for e in graph.edges]
    size = len(graph.nodes)
    adjacency = csr_matrix((np.ones(len(rows)), (rows, cols)), shape=(size, size))
    _, labels = connected_components(adjacency, directed=False)

    root_of_label: Dict[int, int] = {}
    for i, rid in enumerate(graph.roots):
        root_of_label.setdefault(int(labels[position[rid]]), i)
    for node, label in zip(graph.nodes, labels):
        node.root_index = root_of_label.get(int(label), -1)


def lift_maze(submanifold: SubManifold, config: Optional[LiftConfig] = None) -> LiftedGraph:
    """Lift a solved maze using the orbifold of its own group and size."""
    config = config or LiftConfig()
    manifold = submanifold.manifold
    orbifold = build_orbifold(manifold.group, manifold.n)
    return OrbifoldLift.from_config(orbifold, config).lift(submanifold)

"""
A manifold together with a blocked set, a root, and a rooted spanning tree.

Tree edges run from each child to its parent; every other quotient edge
is a wall.
"""

import numpy as np
from scipy.sparse import csr_matrix
from scipy.sparse.csgraph import shortest_path
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from ..exceptions import InvalidRootError
from ..groups.symmetry import Cell, Direction, DIRECTIONS
from .manifold import Manifold, QuotientEdge


@dataclass(frozen=True)
class TreeEdge:
    """Child -> parent edge of the spanning tree."""
    child: Cell
    parent: Cell
    direction: Direction  # direction the child leaves through
    edge: QuotientEdge


class SubManifold:
    """Immutable maze state on one manifold."""

    def __init__(self, manifold: Manifold, root: Tuple[int, int],
                 blocked: Iterable[Tuple[int, int]] = (),
                 parent_map: Optional[Mapping[Tuple[int, int], Optional[Tuple[int, int]]]] = None):
        self.manifold = manifold
        self.root = Cell(*root)
        self.blocked: FrozenSet[Cell] = frozenset(Cell(*b) for b in blocked)
        if not manifold.contains(self.root) or self.root in self.blocked:
            raise InvalidRootError(f"Root {self.root.key} is outside the grid or blocked")
        for b in self.blocked:
            if not manifold.contains(b):
                raise ValueError(f"Blocked cell {b.key} is outside the {manifold.n}x{manifold.n} grid")

        self._parent: Dict[Cell, Optional[Cell]] = {}
        if parent_map:
            for child, parent in parent_map.items():
                child = Cell(*child)
                self._parent[child] = None if parent is None else Cell(*parent)
        self._tree_edges = self._resolve_tree_edges()

    @classmethod
    def from_parent_map(cls, manifold: Manifold,
                        parent_map: Mapping[Tuple[int, int], Optional[Tuple[int, int]]],
                        blocked: Iterable[Tuple[int, int]] = (),
                        root: Optional[Tuple[int, int]] = None) -> 'SubManifold':
        """Build from a solution; the root defaults to the cell without a parent."""
        if root is None:
            roots = [c for c, p in parent_map.items() if p is None]
            if len(roots) != 1:
                raise InvalidRootError(f"Expected exactly one parentless cell, found {len(roots)}")
            root = roots[0]
        return cls(manifold, root, blocked, parent_map)

    def _resolve_tree_edges(self) -> List[TreeEdge]:
        edges = []
        for child, parent in self._parent.items():
            if parent is None:
                continue
            direction = self._pick_direction(child, parent)
            edges.append(TreeEdge(child, parent, direction,
                                  self.manifold.edge_at(child, direction)))
        return edges

    def _pick_direction(self, child: Cell, parent: Cell) -> Direction:
        # Interior edges first, then the first wrapped one in N, S, E, W order
        matches = [d for d in DIRECTIONS if self.manifold.neighbor(child, d) == parent]
        if not matches:
            raise ValueError(f"{parent.key} is not a neighbor of {child.key}")
        for d in matches:
            dr, dc = d.step
            if (child.row + dr, child.col + dc) == tuple(parent):
                return d
        return matches[0]

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def has_tree(self) -> bool:
        return bool(self._parent)

    def is_blocked(self, cell: Tuple[int, int]) -> bool:
        return Cell(*cell) in self.blocked

    def active_cells(self) -> List[Cell]:
        return [c for c in self.manifold.cells if c not in self.blocked]

    def parent(self, cell: Tuple[int, int]) -> Optional[Cell]:
        return self._parent.get(Cell(*cell))

    def parent_map(self) -> Dict[Cell, Optional[Cell]]:
        return dict(self._parent)

    def tree_edges(self) -> List[TreeEdge]:
        return list(self._tree_edges)

    def included_edges(self) -> List[QuotientEdge]:
        return [t.edge for t in self._tree_edges]

    def excluded_edges(self) -> List[QuotientEdge]:
        """Walls: every quotient edge that is not a tree edge."""
        kept = {t.edge.index for t in self._tree_edges}
        return [e for e in self.manifold.edges if e.index not in kept]

    def has_edge(self, a: Tuple[int, int], b: Tuple[int, int]) -> bool:
        a, b = Cell(*a), Cell(*b)
        return self._parent.get(a) == b or self._parent.get(b) == a

    def distances_from_root(self) -> Dict[Cell, int]:
        """Tree distance of every reachable cell from the root."""
        cells = self.manifold.cells
        index = {cell: i for i, cell in enumerate(cells)}
        pairs = [(index[p], index[c]) for c, p in self._parent.items()
                 if p is not None and c in index and p in index]
        size = len(cells)
        graph = csr_matrix((np.ones(len(pairs)), ([p for p, _ in pairs], [c for _, c in pairs])),
                           shape=(size, size))
        dist = shortest_path(graph, directed=True, unweighted=True, indices=index[self.root])
        return {cells[i]: int(d) for i, d in enumerate(dist) if np.isfinite(d)}

    def validate_tree(self) -> List[str]:
        """
        Problems with the spanning tree; empty when it is valid.

        Valid means: every active cell has an entry, the root has no parent,
        each parent is an active wrapped neighbor, and following parents from
        any cell reaches the root within n*n steps without repeating a cell.
        """
        problems = []
        limit = self.manifold.num_cells
        active = set(self.active_cells())
        if self._parent.get(self.root) is not None:
            problems.append(f"root {self.root.key} has a parent")
        for cell in active:
            if cell not in self._parent:
                problems.append(f"{cell.key} is missing from the tree")
                continue
            if cell == self.root:
                continue
            parent = self._parent[cell]
            if parent is None:
                problems.append(f"{cell.key} has no parent")
                continue
            if parent not in active:
                problems.append(f"{cell.key} points at inactive cell {parent.key}")
            elif parent not in self.manifold.distinct_neighbors(cell):
                problems.append(f"{cell.key} points at non-neighbor {parent.key}")
            seen = {cell}
            cur = parent
            steps = 1
            while cur is not None and cur != self.root:
                if cur in seen or steps > limit:
                    problems.append(f"{cell.key} does not reach the root")
                    break
                seen.add(cur)
                cur = self._parent.get(cur)
                steps += 1
            if cur is None:
                problems.append(f"{cell.key} does not reach the root")
        for cell in self._parent:
            if cell in self.blocked:
                problems.append(f"blocked cell {cell.key} is in the tree")
        return problems

    def is_valid_tree(self) -> bool:
        return not self.validate_tree()

    # ------------------------------------------------------------------
    # Editing; each edit returns a new state without a tree
    # ------------------------------------------------------------------

    def with_blocked(self, cell: Tuple[int, int]) -> 'SubManifold':
        return SubManifold(self.manifold, self.root, self.blocked | {Cell(*cell)})

    def with_unblocked(self, cell: Tuple[int, int]) -> 'SubManifold':
        return SubManifold(self.manifold, self.root, self.blocked - {Cell(*cell)})

    def with_root(self, root: Tuple[int, int]) -> 'SubManifold':
        return SubManifold(self.manifold, root, self.blocked)

    def __repr__(self) -> str:
        return (f"SubManifold({self.manifold!r}, root={self.root.key}, "
                f"blocked={len(self.blocked)}, tree_edges={len(self._tree_edges)})")

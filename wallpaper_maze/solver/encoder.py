"""
CNF encoding of "find a rooted spanning tree" on a quotient graph.

Variables:
- parent(u, v): u's parent is v, for each active u and each distinct active
  neighbor v of u
- dist(u, d):   the tree distance of u from the root is at least d, d = 1..N
  with N = n * n

The unary distance ladder forces dist(u) = dist(parent(u)) + 1, so parent
pointers cannot form a cycle and every active cell reaches the root.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from ..exceptions import InvalidRootError
from ..graphs.manifold import Manifold
from ..groups.symmetry import Cell

logger = logging.getLogger(__name__)


@dataclass
class SpanningTreeCNF:
    """Deterministic CNF for one (manifold, root, blocked) instance."""
    n: int
    root: Cell
    blocked: FrozenSet[Cell]
    active: Tuple[Cell, ...]
    neighbors: Dict[Cell, Tuple[Cell, ...]]
    num_vars: int = 0
    clauses: List[List[int]] = field(default_factory=list)
    _parent_vars: Dict[Tuple[Cell, Cell], int] = field(default_factory=dict)
    _dist_base: Dict[Cell, int] = field(default_factory=dict)

    @property
    def max_dist(self) -> int:
        return self.n * self.n

    @property
    def num_clauses(self) -> int:
        return len(self.clauses)

    @property
    def has_empty_clause(self) -> bool:
        return any(len(c) == 0 for c in self.clauses)

    def parent_var(self, u: Tuple[int, int], v: Tuple[int, int]) -> int:
        return self._parent_vars[(Cell(*u), Cell(*v))]

    def dist_var(self, u: Tuple[int, int], d: int) -> int:
        if not 1 <= d <= self.max_dist:
            raise ValueError(f"Distance {d} outside 1..{self.max_dist}")
        return self._dist_base[Cell(*u)] + d - 1

    def add_clause(self, literals: Iterable[int]):
        """Append a clause, dropping repeated literals and tautologies."""
        seen: List[int] = []
        for lit in literals:
            if -lit in seen:
                return
            if lit not in seen:
                seen.append(lit)
        self.clauses.append(seen)

    def decode(self, assignment: Sequence[bool]) -> Dict[Cell, Optional[Cell]]:
        """
        Parent map from a satisfying assignment.

        assignment[i] is the value of variable i; index 0 is unused.
        """
        parent_of: Dict[Cell, Optional[Cell]] = {self.root: None}
        for u in self.active:
            if u == self.root:
                continue
            for v in self.neighbors[u]:
                if assignment[self._parent_vars[(u, v)]]:
                    parent_of[u] = v
                    break
        return parent_of

    def to_dimacs(self) -> str:
        lines = [f"p cnf {self.num_vars} {len(self.clauses)}"]
        lines.extend(' '.join(str(lit) for lit in clause) + ' 0' for clause in self.clauses)
        return '\n'.join(lines) + '\n'


def validate_instance(manifold: Manifold, root: Tuple[int, int],
                      blocked: Iterable[Tuple[int, int]]) -> Tuple[Cell, FrozenSet[Cell]]:
    """Check root and blocked cells against the grid before any encoding."""
    blocked_set = frozenset(Cell(*b) for b in blocked)
    for b in blocked_set:
        if not manifold.contains(b):
            raise ValueError(f"Blocked cell {b.key} is outside the {manifold.n}x{manifold.n} grid")
    root = Cell(*root)
    if not manifold.contains(root):
        raise InvalidRootError(f"Root {root.key} is outside the {manifold.n}x{manifold.n} grid")
    if root in blocked_set:
        raise InvalidRootError(f"Root {root.key} is blocked")
    return root, blocked_set


def encode_spanning_tree(manifold: Manifold, root: Tuple[int, int],
                         blocked: Iterable[Tuple[int, int]] = ()) -> SpanningTreeCNF:
    """Encode the rooted spanning-tree problem on the non-blocked cells."""
    root, blocked_set = validate_instance(manifold, root, blocked)

    active = tuple(c for c in manifold.cells if c not in blocked_set)
    neighbors = {
        u: tuple(v for v in manifold.distinct_neighbors(u) if v not in blocked_set)
        for u in active
    }
    cnf = SpanningTreeCNF(n=manifold.n, root=root, blocked=blocked_set,
                          active=active, neighbors=neighbors)

    next_var = 1
    for u in active:
        for v in neighbors[u]:
            cnf._parent_vars[(u, v)] = next_var
            next_var += 1
    N = cnf.max_dist
    for u in active:
        cnf._dist_base[u] = next_var
        next_var += N
    cnf.num_vars = next_var - 1

    p = cnf.parent_var
    dist = cnf.dist_var

    # Root: distance 0 and no parent
    cnf.add_clause([-dist(root, 1)])
    for v in neighbors[root]:
        cnf.add_clause([-p(root, v)])

    for u in active:
        if u == root:
            continue
        lits = [p(u, v) for v in neighbors[u]]
        # At least one parent; empty when u has no active neighbor
        cnf.add_clause(lits)
        for i in range(len(lits)):
            for j in range(i + 1, len(lits)):
                cnf.add_clause([-lits[i], -lits[j]])
        cnf.add_clause([dist(u, 1)])

    for u in active:
        for v in neighbors[u]:
            # Ordered pairs so each antisymmetry clause is emitted once
            if (u, v) in cnf._parent_vars and (v, u) in cnf._parent_vars and u < v:
                cnf.add_clause([-p(u, v), -p(v, u)])

    for u in active:
        for d in range(2, N + 1):
            cnf.add_clause([-dist(u, d), dist(u, d - 1)])
        cnf.add_clause([-dist(u, N)])

    for u in active:
        for v in neighbors[u]:
            puv = p(u, v)
            cnf.add_clause([-puv, dist(u, 1)])
            for d in range(1, N):
                cnf.add_clause([-puv, -dist(v, d), dist(u, d + 1)])
            for d in range(2, N + 1):
                cnf.add_clause([-puv, -dist(u, d), dist(v, d - 1)])

    logger.info("Encoded %s n=%d: %d vars, %d clauses (%d blocked)",
                manifold.group.value, manifold.n, cnf.num_vars, cnf.num_clauses, len(blocked_set))
    return cnf

"""
Random spanning trees without a SAT solver.

Each quotient edge gets a random weight; the minimum spanning tree of the
weighted cell graph is then oriented from the root by breadth-first search.
Useful for quick previews and for exercising the lift on many mazes.
"""

import numpy as np
from scipy.sparse import csr_matrix
from scipy.sparse.csgraph import breadth_first_order, connected_components, minimum_spanning_tree
from typing import Dict, Iterable, Optional, Tuple

from ..graphs.manifold import Manifold
from ..groups.symmetry import Cell
from .encoder import validate_instance


def random_spanning_tree(manifold: Manifold, root: Tuple[int, int],
                         blocked: Iterable[Tuple[int, int]] = (),
                         seed: Optional[int] = None) -> Optional[Dict[Cell, Optional[Cell]]]:
    """
    Parent map of a random spanning tree over the non-blocked cells.

    Returns None when the non-blocked cells are not connected.
    """
    root, blocked_set = validate_instance(manifold, root, blocked)
    rng = np.random.default_rng(seed)

    active = [c for c in manifold.cells if c not in blocked_set]
    index = {cell: i for i, cell in enumerate(active)}

    # Parallel edges collapse to one pair; csr_matrix would sum their weights
    weights: Dict[Tuple[int, int], float] = {}
    for edge in manifold.edges:
        if edge.is_self_loop or edge.a in blocked_set or edge.b in blocked_set:
            continue
        # Shifted off zero so no edge reads as missing
        w = 1.0 + rng.random()
        i, j = sorted((index[edge.a], index[edge.b]))
        weights[(i, j)] = min(w, weights.get((i, j), w))

    rows = [i for i, _ in weights]
    cols = [j for _, j in weights]
    graph = csr_matrix((list(weights.values()), (rows, cols)), shape=(len(active), len(active)))

    n_components, _ = connected_components(graph, directed=False)
    if n_components != 1:
        return None

    tree = minimum_spanning_tree(graph)
    order, predecessors = breadth_first_order(tree, index[root], directed=False,
                                              return_predecessors=True)
    parent_of: Dict[Cell, Optional[Cell]] = {root: None}
    for i in order[1:]:
        parent_of[active[i]] = active[predecessors[i]]
    return parent_of

from .manifold import Manifold, QuotientEdge, build_manifold
from .orbifold import Orbifold, VoltageEdge, build_orbifold
from .submanifold import SubManifold, TreeEdge

__all__ = [
    # Quotient graph
    'Manifold',
    'QuotientEdge',
    'build_manifold',
    # Voltage graph
    'Orbifold',
    'VoltageEdge',
    'build_orbifold',
    # Maze state
    'SubManifold',
    'TreeEdge',
]

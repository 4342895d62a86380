from .orbifold_lift import (
    Copy,
    LiftedNode,
    LiftedEdge,
    LiftedGraph,
    OrbifoldLift,
    assign_root_indices,
    lift_maze,
)

__all__ = [
    'Copy',
    'LiftedNode',
    'LiftedEdge',
    'LiftedGraph',
    'OrbifoldLift',
    'assign_root_indices',
    'lift_maze',
]

"""
Wallpaper mazes: rooted spanning-tree mazes on quotients of the plane by
wallpaper groups, solved with SAT and lifted back to the plane.
"""

from .config import MazeConfig, SolverConfig, LiftConfig
from .exceptions import WallpaperMazeError, InvalidGroupError, InvalidRootError, SolverFailure
from .groups import GroupElement, Group, Direction, Cell, wrapped_neighbor
from .graphs import build_manifold, build_orbifold, SubManifold
from .solver import encode_spanning_tree, SatSolver, SolveRequest, solve_maze, handle_request
from .lift import OrbifoldLift, LiftedGraph, lift_maze

__version__ = "0.1.0"

__all__ = [
    # Configuration
    'MazeConfig',
    'SolverConfig',
    'LiftConfig',
    # Errors
    'WallpaperMazeError',
    'InvalidGroupError',
    'InvalidRootError',
    'SolverFailure',
    # Groups
    'GroupElement',
    'Group',
    'Direction',
    'Cell',
    'wrapped_neighbor',
    # Graphs
    'build_manifold',
    'build_orbifold',
    'SubManifold',
    # Solving
    'encode_spanning_tree',
    'SatSolver',
    'SolveRequest',
    'solve_maze',
    'handle_request',
    # Lifting
    'OrbifoldLift',
    'LiftedGraph',
    'lift_maze',
]

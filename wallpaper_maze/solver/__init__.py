from .encoder import SpanningTreeCNF, encode_spanning_tree, validate_instance
from .sat import SatSolver, SatResult
from .random_tree import random_spanning_tree
from .service import (
    SolveRequest,
    SolveStatus,
    MazeSolution,
    MazeSolveJob,
    solve_maze,
    handle_request,
    format_error_message,
)

__all__ = [
    # CNF encoding
    'SpanningTreeCNF',
    'encode_spanning_tree',
    'validate_instance',
    # SAT backend
    'SatSolver',
    'SatResult',
    # Non-SAT trees
    'random_spanning_tree',
    # Request/response
    'SolveRequest',
    'SolveStatus',
    'MazeSolution',
    'MazeSolveJob',
    'solve_maze',
    'handle_request',
    'format_error_message',
]

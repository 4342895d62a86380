"""
Request/response entry point for solving a wallpaper maze.

A request names a grid size, root, group and blocked cells. The service
builds the quotient graph, encodes the spanning-tree problem, reports the
CNF size, solves it, and decodes the parent map. Unsatisfiable instances are
a normal outcome, not an error.
"""

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..config import MazeConfig
from ..exceptions import InvalidGroupError, InvalidRootError, SolverFailure
from ..graphs.manifold import Manifold, build_manifold
from ..graphs.submanifold import SubManifold
from ..groups.symmetry import Cell, Group
from .encoder import encode_spanning_tree
from .sat import SatSolver

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[Dict[str, int]], None]

UNSAT_MESSAGE = "No solution found (unsatisfiable)"
OUT_OF_MEMORY_MESSAGE = "Out of memory - the grid is too complex to solve. Try a smaller grid."


class SolveStatus(Enum):
    SATISFIED = "satisfied"
    UNSATISFIABLE = "unsatisfiable"


@dataclass
class SolveRequest:
    """One maze to solve."""
    size: int
    root_row: int
    root_col: int
    group: str
    blocked_cells: List[Tuple[int, int]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> 'SolveRequest':
        """Parse the wire format {size, rootRow, rootCol, group, blockedCells}."""
        if not isinstance(payload, dict):
            raise ValueError(f"Malformed request: expected a dict, got {type(payload).__name__}")
        missing = [k for k in ('size', 'rootRow', 'rootCol', 'group') if k not in payload]
        if missing:
            raise ValueError(f"Request is missing: {', '.join(missing)}")
        try:
            blocked = [(int(r), int(c)) for r, c in payload.get('blockedCells') or []]
            return cls(size=int(payload['size']), root_row=int(payload['rootRow']),
                       root_col=int(payload['rootCol']), group=payload['group'],
                       blocked_cells=blocked)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Malformed request: {e}") from e

    def to_dict(self) -> Dict[str, Any]:
        return {
            'size': self.size,
            'rootRow': self.root_row,
            'rootCol': self.root_col,
            'group': self.group,
            'blockedCells': [list(b) for b in self.blocked_cells],
        }

    @property
    def root(self) -> Cell:
        return Cell(self.root_row, self.root_col)


@dataclass
class MazeSolution:
    """Result of a solve: a tree when satisfied, nothing when not."""
    request: SolveRequest
    status: SolveStatus
    manifold: Manifold
    submanifold: Optional[SubManifold] = None
    num_vars: int = 0
    num_clauses: int = 0
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status is SolveStatus.SATISFIED

    @property
    def parent_of(self) -> Dict[Cell, Optional[Cell]]:
        return self.submanifold.parent_map() if self.submanifold else {}

    def to_response(self) -> Dict[str, Any]:
        if not self.ok:
            return {'ok': False, 'error': UNSAT_MESSAGE}
        sub = self.submanifold
        parent_of = [[cell.key, parent.key if parent is not None else None]
                     for cell, parent in sorted(sub.parent_map().items())]
        distances = [[cell.key, d] for cell, d in sorted(sub.distances_from_root().items())]
        kept = {e.index for e in sub.included_edges()}
        edges = [
            {'from': e.a.key, 'to': e.b.key, 'direction': e.dir_a.value,
             'isKept': e.index in kept}
            for e in self.manifold.edges
            if e.a not in sub.blocked and e.b not in sub.blocked
        ]
        return {'ok': True, 'parentOf': parent_of,
                'distanceFromRoot': distances, 'edges': edges}


def format_error_message(error: BaseException) -> str:
    """User-facing text for a failed solve."""
    message = str(error)
    if isinstance(error, MemoryError) or 'memory' in message.lower():
        return OUT_OF_MEMORY_MESSAGE
    return message


def _report_progress(progress: Optional[ProgressCallback], num_vars: int, num_clauses: int):
    if progress is None:
        return
    try:
        progress({'numVars': num_vars, 'numClauses': num_clauses})
    except Exception:
        logger.warning("Progress callback failed", exc_info=True)


def solve_maze(request: SolveRequest, config: Optional[MazeConfig] = None,
               progress: Optional[ProgressCallback] = None,
               solver: Optional[SatSolver] = None) -> MazeSolution:
    """
    Solve one request.

    Raises InvalidGroupError or InvalidRootError before any encoding, and
    SolverFailure when the backend does not finish. Returns a solution with
    status UNSATISFIABLE when no spanning tree exists.
    """
    config = config or MazeConfig()
    start = time.perf_counter()

    group = Group.parse(request.group)
    manifold = build_manifold(group, request.size)
    cnf = encode_spanning_tree(manifold, request.root, request.blocked_cells)
    _report_progress(progress, cnf.num_vars, cnf.num_clauses)

    solver = solver or SatSolver(config.solver)
    result = solver.solve(cnf.num_vars, cnf.clauses)
    elapsed = time.perf_counter() - start

    if not result.satisfiable:
        logger.info("%s n=%d root=%s: unsatisfiable (%.3fs)",
                    group.value, manifold.n, request.root.key, elapsed)
        return MazeSolution(request, SolveStatus.UNSATISFIABLE, manifold,
                            num_vars=cnf.num_vars, num_clauses=cnf.num_clauses, elapsed=elapsed)

    parent_of = cnf.decode(result.assignment)
    sub = SubManifold.from_parent_map(manifold, parent_of, cnf.blocked, cnf.root)
    if config.validate_solution:
        problems = sub.validate_tree()
        if problems:
            raise SolverFailure(f"Solver returned an invalid tree: {problems[0]}")

    logger.info("%s n=%d root=%s: solved in %.3fs (%d vars, %d clauses)",
                group.value, manifold.n, request.root.key, elapsed,
                cnf.num_vars, cnf.num_clauses)
    return MazeSolution(request, SolveStatus.SATISFIED, manifold, sub,
                        num_vars=cnf.num_vars, num_clauses=cnf.num_clauses, elapsed=elapsed)


def handle_request(payload: Dict[str, Any], progress: Optional[ProgressCallback] = None,
                   config: Optional[MazeConfig] = None) -> Dict[str, Any]:
    """Message-handler entry point: always answers with a response dict."""
    try:
        request = SolveRequest.from_dict(payload)
        return solve_maze(request, config, progress).to_response()
    except (InvalidGroupError, InvalidRootError, SolverFailure, ValueError, MemoryError) as e:
        logger.info("Request failed: %s", e)
        return {'ok': False, 'error': format_error_message(e)}


class MazeSolveJob:
    """
    A solve running on a background thread.

    Each job owns its own solver; cancel() interrupts it and the job then
    fails with SolverFailure.
    """

    _executor: Optional[ThreadPoolExecutor] = None
    _executor_lock = threading.Lock()

    def __init__(self, request: SolveRequest, config: Optional[MazeConfig] = None,
                 progress: Optional[ProgressCallback] = None):
        self.request = request
        self.config = config or MazeConfig()
        self._solver = SatSolver(self.config.solver)
        self._future: Future = self._get_executor().submit(
            solve_maze, request, self.config, progress, self._solver)

    @classmethod
    def _get_executor(cls) -> ThreadPoolExecutor:
        with cls._executor_lock:
            if cls._executor is None:
                cls._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix='maze-solve')
            return cls._executor

    def result(self, timeout: Optional[float] = None) -> MazeSolution:
        return self._future.result(timeout)

    def done(self) -> bool:
        return self._future.done()

    def cancel(self):
        if not self._future.cancel():
            self._solver.cancel()

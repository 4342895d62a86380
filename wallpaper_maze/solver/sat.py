"""
Thin adapter over python-sat.

Each call to solve() creates a fresh solver, loads the clauses, solves, and
releases the native solver before returning. A time limit or a cancel() from
another thread interrupts the search and surfaces as SolverFailure.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence

from pysat.solvers import Solver

from ..config import SolverConfig
from ..exceptions import SolverFailure

logger = logging.getLogger(__name__)


@dataclass
class SatResult:
    """Outcome of one SAT call."""
    satisfiable: bool
    assignment: Optional[List[bool]] = None  # index 0 unused
    elapsed: float = 0.0


class SatSolver:
    """Solve CNF given as (num_vars, clauses) with DIMACS-signed literals."""

    def __init__(self, config: Optional[SolverConfig] = None):
        self.config = config or SolverConfig()
        self._lock = threading.Lock()
        self._active: Optional[Solver] = None
        self._cancelled = False

    def cancel(self):
        """Interrupt a solve running on another thread."""
        with self._lock:
            self._cancelled = True
            if self._active is not None:
                logger.warning("Interrupting %s solver", self.config.name)
                self._active.interrupt()

    def solve(self, num_vars: int, clauses: Sequence[Sequence[int]]) -> SatResult:
        start = time.perf_counter()
        if any(len(c) == 0 for c in clauses):
            logger.info("Empty clause present, unsatisfiable without search")
            return SatResult(False, None, time.perf_counter() - start)

        try:
            solver = Solver(name=self.config.name, bootstrap_with=[list(c) for c in clauses])
        except Exception as e:
            raise SolverFailure(f"Could not start SAT solver '{self.config.name}': {e}") from e

        timer = None
        try:
            with self._lock:
                if self._cancelled:
                    raise SolverFailure("Solve cancelled")
                self._active = solver

            if self.config.time_limit is not None:
                timer = threading.Timer(self.config.time_limit, solver.interrupt)
                timer.daemon = True
                timer.start()

            try:
                status = solver.solve_limited(expect_interrupt=True)
            except MemoryError as e:
                raise SolverFailure("Out of memory: try a smaller grid") from e
            except Exception as e:
                raise SolverFailure(f"SAT solver failed: {e}") from e

            elapsed = time.perf_counter() - start
            if status is None:
                if self._cancelled:
                    raise SolverFailure("Solve cancelled")
                raise SolverFailure(
                    f"SAT solver exceeded the time limit of {self.config.time_limit}s")
            if not status:
                return SatResult(False, None, elapsed)

            assignment = [False] * (num_vars + 1)
            for lit in solver.get_model() or []:
                var = abs(lit)
                if var <= num_vars:
                    assignment[var] = lit > 0
            return SatResult(True, assignment, elapsed)
        finally:
            if timer is not None:
                timer.cancel()
            with self._lock:
                self._active = None
            solver.delete()

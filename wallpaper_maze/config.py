"""
Configuration objects for solving and lifting wallpaper mazes.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class SolverConfig:
    """Configuration for the SAT backend."""
    name: str = 'glucose4'              # any python-sat solver name (e.g. 'cadical153', 'minisat22')
    time_limit: Optional[float] = None  # seconds; None means no limit

    def __post_init__(self):
        if self.time_limit is not None and self.time_limit <= 0:
            raise ValueError(f"time_limit must be positive, got {self.time_limit}")


@dataclass
class LiftConfig:
    """Configuration for the covering-space lift."""
    multiplier: int = 2     # lattice periods per side; BFS rounds for a patch
    periodic: bool = True   # identify copies modulo multiplier * lattice

    def __post_init__(self):
        if self.multiplier < 1:
            raise ValueError(f"multiplier must be >= 1, got {self.multiplier}")


@dataclass
class MazeConfig:
    """Top-level configuration for a maze solve."""
    solver: SolverConfig = field(default_factory=SolverConfig)
    lift: LiftConfig = field(default_factory=LiftConfig)
    validate_solution: bool = True  # re-check the decoded tree before returning

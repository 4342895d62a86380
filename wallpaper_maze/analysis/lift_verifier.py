#!/usr/bin/env python3
"""
Lift Verifier for Wallpaper Mazes.

Checks that the quotient graph, the voltage graph and the lifted maze have
the properties the construction promises:

1. Every cell has exactly four edge ends (one per direction)
2. Every voltage places the neighbor one step away from the source cell
3. Copies are unique and closed under the generators below the round bound
4. No two lifted nodes sit on the same point
5. The quotient maze is a rooted spanning tree
6. Every lifted node is reached from some lifted root

For the 120° group the side edges are sqrt(3)/2 long in the plane while
interior edges have length 1, so that group is checked by the ratio of its
longest to shortest neighbor distance instead of by exact unit length.
"""

import numpy as np
from scipy.spatial import cKDTree
from typing import Dict, List, Optional
from dataclasses import dataclass, field

from ..graphs.manifold import Manifold
from ..graphs.orbifold import Orbifold, build_orbifold
from ..graphs.submanifold import SubManifold
from ..groups.symmetry import Group
from ..lift.orbifold_lift import LiftedGraph, OrbifoldLift


@dataclass
class CheckResult:
    """Result of a single property check."""
    name: str
    passed: bool
    score: float  # 0-1, fraction of items that satisfy the property
    threshold: float
    details: str = ""


@dataclass
class VerificationReport:
    """Complete verification result for one maze."""
    group: str
    n: int
    verified: bool
    checks: Dict[str, CheckResult] = field(default_factory=dict)
    message: str = ""


class LiftVerifier:
    """
    Verifies the structural invariants of quotient, voltage and lifted graphs.
    """

    def __init__(self,
                 distance_tolerance: float = 1e-3,
                 max_neighbor_ratio: float = 2.0,
                 min_separation: float = 0.25):
        """
        Initialize verifier.

        Args:
            distance_tolerance: Allowed deviation from unit neighbor distance
            max_neighbor_ratio: Upper bound on longest/shortest neighbor distance
            min_separation: Lifted nodes closer than this count as overlapping
        """
        self.distance_tolerance = distance_tolerance
        self.max_neighbor_ratio = max_neighbor_ratio
        self.min_separation = min_separation

    # ------------------------------------------------------------------
    # Quotient and voltage graphs
    # ------------------------------------------------------------------

    def check_degrees(self, manifold: Manifold) -> CheckResult:
        degrees = np.array([manifold.degree(c) for c in manifold.cells])
        bad = [c.key for c, d in zip(manifold.cells, degrees) if d != 4]
        return CheckResult(
            name='degree',
            passed=not bad,
            score=float(np.mean(degrees == 4)),
            threshold=1.0,
            details=f"cells without degree 4: {bad}" if bad else "",
        )

    def neighbor_distances(self, orbifold: Orbifold) -> np.ndarray:
        """Plane distance from each source cell to its placed neighbor."""
        out = np.empty(len(orbifold.edges))
        for i, e in enumerate(orbifold.edges):
            here = orbifold.position(e.source)
            there = orbifold.position(e.target, e.voltage)
            out[i] = np.linalg.norm(there - here)
        return out

    def check_voltage_distances(self, orbifold: Orbifold) -> CheckResult:
        if orbifold.group is Group.P3:
            return self.check_neighbor_ratio(orbifold)
        dists = self.neighbor_distances(orbifold)
        ok = np.abs(dists - 1.0) <= self.distance_tolerance
        return CheckResult(
            name='voltage_distance',
            passed=bool(ok.all()),
            score=float(ok.mean()),
            threshold=self.distance_tolerance,
            details=f"max deviation {np.max(np.abs(dists - 1.0)):.2e}",
        )

    def check_neighbor_ratio(self, orbifold: Orbifold) -> CheckResult:
        dists = self.neighbor_distances(orbifold)
        ratio = float(dists.max() / dists.min()) if dists.min() > 0 else float('inf')
        return CheckResult(
            name='neighbor_ratio',
            passed=ratio < self.max_neighbor_ratio,
            score=1.0 / ratio if ratio > 0 else 0.0,
            threshold=self.max_neighbor_ratio,
            details=f"min {dists.min():.3f}, max {dists.max():.3f}, ratio {ratio:.3f}",
        )

    # ------------------------------------------------------------------
    # Lift
    # ------------------------------------------------------------------

    def check_copies(self, lift: OrbifoldLift) -> CheckResult:
        copies = lift.expand_copies()
        keys = [c.element.key for c in copies]
        duplicates = len(keys) - len(set(keys))

        missing: List[str] = []
        checked = 0
        gens = list(lift.orbifold.generators)
        gens += [g.inverse() for g in gens]
        for copy in copies:
            if not lift.periodic and copy.depth >= lift.multiplier:
                continue
            for g in gens:
                checked += 1
                if lift.copy_of(copy.element @ g) is None:
                    missing.append(f"copy {copy.index} @ {g!r}")

        details = []
        if duplicates:
            details.append(f"{duplicates} duplicate copies")
        if missing:
            details.append(f"not closed: {missing[:3]}")
        return CheckResult(
            name='copies',
            passed=duplicates == 0 and not missing,
            score=1.0 - len(missing) / checked if checked else 1.0,
            threshold=1.0,
            details='; '.join(details),
        )

    def check_overlaps(self, lifted: LiftedGraph) -> CheckResult:
        pts = lifted.positions()
        if len(pts) < 2:
            return CheckResult('overlap', True, 1.0, self.min_separation)
        pairs = cKDTree(pts).query_pairs(self.min_separation)
        return CheckResult(
            name='overlap',
            passed=not pairs,
            score=1.0 - len(pairs) / len(pts),
            threshold=self.min_separation,
            details=f"{len(pairs)} overlapping node pairs" if pairs else "",
        )

    def check_reachability(self, lifted: LiftedGraph) -> CheckResult:
        frac = lifted.reached_fraction()
        return CheckResult(
            name='reachability',
            passed=frac == 1.0,
            score=frac,
            threshold=1.0,
            details=f"{int(round((1 - frac) * len(lifted.nodes)))} unreached nodes" if frac < 1 else "",
        )

    def check_tree(self, submanifold: SubManifold) -> CheckResult:
        problems = submanifold.validate_tree()
        active = max(len(submanifold.active_cells()), 1)
        return CheckResult(
            name='tree',
            passed=not problems,
            score=max(0.0, 1.0 - len(problems) / active),
            threshold=1.0,
            details='; '.join(problems[:3]),
        )

    # ------------------------------------------------------------------
    # Everything at once
    # ------------------------------------------------------------------

    def verify(self,
               submanifold: SubManifold,
               multiplier: int = 2,
               periodic: bool = True,
               verbose: bool = False) -> VerificationReport:
        """
        Run every check on a solved maze and its lift.

        Args:
            submanifold: Maze with a spanning tree
            multiplier: Lattice periods per side (BFS rounds for a patch)
            periodic: Identify copies modulo the scaled lattice
            verbose: Print each check

        Returns:
            VerificationReport
        """
        manifold = submanifold.manifold
        orbifold = build_orbifold(manifold.group, manifold.n)
        lift = OrbifoldLift(orbifold, multiplier, periodic)
        lifted = lift.lift(submanifold)

        checks = {}
        for result in (self.check_degrees(manifold),
                       self.check_voltage_distances(orbifold),
                       self.check_tree(submanifold),
                       self.check_copies(lift),
                       self.check_overlaps(lifted)):
            checks[result.name] = result
        # A finite patch always loses edges at its rim
        if periodic:
            checks['reachability'] = self.check_reachability(lifted)

        if verbose:
            print(f"{manifold.group.value} n={manifold.n}: "
                  f"{len(lift.expand_copies())} copies, {len(lifted.nodes)} lifted nodes")
            for result in checks.values():
                status = "✓" if result.passed else "✗"
                print(f"  {status} {result.name}: {result.score:.3f} {result.details}")

        verified = all(r.passed for r in checks.values())
        if verified:
            message = f"✓ Maze verified on {manifold.group.value}"
        else:
            failed = [k for k, v in checks.items() if not v.passed]
            message = f"✗ Failed checks: {failed}"

        return VerificationReport(
            group=manifold.group.value,
            n=manifold.n,
            verified=verified,
            checks=checks,
            message=message,
        )

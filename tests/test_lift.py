#!/usr/bin/env python3
"""
Tests for the covering-space lift.

Copies of the fundamental domain are discovered breadth-first from the
identity; each quotient tree edge is drawn once per copy. We check:
1. Copies are unique and closed under the generators below the round bound
2. Lifted nodes are where the group puts them and never overlap
3. Periodic lifts are fully reached from the lifted roots
"""

import numpy as np
import pytest
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from wallpaper_maze.config import LiftConfig
from wallpaper_maze.graphs import build_manifold, build_orbifold, SubManifold
from wallpaper_maze.groups.matrix import IDENTITY
from wallpaper_maze.groups.symmetry import Group, Cell
from wallpaper_maze.lift.orbifold_lift import (
    LiftedEdge, LiftedGraph, LiftedNode, OrbifoldLift, assign_root_indices, lift_maze, node_id,
)
from wallpaper_maze.solver.random_tree import random_spanning_tree
from wallpaper_maze.solver.service import SolveRequest, solve_maze


ALL_GROUPS = list(Group)


def random_maze(group, n, root=(0, 0), blocked=(), seed=0):
    manifold = build_manifold(group, n)
    parents = random_spanning_tree(manifold, root, blocked, seed=seed)
    return SubManifold.from_parent_map(manifold, parents, blocked, root)


class TestCopies:
    @pytest.mark.parametrize("group", ALL_GROUPS)
    @pytest.mark.parametrize("multiplier", [2, 3])
    @pytest.mark.parametrize("periodic", [True, False])
    def test_unique_and_closed(self, group, multiplier, periodic):
        lift = OrbifoldLift(build_orbifold(group, 3), multiplier, periodic)
        copies = lift.expand_copies()
        keys = [c.element.key for c in copies]
        assert len(keys) == len(set(keys))
        assert copies[0].element == lift.canonical(IDENTITY)
        assert copies[0].depth == 0

        gens = list(lift.orbifold.generators)
        gens += [g.inverse() for g in gens]
        for copy in copies:
            if periodic or copy.depth < multiplier:
                for g in gens:
                    assert lift.copy_of(copy.element @ g) is not None

    @pytest.mark.parametrize("group", ALL_GROUPS)
    def test_depths_grow_by_one(self, group):
        lift = OrbifoldLift(build_orbifold(group, 3), 3, periodic=False)
        depths = [c.depth for c in lift.expand_copies()]
        assert depths == sorted(depths)
        assert max(depths) <= 3

    def test_plain_periodic_copy_count(self):
        lift = OrbifoldLift(build_orbifold(Group.P1, 4), 2)
        assert len(lift.expand_copies()) == 4

    def test_rot180_periodic_copy_count(self):
        lift = OrbifoldLift(build_orbifold(Group.P2, 4), 2)
        assert len(lift.expand_copies()) == 8

    @pytest.mark.parametrize("group,order", [
        (Group.P1, 1), (Group.P2, 2), (Group.P3, 3), (Group.P4, 4), (Group.PGG, 4),
    ])
    @pytest.mark.parametrize("multiplier", [1, 2])
    def test_periodic_copy_count(self, group, order, multiplier):
        # One copy per point-group element per cell of the scaled lattice
        lift = OrbifoldLift(build_orbifold(group, 3), multiplier)
        assert len(lift.expand_copies()) == order * multiplier * multiplier

    def test_plain_patch_is_a_diamond(self):
        # Without identification, two rounds of +-x and +-y steps reach 13 translations
        lift = OrbifoldLift(build_orbifold(Group.P1, 4), 2, periodic=False)
        assert len(lift.expand_copies()) == 13

    def test_multiplier_must_be_positive(self):
        with pytest.raises(ValueError):
            OrbifoldLift(build_orbifold(Group.P1, 4), 0)


class TestLiftedGraph:
    def test_plain_four_by_four_end_to_end(self):
        solution = solve_maze(SolveRequest(4, 0, 0, "Plain"))
        assert solution.ok
        lifted = lift_maze(solution.submanifold, LiftConfig(multiplier=2))
        assert len(lifted.nodes) == 2 * 2 * 16
        assert len(lifted.edges) == 4 * 15
        assert all(node.root_index >= 0 for node in lifted.nodes)
        assert lifted.reached_fraction() == 1.0

    @pytest.mark.parametrize("group", ALL_GROUPS)
    @pytest.mark.parametrize("seed", [0, 1])
    def test_periodic_lift_is_fully_reached(self, group, seed):
        lifted = lift_maze(random_maze(group, 4, seed=seed))
        assert lifted.reached_fraction() == 1.0

    @pytest.mark.parametrize("group", ALL_GROUPS)
    def test_roots_label_themselves(self, group):
        lifted = lift_maze(random_maze(group, 3, root=(1, 1)))
        for i, rid in enumerate(lifted.roots):
            assert lifted.node_by_id[rid].root_index == i
            assert lifted.node_by_id[rid].cell == Cell(1, 1)

    @pytest.mark.parametrize("group", ALL_GROUPS)
    def test_lookup_tables(self, group):
        sub = random_maze(group, 3, blocked=[(2, 2)])
        lifted = lift_maze(sub)
        copies = len(lifted.copies)
        assert len(lifted.nodes) == copies * 8
        assert Cell(2, 2) not in lifted.nodes_by_cell
        for cell in sub.active_cells():
            assert len(lifted.nodes_by_cell[cell]) == copies
        for edge in lifted.edges:
            assert edge.source in lifted.node_by_id
            assert edge.target in lifted.node_by_id
        assert sum(len(v) for v in lifted.edges_by_original.values()) == len(lifted.edges)

    @pytest.mark.parametrize("group", [Group.P1, Group.P2, Group.P4, Group.PGG])
    def test_lifted_edges_are_unit_steps(self, group):
        lifted = lift_maze(random_maze(group, 4, seed=2))
        for edge in lifted.edges:
            start = np.array(lifted.node_by_id[edge.source].position)
            assert np.linalg.norm(np.array(edge.end_position) - start) == pytest.approx(1.0)

    def test_axial_lifted_edges(self):
        lifted = lift_maze(random_maze(Group.P3, 4, seed=2))
        lengths = np.array([np.linalg.norm(np.array(e.end_position) -
                                           np.array(lifted.node_by_id[e.source].position))
                            for e in lifted.edges])
        assert np.all(np.isclose(lengths, 1.0) | np.isclose(lengths, np.sqrt(3) / 2))
        assert lengths.max() / lengths.min() < 2.0

    def test_unwrapped_edges_end_on_their_target(self):
        lifted = lift_maze(random_maze(Group.P2, 4, seed=4))
        for edge in lifted.edges:
            if not edge.wraps:
                target = lifted.node_by_id[edge.target].position
                np.testing.assert_allclose(edge.end_position, target)

    def test_patch_drops_edges_at_rim(self):
        manifold = build_manifold(Group.P1, 3)
        # Rows hang off column 0; (2,0) reaches the root across the bottom side
        parents = {Cell(0, 0): None, Cell(1, 0): Cell(0, 0), Cell(2, 0): Cell(0, 0)}
        for r in range(3):
            parents[Cell(r, 1)] = Cell(r, 0)
            parents[Cell(r, 2)] = Cell(r, 1)
        sub = SubManifold.from_parent_map(manifold, parents)
        lift = OrbifoldLift(build_orbifold(Group.P1, 3), 1, periodic=False)
        lifted = lift.lift(sub)
        assert len(lifted.copies) == 5
        # The wrapped edge only lands inside the patch from the identity and the copy above it
        assert len(lifted.edges) == 5 * 8 - 3
        assert int(np.sum(lifted.root_indices() == -1)) == 9

    def test_rot180_two_by_two(self):
        solution = solve_maze(SolveRequest(2, 0, 0, "Rot180"))
        lifted = lift_maze(solution.submanifold)
        assert len(lifted.nodes) == len(lifted.copies) * 4
        assert lifted.reached_fraction() == 1.0

    def test_bounds_cover_positions(self):
        lifted = lift_maze(random_maze(Group.PGG, 3))
        x0, y0, x1, y1 = lifted.bounds
        pts = lifted.positions()
        assert pts[:, 0].min() == x0 and pts[:, 1].max() == y1
        assert x0 < x1 and y0 < y1

    def test_node_ids(self):
        assert node_id(3, Cell(1, 2)) == "3:1,2"

    def test_mismatched_orbifold_rejected(self):
        lift = OrbifoldLift(build_orbifold(Group.P1, 3), 2)
        with pytest.raises(ValueError):
            lift.lift(random_maze(Group.P2, 3))


class TestRootIndices:
    def make_graph(self, edges, roots):
        nodes = [LiftedNode(f"{i}:0,0", i, Cell(0, 0), (float(i), 0.0)) for i in range(6)]
        lifted = [LiftedEdge(f"{a}:0,0", f"{b}:0,0", 0, (float(b), 0.0)) for a, b in edges]
        graph = LiftedGraph([], nodes, lifted)
        graph.roots = [f"{r}:0,0" for r in roots]
        return graph

    def test_components_take_their_root(self):
        # 1 -> 0 <- 2 and 4 -> 3; node 5 hangs off nothing
        graph = self.make_graph([(1, 0), (2, 0), (4, 3)], roots=[3, 0])
        assign_root_indices(graph)
        assert [n.root_index for n in graph.nodes] == [1, 1, 1, 0, 0, -1]

    def test_first_listed_root_wins_a_shared_component(self):
        graph = self.make_graph([(1, 0), (1, 2)], roots=[2, 0])
        assign_root_indices(graph)
        assert [n.root_index for n in graph.nodes[:3]] == [0, 0, 0]

    def test_relabelling_resets_stale_indices(self):
        graph = self.make_graph([(1, 0)], roots=[0])
        for node in graph.nodes:
            node.root_index = 7
        assign_root_indices(graph)
        assert [n.root_index for n in graph.nodes] == [0, 0, -1, -1, -1, -1]

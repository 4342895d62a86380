#!/usr/bin/env python3
"""
Tests for the structural verifier and the maze renderer.
"""

import matplotlib
matplotlib.use('Agg')

import matplotlib.pyplot as plt
import pytest
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from wallpaper_maze.analysis.lift_verifier import LiftVerifier
from wallpaper_maze.graphs import build_manifold, build_orbifold, SubManifold
from wallpaper_maze.groups.symmetry import Group, Cell
from wallpaper_maze.lift.orbifold_lift import OrbifoldLift, lift_maze
from wallpaper_maze.solver.random_tree import random_spanning_tree
from wallpaper_maze.visualization.visualize import MazeVisualizer


ALL_GROUPS = list(Group)


def random_maze(group, n, seed=0, blocked=()):
    manifold = build_manifold(group, n)
    parents = random_spanning_tree(manifold, (0, 0), blocked, seed=seed)
    return SubManifold.from_parent_map(manifold, parents, blocked)


class TestLiftVerifier:
    @pytest.fixture
    def verifier(self):
        return LiftVerifier()

    @pytest.mark.parametrize("group", ALL_GROUPS)
    @pytest.mark.parametrize("n", [2, 3, 4])
    def test_random_mazes_verify(self, verifier, group, n):
        report = verifier.verify(random_maze(group, n, seed=n), multiplier=2)
        assert report.verified, report.message
        assert set(report.checks) >= {'degree', 'tree', 'copies', 'overlap'}

    @pytest.mark.parametrize("group", ALL_GROUPS)
    def test_patch_skips_reachability(self, verifier, group):
        report = verifier.verify(random_maze(group, 3), multiplier=2, periodic=False)
        assert 'reachability' not in report.checks
        assert report.verified, report.message

    def test_axial_group_uses_ratio(self, verifier):
        result = verifier.check_voltage_distances(build_orbifold(Group.P3, 4))
        assert result.name == 'neighbor_ratio'
        assert result.passed

    @pytest.mark.parametrize("group", [Group.P1, Group.P2, Group.P4, Group.PGG])
    def test_square_groups_use_unit_distance(self, verifier, group):
        result = verifier.check_voltage_distances(build_orbifold(group, 5))
        assert result.name == 'voltage_distance'
        assert result.passed
        assert result.score == 1.0

    def test_broken_tree_fails(self, verifier):
        manifold = build_manifold(Group.P1, 3)
        parents = {Cell(0, 0): None, Cell(1, 1): Cell(1, 2), Cell(1, 2): Cell(1, 1)}
        result = verifier.check_tree(SubManifold(manifold, (0, 0), parent_map=parents))
        assert not result.passed
        assert result.details

    def test_overlapping_nodes_detected(self, verifier):
        sub = random_maze(Group.P1, 3)
        lifted = OrbifoldLift(build_orbifold(Group.P1, 3), 2).lift(sub)
        lifted.nodes[1].position = lifted.nodes[0].position
        assert not verifier.check_overlaps(lifted).passed

    def test_verbose_prints(self, verifier, capsys):
        verifier.verify(random_maze(Group.PGG, 3), verbose=True)
        out = capsys.readouterr().out
        assert "PGG" in out
        assert "✓" in out


class TestMazeVisualizer:
    @pytest.fixture
    def visualizer(self):
        return MazeVisualizer(figsize=(4, 4), dpi=50, style='light')

    @pytest.mark.parametrize("group", ALL_GROUPS)
    def test_plot_quotient(self, visualizer, group):
        fig = visualizer.plot_quotient(random_maze(group, 3, blocked=[(2, 2)]))
        assert isinstance(fig, plt.Figure)
        plt.close(fig)

    @pytest.mark.parametrize("group", ALL_GROUPS)
    def test_plot_lifted(self, visualizer, group):
        sub = random_maze(group, 3)
        fig = visualizer.plot_lifted(lift_maze(sub), sub)
        assert isinstance(fig, plt.Figure)
        plt.close(fig)

    def test_save(self, visualizer, tmp_path):
        sub = random_maze(Group.P2, 3)
        path = tmp_path / "lifted.png"
        fig = visualizer.plot_lifted(lift_maze(sub), sub, save_path=str(path))
        plt.close(fig)
        assert path.exists()

    def test_draw_into_existing_axes(self):
        fig, ax = plt.subplots()
        out = MazeVisualizer().plot_quotient(random_maze(Group.P1, 3), ax=ax)
        assert out is fig
        plt.close(fig)

    def test_repeated_plots_keep_rows_downward(self):
        fig, ax = plt.subplots()
        viz = MazeVisualizer()
        sub = random_maze(Group.P4, 3)
        viz.plot_quotient(sub, ax=ax)
        viz.plot_quotient(sub, ax=ax)
        viz.plot_lifted(lift_maze(sub), sub, ax=ax)
        assert ax.yaxis_inverted()
        plt.close(fig)

    def test_lifted_domains_outline_every_copy(self, visualizer):
        sub = random_maze(Group.P2, 3)
        lifted = lift_maze(sub)
        fig = visualizer.plot_lifted(lifted, sub)
        assert len(fig.axes[0].patches) == len(lifted.copies)
        plt.close(fig)

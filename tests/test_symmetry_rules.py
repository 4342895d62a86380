#!/usr/bin/env python3
"""
Tests for the wrapped-neighbor rules of each group.

For every group we check:
1. Interior moves are plain grid steps with the identity voltage
2. Boundary moves re-enter the grid where the group says
3. Each boundary move has a reverse move carrying the inverse voltage
4. The voltage places the neighbor one step away from the source cell
"""

import math
import numpy as np
import pytest
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from wallpaper_maze.exceptions import InvalidGroupError
from wallpaper_maze.groups.matrix import IDENTITY
from wallpaper_maze.groups.symmetry import (
    Group, Direction, DIRECTIONS, Cell, WALLPAPER_GROUPS,
    wrapped_neighbor, group_generators, lattice_basis,
    screen_transform, canonical_position, domain_corners,
)


ALL_GROUPS = list(Group)
SQUARE_GROUPS = [Group.P1, Group.P2, Group.P4, Group.PGG]


def plane(group, cell, element=None):
    x, y = canonical_position(cell)
    if element is not None:
        x, y = element.apply(x, y)
    return screen_transform(group) @ np.array([x, y])


class TestGroupParsing:
    @pytest.mark.parametrize("tag,expected", [
        ("Plain", Group.P1),
        ("Rot180", Group.P2),
        ("Rot120", Group.P3),
        ("Rot90", Group.P4),
        ("Glide", Group.PGG),
        ("p1", Group.P1),
        ("PGG", Group.PGG),
        (Group.P3, Group.P3),
    ])
    def test_known_tags(self, tag, expected):
        assert Group.parse(tag) is expected

    @pytest.mark.parametrize("tag", ["Rot60", "p6m", "", None, 3])
    def test_unknown_tags_raise(self, tag):
        with pytest.raises(InvalidGroupError):
            Group.parse(tag)

    def test_invalid_group_is_value_error(self):
        with pytest.raises(ValueError):
            wrapped_neighbor("Spiral", (0, 0), Direction.N, 4)

    def test_every_group_has_properties(self):
        assert set(WALLPAPER_GROUPS) == set(Group)


class TestDirections:
    def test_opposites(self):
        for d in DIRECTIONS:
            assert d.opposite.opposite is d
            dr, dc = d.step
            odr, odc = d.opposite.step
            assert (dr + odr, dc + odc) == (0, 0)

    def test_order(self):
        assert [d.value for d in DIRECTIONS] == ["N", "S", "E", "W"]

    def test_cell_keys(self):
        assert Cell(2, 3).key == "2,3"
        assert Cell.from_key("2,3") == Cell(2, 3)


class TestInteriorMoves:
    @pytest.mark.parametrize("group", ALL_GROUPS)
    def test_interior_is_identity(self, group):
        n = 5
        for d in DIRECTIONS:
            nb, v = wrapped_neighbor(group, (2, 2), d, n)
            dr, dc = d.step
            assert nb == Cell(2 + dr, 2 + dc)
            assert v == IDENTITY


class TestBoundaryMoves:
    """Re-entry cells for a 4x4 grid."""

    @pytest.mark.parametrize("group,cell,direction,expected", [
        (Group.P1, (0, 1), Direction.N, (3, 1)),
        (Group.P1, (2, 3), Direction.E, (2, 0)),
        (Group.P2, (0, 1), Direction.N, (0, 2)),
        (Group.P2, (3, 0), Direction.S, (3, 3)),
        (Group.P2, (1, 3), Direction.E, (2, 3)),
        (Group.P2, (1, 0), Direction.W, (2, 0)),
        (Group.P3, (0, 1), Direction.N, (2, 3)),
        (Group.P3, (3, 1), Direction.S, (2, 0)),
        (Group.P3, (1, 3), Direction.E, (0, 2)),
        (Group.P3, (1, 0), Direction.W, (3, 2)),
        (Group.P4, (0, 0), Direction.N, (3, 3)),
        (Group.PGG, (0, 1), Direction.N, (3, 2)),
        (Group.PGG, (3, 1), Direction.S, (0, 2)),
        (Group.PGG, (1, 3), Direction.E, (2, 0)),
        (Group.PGG, (1, 0), Direction.W, (2, 3)),
    ])
    def test_reentry_cell(self, group, cell, direction, expected):
        nb, v = wrapped_neighbor(group, cell, direction, 4)
        assert nb == Cell(*expected)
        assert v != IDENTITY

    @pytest.mark.parametrize("group", ALL_GROUPS)
    @pytest.mark.parametrize("n", [2, 3, 5])
    def test_every_move_has_inverse_move(self, group, n):
        for r in range(n):
            for c in range(n):
                for d in DIRECTIONS:
                    nb, v = wrapped_neighbor(group, (r, c), d, n)
                    back = [wrapped_neighbor(group, nb, d2, n) for d2 in DIRECTIONS]
                    assert (Cell(r, c), v.inverse()) in back

    def test_p2_corner_cells_form_multi_edges(self):
        # On a 2x2 half-turn grid, (0,0) reaches (0,1) both directly and across the top
        targets = [wrapped_neighbor(Group.P2, (0, 0), d, 2)[0] for d in DIRECTIONS]
        assert targets.count(Cell(0, 1)) == 2

    def test_p4_corner_is_self_loop(self):
        nb, v = wrapped_neighbor(Group.P4, (0, 3), Direction.N, 4)
        assert nb == Cell(0, 3)
        assert v != IDENTITY


class TestVoltageGeometry:
    """The voltage puts the neighbor next to the source cell in the plane."""

    @pytest.mark.parametrize("group", SQUARE_GROUPS)
    @pytest.mark.parametrize("n", [2, 3, 4, 7])
    def test_unit_distance(self, group, n):
        for r in range(n):
            for c in range(n):
                for d in DIRECTIONS:
                    nb, v = wrapped_neighbor(group, (r, c), d, n)
                    dist = np.linalg.norm(plane(group, nb, v) - plane(group, (r, c)))
                    assert abs(dist - 1.0) < 1e-3, f"{group} n={n} ({r},{c}) {d}: {dist}"

    @pytest.mark.parametrize("n", [2, 3, 4, 7])
    def test_axial_neighbor_ratio(self, n):
        dists = []
        for r in range(n):
            for c in range(n):
                for d in DIRECTIONS:
                    nb, v = wrapped_neighbor(Group.P3, (r, c), d, n)
                    dists.append(np.linalg.norm(plane(Group.P3, nb, v) - plane(Group.P3, (r, c))))
        dists = np.array(dists)
        assert dists.max() / dists.min() < 2.0
        # Interior steps are unit length, side crossings sqrt(3)/2
        assert np.all(np.isclose(dists, 1.0) | np.isclose(dists, math.sqrt(3) / 2))

    @pytest.mark.parametrize("group", ALL_GROUPS)
    def test_voltages_step_outward(self, group):
        n = 4
        center = screen_transform(group) @ np.array([n / 2, n / 2])
        for r in range(n):
            for c in range(n):
                for d in DIRECTIONS:
                    nb, v = wrapped_neighbor(group, (r, c), d, n)
                    if v == IDENTITY:
                        continue
                    here = np.linalg.norm(plane(group, (r, c)) - center)
                    there = np.linalg.norm(plane(group, nb, v) - center)
                    assert there > here


class TestGroupTables:
    @pytest.mark.parametrize("group", ALL_GROUPS)
    def test_generators_are_boundary_voltages(self, group):
        gens = group_generators(group, 3)
        assert len(gens) >= 2
        assert all(g != IDENTITY for g in gens)

    @pytest.mark.parametrize("group", ALL_GROUPS)
    def test_lattice_invariant_under_point_group(self, group):
        """Rotating a lattice vector by a voltage's linear part stays in the lattice."""
        n = 3
        (ax, ay), (bx, by) = lattice_basis(group, n)
        B = np.array([[ax, bx], [ay, by]], dtype=float)
        for g in group_generators(group, n):
            a, b, c, d = g.linear
            L = np.array([[a, b], [c, d]], dtype=float)
            coeffs = np.linalg.solve(B, L @ B)
            np.testing.assert_allclose(coeffs, np.round(coeffs), atol=1e-9)

    @pytest.mark.parametrize("group", ALL_GROUPS)
    def test_fundamental_domain_area(self, group):
        """Lattice cell area over point-group order equals n*n cells."""
        n = 4
        (ax, ay), (bx, by) = lattice_basis(group, n)
        area = abs(ax * by - ay * bx)
        order = {Group.P1: 1, Group.P2: 2, Group.P3: 3, Group.P4: 4, Group.PGG: 4}[group]
        assert area // order == n * n

    @pytest.mark.parametrize("group", ALL_GROUPS)
    def test_domain_corners_span_n_squared_cells(self, group):
        n = 3
        pts = domain_corners(group, n)
        x, y = pts[:, 0], pts[:, 1]
        area = 0.5 * abs(np.dot(x, np.roll(y, 1)) - np.dot(y, np.roll(x, 1)))
        scale = abs(np.linalg.det(screen_transform(group)))
        assert area == pytest.approx(n * n * scale)

    @pytest.mark.parametrize("group", ALL_GROUPS)
    def test_placed_domain_corners(self, group):
        n = 3
        g = group_generators(group, n)[0]
        placed = domain_corners(group, n, g)
        raw = np.array([g.apply(x, y) for x, y in [(0, 0), (n, 0), (n, n), (0, n)]])
        np.testing.assert_allclose(placed, raw @ screen_transform(group).T)

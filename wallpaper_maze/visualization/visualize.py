"""
Visualization utilities for wallpaper mazes.

Provides functions to visualize:
- The maze on the fundamental domain, with walls and passages
- The lifted maze over many copies of the domain, colored by root
"""

import logging
import numpy as np
import matplotlib.pyplot as plt
from matplotlib.collections import LineCollection
from matplotlib.patches import Polygon
from typing import List, Optional, Tuple

from ..graphs.submanifold import SubManifold
from ..groups.symmetry import Direction, WALLPAPER_GROUPS, LatticeType, domain_corners, screen_transform
from ..lift.orbifold_lift import LiftedGraph

logger = logging.getLogger(__name__)


# Color scheme for lattice types
LATTICE_COLORS = {
    LatticeType.RECTANGULAR: "#4ECDC4",   # Teal
    LatticeType.SQUARE: "#95E1D3",        # Mint
    LatticeType.HEXAGONAL: "#F38181",     # Salmon
}

ROOT_CMAP = 'viridis'
UNREACHED_COLOR = '#888888'


def _wall_segment(row: int, col: int, direction: Direction) -> Tuple[Tuple[int, int], Tuple[int, int]]:
    """Side of a cell in group coordinates (x = col, y = row)."""
    if direction is Direction.N:
        return (col, row), (col + 1, row)
    if direction is Direction.S:
        return (col, row + 1), (col + 1, row + 1)
    if direction is Direction.E:
        return (col + 1, row), (col + 1, row + 1)
    return (col, row), (col, row + 1)


class MazeVisualizer:
    """Visualizer for quotient and lifted mazes."""

    def __init__(self,
                 figsize: Tuple[int, int] = (10, 10),
                 dpi: int = 150,
                 style: str = 'dark'):
        """
        Initialize the visualizer.

        Args:
            figsize: Default figure size
            dpi: Resolution for saved figures
            style: 'dark' or 'light' theme
        """
        self.figsize = figsize
        self.dpi = dpi
        self.style = style

        if style == 'dark':
            self.bg_color = '#1a1a2e'
            self.text_color = '#eaeaea'
            self.wall_color = '#eaeaea'
            self.accent_color = '#e94560'
        else:
            self.bg_color = '#ffffff'
            self.text_color = '#2d3436'
            self.wall_color = '#2d3436'
            self.accent_color = '#6c5ce7'

    def _new_axes(self, ax: Optional[plt.Axes]) -> Tuple[plt.Figure, plt.Axes]:
        if ax is None:
            fig, ax = plt.subplots(figsize=self.figsize, facecolor=self.bg_color)
        else:
            fig = ax.figure
        ax.set_facecolor(self.bg_color)
        return fig, ax

    def _finish(self, fig: plt.Figure, ax: plt.Axes, title: str, save_path: Optional[str]):
        ax.set_title(title, fontsize=14, color=self.text_color, fontweight='bold')
        ax.set_aspect('equal')
        # Rows grow downward
        if not ax.yaxis_inverted():
            ax.invert_yaxis()
        ax.axis('off')
        if save_path:
            fig.savefig(save_path, dpi=self.dpi, bbox_inches='tight',
                        facecolor=self.bg_color)
            logger.info("Saved to %s", save_path)

    def plot_quotient(self,
                      submanifold: SubManifold,
                      ax: Optional[plt.Axes] = None,
                      show_info: bool = True,
                      save_path: Optional[str] = None) -> plt.Figure:
        """
        Plot the maze on the fundamental domain.

        Walls are drawn on the side of each cell they close; blocked cells are
        filled and the root is marked.
        """
        fig, ax = self._new_axes(ax)
        manifold = submanifold.manifold
        T = screen_transform(manifold.group)

        kept = {e.index for e in submanifold.included_edges()}
        walls: List[np.ndarray] = []
        for edge in manifold.edges:
            if edge.index in kept:
                continue
            for cell, direction in edge.half_edges():
                a, b = _wall_segment(cell.row, cell.col, direction)
                walls.append(np.array([a, b], dtype=np.float64) @ T.T)
        ax.add_collection(LineCollection(walls, colors=self.wall_color, linewidths=2))

        for cell in submanifold.blocked:
            corners = np.array([[cell.col, cell.row], [cell.col + 1, cell.row],
                                [cell.col + 1, cell.row + 1], [cell.col, cell.row + 1]],
                               dtype=np.float64) @ T.T
            ax.add_patch(Polygon(corners, closed=True, facecolor=self.wall_color, alpha=0.6))

        root = T @ np.array([submanifold.root.col + 0.5, submanifold.root.row + 0.5])
        ax.plot(root[0], root[1], 'o', color=self.accent_color, markersize=10)

        n = manifold.n
        outline = domain_corners(manifold.group, n)
        ax.add_patch(Polygon(outline, closed=True, fill=False,
                             edgecolor=self.accent_color, linewidth=1, linestyle='--'))
        ax.autoscale_view()

        if show_info:
            info = WALLPAPER_GROUPS[manifold.group]
            props = dict(boxstyle='round,pad=0.5',
                         facecolor=LATTICE_COLORS[info.lattice_type], alpha=0.8)
            ax.text(0.02, 0.98, f"{info.group.value}: {info.description}",
                    transform=ax.transAxes, fontsize=9, verticalalignment='top',
                    bbox=props, color='#1a1a2e')

        self._finish(fig, ax, f"{manifold.group.value} maze, n={n}", save_path)
        return fig

    def plot_lifted(self,
                    lifted: LiftedGraph,
                    submanifold: Optional[SubManifold] = None,
                    ax: Optional[plt.Axes] = None,
                    show_domains: bool = True,
                    save_path: Optional[str] = None) -> plt.Figure:
        """
        Plot the lifted maze.

        Passages are drawn from each child to where its parent sits next to
        it; nodes are colored by the lifted root that reaches them.
        """
        fig, ax = self._new_axes(ax)

        if show_domains and submanifold is not None:
            manifold = submanifold.manifold
            for copy in lifted.copies:
                pts = domain_corners(manifold.group, manifold.n, copy.element)
                ax.add_patch(Polygon(pts, closed=True, fill=False,
                                     edgecolor=self.text_color, alpha=0.15, linewidth=0.8))

        segments = [
            [lifted.node_by_id[e.source].position, e.end_position]
            for e in lifted.edges
        ]
        if segments:
            ax.add_collection(LineCollection(segments, colors=self.accent_color, linewidths=1.5))

        pts = lifted.positions()
        if len(pts):
            idx = lifted.root_indices()
            reached = idx >= 0
            if reached.any():
                ax.scatter(pts[reached, 0], pts[reached, 1], c=idx[reached],
                           cmap=ROOT_CMAP, s=12, zorder=3)
            if (~reached).any():
                ax.scatter(pts[~reached, 0], pts[~reached, 1],
                           color=UNREACHED_COLOR, s=8, zorder=3)
            roots = np.array([lifted.node_by_id[r].position for r in lifted.roots])
            ax.scatter(roots[:, 0], roots[:, 1], marker='*', s=80,
                       color=self.text_color, zorder=4)
        ax.autoscale_view()

        self._finish(fig, ax,
                     f"Lifted maze: {len(lifted.copies)} copies, {len(lifted.nodes)} nodes",
                     save_path)
        return fig

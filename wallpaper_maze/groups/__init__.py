from .matrix import GroupElement, IDENTITY
from .symmetry import (
    Group,
    Direction,
    DIRECTIONS,
    Cell,
    WallpaperGroup,
    WALLPAPER_GROUPS,
    wrapped_neighbor,
    boundary_voltage,
    group_generators,
    lattice_basis,
    screen_transform,
    canonical_position,
    domain_corners,
)

__all__ = [
    # Matrix algebra
    'GroupElement',
    'IDENTITY',
    # Symmetry rules
    'Group',
    'Direction',
    'DIRECTIONS',
    'Cell',
    'WallpaperGroup',
    'WALLPAPER_GROUPS',
    'wrapped_neighbor',
    'boundary_voltage',
    'group_generators',
    'lattice_basis',
    'screen_transform',
    'canonical_position',
    'domain_corners',
]

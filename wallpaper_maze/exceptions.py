"""Error types raised by the wallpaper maze core."""


class WallpaperMazeError(Exception):
    """Base class for all wallpaper maze errors."""


class InvalidGroupError(WallpaperMazeError, ValueError):
    """Group tag is not one of the supported symmetry families."""


class InvalidRootError(WallpaperMazeError, ValueError):
    """Root cell is outside the grid or in the blocked set."""


class SolverFailure(WallpaperMazeError, RuntimeError):
    """SAT backend crashed, ran out of time, or was cancelled."""

from .visualize import MazeVisualizer

__all__ = [
    'MazeVisualizer',
]

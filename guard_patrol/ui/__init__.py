"""User interface package for the guard patrol viewer."""

from .toolkit import PatrolBoardUI
from .viewer import draw_scene, main, run

__all__ = [
    "PatrolBoardUI",
    "draw_scene",
    "main",
    "run",
]

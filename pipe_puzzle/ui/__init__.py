"""User interface package for the pipe puzzle."""

from .main import PipeGameApp, build_parser, create_game, main
from .toolkit import PipeGameUI, status_lines

__all__ = [
    "PipeGameApp",
    "PipeGameUI",
    "build_parser",
    "create_game",
    "main",
    "status_lines",
]

"""Pipe Puzzle package."""

from .board import Board, EdgePoint
from .codec import Level, LevelFormatError, LevelLoader, decode_level, encode_level
from .flow import FaucetStatus, FlowOutcome, FlowState, run_flow, tick
from .game import GameSnapshot, PipeGame
from .generator import Difficulty, SeededRandom, generate_batch
from .geometry import Direction
from .solver import is_level_string_solvable, is_topology_solvable

__all__ = [
    "Board",
    "Difficulty",
    "Direction",
    "EdgePoint",
    "FaucetStatus",
    "FlowOutcome",
    "FlowState",
    "GameSnapshot",
    "Level",
    "LevelFormatError",
    "LevelLoader",
    "PipeGame",
    "SeededRandom",
    "decode_level",
    "encode_level",
    "generate_batch",
    "is_level_string_solvable",
    "is_topology_solvable",
    "run_flow",
    "tick",
]

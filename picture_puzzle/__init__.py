"""Picture Puzzle - a sliding-tile picture puzzle engine."""

from .errors import PuzzleError, InvalidImage, IndexOutOfRange, InvalidState
from .tile_set import TileSet
from .permutation import PermutationState
from .compositor import Compositor, DecorationConfig, load_font
from .engine import PuzzleEngine, EngineConfig, GamePhase, MoveRecord
from .sessions import SessionRegistry

__version__ = "0.1.0"

__all__ = [
    "PuzzleError",
    "InvalidImage",
    "IndexOutOfRange",
    "InvalidState",
    "TileSet",
    "PermutationState",
    "Compositor",
    "DecorationConfig",
    "load_font",
    "PuzzleEngine",
    "EngineConfig",
    "GamePhase",
    "MoveRecord",
    "SessionRegistry",
]

"""Error types raised by the puzzle engine."""

from typing import Optional


class PuzzleError(Exception):
    """Base class for all puzzle engine errors."""


class InvalidImage(PuzzleError, ValueError):
    """The image cannot be decoded or is too small for the requested grid."""


class IndexOutOfRange(PuzzleError, IndexError):
    """A cell or tile position lies outside the grid."""

    def __init__(self, position: int, grid_size: int, message: Optional[str] = None):
        self.position = position
        self.grid_size = grid_size
        if message is None:
            last = grid_size * grid_size - 1
            message = f"Position {position} out of range for a {grid_size}x{grid_size} grid (0..{last})"
        super().__init__(message)


class InvalidState(PuzzleError, RuntimeError):
    """The operation is not allowed in the current game phase."""

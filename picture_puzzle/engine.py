"""Puzzle session controller: starts games, applies moves, keeps scores."""

import logging
import random
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from functools import partial
from pathlib import Path
from typing import Hashable, Optional

import numpy as np

from .compositor import Compositor, DecorationConfig, load_font
from .errors import InvalidState
from .permutation import PermutationState
from .tile_set import TileSet

logger = logging.getLogger(__name__)


class GamePhase(Enum):
    IDLE = "idle"
    IN_PROGRESS = "in_progress"
    SOLVED = "solved"


@dataclass
class EngineConfig:
    """Configuration for a puzzle session."""

    grid_size: int = 3
    shuffle_seed: Optional[int] = None
    decoration: DecorationConfig = field(default_factory=DecorationConfig)
    font_path: Optional[str | Path] = None


@dataclass
class MoveRecord:
    """One applied swap."""

    move_number: int
    user: Hashable
    position_a: int
    position_b: int
    correct_after: int
    solved: bool
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "move_number": self.move_number,
            "user": str(self.user),
            "position_a": self.position_a,
            "position_b": self.position_b,
            "correct_after": self.correct_after,
            "solved": self.solved,
            "timestamp": self.timestamp,
        }


class PuzzleEngine:
    """
    One player-facing puzzle session.

    All state changes happen under a per-session lock, so concurrent moves
    are applied one at a time. Images are rendered outside the lock from a
    snapshot of the tiles and the permutation taken while it was held.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        rng: Optional[random.Random] = None,
        compositor: Optional[Compositor] = None,
    ):
        """
        Initialize an idle session.

        Args:
            config: Session configuration
            rng: Randomness source for shuffling; seeded from
                config.shuffle_seed if not given
            compositor: Renderer; built with the configured font if not given
        """
        self.config = config or EngineConfig()
        self._rng = rng if rng is not None else random.Random(self.config.shuffle_seed)
        if compositor is None:
            compositor = Compositor(partial(load_font, font_path=self.config.font_path))
        self._compositor = compositor

        self._lock = threading.Lock()
        self._phase = GamePhase.IDLE
        self._tile_set: Optional[TileSet] = None
        self._permutation: Optional[PermutationState] = None
        self._source: Optional[str] = None
        self._history: list[MoveRecord] = []
        self._scores: dict[Hashable, int] = {}

    def _render(self, tile_set: TileSet, order: tuple[int, ...]) -> np.ndarray:
        return self._compositor.render(tile_set, order, self.config.decoration)

    def _require_active(self) -> tuple[TileSet, PermutationState]:
        if self._tile_set is None or self._permutation is None:
            raise InvalidState("No puzzle has been started")
        return self._tile_set, self._permutation

    def start(self, image: np.ndarray, source: Optional[str] = None) -> np.ndarray:
        """
        Start a new puzzle, replacing any puzzle in progress.

        Scores are kept. If the shuffle happens to produce the solved
        arrangement, the session goes straight to SOLVED.

        Args:
            image: Decoded source image
            source: Identifier of the image (path or URL)

        Returns:
            The initial composite image

        Raises:
            InvalidImage: If the image cannot be tiled; the previous
                session state is left as it was
        """
        tile_set = TileSet.build(image, self.config.grid_size)

        with self._lock:
            permutation = PermutationState.new_shuffled(self.config.grid_size, self._rng)
            self._tile_set = tile_set
            self._permutation = permutation
            self._source = source
            self._history = []
            self._phase = GamePhase.SOLVED if permutation.is_solved() else GamePhase.IN_PROGRESS
            order = permutation.snapshot()

        logger.info(
            f"Started {self.config.grid_size}x{self.config.grid_size} puzzle "
            f"({tile_set.width}x{tile_set.height}) from {source or 'image data'}"
        )
        logger.debug(f"Initial arrangement: {list(order)}")
        return self._render(tile_set, order)

    def apply_move(
        self, position_a: int, position_b: int, user: Hashable
    ) -> tuple[np.ndarray, bool]:
        """
        Swap two cells on behalf of a user.

        Args:
            position_a: First cell, 0-indexed
            position_b: Second cell, 0-indexed
            user: Identifier of the acting user

        Returns:
            Tuple of (composite image, whether this move solved the puzzle)

        Raises:
            InvalidState: If no puzzle is in progress
            IndexOutOfRange: If either position is outside the grid
        """
        with self._lock:
            if self._phase is not GamePhase.IN_PROGRESS:
                raise InvalidState(f"Cannot move while puzzle is {self._phase.value}")
            tile_set, permutation = self._require_active()

            permutation.swap(position_a, position_b)
            solved_now = permutation.is_solved()
            record = MoveRecord(
                move_number=len(self._history) + 1,
                user=user,
                position_a=position_a,
                position_b=position_b,
                correct_after=permutation.count_correct(),
                solved=solved_now,
            )
            self._history.append(record)
            if solved_now:
                self._phase = GamePhase.SOLVED
                self._scores[user] = self._scores.get(user, 0) + 1
            order = permutation.snapshot()

        logger.debug(
            f"Move {record.move_number} by {user}: {position_a} <-> {position_b} "
            f"({record.correct_after}/{len(order)} correct)"
        )
        if solved_now:
            logger.info(f"Puzzle solved by {user} in {record.move_number} moves")

        return self._render(tile_set, order), solved_now

    def current_composite(self) -> np.ndarray:
        """
        Render the current arrangement without changing it.

        Raises:
            InvalidState: If no puzzle has been started
        """
        with self._lock:
            tile_set, permutation = self._require_active()
            order = permutation.snapshot()
        return self._render(tile_set, order)

    def original_image(self) -> np.ndarray:
        """
        Get the solved picture without decorations.

        Raises:
            InvalidState: If no puzzle has been started
        """
        with self._lock:
            tile_set, _ = self._require_active()
        return tile_set.source.copy()

    def increment_score(self, user: Hashable) -> int:
        """Add one solved puzzle to a user's score and return the new total."""
        with self._lock:
            self._scores[user] = self._scores.get(user, 0) + 1
            return self._scores[user]

    def score_for(self, user: Hashable) -> int:
        """Get the number of puzzles a user has solved (0 if unknown)."""
        with self._lock:
            return self._scores.get(user, 0)

    def scores(self) -> dict[Hashable, int]:
        """Get a copy of all scores."""
        with self._lock:
            return dict(self._scores)

    def is_solved(self) -> bool:
        """Check if the current puzzle is solved."""
        return self.phase is GamePhase.SOLVED

    def count_correct(self) -> int:
        """Count cells showing their own tile (0 while idle)."""
        with self._lock:
            if self._permutation is None:
                return 0
            return self._permutation.count_correct()

    @property
    def phase(self) -> GamePhase:
        with self._lock:
            return self._phase

    @property
    def permutation(self) -> Optional[tuple[int, ...]]:
        """Snapshot of the current arrangement, or None while idle."""
        with self._lock:
            if self._permutation is None:
                return None
            return self._permutation.snapshot()

    @property
    def source(self) -> Optional[str]:
        return self._source

    @property
    def history(self) -> list[MoveRecord]:
        with self._lock:
            return list(self._history)

    @property
    def total_cells(self) -> int:
        return self.config.grid_size ** 2

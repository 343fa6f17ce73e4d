"""Permutation state: which tile currently occupies which grid cell."""

import random
from typing import Iterable, Iterator, Optional

from .errors import IndexOutOfRange


class PermutationState:
    """
    Maps each grid cell to the tile currently shown there.

    Position ``i`` of the order holds the original index of the tile placed
    in cell ``i`` (row-major). The solved arrangement is ``[0, 1, ..., n-1]``.
    """

    def __init__(self, grid_size: int, order: Optional[Iterable[int]] = None):
        """
        Initialize the permutation.

        Args:
            grid_size: Number of cells per side
            order: Tile index for each cell; defaults to the solved order

        Raises:
            ValueError: If order is not a permutation of 0..grid_size**2 - 1
        """
        if grid_size < 2:
            raise ValueError(f"Grid size must be at least 2. Got: {grid_size}")

        self.grid_size = grid_size
        self._solved = tuple(range(grid_size * grid_size))

        if order is None:
            self._order = list(self._solved)
        else:
            self._order = list(order)
            if sorted(self._order) != list(self._solved):
                raise ValueError(
                    f"Order {self._order} is not a permutation of 0..{len(self._solved) - 1}"
                )

    @classmethod
    def new_shuffled(
        cls, grid_size: int, rng: Optional[random.Random] = None
    ) -> "PermutationState":
        """
        Create a uniformly shuffled permutation.

        The solved arrangement is a legal outcome and is not re-drawn.

        Args:
            grid_size: Number of cells per side
            rng: Randomness source; pass a seeded random.Random for
                reproducible shuffles
        """
        if rng is None:
            rng = random.Random()
        state = cls(grid_size)
        rng.shuffle(state._order)
        return state

    @classmethod
    def solved(cls, grid_size: int) -> "PermutationState":
        return cls(grid_size)

    @property
    def total_cells(self) -> int:
        return len(self._solved)

    def _check_position(self, position: int) -> None:
        if not 0 <= position < self.total_cells:
            raise IndexOutOfRange(position, self.grid_size)

    def swap(self, position_a: int, position_b: int) -> None:
        """
        Exchange the tiles shown in two cells.

        Both positions are validated before anything is changed. Swapping a
        cell with itself leaves the state unchanged.

        Raises:
            IndexOutOfRange: If either position is outside the grid
        """
        self._check_position(position_a)
        self._check_position(position_b)

        self._order[position_a], self._order[position_b] = (
            self._order[position_b],
            self._order[position_a],
        )

    def tile_at_cell(self, position: int) -> int:
        """Get the tile index shown in a cell."""
        self._check_position(position)
        return self._order[position]

    def is_solved(self) -> bool:
        """Check if every cell shows its own tile."""
        return tuple(self._order) == self._solved

    def count_correct(self) -> int:
        """Count how many cells show their own tile."""
        return sum(1 for cell, tile in enumerate(self._order) if cell == tile)

    def solution_mapping(self) -> dict[int, int]:
        """
        Get mapping from each cell to the cell its tile belongs in.

        Returns:
            Dict of current cell -> home cell, both 0-indexed
        """
        return {cell: tile for cell, tile in enumerate(self._order)}

    def snapshot(self) -> tuple[int, ...]:
        """Immutable copy of the current order."""
        return tuple(self._order)

    def copy(self) -> "PermutationState":
        return PermutationState(self.grid_size, self._order)

    def __len__(self) -> int:
        return len(self._order)

    def __getitem__(self, position: int) -> int:
        return self._order[position]

    def __iter__(self) -> Iterator[int]:
        return iter(self._order)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, PermutationState):
            return self.grid_size == other.grid_size and self._order == other._order
        return NotImplemented

    def __repr__(self) -> str:
        return f"PermutationState(grid_size={self.grid_size}, order={self._order})"

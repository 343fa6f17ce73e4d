"""Mapping of player command text to engine operations."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import IndexOutOfRange, InvalidImage, InvalidState, PuzzleError


class Action(Enum):
    START = "start"
    SWAP = "swap"
    SHOW = "show"
    REVEAL = "reveal"
    SCORE = "score"
    HELP = "help"
    QUIT = "quit"


_ALIASES = {
    "start": Action.START,
    "new": Action.START,
    "swap": Action.SWAP,
    "show": Action.SHOW,
    "reveal": Action.REVEAL,
    "solve": Action.REVEAL,
    "score": Action.SCORE,
    "help": Action.HELP,
    "?": Action.HELP,
    "quit": Action.QUIT,
    "exit": Action.QUIT,
}


@dataclass(frozen=True)
class Command:
    """A parsed player command."""

    action: Action
    cells: tuple[int, int] | None = None  # 0-indexed cells for SWAP
    argument: Optional[str] = None  # Image source for START


def parse_swap_cells(args: list[str]) -> tuple[int, int]:
    """
    Parse the two 1-based cell numbers of a swap.

    Tokens that are not integers are ignored. Range checking is left to
    the engine.

    Returns:
        Tuple of two 0-indexed cell positions

    Raises:
        ValueError: If there are not exactly two numbers
    """
    numbers = []
    for token in args:
        try:
            numbers.append(int(token))
        except ValueError:
            continue

    if len(numbers) != 2:
        raise ValueError("Please provide exactly two tile indices.")
    return numbers[0] - 1, numbers[1] - 1


def parse_command(text: str) -> Command:
    """
    Parse a line of player input.

    A line made only of numbers is read as a swap, so "3 7" and
    "swap 3 7" are equivalent.

    Raises:
        ValueError: If the command is empty, unknown or malformed
    """
    parts = text.strip().split()
    if not parts:
        raise ValueError("Empty command.")

    keyword = parts[0].lower()
    if keyword.lstrip("-").isdigit():
        return Command(Action.SWAP, cells=parse_swap_cells(parts))

    action = _ALIASES.get(keyword)
    if action is None:
        raise ValueError(f"Unknown command: {parts[0]}. Type 'help' for a list of commands.")

    if action is Action.SWAP:
        return Command(action, cells=parse_swap_cells(parts[1:]))
    if action is Action.START:
        argument = " ".join(parts[1:]) or None
        return Command(action, argument=argument)
    return Command(action)


def rejection_message(error: PuzzleError, grid_size: int) -> str:
    """Turn an engine error into a message for the player."""
    if isinstance(error, IndexOutOfRange):
        return f"Invalid tile indices! Please use numbers between 1 and {grid_size ** 2}."
    if isinstance(error, InvalidState):
        return "No puzzle in progress. Type 'start' to begin a new one."
    if isinstance(error, InvalidImage):
        return f"Could not use that image: {error}"
    return str(error)


def help_text(grid_size: int) -> str:
    last = grid_size ** 2
    return "\n".join(
        [
            "Commands:",
            "  start [IMAGE]   start a new puzzle (optionally from another image)",
            f"  swap A B        swap cells A and B (1-{last}); 'A B' also works",
            "  show            save the current puzzle image again",
            "  reveal          save the original picture",
            "  score           show your score",
            "  help            show this message",
            "  quit            leave the game",
        ]
    )

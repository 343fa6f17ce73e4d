#!/usr/bin/env python3
"""CLI entry point for the Picture Puzzle game."""

import argparse
import json
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Iterable, Iterator

from picture_puzzle.commands import Action, Command, help_text, parse_command, rejection_message
from picture_puzzle.compositor import DecorationConfig
from picture_puzzle.engine import EngineConfig, PuzzleEngine
from picture_puzzle.errors import PuzzleError
from picture_puzzle.image_io import load_image, save_image
from picture_puzzle.sessions import SessionRegistry

CHANNEL = "terminal"

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    """Configure logging."""
    level = logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )


def parse_grid_size(value: str) -> int:
    """Parse the grid size argument ("3" or "3x3")."""
    value = value.strip().lower()
    if "x" in value:
        parts = value.split("x")
        if len(parts) != 2 or parts[0].strip() != parts[1].strip():
            raise argparse.ArgumentTypeError(
                f"Invalid grid size: {value}. Only square grids are supported (e.g., '3' or '3x3')"
            )
        value = parts[0]
    try:
        size = int(value.strip())
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid grid size: {value}. Must be an integer.")
    if size < 2:
        raise argparse.ArgumentTypeError(f"Grid size must be at least 2. Got: {size}")
    return size


def get_user(user: str | None) -> str:
    """Get the player name from argument or environment."""
    return user or os.environ.get("USER") or "player"


def read_commands(scripted: list[str] | None) -> Iterator[str]:
    """Yield command lines from --moves, or from stdin when none were given."""
    if scripted:
        yield from scripted
        return
    while True:
        try:
            yield input("> ")
        except EOFError:
            return


class TerminalGame:
    """Drives one puzzle session from command lines, saving images to disk."""

    def __init__(self, engine: PuzzleEngine, image_path: Path, output_dir: Path, user: str, resize_to: int | None):
        self.engine = engine
        self.image_path = image_path
        self.output_dir = output_dir
        self.user = user
        self.resize_to = resize_to
        self.puzzle_path = output_dir / "puzzle.png"

    def start(self, image_path: Path | None = None) -> None:
        if image_path is not None:
            self.image_path = image_path
        image = load_image(self.image_path, resize_to=self.resize_to)
        composite = self.engine.start(image, source=str(self.image_path))
        save_image(composite, self.puzzle_path)
        print("Puzzle Mastermind! Solve the puzzle by swapping tiles.")
        print(f"Puzzle image: {self.puzzle_path}")
        if self.engine.is_solved():
            print("The shuffle left the picture in order. Type 'start' for a new one.")

    def handle(self, command: Command) -> bool:
        """Run one command. Returns False when the player quits."""
        grid_size = self.engine.config.grid_size

        if command.action is Action.QUIT:
            return False
        if command.action is Action.HELP:
            print(help_text(grid_size))
        elif command.action is Action.START:
            self.start(Path(command.argument) if command.argument else None)
        elif command.action is Action.SWAP:
            a, b = command.cells
            composite, solved_now = self.engine.apply_move(a, b, self.user)
            save_image(composite, self.puzzle_path)
            print(f"Here is the updated puzzle after the swap! ({self.puzzle_path})")
            if solved_now:
                print("Congratulations! You solved the puzzle!")
                print(f"Score for {self.user}: {self.engine.score_for(self.user)}")
        elif command.action is Action.SHOW:
            save_image(self.engine.current_composite(), self.puzzle_path)
            print(f"Puzzle image: {self.puzzle_path}")
        elif command.action is Action.REVEAL:
            path = save_image(self.engine.original_image(), self.output_dir / "original.png")
            print(f"Here is the original image: {path}")
        elif command.action is Action.SCORE:
            print(f"Score for {self.user}: {self.engine.score_for(self.user)}")
        return True

    def play(self, lines: Iterable[str]) -> None:
        grid_size = self.engine.config.grid_size
        for line in lines:
            if not line.strip():
                continue
            try:
                if not self.handle(parse_command(line)):
                    break
            except PuzzleError as e:
                logger.warning(f"Rejected command '{line.strip()}': {e}")
                print(rejection_message(e, grid_size))
            except ValueError as e:
                print(str(e))

    def save_summary(self) -> Path:
        """Write scores and the move history of the last puzzle to session.json."""
        summary = {
            "source": self.engine.source,
            "grid_size": self.engine.config.grid_size,
            "phase": self.engine.phase.value,
            "permutation": self.engine.permutation,
            "correct": self.engine.count_correct(),
            "scores": {str(user): score for user, score in self.engine.scores().items()},
            "history": [record.to_dict() for record in self.engine.history],
        }
        path = self.output_dir / "session.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(summary, f, indent=2)
        return path


def main():
    parser = argparse.ArgumentParser(
        description="Picture Puzzle - restore a scrambled picture by swapping tiles",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Interactive 3x3 game
  python main.py --image photo.jpg

  # Reproducible shuffle, scripted moves
  python main.py --image photo.jpg --seed 42 --moves "1 3" "swap 2 5" reveal

  # Larger grid with thinner borders and smaller labels
  python main.py --image photo.jpg --grid-size 4 --border-thickness 2 --font-size 24
        """,
    )

    parser.add_argument(
        "--image", "-i", type=str, required=True, help="Path to the image file to use as puzzle"
    )
    parser.add_argument(
        "--grid-size",
        "-g",
        type=parse_grid_size,
        default=3,
        help="Number of tiles per side (default: 3)",
    )
    parser.add_argument(
        "--seed", type=int, default=None, help="Random seed for reproducible shuffling"
    )
    parser.add_argument(
        "--resize",
        type=int,
        default=None,
        help="Resize image so shorter side equals this value (e.g., 300, 600)",
    )

    # Decoration settings
    parser.add_argument(
        "--border-thickness", type=int, default=5, help="Border thickness in pixels (default: 5)"
    )
    parser.add_argument(
        "--font-size", type=int, default=50, help="Cell number font size (default: 50)"
    )
    parser.add_argument("--font", type=str, default=None, help="Path to a TrueType font")
    parser.add_argument("--no-labels", action="store_true", help="Don't draw cell numbers")

    # Session settings
    parser.add_argument(
        "--user", "-u", type=str, default=None, help="Player name (default: $USER)"
    )
    parser.add_argument(
        "--moves",
        nargs="+",
        default=None,
        help="Commands to run instead of reading from stdin (e.g., '1 3' reveal)",
    )

    # Output settings
    parser.add_argument(
        "--output", "-o", type=str, default=None, help="Output directory for images"
    )
    parser.add_argument("--quiet", "-q", action="store_true", help="Suppress progress output")

    args = parser.parse_args()

    setup_logging(not args.quiet)

    image_path = Path(args.image)
    if not image_path.exists():
        logger.error(f"Image file not found: {image_path}")
        sys.exit(1)

    output_dir = args.output
    if output_dir is None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output_dir = f"results/puzzle_{args.grid_size}x{args.grid_size}_{timestamp}"

    config = EngineConfig(
        grid_size=args.grid_size,
        shuffle_seed=args.seed,
        decoration=DecorationConfig(
            border_thickness=args.border_thickness,
            font_size=args.font_size,
            show_labels=not args.no_labels,
        ),
        font_path=args.font,
    )
    registry = SessionRegistry(lambda: PuzzleEngine(config))
    game = TerminalGame(
        engine=registry.get_or_create(CHANNEL),
        image_path=image_path,
        output_dir=Path(output_dir),
        user=get_user(args.user),
        resize_to=args.resize,
    )

    try:
        game.start()
        game.play(read_commands(args.moves))
    except PuzzleError as e:
        logger.error(rejection_message(e, args.grid_size))
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        if game.engine.permutation is not None:
            summary_path = game.save_summary()
            logger.info(f"Session saved to: {summary_path}")

    sys.exit(0 if game.engine.is_solved() else 1)


if __name__ == "__main__":
    main()

"""Registry of puzzle sessions keyed by channel."""

import logging
import threading
from typing import Callable, Hashable, Optional

from .engine import EngineConfig, PuzzleEngine

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Holds one PuzzleEngine per channel identifier."""

    def __init__(self, engine_factory: Optional[Callable[[], PuzzleEngine]] = None):
        """
        Initialize an empty registry.

        Args:
            engine_factory: Creates the engine for a new channel. Defaults to
                a PuzzleEngine with the default EngineConfig.
        """
        self._engine_factory = engine_factory or (lambda: PuzzleEngine(EngineConfig()))
        self._sessions: dict[Hashable, PuzzleEngine] = {}
        self._lock = threading.Lock()

    def get(self, channel: Hashable) -> Optional[PuzzleEngine]:
        """Get the session for a channel, or None if there is none."""
        with self._lock:
            return self._sessions.get(channel)

    def get_or_create(self, channel: Hashable) -> PuzzleEngine:
        """Get the session for a channel, creating an idle one if needed."""
        with self._lock:
            engine = self._sessions.get(channel)
            if engine is None:
                engine = self._engine_factory()
                self._sessions[channel] = engine
                logger.debug(f"Created session for channel {channel}")
            return engine

    def remove(self, channel: Hashable) -> Optional[PuzzleEngine]:
        """Drop a channel's session and return it."""
        with self._lock:
            return self._sessions.pop(channel, None)

    def channels(self) -> list[Hashable]:
        with self._lock:
            return list(self._sessions)

    def __contains__(self, channel: Hashable) -> bool:
        with self._lock:
            return channel in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

"""Snipe list loaded from a text file and refreshed periodically."""

import asyncio
from pathlib import Path

import structlog

from ..core.interfaces import SnipeList

logger = structlog.get_logger(__name__)


class SnipeListCache(SnipeList):
    """Set of mints read from a file with one mint per line.

    Blank lines and lines starting with ``#`` are ignored. A failed reload
    keeps the previous list.
    """

    def __init__(self, path: str, refresh_interval_ms: int = 30000) -> None:
        self.path = Path(path)
        self.refresh_interval_ms = refresh_interval_ms
        self._mints: frozenset[str] = frozenset()
        self._task: asyncio.Task | None = None

    async def init(self) -> None:
        """Load the list and start background refreshing."""
        self.load()
        if self.refresh_interval_ms > 0 and self._task is None:
            self._task = asyncio.create_task(self._refresh_loop())

    def load(self) -> None:
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning(
                "Failed to read snipe list", path=str(self.path), error=str(e)
            )
            return

        mints = frozenset(
            line.strip()
            for line in text.splitlines()
            if line.strip() and not line.strip().startswith("#")
        )
        if mints != self._mints:
            logger.info("Snipe list loaded", path=str(self.path), count=len(mints))
        self._mints = mints

    def is_in_list(self, mint: str) -> bool:
        return mint in self._mints

    async def _refresh_loop(self) -> None:
        while True:
            await asyncio.sleep(self.refresh_interval_ms / 1000)
            self.load()

    async def close(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

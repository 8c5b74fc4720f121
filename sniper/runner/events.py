"""Decoded chain events read as JSON lines."""

import asyncio
import json
import sys
from collections.abc import AsyncIterator
from pathlib import Path
from typing import IO

import structlog
from pydantic import ValidationError

from ..core.interfaces import EventSource
from ..core.types import PoolCreatedEvent, TokenBalanceEvent

logger = structlog.get_logger(__name__)

Event = PoolCreatedEvent | TokenBalanceEvent


def parse_event(line: str) -> Event | None:
    """Parse one JSON line into an event.

    Lines carry ``"type": "pool"`` or ``"type": "wallet"`` next to the event
    fields. Returns None for blank lines.

    Raises:
        ValueError: If the line is not valid JSON or not a known event
    """
    line = line.strip()
    if not line:
        return None

    payload = json.loads(line)
    if not isinstance(payload, dict):
        raise ValueError("Event must be a JSON object")

    event_type = payload.pop("type", None)
    if event_type == "pool":
        return PoolCreatedEvent.model_validate(payload)
    if event_type == "wallet":
        return TokenBalanceEvent.model_validate(payload)
    raise ValueError(f"Unknown event type: {event_type!r}")


class JsonLinesEventSource(EventSource):
    """Reads events from a file or pipe fed by the chain listener.

    ``-`` reads standard input. Malformed lines are logged and skipped,
    the stream ends at end of file.
    """

    def __init__(self, path: str = "-") -> None:
        self.path = path

    def _open(self) -> IO[str]:
        if self.path == "-":
            return sys.stdin
        return Path(self.path).open(encoding="utf-8")

    async def events(self) -> AsyncIterator[Event]:
        stream = self._open()
        line_no = 0
        try:
            while True:
                line = await asyncio.to_thread(stream.readline)
                if not line:
                    break
                line_no += 1

                try:
                    event = parse_event(line)
                except (ValueError, ValidationError) as e:
                    logger.warning(
                        "Skipping malformed event", line=line_no, error=str(e)
                    )
                    continue

                if event is not None:
                    yield event
        finally:
            if stream is not sys.stdin:
                stream.close()

        logger.info("Event stream ended", path=self.path, lines=line_no)

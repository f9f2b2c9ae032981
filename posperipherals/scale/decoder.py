"""Stream decoder turning scale bytes into weight readings."""

from __future__ import annotations

import asyncio
import codecs
import logging
from datetime import datetime
from typing import List, Optional

from ..core.models import WeightReading
from .parser import WeightParser

logger = logging.getLogger(__name__)


class ScaleDecoder:
    """Decodes arbitrary byte chunks into ``WeightReading`` values.

    Chunks do not need to align with frame boundaries: complete lines are
    parsed as they arrive and a trailing fragment is kept until the rest of
    it shows up, unless it already holds a whole frame. Only the latest
    reading is kept.
    """

    # A fragment this long without a line feed is chatter, not a frame
    MAX_PENDING_CHARS = 256

    def __init__(self):
        self._text = codecs.getincrementaldecoder('utf-8')(errors='ignore')
        self._pending = ""
        self._latest: Optional[WeightReading] = None
        self._waiters: List[asyncio.Future] = []

    @property
    def latest(self) -> Optional[WeightReading]:
        """Most recent reading, or None if the scale never sent one."""
        return self._latest

    def feed(self, chunk: bytes, observed_at: Optional[datetime] = None) -> List[WeightReading]:
        """Decode one chunk.

        Args:
            chunk: Bytes exactly as read from the port.
            observed_at: Timestamp for readings in this chunk (default: now).

        Returns:
            Readings found in the chunk, oldest first. Empty if the chunk
            held only noise or part of a frame.
        """
        text = self._pending + self._text.decode(chunk)
        lines = text.split('\n')
        self._pending = lines.pop()

        if WeightParser.is_complete_frame(self._pending):
            lines.append(self._pending)
            self._pending = ""
        elif len(self._pending) > self.MAX_PENDING_CHARS:
            logger.debug(f"Dropping {len(self._pending)} chars of unterminated scale data")
            self._pending = ""

        readings = []
        for line in lines:
            line = line.strip()
            if not line:
                continue
            logger.debug(f"Scale line: {line!r}")
            reading = WeightParser.parse_line(line, observed_at)
            if reading is not None:
                readings.append(reading)
                self._accept(reading)
        return readings

    def inject(self, value: float, unit: str = 'kg') -> WeightReading:
        """Record a stable reading that did not come from the device."""
        reading = WeightReading(value=float(value), unit=unit.lower(), stable=True)
        self._accept(reading)
        return reading

    def _accept(self, reading: WeightReading) -> None:
        self._latest = reading
        if reading.stable:
            for waiter in self._waiters:
                if not waiter.done():
                    waiter.set_result(reading)

    async def wait_for_stable(self, timeout: float) -> Optional[WeightReading]:
        """Wait passively for the next stable reading.

        The scale is never commanded to sample; this only listens.

        Args:
            timeout: Seconds to wait.

        Returns:
            The first stable reading observed after the call, or, if
            ``timeout`` elapses first, the last known reading (which may be
            unstable). None if the scale never sent anything.
        """
        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            return await asyncio.wait_for(waiter, timeout)
        except asyncio.TimeoutError:
            return self._latest
        finally:
            self._waiters.remove(waiter)

    def reset(self) -> None:
        """Forget the latest reading and any partial frame."""
        self._latest = None
        self._pending = ""
        self._text.reset()

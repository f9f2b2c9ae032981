"""Weighing scale device."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from ..core.errors import DeviceError, ReadCancelled
from ..core.models import ConnectionState, WeightReading
from ..core.settings import ScaleSettings
from ..scale.decoder import ScaleDecoder
from ..serial.manager import OpenPort
from ..serial.platform import SerialPlatform
from .base import SupervisedDevice

logger = logging.getLogger(__name__)


class Scale(SupervisedDevice):
    """Serial scale streaming weight frames.

    Reading starts as soon as the port opens and restarts after every
    successful reconnect.
    """

    NAME = "scale"
    DEVICE_MODEL = "Serial scale"
    SETTINGS_CLASS = ScaleSettings

    def __init__(
        self,
        platform: Optional[SerialPlatform] = None,
        settings: Optional[ScaleSettings] = None,
    ):
        super().__init__(platform, settings)
        self.decoder = ScaleDecoder()
        self._read_task: Optional[asyncio.Task] = None

    @property
    def is_reading(self) -> bool:
        return self.state is ConnectionState.READING

    async def _on_open(self) -> None:
        self._read_task = asyncio.create_task(self._read_loop(self.manager.port))

    async def _on_closed(self) -> None:
        task, self._read_task = self._read_task, None
        if task is not None and task is not asyncio.current_task():
            await task
        self.decoder.reset()

    async def _read_loop(self, port: OpenPort) -> None:
        """Feed chunks to the decoder until end of stream, close or failure."""
        failure: Optional[DeviceError] = None
        if port is None or port.closed:
            return
        self.connection.transition(ConnectionState.READING)
        logger.info(f"Reading weight data from {port.handle.device}")
        try:
            with port.reader() as reader:
                while True:
                    try:
                        chunk = await reader.read()
                    except ReadCancelled:
                        logger.debug("Scale read cancelled")
                        break
                    except DeviceError as e:
                        failure = e
                        break
                    if not chunk:
                        logger.info("Scale stream ended")
                        break
                    for reading in self.decoder.feed(chunk):
                        logger.debug(f"Weight: {reading}")
        finally:
            if failure is None and self.state is ConnectionState.READING:
                self.connection.transition(ConnectionState.OPEN)

        if failure is not None:
            await self._report_failure(failure)

    def get_current_weight(self) -> Optional[WeightReading]:
        """Most recent reading, or None if none arrived yet."""
        return self.decoder.latest

    async def request_stable_weight(self, timeout: Optional[float] = None) -> Optional[WeightReading]:
        """Wait for a settled reading.

        Args:
            timeout: Seconds to wait; defaults to ``settings.stable_weight_timeout``.

        Returns:
            The next stable reading, or the last known one when the wait
            times out, or None if the scale never sent anything. When the
            scale is not reading, returns the last known reading at once.
        """
        if timeout is None:
            timeout = self.settings.stable_weight_timeout
        if not self.is_connected:
            return self.decoder.latest
        return await self.decoder.wait_for_stable(timeout)

    def simulate_weight(self, value: float, unit: str = 'kg') -> WeightReading:
        """Inject a stable reading without hardware (tests and demos)."""
        reading = self.decoder.inject(value, unit)
        logger.info(f"Simulated weight: {reading}")
        return reading

"""In-memory serial platform for tests and demonstrations.

``SimulatedPlatform`` is a complete alternate implementation of the platform
seam: it is selected explicitly (``--simulate`` on the command line, or by
tests) and is never used as a fallback for real hardware.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Union

from ..core.errors import (
    DeviceError,
    IoFailureError,
    IoFailureReason,
    PermissionDeniedError,
)
from ..core.models import PortConfig, PortHandle
from .platform import SerialPlatform, SerialStream

logger = logging.getLogger(__name__)

_EOF = object()


class SimulatedDevice:
    """A fake peripheral attached to a simulated port.

    Incoming bytes are queued with ``feed``; outgoing bytes are collected in
    ``written``.
    """

    def __init__(self, device: str, description: str = "Simulated serial device"):
        self.handle_template = PortHandle(device=device, description=description)
        self.written = bytearray()
        self.writes: List[bytes] = []
        self.open_count = 0
        self.last_config: Optional[PortConfig] = None
        self.denied = False
        self._open_errors: List[DeviceError] = []
        self._write_errors: List[DeviceError] = []
        self._inbox: asyncio.Queue = asyncio.Queue()
        self._stream: Optional['SimulatedStream'] = None

    @property
    def device(self) -> str:
        return self.handle_template.device

    @property
    def is_open(self) -> bool:
        return self._stream is not None and not self._stream.closed

    def feed(self, data: Union[bytes, str]) -> None:
        """Queue bytes as if the peripheral had sent them."""
        if isinstance(data, str):
            data = data.encode("ascii")
        self._inbox.put_nowait(data)

    def fail_read(self, error: Optional[DeviceError] = None) -> None:
        """Make the next pending read raise ``error``."""
        self._inbox.put_nowait(error or IoFailureError("simulated line error"))

    def unplug(self) -> None:
        """Make the next read report the device as lost."""
        self._inbox.put_nowait(IoFailureError("simulated device removed", IoFailureReason.DEVICE_LOST))

    def end_stream(self) -> None:
        self._inbox.put_nowait(_EOF)

    def fail_next_open(self, error: DeviceError) -> None:
        self._open_errors.append(error)

    def fail_next_write(self, error: Optional[DeviceError] = None) -> None:
        self._write_errors.append(error or IoFailureError("simulated write failure"))

    def _attach(self, config: PortConfig) -> 'SimulatedStream':
        if self._open_errors:
            raise self._open_errors.pop(0)
        self.open_count += 1
        self.last_config = config
        self._stream = SimulatedStream(self)
        return self._stream


class SimulatedStream(SerialStream):
    """Stream connected to a ``SimulatedDevice``."""

    def __init__(self, device: SimulatedDevice):
        self._device = device
        self.closed = False

    async def read(self, size: int) -> bytes:
        if self.closed:
            return b""
        item = await self._device._inbox.get()
        if item is _EOF:
            return b""
        if isinstance(item, BaseException):
            raise item
        if len(item) > size:
            return self._split(item, size)
        return item

    def _split(self, item: bytes, size: int) -> bytes:
        # Requeue the remainder ahead of later chunks
        rest = item[size:]
        queue = self._device._inbox
        pending = []
        while not queue.empty():
            pending.append(queue.get_nowait())
        queue.put_nowait(rest)
        for p in pending:
            queue.put_nowait(p)
        return item[:size]

    async def write(self, data: bytes) -> None:
        if self._device._write_errors:
            raise self._device._write_errors.pop(0)
        self._device.written.extend(data)
        self._device.writes.append(bytes(data))
        await asyncio.sleep(0)

    async def close(self) -> None:
        self.closed = True


class SimulatedPlatform(SerialPlatform):
    """Serial platform backed by ``SimulatedDevice`` objects."""

    def __init__(self, *devices: SimulatedDevice):
        self.devices: Dict[str, SimulatedDevice] = {d.device: d for d in devices}

    def add(self, device: SimulatedDevice) -> SimulatedDevice:
        self.devices[device.device] = device
        return device

    async def list_ports(self) -> List[PortHandle]:
        return [
            PortHandle(device=d.device, description=d.handle_template.description)
            for d in self.devices.values()
        ]

    def check_access(self, handle: PortHandle) -> None:
        device = self.devices.get(handle.device)
        if device is not None and device.denied:
            raise PermissionDeniedError(f"No read/write permission on {handle.device}")

    async def open(self, handle: PortHandle, config: PortConfig) -> SerialStream:
        device = self.devices.get(handle.device)
        if device is None:
            raise IoFailureError(
                f"could not open port {handle.device}: No such file or directory",
                IoFailureReason.DEVICE_NOT_FOUND,
            )
        await asyncio.sleep(0)
        logger.info(f"Opened simulated port {handle.device}")
        return device._attach(config)


def demo_platform() -> SimulatedPlatform:
    """Platform with one simulated printer and one simulated scale."""
    return SimulatedPlatform(
        SimulatedDevice("SIM-PRINTER", "Simulated ESC/POS printer"),
        SimulatedDevice("SIM-SCALE", "Simulated Toledo scale"),
    )


"""Lifecycle of one opened serial port."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from ..core.errors import (
    AlreadyOpenError,
    DeviceTimeoutError,
    NotFoundError,
    NotSupportedError,
    ReadCancelled,
    ReaderLockedError,
)
from ..core.models import PortConfig, PortHandle, SerialConnection
from .config import SerialConfig
from .platform import PortChooser, SerialPlatform, SerialStream

logger = logging.getLogger(__name__)


class PortReader:
    """Exclusive read lease on an open port.

    Use as a context manager; the lease is released on exit.
    """

    def __init__(self, port: 'OpenPort'):
        self._port = port
        self._pending: Optional[asyncio.Future] = None
        self._cancelled = False
        self._released = False

    async def read(self, size: int = SerialConfig.READ_CHUNK_SIZE) -> bytes:
        """Read one chunk.

        Returns:
            The chunk, or ``b""`` at end of stream.

        Raises:
            ReadCancelled: If the port was closed while the read was pending.
            ReaderLockedError: If another read is already in flight.
        """
        if self._released:
            raise ReaderLockedError("Reader lease already released")
        if self._pending is not None:
            raise ReaderLockedError("A read is already in flight on this port")
        if self._cancelled or self._port.closed:
            raise ReadCancelled()

        self._pending = asyncio.ensure_future(self._port.stream.read(size))
        try:
            return await self._pending
        except asyncio.CancelledError:
            if self._cancelled:
                raise ReadCancelled() from None
            raise
        finally:
            self._pending = None

    def cancel(self) -> None:
        """Resolve any pending read with ``ReadCancelled``."""
        self._cancelled = True
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()

    def release(self) -> None:
        if self._released:
            return
        self.cancel()
        self._released = True
        self._port._release_reader(self)

    def __enter__(self) -> 'PortReader':
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()


class PortWriter:
    """Exclusive write lease on an open port."""

    def __init__(self, port: 'OpenPort'):
        self._port = port
        self._released = False

    async def write(self, data: bytes) -> None:
        """Write one buffer, waiting until the device accepted it."""
        if self._released or self._port.closed:
            raise NotFoundError("Port is not open")
        try:
            await asyncio.wait_for(self._port.stream.write(data), SerialConfig.WRITE_TIMEOUT)
        except asyncio.TimeoutError:
            raise DeviceTimeoutError(
                f"Write of {len(data)} bytes did not complete in {SerialConfig.WRITE_TIMEOUT:.0f}s"
            ) from None

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self._port._release_writer(self)

    def __enter__(self) -> 'PortWriter':
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()


class OpenPort:
    """An open port and its reader/writer leases."""

    def __init__(self, handle: PortHandle, config: PortConfig, stream: SerialStream):
        self.handle = handle
        self.config = config
        self.stream = stream
        self.closed = False
        self._reader: Optional[PortReader] = None
        self._writer: Optional[PortWriter] = None

    def reader(self) -> PortReader:
        """Acquire the read lease.

        Raises:
            ReaderLockedError: If the lease is already held.
        """
        if self._reader is not None:
            raise ReaderLockedError(f"{self.handle.device} already has an active reader")
        if self.closed:
            raise NotFoundError("Port is not open")
        self._reader = PortReader(self)
        return self._reader

    def writer(self) -> PortWriter:
        """Acquire the write lease."""
        if self._writer is not None:
            raise ReaderLockedError(f"{self.handle.device} already has an active writer")
        if self.closed:
            raise NotFoundError("Port is not open")
        self._writer = PortWriter(self)
        return self._writer

    @property
    def reading(self) -> bool:
        return self._reader is not None

    def _release_reader(self, reader: PortReader) -> None:
        if self._reader is reader:
            self._reader = None

    def _release_writer(self, writer: PortWriter) -> None:
        if self._writer is writer:
            self._writer = None

    async def close(self) -> None:
        """Cancel any pending read, release leases, then close the stream."""
        if self.closed:
            return
        self.closed = True
        if self._reader is not None:
            self._reader.cancel()
        if self._writer is not None:
            self._writer.release()
        try:
            await self.stream.close()
        finally:
            if self.handle.open_port is self:
                self.handle.open_port = None


class SerialPortManager:
    """Owns the port of one logical device.

    At most one port is open per manager; opening another closes the
    previous one first.
    """

    def __init__(self, platform: SerialPlatform, name: str = "device"):
        self.platform = platform
        self.name = name
        self.connection = SerialConnection()
        self._port: Optional[OpenPort] = None

    @property
    def port(self) -> Optional[OpenPort]:
        return self._port

    @property
    def is_open(self) -> bool:
        return self._port is not None and not self._port.closed

    def _require_support(self) -> None:
        if not self.platform.available:
            raise NotSupportedError("Serial ports are not supported on this platform")

    async def list_ports(self):
        self._require_support()
        return await self.platform.list_ports()

    async def request_port(
        self,
        port_name: Optional[str] = None,
        chooser: Optional[PortChooser] = None,
    ) -> PortHandle:
        """Let the operator pick the port of this device."""
        self._require_support()
        handle = await self.platform.request_port(port_name=port_name, chooser=chooser)
        logger.info(f"{self.name}: selected port {handle.label}")
        return handle

    async def open(self, handle: PortHandle, config: PortConfig) -> OpenPort:
        """Open ``handle`` with ``config``.

        Raises:
            NotSupportedError: If the platform has no serial capability.
            AlreadyOpenError: If the device of ``handle`` already has a live
                port, through this manager or any other.
            IoFailureError: If the OS rejects the open.
            DeviceTimeoutError: If the open hangs.
        """
        self._require_support()
        live = self.platform.open_ports.get(handle.device)
        if handle.is_open or (live is not None and not live.closed):
            raise AlreadyOpenError(f"{handle.device} is already open")
        if self._port is not None:
            logger.info(f"{self.name}: closing previous port {self._port.handle.device}")
            await self.close()

        try:
            stream = await asyncio.wait_for(
                self.platform.open(handle, config), SerialConfig.OPEN_TIMEOUT
            )
        except asyncio.TimeoutError:
            raise DeviceTimeoutError(
                f"Opening {handle.device} did not complete in {SerialConfig.OPEN_TIMEOUT:.0f}s"
            ) from None

        port = OpenPort(handle, config, stream)
        handle.open_port = port
        self.platform.open_ports[handle.device] = port
        self._port = port
        self.connection.port_handle = handle
        self.connection.label = handle.label
        return port

    async def close(self, port: Optional[OpenPort] = None) -> None:
        """Close ``port`` (default: the current one). Closing twice is fine."""
        port = port or self._port
        if port is None:
            return
        if port is self._port:
            self._port = None
        try:
            await port.close()
        finally:
            if self.platform.open_ports.get(port.handle.device) is port:
                del self.platform.open_ports[port.handle.device]
        logger.info(f"{self.name}: closed {port.handle.device}")

    async def write(self, data: bytes) -> None:
        """Write one buffer through the port's writer lease.

        Raises:
            NotFoundError: If no port is open.
            IoFailureError: If the write is rejected.
            DeviceTimeoutError: If the device does not drain the buffer.
        """
        if not self.is_open:
            raise NotFoundError(f"{self.name} is not connected")
        with self._port.writer() as writer:
            await writer.write(data)

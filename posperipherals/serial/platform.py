"""Host serial port capability: enumeration, selection and byte streams."""

from __future__ import annotations

import abc
import asyncio
import inspect
import logging
import os
import sys
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Union

import serial
import serial_asyncio
from serial.tools import list_ports
from serial.tools.list_ports_common import ListPortInfo

from ..core.errors import (
    NotFoundError,
    NotSupportedError,
    PermissionDeniedError,
    classify_io_error,
    classify_open_error,
)
from ..core.models import PortConfig, PortHandle
from .config import SerialConfig

logger = logging.getLogger(__name__)

PortChooser = Callable[
    [Sequence[PortHandle]],
    Union[Optional[PortHandle], Awaitable[Optional[PortHandle]]],
]


def first_port(candidates: Sequence[PortHandle]) -> Optional[PortHandle]:
    """Chooser that takes the first enumerated port."""
    return candidates[0] if candidates else None


class SerialStream(abc.ABC):
    """Readable and writable byte stream of one open port."""

    @abc.abstractmethod
    async def read(self, size: int) -> bytes:
        """Return the next chunk, or ``b""`` at end of stream."""

    @abc.abstractmethod
    async def write(self, data: bytes) -> None:
        """Write ``data`` and wait until it has been handed to the device."""

    @abc.abstractmethod
    async def close(self) -> None:
        """Release the underlying port."""


class SerialPlatform(abc.ABC):
    """What the host offers for serial ports."""

    #: False when the host has no serial port capability at all
    available: bool = True

    _open_ports: Optional[Dict[str, Any]] = None

    @property
    def open_ports(self) -> Dict[str, Any]:
        """Live ``OpenPort`` objects keyed by device name."""
        if self._open_ports is None:
            self._open_ports = {}
        return self._open_ports

    @abc.abstractmethod
    async def list_ports(self) -> List[PortHandle]:
        """Enumerate the ports currently present."""

    @abc.abstractmethod
    async def open(self, handle: PortHandle, config: PortConfig) -> SerialStream:
        """Open ``handle`` with ``config``.

        Raises:
            IoFailureError: If the OS rejects the open.
        """

    def check_access(self, handle: PortHandle) -> None:
        """Raise ``PermissionDeniedError`` if the process may not use ``handle``."""

    async def request_port(
        self,
        port_name: Optional[str] = None,
        chooser: Optional[PortChooser] = None,
    ) -> PortHandle:
        """Let the operator pick a port.

        Args:
            port_name: Device name or pyserial URL chosen up front. Names that
                are not enumerated (``socket://``, ``rfc2217://``) are accepted
                as-is.
            chooser: Called with the enumerated ports; returns the selection
                or ``None`` if the operator cancelled.

        Raises:
            NotFoundError: If nothing was selected.
            PermissionDeniedError: If the selected device cannot be accessed.
        """
        candidates = await self.list_ports()
        if port_name:
            handle = next((p for p in candidates if p.device == port_name), None)
            if handle is None:
                handle = PortHandle(device=port_name)
        else:
            if chooser is None:
                raise NotFoundError("No serial port was selected")
            selected = chooser(candidates)
            if inspect.isawaitable(selected):
                selected = await selected
            if selected is None:
                raise NotFoundError("No serial port was selected")
            handle = selected

        self.check_access(handle)
        return handle


class PySerialStream(SerialStream):
    """``serial_asyncio`` stream pair."""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        self._reader = reader
        self._writer = writer

    async def read(self, size: int) -> bytes:
        try:
            return await self._reader.read(size)
        except (serial.SerialException, OSError) as e:
            raise classify_io_error(e) from e

    async def write(self, data: bytes) -> None:
        try:
            self._writer.write(data)
            await self._writer.drain()
        except (serial.SerialException, OSError) as e:
            raise classify_io_error(e) from e

    async def close(self) -> None:
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except (serial.SerialException, OSError) as e:
            # The port is gone either way
            logger.debug(f"Error while closing serial stream: {e}")


class PySerialPlatform(SerialPlatform):
    """Serial ports through pyserial and pyserial-asyncio."""

    _BYTESIZES = {5: serial.FIVEBITS, 6: serial.SIXBITS, 7: serial.SEVENBITS, 8: serial.EIGHTBITS}
    _PARITIES = {"none": serial.PARITY_NONE, "even": serial.PARITY_EVEN, "odd": serial.PARITY_ODD}
    _STOPBITS = {1: serial.STOPBITS_ONE, 1.5: serial.STOPBITS_ONE_POINT_FIVE, 2: serial.STOPBITS_TWO}

    # Shared by every instance: they all address the same host ports
    _open_ports: Dict[str, Any] = {}

    async def list_ports(self) -> List[PortHandle]:
        try:
            ports = list_ports.comports()
        except (TypeError, ValueError, OSError) as e:
            # pyserial enumeration fails in some sandboxed environments (snap/flatpak)
            logger.warning(f"Error listing serial ports: {e}")
            return []
        return [self._to_handle(p) for p in ports]

    @staticmethod
    def _to_handle(port: ListPortInfo) -> PortHandle:
        return PortHandle(
            device=port.device,
            description=port.description or "",
            hwid=port.hwid or "",
            vid=port.vid,
            pid=port.pid,
            serial_number=port.serial_number,
            manufacturer=port.manufacturer,
        )

    def check_access(self, handle: PortHandle) -> None:
        # Windows COM names and URLs are not filesystem paths
        if os.path.exists(handle.device) and not os.access(handle.device, os.R_OK | os.W_OK):
            raise PermissionDeniedError(
                f"No read/write permission on {handle.device}"
            )

    async def open(self, handle: PortHandle, config: PortConfig) -> SerialStream:
        try:
            reader, writer = await serial_asyncio.open_serial_connection(
                url=handle.device,
                baudrate=config.baud_rate,
                bytesize=self._BYTESIZES[config.data_bits],
                parity=self._PARITIES[config.parity],
                stopbits=self._STOPBITS[config.stop_bits],
                rtscts=config.flow_control == "hardware",
            )
        except (serial.SerialException, OSError, ValueError) as e:
            raise classify_open_error(e) from e

        try:
            await asyncio.sleep(SerialConfig.SETTLE_DELAY)
            writer.transport.serial.reset_input_buffer()  # Flush any old data
        except (serial.SerialException, OSError) as e:
            writer.close()
            raise classify_open_error(e) from e
        except BaseException:
            # Cancelled by the open timeout
            writer.close()
            raise
        logger.info(f"Opened {handle.device} at {config.baud_rate} baud")
        return PySerialStream(reader, writer)


class UnsupportedPlatform(SerialPlatform):
    """Host without any serial capability."""

    available = False

    async def list_ports(self) -> List[PortHandle]:
        raise NotSupportedError("Serial ports are not supported on this platform")

    async def open(self, handle: PortHandle, config: PortConfig) -> SerialStream:
        raise NotSupportedError("Serial ports are not supported on this platform")


def default_platform() -> SerialPlatform:
    """Return the serial capability of the running interpreter."""
    if sys.platform in SerialConfig.UNSUPPORTED_PLATFORMS:
        return UnsupportedPlatform()
    return PySerialPlatform()

"""Thermal receipt printer device."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Optional

from ..core.errors import DeviceError, NotFoundError
from ..core.settings import PrinterSettings
from ..printer import commands
from ..printer.encoder import encode
from ..printer.receipt import ReceiptDocument, build_test_page
from ..serial.platform import SerialPlatform
from .base import SupervisedDevice

logger = logging.getLogger(__name__)


class ThermalPrinter(SupervisedDevice):
    """ESC/POS printer on a serial port.

    A failed write is final for that print job: the receipt is never sent a
    second time, so a job can not cut twice or kick the drawer twice.
    """

    NAME = "printer"
    DEVICE_MODEL = "ESC/POS printer"
    SETTINGS_CLASS = PrinterSettings

    def __init__(
        self,
        platform: Optional[SerialPlatform] = None,
        settings: Optional[PrinterSettings] = None,
    ):
        super().__init__(platform, settings)
        self._print_lock = asyncio.Lock()
        self._printing = False

    @property
    def printing(self) -> bool:
        return self._printing

    async def _send(self, data: bytes, what: str) -> None:
        if not self.is_connected:
            error = NotFoundError("Printer is not connected")
            self._record(error)
            raise error

        async with self._print_lock:
            self._printing = True
            try:
                await self.manager.write(data)
            except DeviceError as e:
                logger.error(f"Printing {what} failed: {e}")
                await self._report_failure(e)
                raise
            finally:
                self._printing = False
        logger.info(f"Printed {what} ({len(data)} bytes)")

    async def print_receipt(self, document: ReceiptDocument) -> None:
        """Encode and print ``document`` in a single write.

        Raises:
            NotFoundError: If the printer is not connected.
            IoFailureError: If the write is rejected.
            DeviceTimeoutError: If the printer does not accept the data.
        """
        data = encode(document, self.settings.characters_per_line, self.settings.encoding)
        await self._send(data, f"receipt of {len(document)} blocks")

    async def print_test_page(self, now: Optional[datetime] = None) -> None:
        """Print the configuration self-test page."""
        await self.print_receipt(build_test_page(self.settings, now))

    async def open_drawer(self) -> None:
        """Kick the cash drawer without printing."""
        await self._send(commands.DRAWER_KICK, "drawer kick")

    async def send_raw(self, data: bytes) -> None:
        """Send bytes as-is, for command-level troubleshooting."""
        await self._send(bytes(data), "raw data")

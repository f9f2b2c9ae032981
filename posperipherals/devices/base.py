"""Connection supervision shared by the printer and the scale.

``SupervisedDevice`` owns one ``SerialPortManager`` and drives the
connection state machine::

    DISCONNECTED -> CONNECTING            explicit connect() only
    CONNECTING   -> OPEN | DISCONNECTED   open succeeded / failed (no retry)
    OPEN        <-> READING               scale read loop
    OPEN/READING -> FAULTED               I/O failure mid-session
    FAULTED      -> CONNECTING            bounded automatic retry
    any          -> DISCONNECTED          explicit disconnect()

Automatic retries only happen for transient I/O failures on a connection
that was established in this session: selecting a port needs the operator,
so a failed first connect is reported, never retried.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from ..core.diagnostics import Diagnosis, diagnose
from ..core.errors import DeviceError, DeviceTimeoutError, IoFailureError, IoFailureReason
from ..core.models import (
    ConnectionState,
    PortConfig,
    PortHandle,
    PortInfo,
    PortReport,
    SerialConnection,
)
from ..core.settings import DeviceSettings
from ..logger import log_json
from ..serial.manager import SerialPortManager
from ..serial.platform import PortChooser, SerialPlatform, default_platform

logger = logging.getLogger(__name__)


class SupervisedDevice:
    """A serial peripheral with its connection lifecycle and retry policy."""

    NAME = "device"
    DEVICE_MODEL = "Serial device"
    SETTINGS_CLASS = DeviceSettings

    def __init__(
        self,
        platform: Optional[SerialPlatform] = None,
        settings: Optional[DeviceSettings] = None,
    ):
        self.platform = platform or default_platform()
        self.settings = settings or self.SETTINGS_CLASS()
        self.manager = SerialPortManager(self.platform, self.NAME)
        self.last_error: Optional[DeviceError] = None
        self.last_diagnosis: Optional[Diagnosis] = None
        self.recovery_task: Optional[asyncio.Task] = None
        self._handle: Optional[PortHandle] = None
        self._config: Optional[PortConfig] = None
        self._established = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def connection(self) -> SerialConnection:
        return self.manager.connection

    @property
    def state(self) -> ConnectionState:
        return self.connection.state

    @property
    def is_connected(self) -> bool:
        return self.connection.is_connected

    def _record(self, error: Optional[DeviceError]) -> None:
        self.last_error = error
        self.last_diagnosis = diagnose(error) if error is not None else None
        if error is not None:
            log_json(logger, logging.WARNING, {
                "device": self.NAME,
                "state": self.state.value,
                "error": error.kind.value,
                "category": self.last_diagnosis.category.value,
                "detail": str(error),
            })

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    async def _on_open(self) -> None:
        """Called after every successful open, first connect and retries alike."""

    async def _on_closed(self) -> None:
        """Called after the port was closed by an explicit disconnect."""

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(
        self,
        port_name: Optional[str] = None,
        chooser: Optional[PortChooser] = None,
    ) -> None:
        """Select and open the device port.

        Args:
            port_name: Port chosen up front (e.g. ``/dev/ttyUSB0``, ``COM3``).
            chooser: Asked to pick among enumerated ports when ``port_name``
                is not given.

        Raises:
            DeviceError: Any failure, unchanged. The device is left
                DISCONNECTED and ``last_diagnosis`` holds the guidance.
        """
        if self.state is not ConnectionState.DISCONNECTED:
            await self.disconnect()

        self.connection.transition(ConnectionState.CONNECTING)
        self._record(None)
        config = self.settings.to_port_config()
        try:
            handle = await self.manager.request_port(port_name=port_name, chooser=chooser)
            await self.manager.open(handle, config)
        except DeviceError as e:
            await self.manager.close()
            self.connection.transition(ConnectionState.DISCONNECTED)
            self.connection.clear()
            self._record(e)
            logger.error(f"{self.NAME}: connection failed: {e}")
            raise

        self._handle = handle
        self._config = config
        self._established = True
        self.connection.device_model = self.DEVICE_MODEL
        self.connection.transition(ConnectionState.OPEN)
        logger.info(f"{self.NAME}: connected on {handle.label}")
        await self._on_open()

    async def disconnect(self) -> None:
        """Close the port and stop any retry. Safe to call in any state."""
        self._cancel_recovery()
        await self.manager.close()
        await self._on_closed()
        if self.state is not ConnectionState.DISCONNECTED:
            self.connection.transition(ConnectionState.DISCONNECTED)
        self.connection.clear()
        self._handle = None
        self._config = None
        self._established = False
        logger.info(f"{self.NAME}: disconnected")

    def update_config(self, **changes) -> DeviceSettings:
        """Change settings; line settings apply on the next connect.

        Raises:
            ValueError: For unknown keys or invalid values.
        """
        self.settings = self.settings.updated(**changes)
        logger.info(f"{self.NAME}: configuration updated: {changes}")
        if self.is_connected:
            logger.info(f"{self.NAME}: reconnect to apply line settings")
        return self.settings

    # ------------------------------------------------------------------
    # Failure handling
    # ------------------------------------------------------------------

    def _is_recoverable(self, error: DeviceError) -> bool:
        if not self._established or self._handle is None:
            return False
        if isinstance(error, IoFailureError):
            return error.reason is IoFailureReason.TRANSIENT
        return isinstance(error, DeviceTimeoutError)

    async def _report_failure(self, error: DeviceError) -> None:
        """Fault the connection and decide between retry and terminal failure."""
        self._record(error)
        if self.state in (ConnectionState.OPEN, ConnectionState.READING):
            self.connection.transition(ConnectionState.FAULTED)
        await self.manager.close()

        if self._is_recoverable(error) and self.settings.retry_attempts > 0:
            logger.warning(f"{self.NAME}: {error}; trying to reconnect")
            self._cancel_recovery()
            self.recovery_task = asyncio.create_task(self._recover())
        else:
            logger.error(f"{self.NAME}: connection faulted: {error}")

    async def _recover(self) -> bool:
        """Reopen the already granted port a bounded number of times."""
        attempts = self.settings.retry_attempts
        for attempt in range(1, attempts + 1):
            await asyncio.sleep(self.settings.retry_delay)
            if self.state is not ConnectionState.FAULTED:
                return False

            self.connection.transition(ConnectionState.CONNECTING)
            try:
                await self.manager.open(self._handle, self._config)
            except DeviceError as e:
                self.connection.transition(ConnectionState.FAULTED)
                self._record(e)
                logger.warning(f"{self.NAME}: reconnect attempt {attempt}/{attempts} failed: {e}")
                continue

            self.connection.device_model = self.DEVICE_MODEL
            self.connection.transition(ConnectionState.OPEN)
            self._record(None)
            logger.info(f"{self.NAME}: reconnected on attempt {attempt}/{attempts}")
            await self._on_open()
            return True

        logger.error(f"{self.NAME}: giving up after {attempts} reconnect attempts")
        return False

    def _cancel_recovery(self) -> None:
        task = self.recovery_task
        self.recovery_task = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    # ------------------------------------------------------------------
    # Port discovery
    # ------------------------------------------------------------------

    async def list_available_ports(self) -> List[str]:
        """Names of the ports currently present.

        Raises:
            NotSupportedError: If the platform has no serial capability.
        """
        return [p.device for p in await self.manager.list_ports()]

    async def get_port_info(self) -> PortReport:
        """Describe the enumerated ports, marking the one in use."""
        if not self.platform.available:
            return PortReport(supported=False)
        try:
            ports = await self.manager.list_ports()
        except DeviceError as e:
            logger.error(f"{self.NAME}: error listing ports: {e}")
            return PortReport(supported=True, error=str(e))

        current = self._handle.device if self._handle is not None and self.is_connected else None
        return PortReport(
            supported=True,
            ports=[
                PortInfo(
                    index=i,
                    device=p.device,
                    description=p.description,
                    vid=p.vid,
                    pid=p.pid,
                    connected=p.device == current,
                )
                for i, p in enumerate(ports)
            ],
        )

    async def test_connection(
        self,
        port_name: Optional[str] = None,
        chooser: Optional[PortChooser] = None,
    ) -> bool:
        """Open and immediately close a port with the current settings.

        Uses a separate manager, so the device's own connection is left
        alone. Failures are recorded in ``last_error``. While the device is
        connected, asking for its own port (or for no port in particular)
        succeeds without opening it a second time.
        """
        if self.is_connected and port_name in (None, self._handle.device):
            logger.info(f"{self.NAME}: already connected on {self._handle.label}")
            return True

        checker = SerialPortManager(self.platform, f"{self.NAME}-check")
        try:
            handle = await checker.request_port(port_name=port_name, chooser=chooser)
            await checker.open(handle, self.settings.to_port_config())
        except DeviceError as e:
            self._record(e)
            logger.error(f"{self.NAME}: connection test failed: {e}")
            return False
        finally:
            await checker.close()
        logger.info(f"{self.NAME}: connection test succeeded on {handle.label}")
        return True

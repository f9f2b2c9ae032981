"""POSPeripherals: serial receipt printers and weighing scales for point of sale."""

from .version import __version__, __version_info__, APP_NAME
from .core import (
    ConnectionState,
    DeviceError,
    PrinterSettings,
    ScaleSettings,
    WeightReading,
    diagnose,
)
from .serial import SerialPortManager, SimulatedPlatform, default_platform
from .printer import ReceiptDocument, build_receipt, encode
from .devices import Scale, ThermalPrinter

__all__ = [
    "__version__",
    "__version_info__",
    "APP_NAME",
    "ConnectionState",
    "DeviceError",
    "PrinterSettings",
    "ScaleSettings",
    "WeightReading",
    "diagnose",
    "SerialPortManager",
    "SimulatedPlatform",
    "default_platform",
    "ReceiptDocument",
    "build_receipt",
    "encode",
    "Scale",
    "ThermalPrinter",
]

"""Serial port package for POSPeripherals."""

from .config import SerialConfig
from .platform import (
    PySerialPlatform,
    SerialPlatform,
    SerialStream,
    UnsupportedPlatform,
    default_platform,
    first_port,
)
from .manager import OpenPort, PortReader, PortWriter, SerialPortManager
from .simulated import SimulatedDevice, SimulatedPlatform, demo_platform

__all__ = [
    "SerialConfig",
    "PySerialPlatform",
    "SerialPlatform",
    "SerialStream",
    "UnsupportedPlatform",
    "default_platform",
    "first_port",
    "OpenPort",
    "PortReader",
    "PortWriter",
    "SerialPortManager",
    "SimulatedDevice",
    "SimulatedPlatform",
    "demo_platform",
]

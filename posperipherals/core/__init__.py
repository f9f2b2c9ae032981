"""Core data structures, errors and settings for POSPeripherals."""

from .errors import (
    AlreadyOpenError,
    DeviceError,
    DeviceTimeoutError,
    ErrorKind,
    IoFailureError,
    IoFailureReason,
    NotFoundError,
    NotSupportedError,
    PermissionDeniedError,
    ReadCancelled,
    ReaderLockedError,
)
from .models import (
    ConnectionState,
    PortConfig,
    PortHandle,
    PortInfo,
    PortReport,
    SerialConnection,
    WeightReading,
)
from .settings import DeviceSettings, PrinterSettings, ScaleSettings
from .diagnostics import Diagnosis, RemediationCategory, diagnose

__all__ = [
    'AlreadyOpenError',
    'DeviceError',
    'DeviceTimeoutError',
    'ErrorKind',
    'IoFailureError',
    'IoFailureReason',
    'NotFoundError',
    'NotSupportedError',
    'PermissionDeniedError',
    'ReadCancelled',
    'ReaderLockedError',
    'ConnectionState',
    'PortConfig',
    'PortHandle',
    'PortInfo',
    'PortReport',
    'SerialConnection',
    'WeightReading',
    'DeviceSettings',
    'PrinterSettings',
    'ScaleSettings',
    'Diagnosis',
    'RemediationCategory',
    'diagnose',
]

"""Device error taxonomy and classification of platform serial errors."""

from __future__ import annotations

import errno
from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Tag of a device error."""
    NOT_SUPPORTED = "not_supported"
    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    ALREADY_OPEN = "already_open"
    IO_FAILURE = "io_failure"
    TIMEOUT = "timeout"


class IoFailureReason(Enum):
    """What the OS reported when a serial operation was rejected."""
    DEVICE_BUSY = "device busy"
    ACCESS_DENIED = "access denied"
    DEVICE_NOT_FOUND = "device not found"
    DEVICE_LOST = "device lost"
    INVALID_SETTINGS = "invalid settings"
    TRANSIENT = "transient I/O"


class DeviceError(Exception):
    """Base class of every error surfaced by a serial peripheral."""
    kind: ErrorKind = ErrorKind.IO_FAILURE

    def __init__(self, message: str = ""):
        super().__init__(message or self.kind.value)
        self.message = message or self.kind.value


class NotSupportedError(DeviceError):
    """The host offers no serial port capability."""
    kind = ErrorKind.NOT_SUPPORTED


class PermissionDeniedError(DeviceError):
    """The selected port exists but this process may not use it."""
    kind = ErrorKind.PERMISSION_DENIED


class NotFoundError(DeviceError):
    """No port was selected, or the device is not connected."""
    kind = ErrorKind.NOT_FOUND


class AlreadyOpenError(DeviceError):
    """The device already has a live port that was never closed."""
    kind = ErrorKind.ALREADY_OPEN


class DeviceTimeoutError(DeviceError):
    """A serial operation did not complete in time."""
    kind = ErrorKind.TIMEOUT


class IoFailureError(DeviceError):
    """The platform rejected an open, read or write.

    Attributes:
        reason: Classified cause, used to pick remediation text.
        detail: Raw message reported by the platform.
    """
    kind = ErrorKind.IO_FAILURE

    def __init__(self, detail: str, reason: IoFailureReason = IoFailureReason.TRANSIENT):
        super().__init__(f"{reason.value}: {detail}")
        self.detail = detail
        self.reason = reason

    @property
    def device_lost(self) -> bool:
        return self.reason is IoFailureReason.DEVICE_LOST


class ReadCancelled(Exception):
    """A pending read was cancelled because its port was closed."""


class ReaderLockedError(RuntimeError):
    """A reader or writer lease is already held, or a read is already in flight."""


class InvalidTransitionError(RuntimeError):
    """A connection was asked to move to a state it cannot reach."""


_BUSY_ERRNOS = {errno.EBUSY}
_ACCESS_ERRNOS = {errno.EACCES, errno.EPERM}
_MISSING_ERRNOS = {errno.ENOENT, errno.ENODEV, errno.ENXIO}
_LOST_ERRNOS = {errno.EIO, errno.ENXIO, errno.ENODEV}

_BUSY_MARKERS = ("busy", "in use", "being used by another process")
_ACCESS_MARKERS = ("access is denied", "access denied", "permission denied")
_MISSING_MARKERS = ("no such file", "cannot find the file", "not found", "does not exist")
_LOST_MARKERS = (
    "device lost",
    "disconnected",
    "returned no data",
    "clearcommerror",
    "does not recognize the command",
)


def _find_errno(exc: BaseException) -> Optional[int]:
    """Return the first errno found on the exception or its chain."""
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        code = getattr(current, "errno", None)
        if isinstance(code, int):
            return code
        current = current.__cause__ or current.__context__
    return None


def classify_open_error(exc: BaseException) -> IoFailureError:
    """Translate an exception raised while opening a port.

    Args:
        exc: Exception raised by pyserial (usually ``SerialException``),
            an ``OSError`` or a ``ValueError`` for unsupported settings.

    Returns:
        An ``IoFailureError`` whose reason tells busy, denied and missing
        devices apart.
    """
    if isinstance(exc, IoFailureError):
        return exc
    detail = str(exc) or exc.__class__.__name__
    if isinstance(exc, ValueError):
        return IoFailureError(detail, IoFailureReason.INVALID_SETTINGS)

    code = _find_errno(exc)
    if code in _BUSY_ERRNOS:
        return IoFailureError(detail, IoFailureReason.DEVICE_BUSY)
    if code in _ACCESS_ERRNOS:
        return IoFailureError(detail, IoFailureReason.ACCESS_DENIED)
    if code in _MISSING_ERRNOS:
        return IoFailureError(detail, IoFailureReason.DEVICE_NOT_FOUND)

    lowered = detail.lower()
    if any(m in lowered for m in _BUSY_MARKERS):
        return IoFailureError(detail, IoFailureReason.DEVICE_BUSY)
    if any(m in lowered for m in _ACCESS_MARKERS):
        return IoFailureError(detail, IoFailureReason.ACCESS_DENIED)
    if any(m in lowered for m in _MISSING_MARKERS):
        return IoFailureError(detail, IoFailureReason.DEVICE_NOT_FOUND)
    return IoFailureError(detail, IoFailureReason.TRANSIENT)


def classify_io_error(exc: BaseException) -> IoFailureError:
    """Translate an exception raised by a read or write on an open port.

    Unplugged USB adapters show up as EIO/ENXIO/ENODEV on POSIX and as
    ClearCommError failures on Windows; those become ``DEVICE_LOST``.
    Everything else is treated as transient.
    """
    if isinstance(exc, IoFailureError):
        return exc
    detail = str(exc) or exc.__class__.__name__
    code = _find_errno(exc)
    if code in _LOST_ERRNOS:
        return IoFailureError(detail, IoFailureReason.DEVICE_LOST)
    lowered = detail.lower()
    if any(m in lowered for m in _LOST_MARKERS):
        return IoFailureError(detail, IoFailureReason.DEVICE_LOST)
    return IoFailureError(detail, IoFailureReason.TRANSIENT)

"""Mapping of device errors to operator remediation guidance."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Tuple

from .errors import DeviceError, ErrorKind, IoFailureError, IoFailureReason


class RemediationCategory(Enum):
    """Fixed set of guidance buckets shown to operators."""
    UNSUPPORTED_PLATFORM = "unsupported_platform"
    PERMISSION_OR_SELECTION = "permission_or_selection"
    DEVICE_ABSENT = "device_absent"
    TRANSIENT_IO = "transient_io"
    CONFIGURATION_MISMATCH = "configuration_mismatch"


@dataclass(frozen=True)
class Diagnosis:
    """Actionable description of a device error."""
    category: RemediationCategory
    title: str
    steps: Tuple[str, ...] = field(default_factory=tuple)
    detail: str = ""

    def render(self) -> str:
        """Format as a numbered, multi-line message."""
        lines = [self.title, ""]
        lines.extend(f"{i}. {step}" for i, step in enumerate(self.steps, 1))
        if self.detail:
            lines.extend(["", f"Technical detail: {self.detail}"])
        return "\n".join(lines)


_GUIDANCE: Dict[RemediationCategory, Tuple[str, List[str]]] = {
    RemediationCategory.UNSUPPORTED_PLATFORM: (
        "Serial ports are not available on this platform.",
        [
            "Run on a host with native serial port access (Linux, Windows or macOS)",
            "Use the simulated device mode for demonstrations",
        ],
    ),
    RemediationCategory.PERMISSION_OR_SELECTION: (
        "The serial port could not be selected or accessed.",
        [
            "Select the port the device is attached to when prompted",
            "Close other programs that may be using the port",
            "On Linux, add the user to the 'dialout' group and log in again",
            "On Windows, check the port in Device Manager or run as administrator",
        ],
    ),
    RemediationCategory.DEVICE_ABSENT: (
        "The device was not found.",
        [
            "Check that the device is switched on",
            "Check that the USB/serial cable is firmly connected",
            "Try the cable in a different USB port",
            "Check that the USB-serial adapter drivers are installed",
            "Restart the device and connect again",
        ],
    ),
    RemediationCategory.TRANSIENT_IO: (
        "Communication with the device was interrupted.",
        [
            "Check that the device is responding",
            "Check the cable for damage",
            "Disconnect and reconnect the device",
            "Try a different USB port",
        ],
    ),
    RemediationCategory.CONFIGURATION_MISMATCH: (
        "The device did not respond with the current settings.",
        [
            "Check the baud rate configured on the device (scales often use 4800 or 9600)",
            "Check data bits, stop bits and parity against the device manual",
            "Check the protocol selected on the device (e.g. PRT2 for Toledo scales)",
        ],
    ),
}

_IO_CATEGORIES = {
    IoFailureReason.DEVICE_BUSY: RemediationCategory.PERMISSION_OR_SELECTION,
    IoFailureReason.ACCESS_DENIED: RemediationCategory.PERMISSION_OR_SELECTION,
    IoFailureReason.DEVICE_NOT_FOUND: RemediationCategory.DEVICE_ABSENT,
    IoFailureReason.DEVICE_LOST: RemediationCategory.DEVICE_ABSENT,
    IoFailureReason.INVALID_SETTINGS: RemediationCategory.CONFIGURATION_MISMATCH,
    IoFailureReason.TRANSIENT: RemediationCategory.TRANSIENT_IO,
}

_KIND_CATEGORIES = {
    ErrorKind.NOT_SUPPORTED: RemediationCategory.UNSUPPORTED_PLATFORM,
    ErrorKind.PERMISSION_DENIED: RemediationCategory.PERMISSION_OR_SELECTION,
    ErrorKind.NOT_FOUND: RemediationCategory.PERMISSION_OR_SELECTION,
    ErrorKind.ALREADY_OPEN: RemediationCategory.PERMISSION_OR_SELECTION,
    ErrorKind.TIMEOUT: RemediationCategory.CONFIGURATION_MISMATCH,
}


def categorize(error: DeviceError) -> RemediationCategory:
    """Return the remediation category of ``error``."""
    if isinstance(error, IoFailureError):
        return _IO_CATEGORIES[error.reason]
    return _KIND_CATEGORIES.get(error.kind, RemediationCategory.TRANSIENT_IO)


def diagnose(error: DeviceError) -> Diagnosis:
    """Build operator guidance for ``error``."""
    category = categorize(error)
    title, steps = _GUIDANCE[category]
    steps = list(steps)

    if isinstance(error, IoFailureError) and error.reason is IoFailureReason.DEVICE_BUSY:
        steps.insert(0, "Another program is holding the port; close it before retrying")
    elif error.kind is ErrorKind.NOT_FOUND:
        title = "No serial port was selected."
    elif error.kind is ErrorKind.ALREADY_OPEN:
        steps.insert(0, "Disconnect the device before connecting it again")

    detail = error.detail if isinstance(error, IoFailureError) else error.message
    return Diagnosis(category=category, title=title, steps=tuple(steps), detail=detail)

import errno

import pytest
import serial

from posperipherals.core.diagnostics import RemediationCategory, categorize, diagnose
from posperipherals.core.errors import (
    AlreadyOpenError,
    DeviceTimeoutError,
    ErrorKind,
    IoFailureError,
    IoFailureReason,
    NotFoundError,
    NotSupportedError,
    PermissionDeniedError,
    classify_io_error,
    classify_open_error,
)


def chained(cause, message):
    try:
        try:
            raise cause
        except OSError as e:
            raise serial.SerialException(message) from e
    except serial.SerialException as e:
        return e


class TestClassifyOpenError:

    @pytest.mark.parametrize("exc, reason", [
        (OSError(errno.EBUSY, "Device or resource busy"), IoFailureReason.DEVICE_BUSY),
        (OSError(errno.EACCES, "Permission denied"), IoFailureReason.ACCESS_DENIED),
        (OSError(errno.ENOENT, "No such file or directory"), IoFailureReason.DEVICE_NOT_FOUND),
        (ValueError("Invalid baud rate: -1"), IoFailureReason.INVALID_SETTINGS),
        (serial.SerialException("something odd happened"), IoFailureReason.TRANSIENT),
    ])
    def test_errno_and_type(self, exc, reason):
        assert classify_open_error(exc).reason is reason

    @pytest.mark.parametrize("message, reason", [
        ("could not open port 'COM3': PermissionError(13, 'Access is denied.', None, 5)",
         IoFailureReason.ACCESS_DENIED),
        ("could not open port 'COM9': FileNotFoundError(2, 'The system cannot find the file specified.', None, 2)",
         IoFailureReason.DEVICE_NOT_FOUND),
        ("could not open port /dev/ttyUSB0: port is busy", IoFailureReason.DEVICE_BUSY),
    ])
    def test_platform_messages(self, message, reason):
        assert classify_open_error(serial.SerialException(message)).reason is reason

    def test_errno_found_on_cause(self):
        exc = chained(OSError(errno.EBUSY, "busy"), "could not open port")
        assert classify_open_error(exc).reason is IoFailureReason.DEVICE_BUSY

    def test_keeps_platform_detail(self):
        error = classify_open_error(OSError(errno.EACCES, "Permission denied"))
        assert "Permission denied" in error.detail
        assert str(error).startswith("access denied: ")


class TestClassifyIoError:

    def test_eio_is_device_lost(self):
        error = classify_io_error(OSError(errno.EIO, "Input/output error"))
        assert error.device_lost

    def test_pyserial_disconnect_message(self):
        exc = serial.SerialException(
            "device reports readiness to read but returned no data "
            "(device disconnected or multiple access on port?)"
        )
        assert classify_io_error(exc).reason is IoFailureReason.DEVICE_LOST

    def test_windows_clear_comm_error(self):
        exc = serial.SerialException("ClearCommError failed (PermissionError(13, 'Access is denied.'))")
        assert classify_io_error(exc).device_lost

    def test_other_errors_are_transient(self):
        error = classify_io_error(OSError(errno.EAGAIN, "Resource temporarily unavailable"))
        assert error.reason is IoFailureReason.TRANSIENT
        assert not error.device_lost

    def test_io_failure_passes_through(self):
        original = IoFailureError("x", IoFailureReason.DEVICE_LOST)
        assert classify_io_error(original) is original


def test_error_kinds():
    assert NotSupportedError().kind is ErrorKind.NOT_SUPPORTED
    assert NotSupportedError().message == "not_supported"
    assert PermissionDeniedError("no").kind is ErrorKind.PERMISSION_DENIED
    assert IoFailureError("x").kind is ErrorKind.IO_FAILURE
    assert DeviceTimeoutError("slow").message == "slow"


class TestDiagnose:

    @pytest.mark.parametrize("error, category", [
        (NotSupportedError(), RemediationCategory.UNSUPPORTED_PLATFORM),
        (PermissionDeniedError(), RemediationCategory.PERMISSION_OR_SELECTION),
        (NotFoundError(), RemediationCategory.PERMISSION_OR_SELECTION),
        (AlreadyOpenError(), RemediationCategory.PERMISSION_OR_SELECTION),
        (DeviceTimeoutError(), RemediationCategory.CONFIGURATION_MISMATCH),
        (IoFailureError("x", IoFailureReason.DEVICE_BUSY), RemediationCategory.PERMISSION_OR_SELECTION),
        (IoFailureError("x", IoFailureReason.ACCESS_DENIED), RemediationCategory.PERMISSION_OR_SELECTION),
        (IoFailureError("x", IoFailureReason.DEVICE_NOT_FOUND), RemediationCategory.DEVICE_ABSENT),
        (IoFailureError("x", IoFailureReason.DEVICE_LOST), RemediationCategory.DEVICE_ABSENT),
        (IoFailureError("x", IoFailureReason.INVALID_SETTINGS), RemediationCategory.CONFIGURATION_MISMATCH),
        (IoFailureError("x"), RemediationCategory.TRANSIENT_IO),
    ])
    def test_categories(self, error, category):
        assert categorize(error) is category
        assert diagnose(error).category is category

    def test_every_diagnosis_has_steps(self):
        for reason in IoFailureReason:
            assert diagnose(IoFailureError("x", reason)).steps

    def test_busy_port_mentions_other_program(self):
        steps = diagnose(IoFailureError("x", IoFailureReason.DEVICE_BUSY)).steps
        assert "Another program" in steps[0]

    def test_no_selection_title(self):
        assert diagnose(NotFoundError("No serial port was selected")).title == "No serial port was selected."

    def test_render(self):
        text = diagnose(IoFailureError("port vanished", IoFailureReason.DEVICE_LOST)).render()
        assert text.startswith("The device was not found.")
        assert "1. Check that the device is switched on" in text
        assert text.endswith("Technical detail: port vanished")

"""Step-by-step diagnostic runs for operators."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..core.diagnostics import Diagnosis, diagnose
from ..core.errors import DeviceError, DeviceTimeoutError, NotSupportedError
from ..logger import log_json
from ..serial.platform import PortChooser
from .base import SupervisedDevice
from .printer import ThermalPrinter
from .scale import Scale

logger = logging.getLogger(__name__)


@dataclass
class DiagnosticStep:
    """Outcome of one check."""
    name: str
    ok: bool
    message: str
    diagnosis: Optional[Diagnosis] = None


@dataclass
class DiagnosticReport:
    """Ordered outcomes of a diagnostic run."""
    device: str
    steps: List[DiagnosticStep] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(step.ok for step in self.steps)

    def add(self, name: str, ok: bool, message: str,
            error: Optional[DeviceError] = None) -> DiagnosticStep:
        step = DiagnosticStep(name, ok, message, diagnose(error) if error is not None else None)
        self.steps.append(step)
        log_json(logger, logging.INFO if ok else logging.WARNING, {
            "device": self.device,
            "step": name,
            "ok": ok,
            "message": message,
        })
        return step

    def render(self) -> str:
        lines = []
        for i, step in enumerate(self.steps, 1):
            mark = "OK  " if step.ok else "FAIL"
            lines.append(f"{i}. [{mark}] {step.name}: {step.message}")
            if step.diagnosis is not None:
                lines.extend("     " + ln for ln in step.diagnosis.render().splitlines())
        lines.append("")
        lines.append(f"Diagnostic {'passed' if self.ok else 'found problems'}.")
        return "\n".join(lines)


async def _common_checks(
    report: DiagnosticReport,
    device: SupervisedDevice,
    port_name: Optional[str],
    chooser: Optional[PortChooser],
) -> bool:
    """Platform, connection and configuration checks; connects if needed.

    Returns:
        True if the device is connected afterwards.
    """
    if not device.platform.available:
        report.add("Platform support", False, "serial ports are not supported",
                   NotSupportedError("Serial ports are not supported on this platform"))
        return False
    report.add("Platform support", True, "serial ports available")

    report.add("Connection status", True,
               f"{device.state.value}" + (f" on {device.connection.label}" if device.connection.label else ""))

    s = device.settings
    try:
        s.to_port_config()
    except ValueError as e:
        report.add("Configuration", False, str(e))
        return False
    report.add("Configuration", True,
               f"{s.baud_rate} baud, {s.data_bits} data bits, {s.stop_bits:g} stop bits, "
               f"parity {s.parity}, flow control {s.flow_control}")

    if not device.is_connected:
        try:
            await device.connect(port_name=port_name, chooser=chooser)
        except DeviceError as e:
            report.add("Connection attempt", False, str(e), e)
            return False
        report.add("Connection attempt", True, f"connected on {device.connection.label}")
    return True


async def _port_check(report: DiagnosticReport, device: SupervisedDevice) -> None:
    info = await device.get_port_info()
    if info.error:
        report.add("Serial ports", False, info.error)
        return
    described = ", ".join(
        f"{p.device} (VID={p.vid}, PID={p.pid}{', in use' if p.connected else ''})"
        for p in info.ports
    )
    report.add("Serial ports", info.total > 0, f"{info.total} found" + (f": {described}" if described else ""))


async def run_printer_diagnostics(
    printer: ThermalPrinter,
    port_name: Optional[str] = None,
    chooser: Optional[PortChooser] = None,
    print_test: bool = True,
) -> DiagnosticReport:
    """Check the printer end to end, printing a test page if connected.

    Never raises for device errors; they become failed steps.
    """
    report = DiagnosticReport("printer")
    logger.info("Starting printer diagnostic")

    if await _common_checks(report, printer, port_name, chooser):
        report.add("Paper", True,
                   f"{printer.settings.paper_width}mm, {printer.settings.characters_per_line} "
                   f"characters per line, code page {printer.settings.encoding}")
        if print_test:
            try:
                await printer.print_test_page()
            except DeviceError as e:
                report.add("Test print", False, str(e), e)
            else:
                report.add("Test print", True, "test page sent; check that it came out of the printer")

    if printer.platform.available:
        await _port_check(report, printer)
    return report


async def run_scale_diagnostics(
    scale: Scale,
    port_name: Optional[str] = None,
    chooser: Optional[PortChooser] = None,
    timeout: Optional[float] = None,
) -> DiagnosticReport:
    """Check the scale end to end, waiting for one weight sample."""
    report = DiagnosticReport("scale")
    logger.info("Starting scale diagnostic")

    if await _common_checks(report, scale, port_name, chooser):
        wait = timeout if timeout is not None else scale.settings.stable_weight_timeout
        reading = await scale.request_stable_weight(wait)
        if reading is None:
            error = scale.last_error or DeviceTimeoutError(f"No weight data received in {wait:g}s")
            report.add("Weight sample", False, str(error), error)
        else:
            state = "stable" if reading.stable else "unstable"
            report.add("Weight sample", True, f"{reading.value:.3f} {reading.unit} ({state})")

    if scale.platform.available:
        await _port_check(report, scale)
    return report

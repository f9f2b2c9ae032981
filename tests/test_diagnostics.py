import asyncio

from posperipherals.core.diagnostics import RemediationCategory
from posperipherals.core.settings import ScaleSettings
from posperipherals.devices.diagnostics import (
    DiagnosticReport,
    run_printer_diagnostics,
    run_scale_diagnostics,
)
from posperipherals.devices.printer import ThermalPrinter
from posperipherals.devices.scale import Scale
from posperipherals.printer import commands
from posperipherals.serial.platform import UnsupportedPlatform
from posperipherals.serial.simulated import SimulatedDevice, SimulatedPlatform


def names(report):
    return [step.name for step in report.steps]


def test_printer_diagnostics_pass():
    async def scenario():
        device = SimulatedDevice("SIM-PRINTER")
        report = await run_printer_diagnostics(ThermalPrinter(SimulatedPlatform(device)), "SIM-PRINTER")
        return report, device

    report, device = asyncio.run(scenario())
    assert report.ok
    assert names(report) == [
        "Platform support", "Connection status", "Configuration",
        "Connection attempt", "Paper", "Test print", "Serial ports",
    ]
    assert device.written.startswith(commands.INIT)
    assert "Diagnostic passed." in report.render()


def test_printer_diagnostics_without_test_print():
    async def scenario():
        device = SimulatedDevice("SIM-PRINTER")
        printer = ThermalPrinter(SimulatedPlatform(device))
        return await run_printer_diagnostics(printer, "SIM-PRINTER", print_test=False), device

    report, device = asyncio.run(scenario())
    assert "Test print" not in names(report)
    assert device.writes == []


def test_printer_diagnostics_missing_device():
    async def scenario():
        return await run_printer_diagnostics(ThermalPrinter(SimulatedPlatform()), "/dev/ttyUSB3")

    report = asyncio.run(scenario())
    assert not report.ok
    failed = [step for step in report.steps if not step.ok]
    assert [step.name for step in failed] == ["Connection attempt", "Serial ports"]
    assert failed[0].diagnosis.category is RemediationCategory.DEVICE_ABSENT
    rendered = report.render()
    assert "[FAIL] Connection attempt" in rendered
    assert "The device was not found." in rendered
    assert rendered.endswith("Diagnostic found problems.")


def test_unsupported_platform_stops_early():
    async def scenario():
        return await run_printer_diagnostics(ThermalPrinter(UnsupportedPlatform()))

    report = asyncio.run(scenario())
    assert names(report) == ["Platform support"]
    assert report.steps[0].diagnosis.category is RemediationCategory.UNSUPPORTED_PLATFORM


def test_scale_diagnostics_with_sample():
    async def scenario():
        device = SimulatedDevice("SIM-SCALE")
        device.feed(b"ST,GS,+001.250kg\r\n")
        scale = Scale(SimulatedPlatform(device))
        return await run_scale_diagnostics(scale, "SIM-SCALE", timeout=0.5)

    report = asyncio.run(scenario())
    assert report.ok
    assert report.steps[-2].name == "Weight sample"
    assert report.steps[-2].message == "1.250 kg (stable)"


def test_scale_diagnostics_without_data():
    async def scenario():
        scale = Scale(SimulatedPlatform(SimulatedDevice("SIM-SCALE")), ScaleSettings(baud_rate=9600))
        return await run_scale_diagnostics(scale, "SIM-SCALE", timeout=0.02)

    report = asyncio.run(scenario())
    sample = next(step for step in report.steps if step.name == "Weight sample")
    assert not sample.ok
    assert sample.diagnosis.category is RemediationCategory.CONFIGURATION_MISMATCH
    assert "9600 baud" in report.steps[2].message


def test_report_add():
    report = DiagnosticReport("printer")
    report.add("One", True, "fine")
    assert report.ok
    report.add("Two", False, "broken")
    assert not report.ok
    assert report.render().splitlines()[:2] == ["1. [OK  ] One: fine", "2. [FAIL] Two: broken"]

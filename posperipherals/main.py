"""Command line tool for checking printers and scales."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import List, Optional, Sequence

from .core.diagnostics import diagnose
from .core.errors import DeviceError
from .core.models import PortHandle
from .core.settings import PrinterSettings, ScaleSettings
from .devices.diagnostics import run_printer_diagnostics, run_scale_diagnostics
from .devices.printer import ThermalPrinter
from .devices.scale import Scale
from .logger import configure_logging, get_logger
from .serial.platform import SerialPlatform, default_platform
from .serial.simulated import SimulatedPlatform, demo_platform
from .version import APP_NAME, DESCRIPTION, __version__

logger = get_logger(__name__)

SIM_PRINTER = "SIM-PRINTER"
SIM_SCALE = "SIM-SCALE"
SIM_FRAMES = "US,GS,+000.812kg\r\nUS,GS,+001.247kg\r\nST,GS,+001.250kg\r\n"


def prompt_for_port(candidates: Sequence[PortHandle]) -> Optional[PortHandle]:
    """Numbered port menu on the terminal. Empty input cancels."""
    if not candidates:
        print("No serial ports found.")
        return None
    for i, port in enumerate(candidates, 1):
        print(f"  {i}. {port.label}")
    while True:
        answer = input("Select port (Enter to cancel): ").strip()
        if not answer:
            return None
        if answer.isdigit() and 1 <= int(answer) <= len(candidates):
            return candidates[int(answer) - 1]
        print(f"Enter a number between 1 and {len(candidates)}.")


async def choose_port(candidates: Sequence[PortHandle]) -> Optional[PortHandle]:
    """Run the port menu off the event loop."""
    return await asyncio.to_thread(prompt_for_port, candidates)


def _report(error: DeviceError) -> int:
    print(diagnose(error).render(), file=sys.stderr)
    return 1


async def cmd_ports(platform: SerialPlatform, args: argparse.Namespace) -> int:
    info = await ThermalPrinter(platform).get_port_info()
    if not info.supported:
        print("Serial ports are not supported on this platform.")
        return 1
    if info.error:
        print(f"Error listing ports: {info.error}", file=sys.stderr)
        return 1
    if not info.ports:
        print("No serial ports found.")
    for p in info.ports:
        ids = f" [VID={p.vid:04X} PID={p.pid:04X}]" if p.vid is not None and p.pid is not None else ""
        print(f"{p.device}\t{p.description}{ids}")
    return 0


async def cmd_weigh(platform: SerialPlatform, args: argparse.Namespace) -> int:
    scale = Scale(platform, ScaleSettings.load())
    try:
        await scale.connect(port_name=args.port, chooser=choose_port)
    except DeviceError as e:
        return _report(e)

    if isinstance(platform, SimulatedPlatform) and args.port == SIM_SCALE:
        platform.devices[SIM_SCALE].feed(SIM_FRAMES)

    try:
        reading = await scale.request_stable_weight(args.timeout)
    finally:
        await scale.disconnect()

    if reading is None:
        print("No weight data received. Check baud rate and scale protocol.", file=sys.stderr)
        return 1
    print(f"{reading.value:.3f} {reading.unit} ({'stable' if reading.stable else 'unstable'})")
    return 0


async def cmd_print_test(platform: SerialPlatform, args: argparse.Namespace) -> int:
    printer = ThermalPrinter(platform, PrinterSettings.load())
    try:
        await printer.connect(port_name=args.port, chooser=choose_port)
        await printer.print_test_page()
    except DeviceError as e:
        return _report(e)
    finally:
        await printer.disconnect()
    print("Test page sent.")
    return 0


async def cmd_diagnose(platform: SerialPlatform, args: argparse.Namespace) -> int:
    if args.device == "printer":
        device = ThermalPrinter(platform, PrinterSettings.load())
        report = await run_printer_diagnostics(
            device, port_name=args.port, chooser=choose_port, print_test=not args.no_print
        )
    else:
        device = Scale(platform, ScaleSettings.load())
        if isinstance(platform, SimulatedPlatform) and args.port == SIM_SCALE:
            platform.devices[SIM_SCALE].feed(SIM_FRAMES)
        report = await run_scale_diagnostics(
            device, port_name=args.port, chooser=choose_port, timeout=args.timeout
        )
    await device.disconnect()
    print(report.render())
    return 0 if report.ok else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="posperipherals", description=DESCRIPTION)
    parser.add_argument("--version", action="version", version=f"{APP_NAME} {__version__}")
    parser.add_argument("--simulate", action="store_true",
                        help="use simulated devices instead of real serial ports")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    parser.add_argument("--log-file", help="also log to this file (rotated at 5 MB)")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("ports", help="list serial ports")

    weigh = sub.add_parser("weigh", help="read one stable weight from the scale")
    weigh.add_argument("--port", help="serial port (prompted if omitted)")
    weigh.add_argument("--timeout", type=float, default=None, help="seconds to wait")

    test = sub.add_parser("print-test", help="print the printer test page")
    test.add_argument("--port", help="serial port (prompted if omitted)")

    diag = sub.add_parser("diagnose", help="run a step-by-step device diagnostic")
    diag.add_argument("device", choices=("printer", "scale"))
    diag.add_argument("--port", help="serial port (prompted if omitted)")
    diag.add_argument("--timeout", type=float, default=None, help="scale sample wait in seconds")
    diag.add_argument("--no-print", action="store_true", help="skip the printer test page")
    return parser


COMMANDS = {
    "ports": cmd_ports,
    "weigh": cmd_weigh,
    "print-test": cmd_print_test,
    "diagnose": cmd_diagnose,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.WARNING, args.log_file)

    if args.simulate:
        platform: SerialPlatform = demo_platform()
        if getattr(args, "port", None) is None and args.command != "ports":
            args.port = SIM_SCALE if _wants_scale(args) else SIM_PRINTER
    else:
        platform = default_platform()
    logger.debug(f"{APP_NAME} {__version__}: {args.command} on {type(platform).__name__}")

    try:
        return asyncio.run(COMMANDS[args.command](platform, args))
    except KeyboardInterrupt:
        return 130


def _wants_scale(args: argparse.Namespace) -> bool:
    return args.command == "weigh" or getattr(args, "device", None) == "scale"


if __name__ == '__main__':
    sys.exit(main())

"""Supervised printer and scale devices for POSPeripherals."""

from .base import SupervisedDevice
from .printer import ThermalPrinter
from .scale import Scale
from .diagnostics import (
    DiagnosticReport,
    DiagnosticStep,
    run_printer_diagnostics,
    run_scale_diagnostics,
)

__all__ = [
    'SupervisedDevice',
    'ThermalPrinter',
    'Scale',
    'DiagnosticReport',
    'DiagnosticStep',
    'run_printer_diagnostics',
    'run_scale_diagnostics',
]

"""POSPeripherals version information."""

__version__ = "1.2.0"
__version_info__ = tuple(int(x) for x in __version__.split("."))

APP_NAME = "POSPeripherals"
DESCRIPTION = "Serial thermal printer and weighing scale integration"

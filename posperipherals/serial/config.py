"""Serial port constants for POSPeripherals."""

from __future__ import annotations


class SerialConfig:
    """Timing and buffering limits for serial connections."""
    READ_CHUNK_SIZE = 256
    OPEN_TIMEOUT = 5.0  # Seconds
    WRITE_TIMEOUT = 10.0  # Seconds, a full receipt at 9600 baud takes ~2 s
    SETTLE_DELAY = 0.1  # Let port stabilize after open

    # Interpreters without native serial port access
    UNSUPPORTED_PLATFORMS = ('emscripten', 'wasi')

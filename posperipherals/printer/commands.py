"""ESC/POS command bytes used by the receipt encoder."""

from __future__ import annotations

ESC = b'\x1b'
GS = b'\x1d'
LF = b'\x0a'

INIT = ESC + b'@'

BOLD_ON = ESC + b'E\x01'
BOLD_OFF = ESC + b'E\x00'

ALIGN_LEFT = ESC + b'a\x00'

SIZE_NORMAL = GS + b'!\x00'
SIZE_DOUBLE = GS + b'!\x11'  # Double width and height

# Partial cut after feeding to the cutter (GS V 66 0)
CUT = GS + b'V\x42\x00'

# Pulse drawer pin 2: 50 ms on, 500 ms off
DRAWER_KICK = ESC + b'p\x00\x19\xfa'

# Lines fed before cutting so the last printed line clears the blade
FEED_BEFORE_CUT = 3

# ESC t n code table numbers for the encodings Python knows by name
CODE_TABLES = {
    'cp437': 0,
    'cp850': 2,
    'cp860': 3,
    'cp863': 4,
    'cp865': 5,
    'cp858': 19,
}


def select_code_table(encoding: str) -> bytes:
    """ESC t n for ``encoding``.

    Raises:
        ValueError: If the printer has no code table for ``encoding``.
    """
    key = encoding.lower().replace('-', '')
    if key not in CODE_TABLES:
        raise ValueError(
            f"Unsupported printer encoding {encoding!r}; use one of {', '.join(CODE_TABLES)}"
        )
    return ESC + b't' + bytes([CODE_TABLES[key]])

"""Translation of receipt documents into ESC/POS byte buffers."""

from __future__ import annotations

from . import commands
from .layout import center_text, columns, right_text, separator, wrap_text
from .receipt import (
    Align,
    Columns,
    Cut,
    DrawerKick,
    Feed,
    ReceiptBlock,
    ReceiptDocument,
    Separator,
    Text,
)

DEFAULT_ENCODING = 'cp850'


def _literal(text: str, encoding: str) -> bytes:
    # Characters missing from the code page print as '?'
    return text.encode(encoding, errors='replace')


def _align(line: str, align: Align, width: int) -> str:
    if align is Align.CENTER:
        return center_text(line, width)
    if align is Align.RIGHT:
        return right_text(line, width)
    return line


def _encode_text(block: Text, char_width: int, encoding: str) -> bytes:
    width = max(1, char_width // 2) if block.double_size else char_width
    out = bytearray()
    if block.bold:
        out += commands.BOLD_ON
    if block.double_size:
        out += commands.SIZE_DOUBLE
    for line in wrap_text(block.content, width):
        out += _literal(_align(line, block.align, width), encoding) + commands.LF
    if block.double_size:
        out += commands.SIZE_NORMAL
    if block.bold:
        out += commands.BOLD_OFF
    return bytes(out)


def _encode_block(block: ReceiptBlock, char_width: int, encoding: str) -> bytes:
    if isinstance(block, Text):
        return _encode_text(block, char_width, encoding)
    if isinstance(block, Columns):
        line = _literal(columns(block.label, block.value, char_width), encoding) + commands.LF
        if block.bold:
            return commands.BOLD_ON + line + commands.BOLD_OFF
        return line
    if isinstance(block, Separator):
        return _literal(separator(block.char, char_width), encoding) + commands.LF
    if isinstance(block, Feed):
        return commands.LF * max(0, block.lines)
    if isinstance(block, Cut):
        return commands.LF * commands.FEED_BEFORE_CUT + commands.CUT
    if isinstance(block, DrawerKick):
        return commands.DRAWER_KICK
    raise TypeError(f"Unknown receipt block: {block!r}")


def encode(document: ReceiptDocument, char_width: int, encoding: str = DEFAULT_ENCODING) -> bytes:
    """Encode ``document`` for a printer with ``char_width`` columns.

    The buffer starts by resetting the printer and selecting the code table,
    and always ends by feeding past the cutter and cutting. Pure: the same
    document and width always give the same bytes.

    Raises:
        ValueError: If ``char_width`` is not positive or ``encoding`` has no
            printer code table.
    """
    if char_width <= 0:
        raise ValueError(f"char_width must be positive, got {char_width}")

    out = bytearray(commands.INIT)
    out += commands.select_code_table(encoding)
    out += commands.ALIGN_LEFT
    out += commands.SIZE_NORMAL

    blocks = list(document)
    for block in blocks:
        out += _encode_block(block, char_width, encoding)

    if not blocks or not isinstance(blocks[-1], Cut):
        out += _encode_block(Cut(), char_width, encoding)
    return bytes(out)

"""Thermal receipt printer package for POSPeripherals."""

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
    build_receipt,
    build_test_page,
)
from .layout import center_text, columns, right_text, separator, wrap_text
from .encoder import encode

__all__ = [
    "Align",
    "Columns",
    "Cut",
    "DrawerKick",
    "Feed",
    "ReceiptBlock",
    "ReceiptDocument",
    "Separator",
    "Text",
    "build_receipt",
    "build_test_page",
    "center_text",
    "columns",
    "right_text",
    "separator",
    "wrap_text",
    "encode",
]

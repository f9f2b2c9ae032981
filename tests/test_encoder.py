from datetime import datetime

import pytest

from posperipherals.core.settings import PrinterSettings
from posperipherals.printer import commands
from posperipherals.printer.encoder import encode
from posperipherals.printer.receipt import (
    Align,
    ReceiptDocument,
    Separator,
    build_receipt,
    build_test_page,
)

PREAMBLE = commands.INIT + b"\x1bt\x02" + commands.ALIGN_LEFT + commands.SIZE_NORMAL
TRAILER = commands.LF * 3 + commands.CUT


def sample_receipt():
    return build_receipt(
        header=["ELITE ACAI", "Rua das Flores, 123"],
        lines=["Order #42", ("Acai 500ml", "R$ 12,00"), ("Granola", "R$ 3,99")],
        total=("Total:", "R$ 15,99"),
        footer=["Thank you!"],
    )


def test_empty_document_has_preamble_and_trailer():
    assert encode(ReceiptDocument(), 48) == PREAMBLE + TRAILER


def test_encoding_is_deterministic():
    doc = sample_receipt()
    assert encode(doc, 48) == encode(doc, 48)


def test_always_ends_with_cut():
    data = encode(sample_receipt(), 48)
    assert data.startswith(PREAMBLE)
    assert data.endswith(TRAILER)


def test_document_ending_in_cut_is_cut_once():
    data = encode(ReceiptDocument().text("hi").cut(), 48)
    assert data.count(commands.CUT) == 1
    assert data.endswith(TRAILER)


def test_columns_line():
    data = encode(ReceiptDocument().columns("Total:", "R$ 15,99"), 20)
    assert b"Total:      R$ 15,99\n" in data


def test_bold_text_is_wrapped_in_emphasis():
    data = encode(ReceiptDocument().text("TOTAL", bold=True), 48)
    assert commands.BOLD_ON + b"TOTAL\n" + commands.BOLD_OFF in data


def test_centered_text_is_padded():
    data = encode(ReceiptDocument().text("ABC", align=Align.CENTER), 9)
    assert b"   ABC\n" in data


def test_double_size_wraps_at_half_width():
    data = encode(ReceiptDocument().text("AAAA BBBB", double_size=True), 10)
    assert commands.SIZE_DOUBLE + b"AAAA\nBBBB\n" + commands.SIZE_NORMAL in data


def test_separator_spans_width():
    data = encode(ReceiptDocument().add(Separator("-")), 32)
    assert b"-" * 32 + b"\n" in data


def test_feed_lines():
    data = encode(ReceiptDocument().text("x").feed(2), 48)
    assert b"x\n\n\n" + TRAILER in data


def test_drawer_kick_comes_before_cut():
    doc = build_receipt(["SHOP"], ["item"], open_drawer=True)
    data = encode(doc, 48)
    assert data.count(commands.DRAWER_KICK) == 1
    assert data.index(commands.DRAWER_KICK) < data.index(commands.CUT)


def test_no_drawer_kick_by_default():
    assert commands.DRAWER_KICK not in encode(sample_receipt(), 48)


def test_code_page_characters():
    data = encode(ReceiptDocument().text("Açaí"), 48)
    assert "Açaí".encode("cp850") + b"\n" in data


def test_missing_characters_print_as_question_mark():
    data = encode(ReceiptDocument().text("5 €"), 48, "cp850")
    assert b"5 ?\n" in data


def test_cp858_has_euro():
    data = encode(ReceiptDocument().text("5 €"), 48, "cp858")
    assert data.startswith(commands.INIT + b"\x1bt\x13")
    assert b"5 \xd5\n" in data


def test_invalid_width():
    with pytest.raises(ValueError):
        encode(sample_receipt(), 0)


def test_unknown_encoding():
    with pytest.raises(ValueError):
        encode(sample_receipt(), 48, "utf-8")


def test_separator_needs_one_character():
    with pytest.raises(ValueError):
        Separator("==")


def test_receipt_layout():
    doc = sample_receipt()
    data = encode(doc, 48)
    assert commands.BOLD_ON + b" " * 19 + b"ELITE ACAI\n" + commands.BOLD_OFF in data
    assert b"=" * 48 + b"\n" in data
    assert b"Total:" + b" " * 34 + b"R$ 15,99\n" in data


def test_test_page_lists_configuration():
    settings = PrinterSettings(characters_per_line=32, encoding="cp858")
    data = encode(build_test_page(settings, datetime(2024, 1, 2, 3, 4, 5)), 32, "cp858")
    for expected in (b"PRINTER TEST", b"Date: 02/01/2024", b"Time: 03:04:05",
                     b"Paper width: 80mm", b"Characters per line: 32",
                     b"Baud rate: 9600", b"Code page: cp858"):
        assert expected in data
